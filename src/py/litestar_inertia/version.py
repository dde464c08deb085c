"""Asset version detection.

The version is a hash of whatever file marks the current frontend build:

* the Vite hot file in development, so the version changes whenever the dev server restarts
* otherwise the first of ``<public>/<build>/<manifest>``, ``<public>/mix-manifest.json``
  and ``<public>/<manifest>`` that exists

MD5 is used as a stable content hash, not for security.
"""

import hashlib
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from litestar_inertia.config import ViteOptions

if TYPE_CHECKING:
    from os import PathLike

__all__ = ("MIX_MANIFEST_FILENAME", "create_version_detector", "detect_version", "is_development_mode")

logger = logging.getLogger("litestar_inertia")

MIX_MANIFEST_FILENAME = "mix-manifest.json"


def _public_dir(public_dir: "str | PathLike[str] | None", options: ViteOptions) -> Path:
    path = Path(public_dir if public_dir is not None else options.public_directory)
    return path if path.is_absolute() else Path.cwd() / path


def _hash_file(path: Path) -> str:
    try:
        content = path.read_bytes()
    except OSError as exc:
        logger.warning("Failed to read %s for asset versioning: %s", path, exc)
        return ""
    return hashlib.md5(content, usedforsecurity=False).hexdigest()


def is_development_mode(public_dir: "str | PathLike[str] | None" = None, hot_file: str = "hot") -> bool:
    """Check whether the Vite dev server hot file exists.

    Args:
        public_dir: The public directory. Defaults to ``public``.
        hot_file: Name of the hot file.

    Returns:
        True in development mode.
    """
    return (_public_dir(public_dir, ViteOptions()) / hot_file).exists()


def detect_version(
    public_dir: "str | PathLike[str] | None" = None, options: "ViteOptions | None" = None
) -> "str | None":
    """Detect the current asset version.

    Args:
        public_dir: The public directory. Defaults to ``options.public_directory``.
        options: Vite build layout.

    Returns:
        The version hash, or None when no marker file exists.
    """
    options = options or ViteOptions()
    root = _public_dir(public_dir, options)

    hot_file = root / options.hot_file
    if hot_file.exists():
        return _hash_file(hot_file)

    candidates = (
        root / options.build_directory / options.manifest_filename,
        root / MIX_MANIFEST_FILENAME,
        root / options.manifest_filename,
    )
    for candidate in candidates:
        if candidate.exists():
            return _hash_file(candidate)
    return None


def create_version_detector(
    public_dir: "str | PathLike[str] | None" = None, options: "ViteOptions | None" = None
) -> Callable[[], str]:
    """Create a version source for :meth:`InertiaResponseFactory.set_version`.

    The files are checked on every call, so a rebuild is picked up without a restart.

    Args:
        public_dir: The public directory. Defaults to ``options.public_directory``.
        options: Vite build layout.

    Returns:
        A callable returning the version, or ``""`` when none is detected.
    """

    def version() -> str:
        return detect_version(public_dir, options) or ""

    return version
