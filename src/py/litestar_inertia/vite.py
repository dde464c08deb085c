"""Vite asset helper.

Reads the Vite hot file and build manifest and turns them into the tags an Inertia page needs.

In development the Vite dev server writes its URL into the hot file (``public/hot`` by default)
and assets are loaded straight from the dev server. In production the tags are generated from
``public/build/manifest.json``.
"""

import logging
from pathlib import Path
from textwrap import dedent
from typing import TYPE_CHECKING, Any, cast

import markupsafe
from litestar.exceptions import SerializationException
from litestar.serialization import decode_json

from litestar_inertia.config import ViteOptions
from litestar_inertia.exceptions import InvalidManifestError

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ("DEFAULT_DEV_SERVER_URL", "Vite", "clear_manifest_cache")

logger = logging.getLogger("litestar_inertia")

DEFAULT_DEV_SERVER_URL = "http://localhost:5173"

_REACT_PACKAGES = ("react", "react-dom", "@types/react")
_REACT_MARKERS = ("react", "jsx", "tsx")

_manifest_cache: "dict[Path, dict[str, Any]]" = {}


def clear_manifest_cache() -> None:
    """Forget every manifest read so far."""
    _manifest_cache.clear()


def _resolve_public_dir(options: ViteOptions) -> Path:
    public_dir = Path(options.public_directory)
    return public_dir if public_dir.is_absolute() else Path.cwd() / public_dir


class Vite:
    """Vite asset helper for a given :class:`~litestar_inertia.config.ViteOptions`."""

    def __init__(self, options: "ViteOptions | None" = None) -> None:
        self.options = options or ViteOptions()

    @property
    def public_dir(self) -> Path:
        return _resolve_public_dir(self.options)

    @property
    def hot_file_path(self) -> Path:
        return self.public_dir / self.options.hot_file

    @property
    def manifest_path(self) -> Path:
        return self.public_dir / self.options.build_directory / self.options.manifest_filename

    def is_running_hot(self) -> bool:
        """Check if running in development mode by checking for hot file.

        Returns:
            True when the hot file exists.
        """
        return self.hot_file_path.exists()

    def hot_url(self) -> "str | None":
        """Get the dev server URL from the hot file.

        Returns:
            The URL without trailing slash, or None outside dev mode.
        """
        try:
            return self.hot_file_path.read_text().strip().rstrip("/") or None
        except FileNotFoundError:
            return None

    def manifest(self) -> "dict[str, Any] | None":
        """Load and cache the Vite manifest file.

        Raises:
            InvalidManifestError: If the manifest exists but cannot be parsed.

        Returns:
            The parsed manifest, or None when it does not exist.
        """
        path = self.manifest_path
        if path in _manifest_cache:
            return _manifest_cache[path]
        if not path.exists():
            return None
        try:
            manifest = decode_json(path.read_bytes())
        except (OSError, SerializationException) as exc:
            raise InvalidManifestError(str(path), str(exc)) from exc
        if not isinstance(manifest, dict):
            raise InvalidManifestError(str(path), "expected a JSON object")
        _manifest_cache[path] = cast("dict[str, Any]", manifest)
        return _manifest_cache[path]

    def asset(self, entrypoint: str) -> "dict[str, Any] | None":
        """Get asset information from the manifest.

        Args:
            entrypoint: The manifest key, e.g. ``client/App.tsx``.

        Returns:
            The manifest chunk, or None.
        """
        manifest = self.manifest()
        if manifest is None:
            return None
        chunk = manifest.get(entrypoint)
        return cast("dict[str, Any]", chunk) if isinstance(chunk, dict) else None

    def uses_react(self) -> bool:
        """Guess whether the frontend is a React app.

        Looks at the entrypoint extensions, the file names in the manifest and the
        dependencies in ``package.json`` of the working directory.

        Returns:
            True when React is detected.
        """
        if any(entry.endswith((".tsx", ".jsx")) for entry in self.options.entrypoints):
            return True

        manifest = self._safe_manifest()
        if manifest:
            for chunk in manifest.values():
                file_name = chunk.get("file") if isinstance(chunk, dict) else None
                if isinstance(file_name, str) and any(marker in file_name for marker in _REACT_MARKERS):
                    return True

        package_json = Path.cwd() / "package.json"
        try:
            package = decode_json(package_json.read_bytes())
        except (OSError, SerializationException):
            return False
        if not isinstance(package, dict):
            return False
        for section in ("dependencies", "devDependencies", "peerDependencies"):
            deps = package.get(section)
            if isinstance(deps, dict) and any(name in deps for name in _REACT_PACKAGES):
                return True
        return False

    def react_refresh(self, hot_url: "str | None" = None) -> markupsafe.Markup:
        """Generate React Fast Refresh preamble script.

        Args:
            hot_url: Dev server URL. Read from the hot file when omitted.

        Returns:
            The preamble script tag.
        """
        url = hot_url or self.hot_url() or DEFAULT_DEV_SERVER_URL
        return markupsafe.Markup(
            dedent(f"""\
            <script type="module">
                import RefreshRuntime from '{url}/@react-refresh'
                RefreshRuntime.injectIntoGlobalHook(window)
                window.$RefreshReg$ = () => {{}}
                window.$RefreshSig$ = () => (type) => type
                window.__vite_plugin_react_preamble_installed__ = true
            </script>""")
        )

    def make_tag(
        self, entrypoints: "str | Iterable[str] | None" = None, hot_url: "str | None" = None
    ) -> markupsafe.Markup:
        """Generate Vite asset tags for development or production.

        Args:
            entrypoints: Entrypoints to load. Defaults to the configured entrypoints.
            hot_url: Dev server URL override.

        Returns:
            The tags, one per line.
        """
        if entrypoints is None:
            entries = list(self.options.entrypoints)
        elif isinstance(entrypoints, str):
            entries = [entrypoints]
        else:
            entries = list(entrypoints)

        if self.is_running_hot():
            return self._dev_tags(entries, hot_url or self.hot_url() or DEFAULT_DEV_SERVER_URL)
        return self._build_tags(entries)

    def _dev_tags(self, entrypoints: "list[str]", hot_url: str) -> markupsafe.Markup:
        tags = [self._script_tag(f"{hot_url}/@vite/client")]
        if self.options.react_refresh or self.uses_react():
            tags.append(self.react_refresh(hot_url))
        tags.extend(self._script_tag(f"{hot_url}/{entrypoint}") for entrypoint in entrypoints)
        return markupsafe.Markup("\n".join(tags))

    def _build_tags(self, entrypoints: "list[str]") -> markupsafe.Markup:
        manifest = self._safe_manifest()
        if manifest is None:
            logger.warning("No manifest file found for production assets at %s", self.manifest_path)
            return markupsafe.Markup("")

        tags: list[str] = []
        if entrypoints:
            for entrypoint in entrypoints:
                chunk = manifest.get(entrypoint)
                if not isinstance(chunk, dict):
                    continue
                tags.extend(self._style_tag(self._build_url(css)) for css in self._css_files(chunk))
                if file_name := chunk.get("file"):
                    tags.append(self._script_tag(self._build_url(file_name)))
                for import_key in chunk.get("imports") or []:
                    imported = manifest.get(import_key)
                    if isinstance(imported, dict) and (import_file := imported.get("file")):
                        tags.append(self._preload_tag(self._build_url(import_file)))
        else:
            chunks = [chunk for chunk in manifest.values() if isinstance(chunk, dict)]
            for chunk in chunks:
                tags.extend(self._style_tag(self._build_url(css)) for css in self._css_files(chunk))
            for chunk in chunks:
                if file_name := chunk.get("file"):
                    tags.append(self._script_tag(self._build_url(file_name)))
        return markupsafe.Markup("\n".join(tags))

    def _safe_manifest(self) -> "dict[str, Any] | None":
        try:
            return self.manifest()
        except InvalidManifestError as exc:
            logger.warning("%s", exc)
            return None

    def _build_url(self, file_name: str) -> str:
        return f"/{self.options.build_directory.strip('/')}/{file_name}"

    @staticmethod
    def _css_files(chunk: "dict[str, Any]") -> "list[str]":
        css = chunk.get("css")
        if not css:
            return []
        return [file for file in (css if isinstance(css, list) else [css]) if file]

    @staticmethod
    def _script_tag(src: str) -> str:
        return f'<script type="module" src="{markupsafe.escape(src)}"></script>'

    @staticmethod
    def _style_tag(href: str) -> str:
        return f'<link rel="stylesheet" href="{markupsafe.escape(href)}">'

    @staticmethod
    def _preload_tag(href: str) -> str:
        return f'<link rel="modulepreload" href="{markupsafe.escape(href)}">'
