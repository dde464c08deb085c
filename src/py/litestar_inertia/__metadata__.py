"""Distribution name and version, as installed."""

from importlib.metadata import PackageNotFoundError, metadata, version

__all__ = ("__project__", "__version__")

_DISTRIBUTION = "litestar-inertia"

try:
    __version__: str = version(_DISTRIBUTION)
    __project__: str = metadata(_DISTRIBUTION)["Name"]
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
    __project__ = _DISTRIBUTION
