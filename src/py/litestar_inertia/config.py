"""Plugin configuration."""

import os
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Union

if TYPE_CHECKING:
    from collections.abc import Mapping

    from litestar import Request

    from litestar_inertia.types import PageRenderer, UrlResolver

__all__ = (
    "DEFAULT_SSR_URL",
    "TRUE_VALUES",
    "InertiaConfig",
    "SSRConfig",
    "ViteOptions",
)

TRUE_VALUES = {"True", "true", "1", "yes", "Y", "T"}
DEFAULT_SSR_URL = "http://127.0.0.1:13714/render"

VersionSource = Union[str, Callable[[], str], None]
RequestPropsResolver = Callable[["Request[Any, Any, Any]"], "Mapping[str, Any]"]


def empty_dict_factory() -> dict[str, Any]:
    """Return an empty ``dict[str, Any]``.

    Returns:
        An empty dictionary.
    """
    return {}


def _default_entrypoints() -> list[str]:
    return ["client/App.tsx"]


@dataclass
class ViteOptions:
    """Where the Vite build writes its files and which entrypoints to load.

    All paths are relative to ``public_directory``, which is itself resolved against
    the current working directory when relative.
    """

    hot_file: str = "hot"
    """Marker file written by the Vite dev server. Its content is the dev server URL."""
    build_directory: str = "build"
    """Directory under ``public_directory`` holding the production build."""
    manifest_filename: str = "manifest.json"
    """Name of the Vite manifest inside ``build_directory``."""
    public_directory: str = "public"
    """Directory served as the web root."""
    entrypoints: list[str] = field(default_factory=_default_entrypoints)
    """Entrypoints to emit tags for, as keys of the Vite manifest."""
    react_refresh: bool = False
    """Always emit the React refresh preamble in dev mode, even when React is not detected."""

    def merged(self, **changes: Any) -> "ViteOptions":
        """Return a copy with ``changes`` applied.

        Args:
            **changes: Field values to override. ``None`` values are ignored.

        Returns:
            A new :class:`ViteOptions`.
        """
        changes = {key: value for key, value in changes.items() if value is not None}
        if "entrypoints" in changes:
            changes["entrypoints"] = list(changes["entrypoints"])
        else:
            changes["entrypoints"] = list(self.entrypoints)
        return replace(self, **changes)


@dataclass
class SSRConfig:
    """Where and how long to wait for the Inertia SSR server.

    ``url`` defaults to ``INERTIA_SSR_URL``, or the port the official server listens on.
    """

    enabled: bool = True
    url: str = field(default_factory=lambda: os.getenv("INERTIA_SSR_URL", DEFAULT_SSR_URL))
    timeout: float = 2.0


@dataclass
class InertiaConfig:
    """Settings read once by :class:`~litestar_inertia.plugin.InertiaPlugin`.

    Attributes:
        version: Asset version, a callable producing it, or ``None`` to detect it from the build output.
        root_view: Name of the root view template, e.g. ``"app"`` for ``app.html``. Also passed to custom renderers.
        vite: Vite build layout used for asset tags and version detection.
        ssr: Server-side rendering settings.
        encrypt_history: Encrypt browser history state on every response.
        shared_props: Static props added to every page response.
        resolve_errors: Returns validation errors for the current request.
        flash_messages: Returns flash messages for the current request.
        renderer: Custom HTML renderer used instead of the default document.
        url_resolver: Rewrites the URL put into the page object.
    """

    version: "VersionSource" = None
    """Asset version used for cache busting.

    Supports:
        - str: used as-is
        - callable: invoked on every response
        - None: detected from the hot file or the build manifest
    """
    root_view: str = "app"
    vite: "ViteOptions | None" = None
    """Vite build layout. ``None`` means the defaults of :class:`ViteOptions`."""
    ssr: "SSRConfig | bool | None" = None
    """Server-side rendering of the first, full-page visit.

    Supports:
        - True: enable with defaults -> ``SSRConfig()``
        - False: disabled -> ``None``
        - None: enabled when ``INERTIA_SSR_ENABLED`` is set to a true value
        - SSRConfig: use as-is
    """
    encrypt_history: bool = False
    """Set ``encryptHistory`` on every page. See: https://inertiajs.com/history-encryption"""
    shared_props: "dict[str, Any]" = field(default_factory=empty_dict_factory)
    """Props merged under the handler props of every response."""
    resolve_errors: "RequestPropsResolver | None" = None
    """Callback returning the validation errors of the current request.

    The result is shared as the ``errors`` prop. When the client sends an error bag
    name, the errors are nested under that name.
    """
    flash_messages: "RequestPropsResolver | None" = None
    """Callback returning the flash messages of the current request, shared as ``flash``."""
    renderer: "PageRenderer | None" = None
    """Custom HTML renderer. Receives the page object and the view data."""
    url_resolver: "UrlResolver | None" = None
    """Rewrites the ``path?query`` of the request before it is put into the page object."""

    def __post_init__(self) -> None:
        """Normalize optional sub-configs."""
        if self.vite is None:
            self.vite = ViteOptions()
        if self.ssr is None:
            self.ssr = SSRConfig() if os.getenv("INERTIA_SSR_ENABLED", "False") in TRUE_VALUES else None
        elif self.ssr is True:
            self.ssr = SSRConfig()
        elif self.ssr is False:
            self.ssr = None

    @property
    def vite_options(self) -> ViteOptions:
        """Return the normalized Vite options.

        Returns:
            The Vite options.
        """
        return self.vite if isinstance(self.vite, ViteOptions) else ViteOptions()

    @property
    def ssr_config(self) -> "SSRConfig | None":
        """Return the SSR config when enabled, otherwise None.

        Returns:
            The resolved SSR config when enabled, otherwise None.
        """
        if isinstance(self.ssr, SSRConfig) and self.ssr.enabled:
            return self.ssr
        return None
