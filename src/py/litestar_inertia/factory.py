"""Response factory.

One factory is configured per application by :class:`~litestar_inertia.plugin.InertiaPlugin`.
The middleware hands every request its own :meth:`~InertiaResponseFactory.copy`, so props
shared while handling one request never leak into another.
"""

from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, cast

from litestar_inertia import props as prop_types
from litestar_inertia.config import ViteOptions
from litestar_inertia.response import InertiaExternalRedirect, InertiaResponse

if TYPE_CHECKING:
    import httpx

    from litestar_inertia.config import SSRConfig
    from litestar_inertia.props import AlwaysProp, DeferProp, LazyProp, MergeProp, OptionalProp, PropCallback
    from litestar_inertia.types import PageRenderer, UrlResolver

__all__ = ("InertiaResponseFactory",)


class InertiaResponseFactory:
    """Holds response defaults and creates :class:`~litestar_inertia.response.InertiaResponse` objects."""

    def __init__(self) -> None:
        self.root_view = "app"
        self.shared_props: dict[str, Any] = {}
        self.version: "str | Callable[[], str] | None" = None
        self.should_clear_history = False
        self.should_encrypt_history = False
        self.url_resolver: "UrlResolver | None" = None
        self.renderer: "PageRenderer | None" = None
        self.vite_options = ViteOptions()
        self.ssr_options: "SSRConfig | None" = None
        self.ssr_client: "httpx.AsyncClient | None" = None

    def copy(self) -> "InertiaResponseFactory":
        """Return an independent factory with the current configuration.

        Shared props and option objects are copied, so later changes on either side are not
        seen by the other. The version source is copied as is; a callable is still called at
        render time.

        Returns:
            The new factory.
        """
        clone = InertiaResponseFactory()
        clone.root_view = self.root_view
        clone.shared_props = dict(self.shared_props)
        clone.version = self.version
        clone.should_clear_history = self.should_clear_history
        clone.should_encrypt_history = self.should_encrypt_history
        clone.url_resolver = self.url_resolver
        clone.renderer = self.renderer
        clone.vite_options = self.vite_options.merged()
        clone.ssr_options = replace(self.ssr_options) if self.ssr_options is not None else None
        clone.ssr_client = self.ssr_client
        return clone

    def set_root_view(self, name: str) -> None:
        self.root_view = name

    def set_vite_options(self, options: "ViteOptions | Mapping[str, Any]") -> None:
        """Merge ``options`` over the current Vite options.

        Args:
            options: Either full options or a mapping of field names to override.
        """
        if isinstance(options, ViteOptions):
            options = {name: getattr(options, name) for name in options.__dataclass_fields__}
        self.vite_options = self.vite_options.merged(**options)

    def set_ssr_options(self, options: "SSRConfig | None") -> None:
        self.ssr_options = options

    def set_renderer(self, renderer: "PageRenderer | None") -> None:
        self.renderer = renderer

    def share(self, key: "str | Mapping[str, Any]", value: Any = None) -> None:
        """Share props with every response created afterwards.

        Later values win. Nested mappings are replaced, not merged.

        Args:
            key: A prop name, or a mapping of props.
            value: The value when ``key`` is a name.
        """
        if isinstance(key, Mapping):
            self.shared_props.update(cast("Mapping[str, Any]", key))
        else:
            self.shared_props[key] = value

    def get_shared(self, key: "str | None" = None, default: Any = None) -> Any:
        """Return one shared prop, or all of them.

        Args:
            key: The prop name. ``None`` returns the whole mapping.
            default: Returned when ``key`` is not shared. A prop shared as ``None`` stays ``None``.

        Returns:
            The shared value(s).
        """
        if key is None:
            return self.shared_props
        return self.shared_props.get(key, default)

    def flush_shared(self) -> None:
        self.shared_props = {}

    def set_version(self, version: "str | Callable[[], str] | None") -> None:
        self.version = version

    def get_version(self) -> "str | None":
        """Return the current asset version.

        Returns:
            The version, calling the version source if it is callable, or None when unset.
        """
        if callable(self.version):
            return self.version()
        return self.version

    def resolve_url_using(self, url_resolver: "UrlResolver | None") -> None:
        self.url_resolver = url_resolver

    def clear_history(self) -> None:
        self.should_clear_history = True

    def encrypt_history(self, encrypt: bool = True) -> None:
        self.should_encrypt_history = encrypt

    def render(self, component: str, props: "Mapping[str, Any] | None" = None) -> InertiaResponse:
        """Create a response for ``component``.

        The response gets the shared props overlaid with ``props`` and a snapshot of the
        current configuration.

        Args:
            component: JavaScript component name.
            props: Props for this response. They win over shared props.

        Returns:
            The response.
        """
        response = InertiaResponse(
            component,
            {**self.shared_props, **(props or {})},
            root_view=self.root_view,
            version=self.get_version(),
            encrypt_history=self.should_encrypt_history,
            url_resolver=self.url_resolver,
            renderer=self.renderer,
            vite_options=self.vite_options.merged(),
            ssr_options=self.ssr_options,
            ssr_client=self.ssr_client,
        )
        if self.should_clear_history:
            response.clear_history()
        return response

    def location(self, url: str) -> InertiaExternalRedirect:
        """Force the client to visit ``url`` with a full page load.

        Args:
            url: The target URL, which may be external.

        Returns:
            A 409 response carrying ``X-Inertia-Location``.
        """
        return InertiaExternalRedirect(url)

    def lazy(self, callback: "PropCallback[Any]") -> "LazyProp[Any]":
        return prop_types.lazy(callback)

    def optional(self, callback: "PropCallback[Any]") -> "OptionalProp[Any]":
        return prop_types.optional(callback)

    def always(self, value: Any) -> "AlwaysProp[Any]":
        return prop_types.always(value)

    def defer(self, callback: "PropCallback[Any]", group: "str | None" = None) -> "DeferProp[Any]":
        return prop_types.defer(callback, group)

    def merge(self, value: Any) -> "MergeProp[Any]":
        return prop_types.merge(value)

    def deep_merge(self, value: Any) -> "MergeProp[Any]":
        return prop_types.deep_merge(value)
