from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx
from litestar import Request
from litestar.di import Provide
from litestar.plugins import CLIPlugin, InitPluginProtocol

from litestar_inertia.config import InertiaConfig
from litestar_inertia.factory import InertiaResponseFactory
from litestar_inertia.props import always
from litestar_inertia.request import InertiaRequest
from litestar_inertia.version import create_version_detector

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from click import Group
    from litestar import Litestar
    from litestar.config.app import AppConfig

__all__ = ("InertiaPlugin",)


def _provide_inertia(request: Request[Any, Any, Any]) -> InertiaResponseFactory:
    from litestar_inertia.helpers import get_inertia

    return get_inertia(request)


class InertiaPlugin(InitPluginProtocol, CLIPlugin):
    """Inertia plugin.

    This plugin configures Litestar for Inertia.js support, including:
    - An application response factory built from :class:`InertiaConfig`
    - :class:`InertiaMiddleware` handing every request its own copy of that factory
    - InertiaRequest as the default request class
    - An ``inertia`` dependency resolving to the per-request factory
    - The ``litestar inertia`` CLI group

    With SSR enabled, one pooled ``httpx.AsyncClient`` lives for the app lifespan and is
    exposed as :attr:`ssr_client`.

    Example::

        from litestar_inertia import InertiaConfig, InertiaPlugin

        app = Litestar(plugins=[InertiaPlugin(InertiaConfig(version="1"))])
    """

    __slots__ = ("_factory", "_ssr_client", "config")

    def __init__(self, config: "InertiaConfig | None" = None) -> None:
        """Initialize the plugin with Inertia configuration."""
        self.config = config or InertiaConfig()
        self._ssr_client: "httpx.AsyncClient | None" = None
        self._factory = self._create_factory(self.config)

    @staticmethod
    def _create_factory(config: InertiaConfig) -> InertiaResponseFactory:
        factory = InertiaResponseFactory()
        factory.set_root_view(config.root_view)
        factory.set_vite_options(config.vite_options)
        factory.set_version(
            config.version if config.version is not None else create_version_detector(options=config.vite_options)
        )
        factory.set_ssr_options(config.ssr_config)
        factory.set_renderer(config.renderer)
        factory.resolve_url_using(config.url_resolver)
        factory.encrypt_history(config.encrypt_history)
        factory.share(config.shared_props)
        return factory

    @property
    def factory(self) -> InertiaResponseFactory:
        """Return the application response factory.

        Changes made here apply to every request started afterwards.

        Returns:
            The application factory.
        """
        return self._factory

    @property
    def ssr_client(self) -> "httpx.AsyncClient | None":
        """Return the shared httpx.AsyncClient for SSR requests.

        Returns:
            The shared AsyncClient instance, or None if SSR is disabled or the lifespan is not active.
        """
        return self._ssr_client

    @asynccontextmanager
    async def lifespan(self, app: "Litestar") -> "AsyncGenerator[None, None]":
        """Own the shared SSR client for the lifetime of the application.

        Args:
            app: The :class:`Litestar <litestar.app.Litestar>` instance.

        Yields:
            Control back to the application.
        """
        if self.config.ssr_config is None:
            yield
            return

        limits = httpx.Limits(max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0)
        self._ssr_client = httpx.AsyncClient(limits=limits, timeout=httpx.Timeout(10.0))
        self._factory.ssr_client = self._ssr_client
        try:
            yield
        finally:
            await self._ssr_client.aclose()
            self._ssr_client = None
            self._factory.ssr_client = None

    def create_request_factory(self, request: "InertiaRequest[Any, Any, Any]") -> InertiaResponseFactory:
        """Copy the application factory for one request.

        Validation errors and flash messages are shared here when their resolvers are configured.
        Both resolvers are called lazily, when a response is resolved.

        Args:
            request: The current request.

        Returns:
            The per-request factory.
        """
        factory = self._factory.copy()

        resolve_errors = self.config.resolve_errors
        if resolve_errors is not None:
            error_bag = request.error_bag

            def errors() -> "dict[str, Any]":
                resolved = dict(resolve_errors(request))
                return {error_bag: resolved} if error_bag else resolved

            factory.share("errors", always(errors))

        flash_messages = self.config.flash_messages
        if flash_messages is not None:
            factory.share("flash", lambda: dict(flash_messages(request)))

        return factory

    def on_cli_init(self, cli: "Group") -> None:
        from litestar_inertia.cli import inertia_group

        cli.add_command(inertia_group)

    def on_app_init(self, app_config: "AppConfig") -> "AppConfig":
        """Configure application for use with Inertia.

        Args:
            app_config: The :class:`AppConfig <litestar.config.app.AppConfig>` instance.

        Returns:
            The :class:`AppConfig <litestar.config.app.AppConfig>` instance.
        """
        from litestar_inertia.middleware import InertiaMiddleware
        from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaResponse

        app_config.request_class = InertiaRequest
        app_config.middleware.append(InertiaMiddleware)
        app_config.signature_types.extend([
            InertiaRequest,
            InertiaResponse,
            InertiaExternalRedirect,
            InertiaBack,
            InertiaResponseFactory,
        ])
        app_config.dependencies.setdefault("inertia", Provide(_provide_inertia, sync_to_thread=False))
        app_config.lifespan.append(self.lifespan)  # pyright: ignore[reportUnknownMemberType]
        return app_config
