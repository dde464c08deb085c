"""Litestar-Inertia: the Inertia.js server protocol for Litestar.

Basic usage:
    from litestar import Litestar, Request, get
    from litestar_inertia import InertiaConfig, InertiaPlugin, InertiaResponse, render

    @get("/")
    async def index(request: Request) -> InertiaResponse:
        return render(request, "Home", {"greeting": "Hello"})

    app = Litestar(route_handlers=[index], plugins=[InertiaPlugin(InertiaConfig())])
"""

from litestar_inertia.config import InertiaConfig, SSRConfig, ViteOptions
from litestar_inertia.exceptions import InvalidManifestError, LitestarInertiaError, SSRError
from litestar_inertia.factory import InertiaResponseFactory
from litestar_inertia.helpers import back, clear_history, get_inertia, location, render, share
from litestar_inertia.middleware import InertiaMiddleware
from litestar_inertia.plugin import InertiaPlugin
from litestar_inertia.props import always, deep_merge, defer, lazy, merge, optional
from litestar_inertia.request import InertiaDetails, InertiaRequest
from litestar_inertia.response import InertiaBack, InertiaExternalRedirect, InertiaResponse
from litestar_inertia.types import PageObject, SSRResponse

__all__ = (
    "InertiaBack",
    "InertiaConfig",
    "InertiaDetails",
    "InertiaExternalRedirect",
    "InertiaMiddleware",
    "InertiaPlugin",
    "InertiaRequest",
    "InertiaResponse",
    "InertiaResponseFactory",
    "InvalidManifestError",
    "LitestarInertiaError",
    "PageObject",
    "SSRConfig",
    "SSRError",
    "SSRResponse",
    "ViteOptions",
    "always",
    "back",
    "clear_history",
    "deep_merge",
    "defer",
    "get_inertia",
    "lazy",
    "location",
    "merge",
    "optional",
    "render",
    "share",
)
