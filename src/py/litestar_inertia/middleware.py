from typing import TYPE_CHECKING, Any, cast

import anyio.to_thread
from litestar.enums import ScopeType
from litestar.middleware import AbstractMiddleware
from litestar.status_codes import HTTP_200_OK, HTTP_302_FOUND, HTTP_303_SEE_OTHER

from litestar_inertia._utils import InertiaHeaders
from litestar_inertia.request import InertiaRequest
from litestar_inertia.response import InertiaExternalRedirect

if TYPE_CHECKING:
    from litestar.types import Message, Receive, Scope, Send

    from litestar_inertia.factory import InertiaResponseFactory
    from litestar_inertia.plugin import InertiaPlugin

__all__ = (
    "INERTIA_FACTORY_STATE_KEY",
    "InertiaMiddleware",
    "is_version_mismatch",
    "redirect_on_asset_version_mismatch",
    "should_change_redirect_status",
)

INERTIA_FACTORY_STATE_KEY = "_litestar_inertia_factory"

_REDIRECT_UPGRADE_METHODS = frozenset({"PUT", "PATCH", "DELETE"})
_VARY = InertiaHeaders.VARY.value.lower().encode("latin-1")
_INERTIA = InertiaHeaders.ENABLED.value.encode("latin-1")


def should_change_redirect_status(method: str, status_code: int) -> bool:
    """Return True when a 302 must become a 303.

    The client would otherwise replay a PUT, PATCH or DELETE against the redirect target.

    Returns:
        True for a 302 answering PUT, PATCH or DELETE.
    """
    return status_code == HTTP_302_FOUND and method.upper() in _REDIRECT_UPGRADE_METHODS


def is_version_mismatch(method: str, client_version: "str | None", server_version: "str | None") -> bool:
    """Return True when a GET visit was made with stale assets.

    Both versions must be known for a mismatch to be reported.

    Returns:
        True when the client must reload the page.
    """
    return method.upper() == "GET" and bool(client_version) and bool(server_version) and client_version != server_version


async def redirect_on_asset_version_mismatch(
    request: "InertiaRequest[Any, Any, Any]", factory: "InertiaResponseFactory"
) -> "InertiaExternalRedirect | None":
    """Answer a stale Inertia GET visit before it reaches the handler.

    The server version is computed in a worker thread, since detectors read files.

    Returns:
        A 409 redirect to the current URL, or None when the visit may proceed.
    """
    if not request.is_inertia:
        return None

    inertia_version = request.inertia_version
    if not inertia_version or request.method != "GET":
        return None

    server_version = await anyio.to_thread.run_sync(factory.get_version)
    if not is_version_mismatch(request.method, inertia_version, server_version):
        return None

    return InertiaExternalRedirect(redirect_to=str(request.url))


def _add_vary_header(headers: "list[tuple[bytes, bytes]]") -> "list[tuple[bytes, bytes]]":
    for index, (name, value) in enumerate(headers):
        if name.lower() == _VARY:
            tokens = {token.strip().lower() for token in value.split(b",")}
            if _INERTIA.lower() in tokens or b"*" in tokens:
                return headers
            headers[index] = (name, value + b", " + _INERTIA)
            return headers
    headers.append((_VARY, _INERTIA))
    return headers


class InertiaMiddleware(AbstractMiddleware):
    """Middleware for handling Inertia.js protocol requirements.

    This middleware:

    1. Gives every request its own copy of the application response factory
    2. Returns 409 Conflict with ``X-Inertia-Location`` when a GET visit carries a stale asset version
    3. Redirects Inertia requests that produced an empty ``200`` back to the referer
    4. Turns ``302`` redirects answering PUT, PATCH or DELETE into ``303``
    5. Adds ``Vary: X-Inertia`` to every response
    """

    scopes = {ScopeType.HTTP}

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        request: InertiaRequest[Any, Any, Any] = InertiaRequest(scope=scope)
        plugin = cast("InertiaPlugin", request.app.plugins.get("InertiaPlugin"))
        factory = plugin.create_request_factory(request)
        cast("dict[str, Any]", scope).setdefault("state", {})[INERTIA_FACTORY_STATE_KEY] = factory

        redirect = await redirect_on_asset_version_mismatch(request, factory)
        if redirect is not None:
            response = redirect.to_asgi_response(app=None, request=request)  # pyright: ignore[reportUnknownMemberType]
            await response(scope, receive, send)
            return

        await self.app(scope, receive, self._wrap_send(request, send))

    @staticmethod
    def _wrap_send(request: "InertiaRequest[Any, Any, Any]", send: "Send") -> "Send":
        method = request.method
        is_inertia = request.is_inertia
        pending_start: "Message | None" = None

        async def send_wrapper(message: "Message") -> None:
            nonlocal pending_start

            if message["type"] == "http.response.start":
                status_code = message["status"]
                if should_change_redirect_status(method, status_code):
                    status_code = HTTP_303_SEE_OTHER
                headers = _add_vary_header(list(message.get("headers", [])))
                message = cast("Message", {**message, "status": status_code, "headers": headers})
                if is_inertia and status_code == HTTP_200_OK:
                    pending_start = message
                    return
                await send(message)
                return

            if message["type"] == "http.response.body" and pending_start is not None:
                start, pending_start = pending_start, None
                if not message.get("body") and not message.get("more_body", False):
                    await _send_back_redirect(request, method, send)
                    return
                await send(start)

            await send(message)

        return send_wrapper


async def _send_back_redirect(request: "InertiaRequest[Any, Any, Any]", method: str, send: "Send") -> None:
    location = request.inertia.referer or "/"
    status_code = HTTP_303_SEE_OTHER if should_change_redirect_status(method, HTTP_302_FOUND) else HTTP_302_FOUND
    await send({
        "type": "http.response.start",
        "status": status_code,
        "headers": [
            (b"location", location.encode("latin-1")),
            (b"content-length", b"0"),
            (_VARY, _INERTIA),
        ],
    })
    await send({"type": "http.response.body", "body": b"", "more_body": False})
