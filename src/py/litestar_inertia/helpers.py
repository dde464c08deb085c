"""Request-level shortcuts.

Each helper looks up the response factory that :class:`~litestar_inertia.middleware.InertiaMiddleware`
stored for the current request::

    @get("/users/{user_id:int}")
    async def show_user(request: Request, user_id: int) -> InertiaResponse:
        share(request, "title", "User")
        return render(request, "Users/Show", {"user": await load_user(user_id)})
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from litestar.exceptions import ImproperlyConfiguredException

from litestar_inertia.middleware import INERTIA_FACTORY_STATE_KEY
from litestar_inertia.response import InertiaBack

if TYPE_CHECKING:
    from litestar import Request
    from litestar.connection import ASGIConnection

    from litestar_inertia.factory import InertiaResponseFactory
    from litestar_inertia.response import InertiaExternalRedirect, InertiaResponse

__all__ = ("back", "clear_history", "get_inertia", "location", "render", "share")


def get_inertia(connection: "ASGIConnection[Any, Any, Any, Any]") -> "InertiaResponseFactory":
    """Return the response factory of the current request.

    Args:
        connection: The current connection.

    Raises:
        ImproperlyConfiguredException: If the Inertia middleware did not run for this request.

    Returns:
        The per-request factory.
    """
    state = cast("dict[str, Any]", connection.scope.get("state", {}))
    factory = state.get(INERTIA_FACTORY_STATE_KEY)
    if factory is None:
        msg = "No Inertia response factory found for this request. Is the InertiaPlugin registered?"
        raise ImproperlyConfiguredException(msg)
    return cast("InertiaResponseFactory", factory)


def render(
    connection: "ASGIConnection[Any, Any, Any, Any]", component: str, props: "Mapping[str, Any] | None" = None
) -> "InertiaResponse":
    """Render ``component`` with the shared props of the current request.

    Returns:
        The response.
    """
    return get_inertia(connection).render(component, props)


def share(connection: "ASGIConnection[Any, Any, Any, Any]", key: "str | Mapping[str, Any]", value: Any = None) -> None:
    """Share props with every response rendered later in this request.

    Args:
        connection: The current connection.
        key: A prop name, or a mapping of props.
        value: The value when ``key`` is a name.
    """
    get_inertia(connection).share(key, value)


def location(connection: "ASGIConnection[Any, Any, Any, Any]", url: str) -> "InertiaExternalRedirect":
    return get_inertia(connection).location(url)


def back(request: "Request[Any, Any, Any]") -> InertiaBack:
    """Redirect to the previous page.

    Returns:
        A redirect to the same-origin referer, or to the base URL.
    """
    return InertiaBack(request)


def clear_history(connection: "ASGIConnection[Any, Any, Any, Any]") -> None:
    get_inertia(connection).clear_history()
