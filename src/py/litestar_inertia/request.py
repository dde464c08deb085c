from functools import cached_property
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

from litestar import Request
from litestar.connection.base import AuthT, StateT, UserT, empty_receive, empty_send

from litestar_inertia._utils import InertiaHeaders, split_header_keys

if TYPE_CHECKING:
    from collections.abc import Mapping

    from litestar.connection import ASGIConnection
    from litestar.types import Receive, Scope, Send

__all__ = ("InertiaDetails", "InertiaHeaders", "InertiaRequest", "get_request_path")


def get_request_path(connection: "ASGIConnection[Any, Any, Any, Any]") -> str:
    """``/path`` or ``/path?query`` of the connection."""
    url = connection.url
    return f"{url.path}?{url.query}" if url.query else url.path


class InertiaDetails:
    """What an Inertia client told us about the visit.

    Works on a plain header mapping, so the page engine can be driven without a running app.
    Header names are matched case-insensitively. Values sent with a matching
    ``<name>-Uri-Autoencoded: true`` header are percent-decoded.
    """

    def __init__(self, headers: "Mapping[str, str]", url: str = "/", method: str = "GET") -> None:
        self.headers = {key.lower(): value for key, value in headers.items()}
        self.url = url
        self.method = method.upper()

    @classmethod
    def from_request(cls, request: "ASGIConnection[Any, Any, Any, Any]") -> "InertiaDetails":
        return cls(request.headers, url=get_request_path(request), method=request.scope.get("method", "GET"))

    def get(self, header: "InertiaHeaders") -> "str | None":
        """Read one protocol header.

        Args:
            header: The header to read.

        Returns:
            The decoded value, or ``None`` when the header is absent or empty.
        """
        name = header.value.lower()
        raw = self.headers.get(name)
        if not raw:
            return None
        if self.headers.get(f"{name}-uri-autoencoded") == "true":
            return unquote(raw)
        return raw

    def __bool__(self) -> bool:
        return self.get(InertiaHeaders.ENABLED) is not None

    @cached_property
    def version(self) -> "str | None":
        return self.get(InertiaHeaders.VERSION)

    @cached_property
    def referer(self) -> "str | None":
        return self.get(InertiaHeaders.REFERER)

    @cached_property
    def error_bag(self) -> "str | None":
        return self.get(InertiaHeaders.ERROR_BAG)

    @cached_property
    def partial_component(self) -> "str | None":
        """Component named by ``X-Inertia-Partial-Component``."""
        return self.get(InertiaHeaders.PARTIAL_COMPONENT)

    @cached_property
    def partial_keys(self) -> list[str]:
        """Keys listed in ``X-Inertia-Partial-Data``."""
        return split_header_keys(self.get(InertiaHeaders.PARTIAL_DATA))

    @cached_property
    def partial_except_keys(self) -> list[str]:
        """Keys listed in ``X-Inertia-Partial-Except``."""
        return split_header_keys(self.get(InertiaHeaders.PARTIAL_EXCEPT))

    @cached_property
    def reset_keys(self) -> list[str]:
        """Keys listed in ``X-Inertia-Reset``."""
        return split_header_keys(self.get(InertiaHeaders.RESET))

    def is_partial_for(self, component: str) -> bool:
        """Check whether this visit is a partial reload of ``component``.

        Component names are compared exactly, so ``users/index`` never matches ``Users/Index``.

        Args:
            component: The component about to be rendered.

        Returns:
            ``True`` when the partial component header names ``component``.
        """
        return self.partial_component is not None and self.partial_component == component


class InertiaRequest(Request[UserT, AuthT, StateT]):
    """Litestar request carrying the parsed Inertia headers in ``request.inertia``."""

    __slots__ = ("inertia",)

    def __init__(self, scope: "Scope", receive: "Receive" = empty_receive, send: "Send" = empty_send) -> None:
        super().__init__(scope=scope, receive=receive, send=send)
        self.inertia = InertiaDetails.from_request(self)

    @property
    def is_inertia(self) -> bool:
        """Whether the request came from the Inertia client (``X-Inertia`` is set)."""
        return bool(self.inertia)

    @property
    def inertia_version(self) -> "str | None":
        """Asset version the client was built against."""
        return self.inertia.version

    @property
    def partial_keys(self) -> "set[str]":
        return set(self.inertia.partial_keys)

    @property
    def partial_except_keys(self) -> "set[str]":
        return set(self.inertia.partial_except_keys)

    @property
    def reset_keys(self) -> "set[str]":
        return set(self.inertia.reset_keys)

    @property
    def error_bag(self) -> "str | None":
        return self.inertia.error_bag
