from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from litestar_inertia.types import InertiaHeaderType

__all__ = (
    "InertiaHeaders",
    "add_vary_header",
    "get_enabled_header",
    "get_headers",
    "get_location_header",
    "get_vary_header",
    "get_version_header",
    "split_header_keys",
)


class InertiaHeaders(str, Enum):
    """Header names of the Inertia protocol.

    See: https://inertiajs.com/the-protocol

    Incoming names are compared case-insensitively; outgoing headers use the casing below.
    """

    ENABLED = "X-Inertia"
    VERSION = "X-Inertia-Version"
    LOCATION = "X-Inertia-Location"
    REFERER = "Referer"

    PARTIAL_DATA = "X-Inertia-Partial-Data"
    PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
    PARTIAL_EXCEPT = "X-Inertia-Partial-Except"

    RESET = "X-Inertia-Reset"
    ERROR_BAG = "X-Inertia-Error-Bag"

    VARY = "Vary"


def split_header_keys(value: "str | None") -> list[str]:
    """Parse a comma separated list of prop keys.

    Args:
        value: Raw header value, e.g. ``"users, filters"``.

    Returns:
        The keys in header order, stripped, without empty entries.
    """
    if not value:
        return []
    return [key.strip() for key in value.split(",") if key.strip()]


def get_enabled_header(enabled: bool = True) -> "dict[str, str]":
    return {InertiaHeaders.ENABLED.value: "true" if enabled else "false"}


def get_version_header(version: str) -> "dict[str, str]":
    return {InertiaHeaders.VERSION.value: version}


def get_location_header(location: str) -> "dict[str, str]":
    """Build the header that sends the client to ``location`` with a full page visit.

    Returns:
        The ``X-Inertia-Location`` header.
    """
    return {InertiaHeaders.LOCATION.value: location}


def get_vary_header(vary: bool = True) -> "dict[str, str]":
    """Build the ``Vary`` header.

    HTML and JSON answers share one URL, so caches must key on ``X-Inertia``.

    Returns:
        ``Vary: X-Inertia``, or nothing when ``vary`` is false.
    """
    return {InertiaHeaders.VARY.value: InertiaHeaders.ENABLED.value} if vary else {}


_HEADER_BUILDERS: "dict[str, Callable[[Any], dict[str, str]]]" = {
    "enabled": get_enabled_header,
    "version": get_version_header,
    "location": get_location_header,
    "vary": get_vary_header,
}


def get_headers(inertia_headers: "InertiaHeaderType") -> "dict[str, str]":
    """Build response headers from keyword-style options.

    Options set to ``None`` are skipped.

    Args:
        inertia_headers: The header options.

    Raises:
        ValueError: If no options are given.

    Returns:
        The combined headers.
    """
    if not inertia_headers:
        msg = "Value for inertia_headers cannot be None."
        raise ValueError(msg)

    headers: "dict[str, str]" = {}
    for key, value in inertia_headers.items():
        if value is not None:
            headers.update(_HEADER_BUILDERS[key](value))
    return headers


def add_vary_header(headers: "Mapping[str, str]") -> "dict[str, str]":
    """Copy ``headers`` and make their ``Vary`` list ``X-Inertia``.

    Header names are matched case-insensitively, so an existing ``vary`` entry is extended instead
    of being doubled. ``Vary: *`` already covers every header and is kept as is.

    Args:
        headers: Response headers.

    Returns:
        The new headers.
    """
    inertia = InertiaHeaders.ENABLED.value
    result = dict(headers)
    for name, value in result.items():
        if name.lower() != InertiaHeaders.VARY.value.lower():
            continue
        tokens = {token.strip().lower() for token in value.split(",")}
        if inertia.lower() not in tokens and "*" not in tokens:
            result[name] = f"{value}, {inertia}" if value.strip() else inertia
        return result
    result.update(get_vary_header())
    return result
