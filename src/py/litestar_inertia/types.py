"""Page object and the other data shapes exchanged with the Inertia client.

Fields are declared in snake_case and serialized to the camelCase keys of the protocol.
"""

import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, TypedDict, Union, cast

__all__ = (
    "InertiaHeaderType",
    "PageObject",
    "PageRenderer",
    "SSRResponse",
    "UrlResolver",
    "to_camel_case",
    "to_inertia_dict",
)

_UNDERSCORE_LETTER = re.compile(r"_([a-z])")

UrlResolver = Callable[[str], str]
"""Rewrites the ``path?query`` of the current request before it is put into the page object."""

PageRenderer = Callable[["PageObject", "Mapping[str, Any]"], Union[str, bytes, Awaitable[Union[str, bytes]]]]
"""Custom HTML renderer receiving the page object and the response view data."""


def to_camel_case(name: str) -> str:
    """``encrypt_history`` -> ``encryptHistory``."""
    return _UNDERSCORE_LETTER.sub(lambda match: match.group(1).upper(), name)


def to_inertia_dict(obj: Any, required_fields: "set[str] | None" = None) -> dict[str, Any]:
    """Map the fields of a dataclass instance onto protocol keys.

    Only the outer level is renamed; nested values, including ``props``, keep their keys and
    are handed to the JSON encoder untouched. ``None`` fields are dropped unless listed in
    ``required_fields``. Anything that is not a dataclass instance is returned unchanged.
    """
    if not is_dataclass(obj) or isinstance(obj, type):
        return cast("dict[str, Any]", obj)

    keep = required_fields or set()
    return {
        to_camel_case(item.name): value
        for item in fields(obj)
        if (value := getattr(obj, item.name)) is not None or item.name in keep
    }


@dataclass
class PageObject:
    """The page object: the JSON body of Inertia responses, and the ``data-page`` of the HTML document.

    See: https://inertiajs.com/the-protocol

    Attributes:
        component: JavaScript component name to render.
        props: Page data passed to the component, fully resolved.
        url: Current page URL (path and query).
        version: Asset version identifier for cache busting.
        clear_history: Whether the client should clear its encrypted history state.
        encrypt_history: Whether to encrypt browser history state.
        merge_props: Props to merge shallowly during navigation.
        deep_merge_props: Props to merge deeply during navigation.
        match_props_on: ``"<key>.<strategy>"`` entries used to match array items while merging.
        deferred_props: Deferred prop keys grouped by their fetch group.
        cache: Cache durations in seconds.
    """

    component: str
    props: dict[str, Any]
    url: str
    version: str = ""

    clear_history: bool = False
    encrypt_history: bool = False

    merge_props: "list[str] | None" = None
    deep_merge_props: "list[str] | None" = None
    match_props_on: "list[str] | None" = None

    deferred_props: "dict[str, list[str]] | None" = None

    cache: "list[int | float] | None" = None

    def to_dict(self) -> dict[str, Any]:
        """Protocol dictionary with camelCase keys; unset metadata fields are omitted."""
        return to_inertia_dict(
            self, required_fields={"component", "props", "url", "version", "clear_history", "encrypt_history"}
        )


def _str_list_factory() -> list[str]:
    return []


@dataclass
class SSRResponse:
    """Result of a successful server-side render.

    Attributes:
        head: HTML fragments to place in the document ``<head>``.
        body: The rendered application markup.
    """

    body: str
    head: list[str] = field(default_factory=_str_list_factory)

    @property
    def head_html(self) -> str:
        return "\n".join(self.head)


class InertiaHeaderType(TypedDict, total=False):
    """Options accepted by :func:`litestar_inertia._utils.get_headers`."""

    enabled: "bool | None"
    version: "str | None"
    location: "str | None"
    vary: "bool | None"
