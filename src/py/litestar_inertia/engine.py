"""Response resolution engine.

Turns a component name, a property tree and the parsed request headers into a finished
:class:`~litestar_inertia.types.PageObject`. The steps run in this order:

1. decide whether the request is a partial reload of this component
2. full requests drop lazy, optional and deferred props, also inside mappings and sequences
3. partial requests keep the ``only`` paths, then delete the ``except`` paths
4. ``always`` props of the original tree are put back underneath the result
5. every remaining prop variant, callable and awaitable is resolved
6. merge metadata is computed from the original tree
7. full requests list deferred props by group
8. cache durations are normalized to seconds
9. the page object is assembled

Choosing between a JSON and an HTML response is left to
:meth:`~litestar_inertia.response.InertiaResponse.to_response`.
"""

import inspect
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Union, cast

from litestar_inertia._paths import MISSING, get_path, set_path, unset_path
from litestar_inertia.props import (
    DEFAULT_DEFERRED_GROUP,
    AlwaysProp,
    DeferProp,
    is_ignored_on_first_load,
    is_mergeable,
    is_prop,
    maybe_await,
)
from litestar_inertia.types import PageObject

if TYPE_CHECKING:
    from litestar_inertia.request import InertiaDetails
    from litestar_inertia.response import InertiaResponse
    from litestar_inertia.types import UrlResolver

__all__ = (
    "CacheDuration",
    "filter_first_load",
    "is_partial",
    "normalize_cache",
    "reinject_always",
    "resolve_deferred_metadata",
    "resolve_merge_metadata",
    "resolve_page",
    "resolve_url",
    "resolve_value",
    "select_partial",
)

CacheDuration = Union[int, float, str]

_CACHE_DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
_CACHE_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def is_partial(component: str, details: "InertiaDetails") -> bool:
    return details.is_partial_for(component)


def _copy_mappings(value: Any) -> Any:
    """Copy the mapping structure of a tree, sharing every other value."""
    if isinstance(value, Mapping):
        return {key: _copy_mappings(child) for key, child in cast("Mapping[str, Any]", value).items()}
    return value


def _filter_first_load_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return filter_first_load(cast("Mapping[str, Any]", value))
    if isinstance(value, (list, tuple)):
        return [
            _filter_first_load_value(item)
            for item in cast("Sequence[Any]", value)
            if not is_ignored_on_first_load(item)
        ]
    return value


def filter_first_load(props: "Mapping[str, Any]") -> dict[str, Any]:
    """Drop lazy, optional and deferred props from a tree.

    Nested mappings, lists and tuples are filtered as well. Tuples come back as lists.

    Args:
        props: The property tree.

    Returns:
        A new tree without the excluded props.
    """
    return {
        key: _filter_first_load_value(value) for key, value in props.items() if not is_ignored_on_first_load(value)
    }


async def select_partial(props: "Mapping[str, Any]", details: "InertiaDetails") -> dict[str, Any]:
    """Apply the ``only`` and ``except`` lists of a partial reload.

    A deferred prop found at a selected path is resolved right away. Paths that do not exist
    are skipped.

    Args:
        props: The property tree.
        details: The parsed request headers.

    Returns:
        A new tree holding the selection.
    """
    result: dict[str, Any] = _copy_mappings(props)

    only = details.partial_keys
    if only:
        selected: dict[str, Any] = {}
        for path in only:
            value = get_path(result, path)
            if value is MISSING:
                continue
            if isinstance(value, DeferProp):
                value = await value.resolve()
            set_path(selected, path, value)
        result = selected

    for path in details.partial_except_keys:
        unset_path(result, path)

    return result


def reinject_always(original: "Mapping[str, Any]", filtered: "Mapping[str, Any]") -> dict[str, Any]:
    """Put the ``always`` props of ``original`` underneath ``filtered``.

    Keys already present in ``filtered`` win.

    Args:
        original: The unfiltered property tree.
        filtered: The tree after first-load or partial filtering.

    Returns:
        The combined tree.
    """
    always = {key: value for key, value in original.items() if isinstance(value, AlwaysProp)}
    return {**always, **filtered}


async def resolve_value(value: Any) -> Any:
    """Resolve a prop value down to plain data.

    Prop variants are invoked, plain callables are called and awaitables are awaited, then the
    result is resolved again. Mappings and sequences are walked recursively.

    Args:
        value: Any value from a property tree.

    Returns:
        The resolved value.
    """
    if is_prop(value):
        return await resolve_value(await value.resolve())
    if isinstance(value, Mapping):
        return {key: await resolve_value(child) for key, child in cast("Mapping[str, Any]", value).items()}
    if isinstance(value, (list, tuple)):
        return [await resolve_value(item) for item in cast("Sequence[Any]", value)]
    if inspect.isawaitable(value):
        return await resolve_value(await value)
    if callable(value) and not isinstance(value, type):
        return await resolve_value(await maybe_await(value()))
    return value


def resolve_merge_metadata(
    props: "Mapping[str, Any]", details: "InertiaDetails", partial: bool
) -> "dict[str, list[str]]":
    """Compute ``mergeProps``, ``deepMergeProps`` and ``matchPropsOn``.

    Only top-level keys of the original tree are considered. Keys named in the reset header are
    skipped, and on partial reloads the ``only``/``except`` lists apply as well.

    Args:
        props: The unfiltered property tree.
        details: The parsed request headers.
        partial: Whether the request is a partial reload of this component.

    Returns:
        The non-empty metadata lists keyed by their page object field name.
    """
    reset = set(details.reset_keys)
    only = set(details.partial_keys) if partial else set()
    except_ = set(details.partial_except_keys) if partial else set()

    merge_props: list[str] = []
    deep_merge_props: list[str] = []
    match_props_on: list[str] = []
    for key, value in props.items():
        if not is_mergeable(value) or not value.should_merge():
            continue
        if key in reset or (only and key not in only) or key in except_:
            continue
        if value.should_deep_merge():
            deep_merge_props.append(key)
        else:
            merge_props.append(key)
        match_props_on.extend(f"{key}.{strategy}" for strategy in value.matches_on())

    metadata: dict[str, list[str]] = {}
    if merge_props:
        metadata["merge_props"] = merge_props
    if deep_merge_props:
        metadata["deep_merge_props"] = deep_merge_props
    if match_props_on:
        metadata["match_props_on"] = match_props_on
    return metadata


def _collect_deferred(value: Any, groups: "dict[str, list[str]]", path: str) -> None:
    if isinstance(value, DeferProp):
        paths = groups.setdefault(value.group() or DEFAULT_DEFERRED_GROUP, [])
        if path not in paths:
            paths.append(path)
    elif isinstance(value, Mapping):
        for key, child in cast("Mapping[str, Any]", value).items():
            _collect_deferred(child, groups, f"{path}.{key}" if path else key)
    elif isinstance(value, (list, tuple)):
        for item in cast("Sequence[Any]", value):
            _collect_deferred(item, groups, path)


def resolve_deferred_metadata(props: "Mapping[str, Any]", partial: bool) -> "dict[str, list[str]] | None":
    """Group deferred props by their fetch group.

    Deferred props inside nested mappings are listed by their dotted path so the client can ask
    for them with a partial reload. A deferred item of a list or tuple is listed under the path of
    that sequence, once per group; reloading it resolves the whole sequence.

    Args:
        props: The unfiltered property tree.
        partial: Whether the request is a partial reload of this component.

    Returns:
        Groups in first-seen order, or None on partial reloads or when nothing is deferred.
    """
    if partial:
        return None
    groups: dict[str, list[str]] = {}
    _collect_deferred(props, groups, "")
    return groups or None


def _normalize_cache_duration(value: "CacheDuration") -> "int | float":
    if not isinstance(value, str):
        return value
    if match := _CACHE_DURATION_PATTERN.match(value):
        return int(match.group(1)) * _CACHE_UNITS[match.group(2)]
    if match := _LEADING_INT_PATTERN.match(value):
        return int(match.group(1))
    return 0


def normalize_cache(durations: "Sequence[CacheDuration]") -> "list[int | float] | None":
    """Normalize cache durations to seconds.

    Numbers pass through. Strings such as ``"30s"``, ``"5m"``, ``"2h"`` or ``"1d"`` are
    converted, other strings are read as a leading integer and fall back to ``0``.

    Args:
        durations: The configured durations.

    Returns:
        Durations in seconds, or None when none are configured.
    """
    if not durations:
        return None
    return [_normalize_cache_duration(value) for value in durations]


def resolve_url(url: str, url_resolver: "UrlResolver | None" = None) -> str:
    """Return the page URL for ``url``.

    The resolver runs first. One trailing slash is then stripped unless the URL is ``/``.

    Args:
        url: Path and query string of the request.
        url_resolver: Optional callback rewriting the URL.

    Returns:
        The normalized URL.
    """
    if url_resolver is not None:
        url = url_resolver(url)
    if len(url) > 1 and url.endswith("/"):
        return url[:-1]
    return url


async def resolve_page(response: "InertiaResponse", details: "InertiaDetails") -> PageObject:
    """Resolve ``response`` against the incoming request into a page object.

    Exceptions raised by prop callbacks propagate to the caller.

    Args:
        response: The response being rendered.
        details: The parsed request headers.

    Returns:
        The finished page object.
    """
    original = response.props
    partial = is_partial(response.component, details)

    filtered = await select_partial(original, details) if partial else filter_first_load(original)
    resolved = cast("dict[str, Any]", await resolve_value(reinject_always(original, filtered)))

    return PageObject(
        component=response.component,
        props=resolved,
        url=resolve_url(details.url, response.url_resolver),
        version=response.version or "",
        clear_history=response.should_clear_history,
        encrypt_history=response.encrypt_history,
        deferred_props=resolve_deferred_metadata(original, partial),
        cache=normalize_cache(response.cache_for),
        **resolve_merge_metadata(original, details, partial),
    )
