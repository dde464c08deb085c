from typing import Any

import pytest

from litestar_inertia.engine import (
    filter_first_load,
    normalize_cache,
    reinject_always,
    resolve_deferred_metadata,
    resolve_merge_metadata,
    resolve_page,
    resolve_url,
    resolve_value,
    select_partial,
)
from litestar_inertia.props import always, defer, lazy, merge, optional
from litestar_inertia.request import InertiaDetails
from litestar_inertia.response import InertiaResponse

pytestmark = pytest.mark.anyio


def inertia_details(url: str = "/") -> InertiaDetails:
    return InertiaDetails({"X-Inertia": "true"}, url=url)


def partial_details(component: str, data: "str | None" = None, except_: "str | None" = None) -> InertiaDetails:
    headers = {"X-Inertia-Partial-Component": component}
    if data is not None:
        headers["X-Inertia-Partial-Data"] = data
    if except_ is not None:
        headers["X-Inertia-Partial-Except"] = except_
    return InertiaDetails({"X-Inertia": "true", **headers})


async def test_full_response_keeps_plain_props() -> None:
    props = {"user": {"name": "Ada", "roles": ["admin"]}, "count": 3, "flag": None}
    response = InertiaResponse("Users/Show", props, version="abc")

    page = await resolve_page(response, inertia_details("/users/1?tab=info"))

    assert page.component == "Users/Show"
    assert page.props == props
    assert page.url == "/users/1?tab=info"
    assert page.version == "abc"
    assert page.clear_history is False
    assert page.encrypt_history is False
    assert page.merge_props is None
    assert page.deferred_props is None
    assert page.cache is None


async def test_first_load_excludes_lazy_optional_and_deferred() -> None:
    response = InertiaResponse(
        "Dashboard",
        {
            "a": lazy(lambda: 1),
            "b": optional(lambda: 2),
            "c": defer(lambda: 3),
            "d": always(lambda: 4),
            "e": 5,
        },
    )

    page = await resolve_page(response, inertia_details())

    assert page.props == {"d": 4, "e": 5}


async def test_first_load_filters_nested_mappings() -> None:
    response = InertiaResponse("Dashboard", {"stats": {"total": 10, "slow": lazy(lambda: 99)}})

    page = await resolve_page(response, inertia_details())

    assert page.props == {"stats": {"total": 10}}


async def test_partial_selection() -> None:
    response = InertiaResponse("Page", {"a": 1, "b": 2, "c": 3})

    page = await resolve_page(response, partial_details("Page", data="a,c"))
    assert page.props == {"a": 1, "c": 3}

    page = await resolve_page(response, partial_details("Page", data="a,c", except_="c"))
    assert page.props == {"a": 1}


async def test_partial_only_applies_to_the_same_component() -> None:
    response = InertiaResponse("Page", {"a": 1, "b": 2, "lazy": lazy(lambda: 3)})

    page = await resolve_page(response, partial_details("Other", data="a"))

    assert page.props == {"a": 1, "b": 2}


async def test_partial_resolves_requested_lazy_and_deferred_props() -> None:
    async def load_permissions() -> list[str]:
        return ["read", "write"]

    response = InertiaResponse(
        "Page",
        {"users": lazy(lambda: ["ada"]), "permissions": defer(load_permissions), "other": optional(lambda: 1)},
    )

    page = await resolve_page(response, partial_details("Page", data="users, permissions"))

    assert page.props == {"users": ["ada"], "permissions": ["read", "write"]}
    assert page.deferred_props is None


async def test_partial_with_dotted_paths() -> None:
    response = InertiaResponse("Page", {"user": {"name": "Ada", "email": "ada@example.com"}, "team": "core"})

    page = await resolve_page(response, partial_details("Page", data="user.name"))
    assert page.props == {"user": {"name": "Ada"}}

    page = await resolve_page(response, partial_details("Page", except_="user.email"))
    assert page.props == {"user": {"name": "Ada"}, "team": "core"}


async def test_partial_does_not_mutate_the_original_tree() -> None:
    props: dict[str, Any] = {"user": {"name": "Ada", "email": "ada@example.com"}}
    response = InertiaResponse("Page", props)

    await resolve_page(response, partial_details("Page", except_="user.email"))

    assert response.props == {"user": {"name": "Ada", "email": "ada@example.com"}}


async def test_always_props_survive_partial_filters() -> None:
    response = InertiaResponse("Page", {"a": 1, "errors": always({"name": "required"}), "b": 2})

    page = await resolve_page(response, partial_details("Page", data="a"))
    assert page.props == {"errors": {"name": "required"}, "a": 1}

    page = await resolve_page(response, partial_details("Page", except_="errors"))
    assert page.props == {"errors": {"name": "required"}, "a": 1, "b": 2}


def test_explicit_selection_wins_over_always_reinjection() -> None:
    original = {"auth": always({"user": None})}

    combined = reinject_always(original, {"auth": {"user": "ada"}})

    assert combined == {"auth": {"user": "ada"}}


async def test_deferred_grouping() -> None:
    response = InertiaResponse(
        "Page",
        {"x": defer(lambda: 1, "g1"), "y": defer(lambda: 2, "g1"), "z": defer(lambda: 3)},
    )

    page = await resolve_page(response, inertia_details())

    assert page.deferred_props == {"g1": ["x", "y"], "default": ["z"]}
    assert page.props == {}


def test_nested_deferred_props_are_listed_by_path() -> None:
    props = {"stats": {"visits": defer(lambda: 1, "stats")}, "later": defer(lambda: 2)}

    assert resolve_deferred_metadata(props, partial=False) == {"stats": ["stats.visits"], "default": ["later"]}
    assert resolve_deferred_metadata(props, partial=True) is None


async def test_merge_metadata() -> None:
    response = InertiaResponse("Page", {"m": merge(5).deep_merge().match_on("id")})

    page = await resolve_page(response, inertia_details())

    assert page.deep_merge_props == ["m"]
    assert page.match_props_on == ["m.id"]
    assert page.merge_props is None
    assert page.props == {"m": 5}
    assert "mergeProps" not in page.to_dict()


def test_merge_metadata_respects_reset_and_partial_filters() -> None:
    props = {"posts": merge([1]), "comments": merge([2]), "tags": merge([3]), "plain": 4}

    details = InertiaDetails(
        {
            "X-Inertia": "true",
            "X-Inertia-Partial-Component": "Page",
            "X-Inertia-Partial-Data": "posts,comments",
            "X-Inertia-Partial-Except": "comments",
            "X-Inertia-Reset": "tags",
        }
    )
    assert resolve_merge_metadata(props, details, partial=True) == {"merge_props": ["posts"]}
    assert resolve_merge_metadata(props, details, partial=False) == {"merge_props": ["posts", "comments"]}


def test_deferred_merge_props_are_reported() -> None:
    props = {"feed": defer(lambda: []).merge().match_on(["id", "slug"])}

    metadata = resolve_merge_metadata(props, inertia_details(), partial=False)

    assert metadata == {"merge_props": ["feed"], "match_props_on": ["feed.id", "feed.slug"]}


async def test_resolve_value_walks_containers_and_callables() -> None:
    async def load() -> str:
        return "async"

    value = {
        "sync": lambda: "sync",
        "async": load,
        "items": (lambda: 1, always(2)),
        "nested": {"prop": merge(lambda: [3])},
        "type": int,
    }

    assert await resolve_value(value) == {
        "sync": "sync",
        "async": "async",
        "items": [1, 2],
        "nested": {"prop": [3]},
        "type": int,
    }


def test_filter_first_load_drops_variants_inside_sequences() -> None:
    kept = always(2)

    filtered = filter_first_load({
        "items": [lazy(lambda: 1), 1, defer(lambda: 3), kept, optional(lambda: 4)],
        "rows": ({"a": 1, "b": lazy(lambda: 2)}, [optional(lambda: 3), "x"]),
    })

    assert filtered == {"items": [1, kept], "rows": [{"a": 1}, ["x"]]}


async def test_full_load_never_calls_variants_inside_lists() -> None:
    calls: list[str] = []

    def load() -> int:
        calls.append("load")
        return 1

    response = InertiaResponse("Page", {"items": [lazy(load), defer(load, "g"), 5], "more": (defer(load, "g"),)})

    page = await resolve_page(response, inertia_details())

    assert page.props == {"items": [5], "more": []}
    assert page.deferred_props == {"g": ["items", "more"]}
    assert calls == []


async def test_partial_reload_of_a_list_resolves_its_deferred_items() -> None:
    response = InertiaResponse("Page", {"items": [defer(lambda: 1), lazy(lambda: 2), 3]})

    page = await resolve_page(response, partial_details("Page", data="items"))

    assert page.props == {"items": [1, 2, 3]}


async def test_select_partial_skips_missing_paths() -> None:
    details = partial_details("Page", data="a,missing.path")

    assert await select_partial({"a": 1, "b": 2}, details) == {"a": 1}


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("/user/123/", "/user/123"),
        ("/", "/"),
        ("/user/123?x=1", "/user/123?x=1"),
        ("/user/123", "/user/123"),
    ],
)
def test_resolve_url(url: str, expected: str) -> None:
    assert resolve_url(url) == expected


def test_resolve_url_runs_resolver_first() -> None:
    assert resolve_url("/users", lambda url: f"/app{url}/") == "/app/users"


async def test_url_resolver_on_response() -> None:
    response = InertiaResponse("Page", {}, url_resolver=lambda url: f"/prefix{url}")

    page = await resolve_page(response, inertia_details("/users/"))

    assert page.url == "/prefix/users"


@pytest.mark.parametrize(
    ("durations", "expected"),
    [
        ([], None),
        ([30], [30]),
        (["30s", "5m", "2h", "1d"], [30, 300, 7200, 86400]),
        (["15", "12abc", "abc"], [15, 12, 0]),
        ([1.5, "10m"], [1.5, 600]),
    ],
)
def test_normalize_cache(durations: "list[Any]", expected: "list[Any] | None") -> None:
    assert normalize_cache(durations) == expected


async def test_cache_and_history_flags_reach_the_page() -> None:
    response = InertiaResponse("Page", {}, encrypt_history=True).cache(["1m", 30]).clear_history()

    page = await resolve_page(response, inertia_details())

    assert page.cache == [60, 30]
    assert page.clear_history is True
    assert page.encrypt_history is True


async def test_callback_errors_propagate() -> None:
    def boom() -> None:
        msg = "no database"
        raise RuntimeError(msg)

    response = InertiaResponse("Page", {"data": boom})

    with pytest.raises(RuntimeError, match="no database"):
        await resolve_page(response, inertia_details())


def test_invoke_is_repeatable() -> None:
    prop = lazy(lambda: {"value": 1})

    assert prop.invoke() == prop.invoke()
