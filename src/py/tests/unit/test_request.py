from litestar_inertia._utils import InertiaHeaders, add_vary_header, get_headers, split_header_keys
from litestar_inertia.request import InertiaDetails
from litestar_inertia.types import InertiaHeaderType


def test_details_without_inertia_header() -> None:
    details = InertiaDetails({"Accept": "text/html"})

    assert not details
    assert details.version is None
    assert details.partial_keys == []


def test_details_read_headers_case_insensitively() -> None:
    details = InertiaDetails(
        {
            "x-inertia": "true",
            "X-INERTIA-VERSION": "abc",
            "x-inertia-partial-component": "Users/Index",
            "X-Inertia-Partial-Data": "users, , filters ",
            "X-Inertia-Partial-Except": "stats",
            "X-Inertia-Reset": "users",
            "X-Inertia-Error-Bag": "login",
            "referer": "http://testserver.local/prev",
        },
        url="/users",
        method="post",
    )

    assert details
    assert details.version == "abc"
    assert details.partial_component == "Users/Index"
    assert details.partial_keys == ["users", "filters"]
    assert details.partial_except_keys == ["stats"]
    assert details.reset_keys == ["users"]
    assert details.error_bag == "login"
    assert details.referer == "http://testserver.local/prev"
    assert details.url == "/users"
    assert details.method == "POST"


def test_uri_autoencoded_headers_are_unquoted() -> None:
    details = InertiaDetails(
        {
            "X-Inertia": "true",
            "X-Inertia-Partial-Component": "Users%2FIndex",
            "X-Inertia-Partial-Component-Uri-Autoencoded": "true",
        }
    )

    assert details.partial_component == "Users/Index"


def test_is_partial_for_requires_exact_component_match() -> None:
    details = InertiaDetails({"X-Inertia": "true", "X-Inertia-Partial-Component": "Users/Index"})

    assert details.is_partial_for("Users/Index")
    assert not details.is_partial_for("users/index")
    assert not InertiaDetails({"X-Inertia": "true"}).is_partial_for("Users/Index")


def test_split_header_keys() -> None:
    assert split_header_keys(None) == []
    assert split_header_keys("") == []
    assert split_header_keys(" a , b,,c ") == ["a", "b", "c"]


def test_get_headers() -> None:
    headers = get_headers(InertiaHeaderType(enabled=True, vary=True, location="/login"))

    assert headers == {
        InertiaHeaders.ENABLED.value: "true",
        InertiaHeaders.VARY.value: "X-Inertia",
        InertiaHeaders.LOCATION.value: "/login",
    }
    assert get_headers(InertiaHeaderType(version="1")) == {"X-Inertia-Version": "1"}


def test_add_vary_header_matches_names_case_insensitively() -> None:
    assert add_vary_header({}) == {"Vary": "X-Inertia"}
    assert add_vary_header({"vary": "Accept"}) == {"vary": "Accept, X-Inertia"}
    assert add_vary_header({"VARY": "accept, x-inertia"}) == {"VARY": "accept, x-inertia"}
    assert add_vary_header({"Vary": "*"}) == {"Vary": "*"}
    assert add_vary_header({"vary": "X-Inertia-Version"}) == {"vary": "X-Inertia-Version, X-Inertia"}


def test_add_vary_header_copies() -> None:
    headers = {"Cache-Control": "no-store"}

    assert add_vary_header(headers) == {"Cache-Control": "no-store", "Vary": "X-Inertia"}
    assert headers == {"Cache-Control": "no-store"}
