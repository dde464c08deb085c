import json
from typing import Any

import httpx
import pytest

from litestar_inertia.config import SSRConfig
from litestar_inertia.ssr import dispatch
from litestar_inertia.types import PageObject

pytestmark = pytest.mark.anyio

SSR_URL = "http://ssr.test/render"


def make_client(handler: "Any") -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def page() -> PageObject:
    return PageObject(component="Home", props={"greeting": "<hi>"}, url="/", version="1")


async def test_disabled_ssr_skips_the_request(page: PageObject) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("SSR server must not be called")

    async with make_client(handler) as client:
        assert await dispatch(page, None, client) is None
        assert await dispatch(page, SSRConfig(enabled=False, url=SSR_URL), client) is None


async def test_successful_render(page: PageObject) -> None:
    received: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        received["url"] = str(request.url)
        received["body"] = json.loads(request.content)
        return httpx.Response(200, json={"head": ["<title>Home</title>"], "body": '<div id="app">Home</div>'})

    async with make_client(handler) as client:
        result = await dispatch(page, SSRConfig(url=SSR_URL), client)

    assert result is not None
    assert result.body == '<div id="app">Home</div>'
    assert result.head == ["<title>Home</title>"]
    assert received["url"] == SSR_URL
    assert received["body"]["component"] == "Home"
    assert received["body"]["props"] == {"greeting": "<hi>"}
    assert received["body"]["encryptHistory"] is False


async def test_non_list_head_becomes_empty(page: PageObject) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"head": "<title>x</title>", "body": "<div></div>"})

    async with make_client(handler) as client:
        result = await dispatch(page, SSRConfig(url=SSR_URL), client)

    assert result is not None
    assert result.head == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="server error"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"head": []}),
        httpx.Response(200, json={"head": [], "body": 42}),
    ],
)
async def test_failures_fall_back_to_none(
    page: PageObject, response: httpx.Response, caplog: pytest.LogCaptureFixture
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    async with make_client(handler) as client:
        assert await dispatch(page, SSRConfig(url=SSR_URL), client) is None

    assert "Inertia SSR failed" in caplog.text


async def test_unreachable_server(page: PageObject, caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        assert await dispatch(page, SSRConfig(url=SSR_URL), client) is None

    assert "not reachable" in caplog.text
