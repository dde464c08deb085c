"""Server-side rendering gateway.

The official Inertia SSR server listens on ``/render`` and expects the raw page object as
JSON. It answers with ``{"head": [...], "body": "..."}``. SSR is optional infrastructure:
every failure is logged and reported as ``None`` so the caller can fall back to
client-side rendering.
"""

import logging
from typing import TYPE_CHECKING, Any, cast

import httpx
from litestar.serialization import encode_json

from litestar_inertia.exceptions import SSRError
from litestar_inertia.types import SSRResponse

if TYPE_CHECKING:
    from litestar_inertia.config import SSRConfig
    from litestar_inertia.types import PageObject

__all__ = ("dispatch",)

logger = logging.getLogger("litestar_inertia")


def _parse_ssr_payload(payload: Any, url: str) -> SSRResponse:
    if not isinstance(payload, dict):
        msg = f"unexpected payload type {type(payload)!r}"
        raise SSRError(url, msg)

    payload_dict = cast("dict[str, Any]", payload)

    body = payload_dict.get("body")
    if not isinstance(body, str):
        msg = "invalid 'body' (expected string)"
        raise SSRError(url, msg)

    head_raw: Any = payload_dict.get("head")
    head = [str(item) for item in cast("list[Any]", head_raw)] if isinstance(head_raw, list) else []
    return SSRResponse(head=head, body=body)


async def _do_ssr_request(
    page: bytes, url: str, timeout_seconds: float, client: "httpx.AsyncClient | None"
) -> SSRResponse:
    """Execute the SSR request with optional client reuse.

    Args:
        page: The JSON encoded page object.
        url: The SSR server URL.
        timeout_seconds: Request timeout in seconds.
        client: Optional shared httpx.AsyncClient.

    Raises:
        SSRError: If the SSR server is unreachable, returns an error status,
            or returns an invalid payload.

    Returns:
        The rendered head and body.
    """
    response: "httpx.Response"
    headers = {"Accept": "application/json", "Content-Type": "application/json"}

    try:
        if client is not None:
            response = await client.post(url, content=page, headers=headers, timeout=timeout_seconds)
        else:
            async with httpx.AsyncClient() as fallback_client:
                response = await fallback_client.post(url, content=page, headers=headers, timeout=timeout_seconds)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        msg = f"server returned HTTP {exc.response.status_code}"
        raise SSRError(url, msg, status_code=exc.response.status_code) from exc
    except httpx.HTTPError as exc:
        msg = f"server is not reachable ({exc.__class__.__name__})"
        raise SSRError(url, msg) from exc

    try:
        payload = response.json()
    except ValueError as exc:
        msg = "server returned invalid JSON"
        raise SSRError(url, msg) from exc

    return _parse_ssr_payload(payload, url)


async def dispatch(
    page: "PageObject", options: "SSRConfig | None", client: "httpx.AsyncClient | None" = None
) -> "SSRResponse | None":
    """Render ``page`` on the SSR server.

    Args:
        page: The resolved page object.
        options: SSR settings. ``None`` or a disabled config skips the request.
        client: Optional shared client for connection pooling. A client is created
            for the single request otherwise.

    Returns:
        The SSR result, or None when SSR is disabled or failed.
    """
    if options is None or not options.enabled:
        return None

    try:
        return await _do_ssr_request(encode_json(page.to_dict()), options.url, options.timeout, client)
    except SSRError as exc:
        logger.error("Inertia SSR failed, falling back to client-side rendering: %s", exc)
        return None
