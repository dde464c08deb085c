import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Callable, cast
from urllib.parse import quote, urlparse

from litestar import MediaType, Request, Response
from litestar.exceptions import TemplateNotFoundException
from litestar.response import Redirect
from litestar.response.base import ASGIResponse
from litestar.status_codes import HTTP_200_OK, HTTP_303_SEE_OTHER, HTTP_307_TEMPORARY_REDIRECT, HTTP_409_CONFLICT

from litestar_inertia._utils import add_vary_header, get_headers
from litestar_inertia.engine import resolve_page
from litestar_inertia.html import (
    HtmlTemplateOptions,
    build_template_context,
    render_html_template,
    root_view_template_name,
)
from litestar_inertia.props import DeferProp, maybe_await
from litestar_inertia.request import InertiaDetails, InertiaRequest
from litestar_inertia.ssr import dispatch
from litestar_inertia.types import InertiaHeaderType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable

    import httpx
    from litestar import Litestar
    from litestar.background_tasks import BackgroundTask, BackgroundTasks
    from litestar.connection import ASGIConnection
    from litestar.datastructures.cookie import Cookie
    from litestar.template import TemplateEngineProtocol
    from litestar.types import Receive, ResponseCookies, ResponseHeaders, Scope, Send, TypeEncodersMap

    from litestar_inertia.config import SSRConfig, ViteOptions
    from litestar_inertia.engine import CacheDuration
    from litestar_inertia.types import PageObject, PageRenderer, SSRResponse, UrlResolver

__all__ = ("InertiaBack", "InertiaExternalRedirect", "InertiaResponse")

logger = logging.getLogger("litestar_inertia")


def _get_details(request: "ASGIConnection[Any, Any, Any, Any]") -> InertiaDetails:
    if isinstance(request, InertiaRequest):
        return cast("InertiaRequest[Any, Any, Any]", request).inertia
    return InertiaDetails.from_request(request)


def _same_origin_or_base(request: "Request[Any, Any, Any]", url: "str | None") -> str:
    """Keep ``url`` when it is relative or points at this application, otherwise use the base URL."""
    fallback = str(request.base_url)
    if not url:
        return fallback

    target = urlparse(url)
    if not target.scheme and not target.netloc:
        return url
    if target.scheme in {"http", "https"} and target.netloc == urlparse(fallback).netloc:
        return url
    return fallback


class _DeferredASGIResponse(ASGIResponse):
    """ASGI response whose body is produced when the response is sent.

    Page resolution awaits prop callbacks and the SSR server, which cannot happen inside the
    synchronous ``to_asgi_response`` hook.
    """

    def __init__(self, build: "Callable[[], Awaitable[ASGIResponse]]") -> None:
        super().__init__(body=b"", media_type=MediaType.HTML, status_code=HTTP_200_OK)
        self._build = build

    async def __call__(self, scope: "Scope", receive: "Receive", send: "Send") -> None:
        response = await self._build()
        await response(scope, receive, send)


class InertiaResponse(Response[Any]):
    """Inertia Response.

    Holds the component, its props and the configuration captured when it was created.
    The page object is resolved against the request only when the response is sent, or
    explicitly with :meth:`to_response`.

    Mutators return the same instance so calls can be chained::

        return render(request, "Users/Show", {"user": user}).with_("can_edit", True).cache("1h")
    """

    def __init__(
        self,
        component: str,
        props: "Mapping[str, Any] | None" = None,
        *,
        root_view: str = "app",
        version: "str | None" = None,
        encrypt_history: bool = False,
        url_resolver: "UrlResolver | None" = None,
        renderer: "PageRenderer | None" = None,
        vite_options: "ViteOptions | None" = None,
        ssr_options: "SSRConfig | None" = None,
        ssr_client: "httpx.AsyncClient | None" = None,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "ResponseCookies | None" = None,
        headers: "ResponseHeaders | None" = None,
        status_code: int = HTTP_200_OK,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> None:
        """Create a response for ``component``.

        Args:
            component: JavaScript component name to render.
            props: The property tree. Leaves may be prop variants or callables.
            root_view: Name of the root view template, also passed to custom renderers.
            version: Asset version snapshot.
            encrypt_history: Encrypt browser history state for this page.
            url_resolver: Rewrites the page URL.
            renderer: Custom HTML renderer for non-Inertia requests.
            vite_options: Vite build layout for the default HTML document.
            ssr_options: Server-side rendering settings.
            ssr_client: Shared client used for SSR requests.
            background: Background task(s) to run after the response is sent.
            cookies: Cookies to set on the response.
            headers: Extra response headers.
            status_code: Status code of the rendered response.
            type_encoders: Extra type encoders for JSON serialization.
        """
        super().__init__(
            content=None,
            background=background,
            cookies=cookies,
            headers=headers,
            status_code=status_code,
            type_encoders=type_encoders,
        )
        self.component = component
        self.props: dict[str, Any] = dict(props or {})
        self.root_view = root_view
        self.version = version
        self.encrypt_history = encrypt_history
        self.should_clear_history = False
        self.url_resolver = url_resolver
        self.renderer = renderer
        self.vite_options = vite_options
        self.ssr_options = ssr_options
        self.ssr_client = ssr_client
        self.view_data: dict[str, Any] = {}
        self.cache_for: list[CacheDuration] = []

    def with_(self, key: "str | Mapping[str, Any]", value: Any = None) -> "InertiaResponse":
        """Add props to the response.

        Args:
            key: A prop name, or a mapping of props.
            value: The value when ``key`` is a name.

        Returns:
            The same response.
        """
        if isinstance(key, Mapping):
            self.props.update(cast("Mapping[str, Any]", key))
        else:
            self.props[key] = value
        return self

    def with_view_data(self, key: "str | Mapping[str, Any]", value: Any = None) -> "InertiaResponse":
        """Add data for the HTML document, which never reaches the page props.

        The default document reads ``title``, ``head`` and ``body``.

        Args:
            key: A name, or a mapping of values.
            value: The value when ``key`` is a name.

        Returns:
            The same response.
        """
        if isinstance(key, Mapping):
            self.view_data.update(cast("Mapping[str, Any]", key))
        else:
            self.view_data[key] = value
        return self

    def set_root_view(self, root_view: str) -> "InertiaResponse":
        self.root_view = root_view
        return self

    def cache(self, cache_for: "CacheDuration | Sequence[CacheDuration]") -> "InertiaResponse":
        """Set the client-side cache durations.

        Args:
            cache_for: Seconds, or strings such as ``"30s"``, ``"5m"``, ``"1h"``, ``"2d"``.

        Returns:
            The same response.
        """
        self.cache_for = [cache_for] if isinstance(cache_for, (int, float, str)) else list(cache_for)
        return self

    def clear_history(self, clear: bool = True) -> "InertiaResponse":
        """Ask the client to clear its encrypted history state.

        Args:
            clear: Flag value.

        Returns:
            The same response.
        """
        self.should_clear_history = clear
        return self

    async def resolve_page(self, request: "ASGIConnection[Any, Any, Any, Any]") -> "PageObject":
        """Resolve the page object for ``request``.

        Returns:
            The page object.
        """
        return await resolve_page(self, _get_details(request))

    async def resolve_deferred_props_values(self) -> dict[str, Any]:
        """Resolve every deferred prop at the top level of the props.

        Returns:
            The deferred prop values by key.
        """
        return {key: await value.resolve() for key, value in self.props.items() if isinstance(value, DeferProp)}

    async def render_html(self, page: "PageObject", request: "ASGIConnection[Any, Any, Any, Any] | None" = None) -> str:
        """Render the HTML document for a non-Inertia request.

        A custom renderer wins. Otherwise, when the application has a template engine and it
        knows the root view template, that template is rendered. The built-in document is
        used in every other case.

        Args:
            page: The resolved page object.
            request: The current request, used to reach the application's template engine.

        Returns:
            The HTML document.
        """
        ssr = await dispatch(page, self.ssr_options, self.ssr_client)
        if self.renderer is not None:
            view_data = {"root_view": self.root_view, "ssr": ssr, **self.view_data}
            rendered = await maybe_await(self.renderer(page, view_data))
            return rendered.decode(self.encoding) if isinstance(rendered, bytes) else rendered

        template_engine = request.app.template_engine if request is not None else None
        if template_engine is not None:
            rendered_view = self._render_root_view(template_engine, page, ssr, request)
            if rendered_view is not None:
                return rendered_view
        return render_html_template(page, HtmlTemplateOptions.from_view_data(self.view_data, ssr), self.vite_options)

    def _render_root_view(
        self,
        template_engine: "TemplateEngineProtocol[Any, Any]",
        page: "PageObject",
        ssr: "SSRResponse | None",
        request: "ASGIConnection[Any, Any, Any, Any] | None",
    ) -> "str | None":
        template_name = root_view_template_name(self.root_view)
        try:
            template = template_engine.get_template(template_name)
        except TemplateNotFoundException:
            logger.debug("Root view template %r not found, using the built-in document", template_name)
            return None

        context = build_template_context(page, self.view_data, ssr, self.vite_options)
        context.update(root_view=self.root_view, request=request)
        return cast("str", template.render(**context))

    async def to_response(self, request: "ASGIConnection[Any, Any, Any, Any]") -> "Response[Any]":
        """Resolve the page object and build the final response.

        Inertia requests get the page object as JSON. Any other request gets an HTML
        document embedding it.

        Args:
            request: The current request.

        Returns:
            A Litestar response.
        """
        details = _get_details(request)
        page = await resolve_page(self, details)
        headers = add_vary_header(self.headers)

        if details:
            headers.update(get_headers(InertiaHeaderType(enabled=True)))
            return Response(
                content=page.to_dict(),
                background=self.background,
                cookies=self.cookies,
                headers=headers,
                media_type=MediaType.JSON,
                status_code=self.status_code,
                type_encoders=self.response_type_encoders,
            )

        return Response(
            content=await self.render_html(page, request),
            background=self.background,
            cookies=self.cookies,
            headers=headers,
            media_type=MediaType.HTML,
            status_code=self.status_code,
        )

    def to_asgi_response(
        self,
        app: "Litestar | None",
        request: "Request[Any, Any, Any]",
        *,
        background: "BackgroundTask | BackgroundTasks | None" = None,
        cookies: "Iterable[Cookie] | None" = None,
        encoded_headers: "Iterable[tuple[bytes, bytes]] | None" = None,
        headers: "dict[str, str] | None" = None,
        is_head_response: bool = False,
        media_type: "MediaType | str | None" = None,
        status_code: "int | None" = None,
        type_encoders: "TypeEncodersMap | None" = None,
    ) -> ASGIResponse:
        async def build() -> ASGIResponse:
            response = await self.to_response(request)
            return response.to_asgi_response(
                app,
                request,
                background=background,
                cookies=cookies,
                encoded_headers=encoded_headers,
                headers=headers,
                is_head_response=is_head_response,
                type_encoders=type_encoders,
            )

        return _DeferredASGIResponse(build)


class InertiaExternalRedirect(Response[Any]):
    """``409 Conflict`` with ``X-Inertia-Location``; the client answers with a full page load.

    The target may live on another origin, so it is not checked.
    """

    def __init__(self, redirect_to: str, **kwargs: Any) -> None:
        location = quote(redirect_to, safe="/#%[]=:;$&()+,!?*@'~")
        super().__init__(
            content=b"",
            status_code=HTTP_409_CONFLICT,
            headers=get_headers(InertiaHeaderType(location=location, vary=True)),
            **kwargs,
        )


class InertiaBack(Redirect):
    """Redirect to the ``Referer`` of the request.

    Referers from other origins, or a missing one, send the client to the application root.
    ``GET`` requests get a ``307``, everything else a ``303``.
    """

    def __init__(self, request: "Request[Any, Any, Any]", **kwargs: Any) -> None:
        status_code = HTTP_307_TEMPORARY_REDIRECT if request.method == "GET" else HTTP_303_SEE_OTHER
        super().__init__(  # pyright: ignore[reportUnknownMemberType]
            path=_same_origin_or_base(request, request.headers.get("Referer")),
            status_code=status_code,
            **kwargs,
        )
