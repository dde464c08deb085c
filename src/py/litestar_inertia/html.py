"""Default HTML document for full-page Inertia responses."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import markupsafe
from litestar.serialization import encode_json

from litestar_inertia.vite import Vite

if TYPE_CHECKING:
    from litestar_inertia.config import ViteOptions
    from litestar_inertia.types import PageObject, SSRResponse

__all__ = (
    "HtmlTemplateOptions",
    "build_template_context",
    "encode_page",
    "render_html_template",
    "render_inertia_body",
    "render_inertia_head",
    "root_view_template_name",
)

_DOCUMENT = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
    {assets}
    {head}
</head>
<body>
    {app}
    {body}
</body>
</html>"""


@dataclass
class HtmlTemplateOptions:
    """Values placed into the default document.

    ``head`` and ``body`` are inserted as HTML. Everything else is escaped.
    """

    title: str = "Inertia"
    hot_url: "str | None" = None
    head: str = ""
    body: str = ""
    ssr: "SSRResponse | None" = None

    @classmethod
    def from_view_data(cls, view_data: "Mapping[str, Any]", ssr: "SSRResponse | None" = None) -> "HtmlTemplateOptions":
        """Pick the template options out of response view data.

        Args:
            view_data: View data set with ``with_view_data()``.
            ssr: The SSR result, if any.

        Returns:
            The options.
        """
        return cls(
            title=str(view_data.get("title", cls.title)),
            hot_url=view_data.get("hot_url"),
            head=str(view_data.get("head", "")),
            body=str(view_data.get("body", "")),
            ssr=ssr,
        )


def encode_page(page: "PageObject") -> str:
    """Serialize a page object for embedding in HTML.

    ``<`` is written as ``\\u003c`` so the JSON can never close a surrounding tag.

    Returns:
        The JSON text.
    """
    return encode_json(page.to_dict()).decode("utf-8").replace("<", "\\u003c")


def render_inertia_head(page: "PageObject") -> markupsafe.Markup:
    """Render a ``<meta>`` tag carrying the page object.

    Returns:
        The tag.
    """
    return markupsafe.Markup('<meta name="inertia-page" content="{}">').format(encode_page(page))


def render_inertia_body(page: "PageObject") -> markupsafe.Markup:
    """Render the app container with the page object in ``data-page``.

    Returns:
        The ``<div id="app">`` element.
    """
    return markupsafe.Markup('<div id="app" data-page="{}"></div>').format(encode_page(page))


def render_html_template(
    page: "PageObject", options: "HtmlTemplateOptions | None" = None, vite_options: "ViteOptions | None" = None
) -> str:
    """Render the full HTML document for ``page``.

    When an SSR result is given, its body replaces the app container and its head fragments
    are added to ``<head>``.

    Args:
        page: The resolved page object.
        options: Title, extra HTML and SSR output.
        vite_options: Vite build layout used for the asset tags.

    Returns:
        The HTML document.
    """
    options = options or HtmlTemplateOptions()
    assets = Vite(vite_options).make_tag(hot_url=options.hot_url)

    head = [options.head] if options.head else []
    if options.ssr is not None:
        head.insert(0, options.ssr.head_html)
        app = options.ssr.body
    else:
        app = str(render_inertia_body(page))

    return _DOCUMENT.format(
        title=markupsafe.escape(options.title),
        assets=assets,
        head="\n    ".join(head),
        app=app,
        body=options.body,
    )


def root_view_template_name(root_view: str) -> str:
    """Template file rendered for ``root_view``: ``"app"`` becomes ``app.html``, names with a suffix are kept."""
    return root_view if "." in root_view.rsplit("/", 1)[-1] else f"{root_view}.html"


def build_template_context(
    page: "PageObject",
    view_data: "Mapping[str, Any]",
    ssr: "SSRResponse | None" = None,
    vite_options: "ViteOptions | None" = None,
) -> "dict[str, Any]":
    """Build the context for a root view template.

    View data comes first, so the Inertia entries below cannot be shadowed by it:

    ``page``
        The page object as a protocol dictionary.
    ``inertia``
        The page object as JSON text, ready for a ``data-page`` attribute.
    ``inertia_body``
        The app container, or the SSR body when the page was server-rendered.
    ``inertia_head``
        SSR head fragments, empty without SSR.
    ``vite``
        The Vite asset tags.
    ``ssr``
        The raw :class:`~litestar_inertia.types.SSRResponse` or ``None``.

    Returns:
        The template context.
    """
    return {
        **view_data,
        "page": page.to_dict(),
        "inertia": encode_page(page),
        "inertia_body": markupsafe.Markup(ssr.body) if ssr is not None else render_inertia_body(page),
        "inertia_head": markupsafe.Markup(ssr.head_html) if ssr is not None else markupsafe.Markup(""),
        "vite": Vite(vite_options).make_tag(hot_url=view_data.get("hot_url")),
        "ssr": ssr,
    }
