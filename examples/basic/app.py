"""Basic Inertia example - a tiny "Library" app.

- `/` - overview and featured book
- `/books` - list of books, with a deferred statistics panel
- `/books/{book_id}` - single book
- `/books/{book_id}/favorite` - PUT, then redirect back

Build the frontend with Vite so `public/build/manifest.json` exists, or start the Vite dev
server so `public/hot` is written.
"""

from typing import Any

from litestar import Litestar, Request, get, put
from litestar.exceptions import NotFoundException
from msgspec import Struct

from litestar_inertia import (
    InertiaBack,
    InertiaConfig,
    InertiaPlugin,
    InertiaResponse,
    ViteOptions,
    back,
    defer,
    render,
    share,
)


class Book(Struct):
    id: int
    title: str
    author: str
    year: int
    tags: list[str]


BOOKS: list[Book] = [
    Book(id=1, title="Async Python", author="C. Developer", year=2024, tags=["python", "async"]),
    Book(id=2, title="Type-Safe Web", author="J. Dev", year=2025, tags=["typescript", "api"]),
    Book(id=3, title="Frontend Patterns", author="A. Designer", year=2023, tags=["frontend", "ux"]),
]
FAVORITES: set[int] = set()


def _get_book(book_id: int) -> Book:
    for book in BOOKS:
        if book.id == book_id:
            return book
    raise NotFoundException(detail=f"Book {book_id} not found")


async def _stats() -> dict[str, Any]:
    return {"total_books": len(BOOKS), "favorites": sorted(FAVORITES)}


@get("/", name="home")
async def home(request: Request[Any, Any, Any]) -> InertiaResponse:
    return render(request, "Home", {"headline": "One backend, many frontends", "featured": BOOKS[0]})


@get("/books", name="books")
async def books(request: Request[Any, Any, Any]) -> InertiaResponse:
    return render(request, "Books/Index", {"books": BOOKS, "stats": defer(_stats)}).cache("1m")


@get("/books/{book_id:int}", name="book")
async def book_detail(request: Request[Any, Any, Any], book_id: int) -> InertiaResponse:
    share(request, "favorite", book_id in FAVORITES)
    return render(request, "Books/Show", {"book": _get_book(book_id)})


@put("/books/{book_id:int}/favorite", name="favorite")
async def favorite(request: Request[Any, Any, Any], book_id: int) -> InertiaBack:
    FAVORITES.add(_get_book(book_id).id)
    return back(request)


app = Litestar(
    route_handlers=[home, books, book_detail, favorite],
    plugins=[
        InertiaPlugin(
            InertiaConfig(
                vite=ViteOptions(entrypoints=["resources/main.tsx"]),
                shared_props={"app_name": "Library"},
            )
        )
    ],
)
