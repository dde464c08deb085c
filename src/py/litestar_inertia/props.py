"""Prop variants for Inertia page props.

Five wrapper types control how a prop is treated by the resolution engine:

=============  ===================  ==========================  =========
Variant        First load           Partial reload (selected)   Mergeable
=============  ===================  ==========================  =========
``lazy``       excluded             resolved                    no
``optional``   excluded             resolved                    no
``always``     included             included, bypasses filters  no
``defer``      listed as deferred   resolved                    opt-in
``merge``      included             included                    default
=============  ===================  ==========================  =========

The set is closed: every variant is ``@final`` and carries a :class:`PropKind`
discriminant in ``kind``, so code that handles props can branch on ``prop.kind``
and cover :data:`InertiaProp` exhaustively.

Callbacks are never invoked at construction time. They may be synchronous or
``async``; :meth:`invoke` hands back whatever the callback returns (possibly an
awaitable) and :meth:`resolve` awaits it.
"""

import inspect
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from typing import Any, ClassVar, Generic, Literal, TypeVar, Union, cast

from typing_extensions import Self, TypeGuard, final

__all__ = (
    "DEFAULT_DEFERRED_GROUP",
    "AlwaysProp",
    "DeferProp",
    "InertiaProp",
    "LazyProp",
    "MergeProp",
    "Mergeable",
    "OptionalProp",
    "PropCallback",
    "PropKind",
    "always",
    "deep_merge",
    "defer",
    "is_ignored_on_first_load",
    "is_mergeable",
    "is_prop",
    "lazy",
    "maybe_await",
    "merge",
    "optional",
)

T = TypeVar("T")

DEFAULT_DEFERRED_GROUP = "default"

PropCallback = Callable[[], "T | Awaitable[T]"]


class PropKind(str, Enum):
    """Discriminant for the prop variants."""

    LAZY = "lazy"
    OPTIONAL = "optional"
    ALWAYS = "always"
    DEFER = "defer"
    MERGE = "merge"


async def maybe_await(value: "T | Awaitable[T]") -> "T":
    """Await ``value`` if it is awaitable, otherwise return it unchanged.

    Returns:
        The resolved value.
    """
    if inspect.isawaitable(value):
        return await cast("Awaitable[T]", value)
    return cast("T", value)


class Mergeable:
    """Merge policy shared by :class:`DeferProp` and :class:`MergeProp`.

    The flags are set with chainable calls before the props are rendered::

        merge(posts).deep_merge().match_on("id")
    """

    __slots__ = ("_deep_merge", "_match_on", "_merge")

    def __init__(self, *, merge: bool = False) -> None:
        self._merge = merge
        self._deep_merge = False
        self._match_on: list[str] = []

    def merge(self) -> Self:
        self._merge = True
        return self

    def deep_merge(self) -> Self:
        """Enable deep merging. Implies :meth:`merge`.

        Returns:
            The same instance.
        """
        self._deep_merge = True
        return self.merge()

    def match_on(self, match_on: "str | Iterable[str]") -> Self:
        """Set the keys used to match array items during a merge.

        Replaces any previously configured keys.

        Args:
            match_on: A single key or an iterable of keys.

        Returns:
            The same instance.
        """
        self._match_on = [match_on] if isinstance(match_on, str) else list(match_on)
        return self

    def should_merge(self) -> bool:
        return self._merge

    def should_deep_merge(self) -> bool:
        return self._deep_merge

    def matches_on(self) -> list[str]:
        return list(self._match_on)


@final
class LazyProp(Generic[T]):
    """A prop resolved only when a partial reload asks for it."""

    __slots__ = ("_callback",)

    kind: ClassVar[Literal[PropKind.LAZY]] = PropKind.LAZY

    def __init__(self, callback: "PropCallback[T]") -> None:
        self._callback = callback

    def invoke(self) -> "T | Awaitable[T]":
        return self._callback()

    async def resolve(self) -> "T":
        return await maybe_await(self.invoke())

    def __repr__(self) -> str:
        return f"LazyProp({self._callback!r})"


@final
class OptionalProp(Generic[T]):
    """A prop resolved only when a partial reload asks for it.

    Behaves like :class:`LazyProp`; the separate type documents intent.
    """

    __slots__ = ("_callback",)

    kind: ClassVar[Literal[PropKind.OPTIONAL]] = PropKind.OPTIONAL

    def __init__(self, callback: "PropCallback[T]") -> None:
        self._callback = callback

    def invoke(self) -> "T | Awaitable[T]":
        return self._callback()

    async def resolve(self) -> "T":
        return await maybe_await(self.invoke())

    def __repr__(self) -> str:
        return f"OptionalProp({self._callback!r})"


@final
class AlwaysProp(Generic[T]):
    """A prop included in every response, ignoring partial reload filters."""

    __slots__ = ("_value",)

    kind: ClassVar[Literal[PropKind.ALWAYS]] = PropKind.ALWAYS

    def __init__(self, value: "T | PropCallback[T]") -> None:
        self._value = value

    def invoke(self) -> "T | Awaitable[T]":
        if callable(self._value):
            return cast("PropCallback[T]", self._value)()
        return self._value

    async def resolve(self) -> "T":
        return await maybe_await(self.invoke())

    def __repr__(self) -> str:
        return f"AlwaysProp({self._value!r})"


@final
class DeferProp(Mergeable, Generic[T]):
    """A prop left out of the first response and fetched afterwards.

    Deferred props sharing a group are fetched together by the client.
    """

    __slots__ = ("_callback", "_group")

    kind: ClassVar[Literal[PropKind.DEFER]] = PropKind.DEFER

    def __init__(self, callback: "PropCallback[T]", group: "str | None" = None) -> None:
        super().__init__(merge=False)
        self._callback = callback
        self._group = group

    def group(self) -> "str | None":
        """Return the configured group, or ``None`` for the default group.

        Returns:
            The group name or ``None``.
        """
        return self._group

    def invoke(self) -> "T | Awaitable[T]":
        return self._callback()

    async def resolve(self) -> "T":
        return await maybe_await(self.invoke())

    def __repr__(self) -> str:
        return f"DeferProp({self._callback!r}, group={self._group!r})"


@final
class MergeProp(Mergeable, Generic[T]):
    """A prop the client merges into its existing value instead of replacing it."""

    __slots__ = ("_value",)

    kind: ClassVar[Literal[PropKind.MERGE]] = PropKind.MERGE

    def __init__(self, value: "T | PropCallback[T]") -> None:
        super().__init__(merge=True)
        self._value = value

    def invoke(self) -> "T | Awaitable[T]":
        if callable(self._value):
            return cast("PropCallback[T]", self._value)()
        return self._value

    async def resolve(self) -> "T":
        return await maybe_await(self.invoke())

    def __repr__(self) -> str:
        return f"MergeProp({self._value!r})"


InertiaProp = Union[LazyProp[Any], OptionalProp[Any], AlwaysProp[Any], DeferProp[Any], MergeProp[Any]]
"""Closed union of every prop variant."""

_PROP_TYPES = (LazyProp, OptionalProp, AlwaysProp, DeferProp, MergeProp)


def is_prop(value: Any) -> "TypeGuard[InertiaProp]":
    """Check if value is one of the prop variants.

    Args:
        value: Any value to check

    Returns:
        bool: True if value is a prop variant
    """
    return isinstance(value, _PROP_TYPES)


def is_mergeable(value: Any) -> "TypeGuard[DeferProp[Any] | MergeProp[Any]]":
    return isinstance(value, (DeferProp, MergeProp))


def is_ignored_on_first_load(value: Any) -> "TypeGuard[LazyProp[Any] | OptionalProp[Any] | DeferProp[Any]]":
    """Check if value is left out of a full (non-partial) response.

    Args:
        value: Any value to check

    Returns:
        bool: True for lazy, optional and deferred props
    """
    return isinstance(value, (LazyProp, OptionalProp, DeferProp))


def lazy(callback: "PropCallback[T]") -> "LazyProp[T]":
    """Create a prop that is only resolved when a partial reload requests it.

    Args:
        callback: A callable (sync or async) returning the value.

    Returns:
        A LazyProp instance.

    Example::

        render(request, "Users/Index", {"users": lazy(lambda: User.all())})
    """
    return LazyProp(callback)


def optional(callback: "PropCallback[T]") -> "OptionalProp[T]":
    """Create a prop that is only resolved when a partial reload requests it.

    Args:
        callback: A callable (sync or async) returning the value.

    Returns:
        An OptionalProp instance.
    """
    return OptionalProp(callback)


def always(value: "T | PropCallback[T]") -> "AlwaysProp[T]":
    """Create a prop that is included in every response, even partial reloads.

    Args:
        value: The value, or a callable returning it.

    Returns:
        An AlwaysProp instance.
    """
    return AlwaysProp(value)


def defer(callback: "PropCallback[T]", group: "str | None" = None) -> "DeferProp[T]":
    """Create a deferred prop with optional grouping.

    Deferred props are loaded after the initial page render.
    Props in the same group are fetched together in a single request.

    Args:
        callback: A callable (sync or async) that returns the value.
        group: The group name for batched loading. ``None`` means the default group.

    Returns:
        A DeferProp instance.

    Example::

        # Basic deferred prop
        defer(lambda: Permission.all())

        # Grouped deferred props (fetched together)
        defer(lambda: Team.all(), group="attributes")
        defer(lambda: Project.all(), group="attributes")
    """
    return DeferProp(callback, group)


def merge(value: "T | PropCallback[T]") -> "MergeProp[T]":
    """Create a merge prop that the client merges with its existing value.

    Args:
        value: The value, or a callable returning it.

    Returns:
        A MergeProp instance.

    Example::

        # Append new items to the existing list
        merge(new_posts)

        # Update existing items matched by id
        merge(updated_posts).match_on("id")
    """
    return MergeProp(value)


def deep_merge(value: "T | PropCallback[T]") -> "MergeProp[T]":
    return MergeProp(value).deep_merge()
