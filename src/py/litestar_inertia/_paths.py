"""Dot-notation access over nested prop trees.

All helpers are total: a path that does not exist is reported as :data:`MISSING`
(or silently ignored) rather than raising.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any, Final, cast

__all__ = ("MISSING", "get_path", "has_path", "set_path", "unset_path")


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()
"""Sentinel returned by :func:`get_path` when a path does not exist."""


def _split(path: str) -> list[str]:
    return path.split(".")


def get_path(tree: "Mapping[str, Any]", path: str) -> Any:
    """Return the value at ``path`` or :data:`MISSING`.

    Args:
        tree: The nested mapping.
        path: A dotted path such as ``"user.profile.name"``.

    Returns:
        The value found, or :data:`MISSING` when any segment is absent.
    """
    current: Any = tree
    for key in _split(path):
        if isinstance(current, Mapping) and key in current:
            current = cast("Mapping[str, Any]", current)[key]
        else:
            return MISSING
    return current


def has_path(tree: "Mapping[str, Any]", path: str) -> bool:
    return get_path(tree, path) is not MISSING


def set_path(tree: "MutableMapping[str, Any]", path: str, value: Any) -> None:
    """Set ``value`` at ``path``, creating intermediate mappings as needed.

    An intermediate value that is not a mapping is replaced by a new dict.

    Args:
        tree: The nested mapping to modify in place.
        path: A dotted path.
        value: The value to store.
    """
    keys = _split(path)
    current: MutableMapping[str, Any] = tree
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, MutableMapping):
            child = {}
            current[key] = child
        current = cast("MutableMapping[str, Any]", child)
    current[keys[-1]] = value


def unset_path(tree: "MutableMapping[str, Any]", path: str) -> None:
    """Remove the value at ``path`` if present.

    Args:
        tree: The nested mapping to modify in place.
        path: A dotted path.
    """
    keys = _split(path)
    current: Any = tree
    for key in keys[:-1]:
        if isinstance(current, Mapping) and key in current:
            current = cast("Mapping[str, Any]", current)[key]
        else:
            return
    if isinstance(current, MutableMapping) and keys[-1] in current:
        del current[keys[-1]]
