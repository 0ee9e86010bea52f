"""
StateLink Paths - Addressing Into The State Tree
================================================

A path is a tuple of keys leading from the root value to a nested value:
strings address record fields and integers address sequence indices. The empty
tuple addresses the root itself.

Every node of the tree is classified once into a `Shape`:

- `Shape.RECORD` for mappings
- `Shape.SEQUENCE` for lists and tuples
- `Shape.SCALAR` for everything else (strings and bytes included)
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, Tuple, Union

from cachetools import LRUCache, cached

Key = Union[str, int]
Path = Tuple[Key, ...]

ROOT_PATH: Path = ()


class _MISSING:
    """Sentinel for a key that does not exist in its container."""

    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False


MISSING = _MISSING()


class Shape(Enum):
    """Structural kind of a value in the state tree."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    RECORD = "record"


def shape_of(value: Any) -> Shape:
    if isinstance(value, Mapping):
        return Shape.RECORD
    if isinstance(value, (list, tuple)):
        return Shape.SEQUENCE
    return Shape.SCALAR


def to_path(keys: Iterable[Key]) -> Path:
    """Normalize any iterable of keys into a `Path` tuple."""
    if isinstance(keys, tuple):
        return keys
    if isinstance(keys, (str, bytes)):
        raise TypeError(f"Path must be a sequence of keys, got {keys!r}")
    return tuple(keys)


def has_key(container: Any, key: Key) -> bool:
    """Check whether `key` exists in `container` without reading its value."""
    shape = shape_of(container)
    if shape is Shape.RECORD:
        return key in container
    if shape is Shape.SEQUENCE:
        return isinstance(key, int) and 0 <= key < len(container)
    return False


def child_of(container: Any, key: Key) -> Any:
    """Return `container[key]`, or `MISSING` when the key is absent."""
    if container is MISSING or not has_key(container, key):
        return MISSING
    return container[key]


def lookup(root: Any, path: Path) -> Any:
    """Walk `path` from `root`; absent keys anywhere along the way give `MISSING`."""
    result = root
    for key in path:
        result = child_of(result, key)
        if result is MISSING:
            break
    return result


@cached(cache=LRUCache(maxsize=1024))
def format_path(path: Path) -> str:
    """Render a path the way error messages and log records show it: `/a/0/b`."""
    return "/" + "/".join(str(key) for key in path)
