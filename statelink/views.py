"""
StateLink Views - Read-Only Structural Wrappers
===============================================

Views wrap a container of the state tree and resolve each key lazily through a
getter, so that reading `view["a"]` is attributed to the link of key `a`
rather than to the link owning the container.

Structural reads (length, iteration, membership) depend on the shape of the
container itself and are reported through `touch`, which marks the owning link
as used.

Views never mutate. Every forbidden operation raises the view's usage error,
naming the operation and the path of the owning link:

| Operation       | Raised by                                                   |
|-----------------|-------------------------------------------------------------|
| `set`           | item or attribute assignment, `append`, `extend`, `insert`, |
|                 | `update`, `sort`, `reverse`, `+=`, `*=`                     |
| `delete`        | item or attribute deletion, `pop`, `popitem`, `remove`,     |
|                 | `clear`                                                     |
| `define`        | `setdefault`                                                |
| `set_prototype` | assignment of `__class__`                                   |
| `apply`         | calling the view                                            |
"""

from collections.abc import Mapping, Sequence
from typing import Any, Callable, Iterator, Type

from .exceptions import (
    InvalidExtensionUsage,
    InvalidUsage,
    StateLinkError,
    UnknownExtension,
)
from .path import Key, Path


class _ReadOnlyView:
    """Shared guard rails of all views."""

    __slots__ = ("_raw", "_resolve", "_touch", "_path", "_strict")

    _error: Type[StateLinkError] = InvalidUsage

    def __init__(
        self,
        raw: Any,
        resolve: Callable[[Key], Any],
        touch: Callable[[], None],
        path: Path,
        strict: bool = True,
    ):
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_resolve", resolve)
        object.__setattr__(self, "_touch", touch)
        object.__setattr__(self, "_path", path)
        # strict views raise on absent keys, lenient ones resolve them anyway
        object.__setattr__(self, "_strict", strict)

    def _fail(self, op: str):
        raise self._error(op, self._path)

    def __setattr__(self, name: str, value: Any) -> None:
        self._fail("set_prototype" if name == "__class__" else "set")

    def __delattr__(self, name: str) -> None:
        self._fail("delete")

    def __setitem__(self, key: Any, value: Any) -> None:
        self._fail("set")

    def __delitem__(self, key: Any) -> None:
        self._fail("delete")

    def __call__(self, *args, **kwargs):
        self._fail("apply")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._raw!r})"


class RecordView(_ReadOnlyView, Mapping):
    """
    Read-only mapping over a record of the state tree.

    String keys are also reachable as attributes, unless they collide with a
    mapping method (`keys`, `items`, `get`, ...) or start with an underscore.
    """

    __slots__ = ()

    def __getitem__(self, key: Key) -> Any:
        if self._strict and key not in self._raw:
            # resolving still registers interest in the key appearing later
            self._resolve(key)
            raise KeyError(key)
        return self._resolve(key)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __iter__(self) -> Iterator[Key]:
        self._touch()
        return iter(list(self._raw))

    def __len__(self) -> int:
        self._touch()
        return len(self._raw)

    def __contains__(self, key: object) -> bool:
        self._touch()
        return key in self._raw

    def setdefault(self, key: Key, default: Any = None) -> Any:
        self._fail("define")

    def update(self, *args, **kwargs) -> None:
        self._fail("set")

    def pop(self, key: Key, *default: Any) -> Any:
        self._fail("delete")

    def popitem(self) -> Any:
        self._fail("delete")

    def clear(self) -> None:
        self._fail("delete")


class SequenceView(_ReadOnlyView, Sequence):
    """
    Read-only sequence over a list or tuple of the state tree.

    Integer indices resolve to per-element links. Slicing, `index()` and
    `count()` operate on the raw backing data: they mark the sequence as used
    but bypass per-element tracking.
    """

    __slots__ = ()

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, slice):
            self._touch()
            return self._raw[index]
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(
                f"sequence indices must be integers or slices, not {type(index).__name__}"
            )
        if index < 0:
            # negative indices depend on the length
            self._touch()
            index += len(self._raw)
            if index < 0:
                raise IndexError("sequence index out of range")
        if self._strict and index >= len(self._raw):
            self._resolve(index)
            raise IndexError("sequence index out of range")
        return self._resolve(index)

    def __len__(self) -> int:
        self._touch()
        return len(self._raw)

    def __iter__(self) -> Iterator[Any]:
        self._touch()
        for index in range(len(self._raw)):
            yield self._resolve(index)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (str, bytes)) or not isinstance(other, Sequence):
            return NotImplemented
        return list(self) == list(other)

    __hash__ = None  # type: ignore[assignment]

    def index(self, value: Any, *args) -> int:
        self._touch()
        return self._raw.index(value, *args)

    def count(self, value: Any) -> int:
        self._touch()
        return self._raw.count(value)

    def append(self, value: Any) -> None:
        self._fail("set")

    def extend(self, values: Any) -> None:
        self._fail("set")

    def insert(self, index: int, value: Any) -> None:
        self._fail("set")

    def sort(self, *args, **kwargs) -> None:
        self._fail("set")

    def reverse(self) -> None:
        self._fail("set")

    def __iadd__(self, other: Any):
        self._fail("set")

    def __imul__(self, other: Any):
        self._fail("set")

    def pop(self, index: int = -1) -> Any:
        self._fail("delete")

    def remove(self, value: Any) -> None:
        self._fail("delete")

    def clear(self) -> None:
        self._fail("delete")


class ExtensionView(RecordView):
    """
    Read-only mapping of extension name -> extension bound to one link.

    Each access rebuilds the extension through its plugin's factory, so the
    result always reflects the current link.
    """

    __slots__ = ()

    _error = InvalidExtensionUsage

    def __getitem__(self, name: Key) -> Any:
        if name not in self._raw:
            raise UnknownExtension(str(name))
        return self._resolve(name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __iter__(self) -> Iterator[Key]:
        return iter(list(self._raw))

    def __len__(self) -> int:
        return len(self._raw)

    def __contains__(self, name: object) -> bool:
        return name in self._raw
