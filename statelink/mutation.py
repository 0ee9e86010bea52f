"""
StateLink Mutations - Structured Updates For Records And Sequences
==================================================================

`StateLink.inferred` hands out a mutation helper chosen by the shape of the
link's value. A helper only receives the link's `set` callable; every operation
computes a new full value from the current one and passes it to `set`, so the
state always sees a whole replacement of the container.

The helpers used for each shape can be replaced with
`register_mutation_factory()`.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Optional, Union

from .path import Shape

Setter = Callable[[Any], None]
MutationFactory = Callable[[Setter], Any]


class RecordMutation:
    """Operations on a record (dict) value."""

    def __init__(self, set_: Setter):
        self._set = set_

    def set(self, new_value: Any) -> None:
        self._set(new_value)

    def merge(self, partial: Union[Mapping, Callable[[Dict], Mapping]]) -> None:
        """Overwrite the keys present in `partial`, keep the others."""

        def apply(prev):
            changes = partial(prev) if callable(partial) else partial
            merged = dict(prev)
            merged.update(changes)
            return merged

        self._set(apply)

    def update(self, key: str, value: Any) -> None:
        self.merge({key: value})


class SequenceMutation:
    """Operations on a sequence (list) value."""

    def __init__(self, set_: Setter):
        self._set = set_

    def set(self, new_value: Any) -> None:
        self._set(new_value)

    def merge(self, changes: Union[Mapping, Callable[[list], Mapping]]) -> None:
        """Replace elements by index; `changes` maps index -> new element."""

        def apply(prev):
            result = list(prev)
            resolved = changes(prev) if callable(changes) else changes
            for index, value in resolved.items():
                result[index] = value
            return result

        self._set(apply)

    def update(self, index: int, value: Any) -> None:
        self.merge({index: value})

    def concat(self, values: Iterable[Any]) -> None:
        self._set(lambda prev: list(prev) + list(values))

    def push(self, value: Any) -> None:
        self._set(lambda prev: list(prev) + [value])

    def pop(self) -> None:
        self._set(lambda prev: list(prev)[:-1])

    def insert(self, index: int, value: Any) -> None:
        def apply(prev):
            result = list(prev)
            result.insert(index, value)
            return result

        self._set(apply)

    def remove(self, index: int) -> None:
        def apply(prev):
            result = list(prev)
            del result[index]
            return result

        self._set(apply)

    def swap(self, index_a: int, index_b: int) -> None:
        def apply(prev):
            result = list(prev)
            result[index_a], result[index_b] = result[index_b], result[index_a]
            return result

        self._set(apply)


_factories: Dict[Shape, Optional[MutationFactory]] = {
    Shape.RECORD: RecordMutation,
    Shape.SEQUENCE: SequenceMutation,
    Shape.SCALAR: None,
}


def mutation_factory(shape: Shape) -> Optional[MutationFactory]:
    return _factories[shape]


def register_mutation_factory(shape: Shape, factory: Optional[MutationFactory]) -> None:
    """Use `factory` to build the helpers of links whose value has `shape`."""
    _factories[shape] = factory
