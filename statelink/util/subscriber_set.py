"""
Weak Subscriber Set
===================

Ordered set of subscribers, keyed by identity and held through weak references
where the subscriber supports them.

A state (or a link) never owns the links subscribed to it: a link lives as long
as whoever evaluated it keeps it, and drops out of the set automatically once
it is garbage collected. Subscribers that cannot be weakly referenced (classes
with `__slots__` and no `__weakref__`) are held strongly until unsubscribed.

Membership is decided by identity, never by `__eq__`/`__hash__`: two distinct
subscribers that compare equal each get their own entry, and unhashable
subscribers are accepted.

Iteration always works on a snapshot, so subscribers may subscribe or
unsubscribe while a notification pass is running.
"""

import weakref
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class _StrongRef(Generic[T]):
    """Stand-in for `weakref.ref` on objects that refuse weak references."""

    __slots__ = ("_obj",)

    def __init__(self, obj: T):
        self._obj = obj

    def __call__(self) -> T:
        return self._obj


class WeakSubscriberSet(Generic[T]):
    """
    Insertion-ordered identity set of subscribers.

    Example:
        ```python
        subscribers = WeakSubscriberSet()
        subscribers.add(link)
        for subscriber in subscribers:
            subscriber.on_set(path, actions)
        ```
    """

    __slots__ = ("_refs", "__weakref__")

    def __init__(self):
        # id(subscriber) -> reference; dict keeps insertion order
        self._refs: Dict[int, Callable[[], Optional[T]]] = {}

    def _reference(self, subscriber: T) -> Callable[[], Optional[T]]:
        key = id(subscriber)
        owner = weakref.ref(self)

        def forget(ref: "weakref.ref[T]") -> None:
            subscribers = owner()
            # the id may already belong to a newer subscriber
            if subscribers is not None and subscribers._refs.get(key) is ref:
                del subscribers._refs[key]

        try:
            return weakref.ref(subscriber, forget)
        except TypeError:
            return _StrongRef(subscriber)

    def _lookup(self, subscriber: object) -> Optional[Callable[[], Optional[T]]]:
        ref = self._refs.get(id(subscriber))
        if ref is None or ref() is not subscriber:
            return None
        return ref

    def add(self, subscriber: T) -> None:
        if self._lookup(subscriber) is None:
            self._refs[id(subscriber)] = self._reference(subscriber)

    def discard(self, subscriber: T) -> None:
        if self._lookup(subscriber) is not None:
            del self._refs[id(subscriber)]

    def snapshot(self) -> List[T]:
        """Strong references to the live subscribers, in subscription order."""
        live = []
        for ref in list(self._refs.values()):
            subscriber = ref()
            if subscriber is not None:
                live.append(subscriber)
        return live

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())

    def __contains__(self, subscriber: object) -> bool:
        return self._lookup(subscriber) is not None

    def __len__(self) -> int:
        return len(self.snapshot())

    def __bool__(self) -> bool:
        return len(self) > 0
