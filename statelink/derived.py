"""
StateLink Derived Values - Memoized Selectors Over A Link
=========================================================

A `DerivedTransform` evaluates `transform(link, previous)` and lets its
consumer depend on the result instead of on the link itself.

Without an equality function the transform is transparent: the link's update
callback fires exactly as it would without it.

With an equality function (passed explicitly, or installed on the link by the
`Prerender` extension during the first evaluation), every time the link's
tracked data goes stale the transform is re-run against a fresh link at the
same path, and the original update callback is only called when the new
result differs from the previous one.

Example:
    ```python
    positive = DerivedTransform(link, lambda l, prev: l.value > 0, equals=operator.eq)
    positive.result          # True
    link.set(2)              # still True: update callback not called
    link.set(-1)             # now False: update callback called
    ```
"""

import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from .link import StateLink

R = TypeVar("R")

Transform = Callable[[StateLink, Optional[R]], R]


class DerivedTransform(Generic[R]):
    """Result of a transform over a link, with optional change suppression."""

    def __init__(
        self,
        link: StateLink,
        transform: Transform,
        equals: Optional[Callable[[R, R], bool]] = None,
    ):
        self._link = link
        self._transform = transform
        self._origin_update = link.on_update_used
        self._suppressing = False

        # links created while transforming must report to the indirection
        link.on_update_used = self._on_update_used
        self._result: R = transform(link, None)

        self._equals = equals if equals is not None else link.suppress_equals
        self._suppressing = self._equals is not None

    @property
    def result(self) -> R:
        return self._result

    @property
    def link(self) -> StateLink:
        return self._link

    def _on_update_used(self) -> None:
        if self._suppressing:
            self._recompute()
        else:
            self._origin_update()

    def _recompute(self) -> None:
        link = self._link
        # a fresh link starts with a clean used-state for the new evaluation
        fresh = StateLink(
            link.state,
            link.path,
            self._on_update_used,
            link.state.snapshot(link.path),
        )
        fresh.disabled_tracking = link.disabled_tracking
        fresh.suppress_equals = link.suppress_equals
        link.redirect(fresh)

        previous = self._result
        result = self._transform(fresh, previous)
        self._result = result
        if self._equals(result, previous):
            logging.debug(f"derived value at {link} unchanged, update skipped")
            return
        self._origin_update()


def derive(
    link: StateLink,
    transform: Transform,
    equals: Optional[Callable[[Any, Any], bool]] = None,
) -> Any:
    """Evaluate `transform` over `link` and return just the result."""
    return DerivedTransform(link, transform, equals).result
