"""
StateLink Bindings - Connecting Links To A Consumer
===================================================

A consumer (a view, a report, a widget of whatever UI toolkit) evaluates
itself against a link and wants to be told when what it read changes. A
`Binding` does the bookkeeping:

- it builds a fresh link for every evaluation pass (`refresh()`),
- keeps exactly that link subscribed to its source,
- and calls the consumer's zero-argument `update()` callback when the link's
  tracked data goes stale.

The consumer decides what `update()` does, typically scheduling a new
evaluation that calls `refresh()` again.

Example:
    ```python
    ref = create_state_link({"todos": [], "filter": "all"})

    def render():
        todos = binding.link.nested["todos"]
        print(f"{len(todos.value)} todos")

    binding = Binding(ref, update=lambda: (binding.refresh(), render()))
    render()
    binding.link.nested["todos"].inferred.push("write docs")   # prints "1 todos"
    ```
"""

import logging
from typing import Any, Callable, Optional, Union

from .derived import DerivedTransform, Transform
from .exceptions import StateLinkError
from .link import StateLink
from .path import ROOT_PATH
from .plugin import DisabledTracking
from .state import StateRef, create_state

Action = Callable[[], None]

Source = Union[StateLink, StateRef, Any]


def create_state_link(initial: Any) -> StateRef:
    """Create a new state; `initial` may be a zero-argument factory."""
    return StateRef(create_state(initial))


class Binding:
    """
    Subscription of one consumer to a state, a parent link, or a new local state.

    Args:
        source: a `StateRef` (global state), a `StateLink` (derived from a
            parent consumer's link) or any other value, which becomes the
            initial value of a new local state.
        update: called without arguments when the consumer should re-evaluate.
        transform: optional `transform(link, previous)`; when given, `result`
            is the transform's result instead of the link.
        disabled_tracking: turn usage tracking off for the bound links.
    """

    def __init__(
        self,
        source: Source,
        update: Action,
        transform: Optional[Transform] = None,
        disabled_tracking: bool = False,
    ):
        self._update = update
        self._transform = transform
        self._disabled_tracking = disabled_tracking
        self._link: Optional[StateLink] = None
        self._derived: Optional[DerivedTransform] = None
        self._closed = False
        self._bind_source(source)
        self.refresh()

    def _bind_source(self, source: Source) -> None:
        if isinstance(source, StateLink):
            self._state = source.state
            self._path = source.path
            self._target = source
            self._disabled_tracking = self._disabled_tracking or source.disabled_tracking
        elif isinstance(source, StateRef):
            self._state = source.state
            self._path = ROOT_PATH
            self._target = source.state
            self._disabled_tracking = self._disabled_tracking or source.disabled_tracking
        else:
            self._state = create_state(source)
            self._path = ROOT_PATH
            self._target = self._state

    @property
    def state(self):
        return self._state

    @property
    def link(self) -> StateLink:
        return self._link

    @property
    def result(self) -> Any:
        """The transform's result if a transform was given, else the link."""
        if self._derived is not None:
            return self._derived.result
        return self._link

    def refresh(self, source: Optional[Source] = None) -> Any:
        """
        Start a new evaluation pass and return the new `result`.

        Passing `source` rebinds a derived binding to its parent's new link.
        """
        if self._closed:
            raise StateLinkError("Binding is closed")
        self._unsubscribe()
        if source is not None:
            self._bind_source(source)

        link = StateLink(
            self._state, self._path, self._update, self._state.snapshot(self._path)
        )
        if self._disabled_tracking:
            link.with_plugin(DisabledTracking)
        self._target.subscribe(link)
        self._link = link
        logging.debug(f"bound {link} to {type(self._target).__name__}")

        if self._transform is not None:
            self._derived = DerivedTransform(link, self._transform)
        return self.result

    def _unsubscribe(self) -> None:
        if self._link is not None:
            self._target.unsubscribe(self._link)

    def close(self) -> None:
        self._unsubscribe()
        self._link = None
        self._derived = None
        self._closed = True

    def __enter__(self) -> "Binding":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def use_state_link(
    source: Source,
    update: Action,
    transform: Optional[Transform] = None,
) -> Binding:
    """Bind `update` to `source`; see `Binding`."""
    return Binding(source, update, transform)


def _unexpected_update() -> None:
    raise StateLinkError("Internal Error: unexpected call")


def use_state_link_unmounted(
    ref: StateRef, transform: Optional[Callable[[StateLink], Any]] = None
) -> Any:
    """
    Root link of `ref` for use outside of any consumer, e.g. in event handlers.

    The link is not subscribed and does not track usage; it is meant to be
    used once and discarded.
    """
    link = StateLink(ref.state, ROOT_PATH, _unexpected_update, ref.state.snapshot(ROOT_PATH))
    link.with_plugin(DisabledTracking)
    if transform is not None:
        return transform(link)
    return link
