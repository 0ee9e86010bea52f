"""
StateLink Links - Path-Scoped Cursors With Usage Tracking
=========================================================

A `StateLink` is a read/write handle on one path of a `State`. It is created
for one evaluation pass: it captures the value at its path when it is built,
records what the evaluation reads through it, and afterwards decides, for each
mutation, whether its reader has to be told.

Tracking
--------

- Reading the `value` of a scalar (or of an absent key) marks the link as used.
- Reading the `value` of a container returns a read-only view. Each key read
  through the view is attributed to the child link of that key; only
  structural reads (length, iteration, membership) mark the container's own
  link as used.
- `nested` gives access to the child links themselves, built lazily and cached
  per key, so the same key always yields the same child link.

Invalidation
------------

On `on_set(path, actions)` a link:

1. with tracking disabled, queues its update if anything was read through it;
2. otherwise, when the mutation is at its own path (or above it), queues its
   update if it was used, or if a child it handed out was used and has since
   been replaced; when the mutation is below its path, delegates to the cached
   child on the way, and ignores it if no such child was ever built;
3. forwards the notification to its own external subscribers, whatever the
   outcome of the steps above.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from .exceptions import UnknownExtension
from .mutation import mutation_factory
from .path import MISSING, Key, Path, Shape, child_of, format_path, shape_of
from .plugin import BuiltinPlugin, PluginFactory, resolve_plugin
from .util import WeakSubscriberSet
from .views import ExtensionView, RecordView, SequenceView

Action = Callable[[], None]


def _no_touch() -> None:
    pass


class StateLink:
    """
    Read/write cursor on one path of a state.

    Example:
        ```python
        state = State({"a": 1, "b": [10, 20]})
        link = StateLink(state, (), rerender, state.snapshot(()))
        state.subscribe(link)

        link.nested["a"].value      # 1, tracked on /a
        link.value["b"][0]          # 10, tracked on /b/0
        link.nested["b"][1].set(21)
        ```
    """

    def __init__(
        self,
        state: Any,
        path: Path,
        on_update_used: Action,
        snapshot: Any,
    ):
        self.state = state
        self.path = path
        self.on_update_used = on_update_used
        self.shape = shape_of(snapshot)
        self.disabled_tracking = False
        # set by the Prerender extension, read by DerivedTransform
        self.suppress_equals: Optional[Callable[[Any, Any], bool]] = None

        self._snapshot = snapshot
        self._used = False
        self._value_view: Optional[Any] = None
        self._nested_view: Optional[Any] = None
        self._children: Optional[Dict[Key, "StateLink"]] = None
        self._subscribers: Optional[WeakSubscriberSet] = None
        self._delegate: Optional["StateLink"] = None

    def __repr__(self) -> str:
        return f"StateLink('{format_path(self.path)}')"

    # ============================================================
    # Reading
    # ============================================================

    @property
    def value(self) -> Any:
        """Current value at this link's path, as seen when the link was built."""
        if self.disabled_tracking or self.shape is Shape.SCALAR:
            self._used = True
            return None if self._snapshot is MISSING else self._snapshot
        if self._value_view is None:
            self._value_view = self._view(self._child_value, strict=True)
        return self._value_view

    @property
    def nested(self) -> Any:
        """
        Child links: a `RecordView` for records, a `SequenceView` for
        sequences, None for scalars.
        """
        if self.shape is Shape.SCALAR:
            self._used = True
            return None
        if self._nested_view is None:
            self._nested_view = self._view(self._child, strict=False)
        return self._nested_view

    @property
    def inferred(self) -> Any:
        """Structured mutation helper for the current shape, bound to `set`."""
        self._used = True
        factory = mutation_factory(self.shape)
        if factory is None:
            return None
        return factory(self.set)

    @property
    def extended(self) -> ExtensionView:
        """Extensions of the state's plugins, bound to this link."""
        return ExtensionView(
            self.state.extensions(), self._extension, _no_touch, self.path
        )

    def _view(self, resolve: Callable[[Key], Any], strict: bool) -> Any:
        view_type = RecordView if self.shape is Shape.RECORD else SequenceView
        return view_type(self._snapshot, resolve, self._mark_used, self.path, strict)

    def _mark_used(self) -> None:
        self._used = True

    def _child(self, key: Key) -> "StateLink":
        if self._children is None:
            self._children = {}
        child = self._children.get(key)
        if child is None:
            child = StateLink(
                self.state,
                self.path + (key,),
                self.on_update_used,
                child_of(self._snapshot, key),
            )
            child.disabled_tracking = self.disabled_tracking
            self._children[key] = child
        return child

    def _child_value(self, key: Key) -> Any:
        return self._child(key).value

    def _extension(self, name: Key) -> Any:
        instance = self.state.extensions()[name]
        produced = instance.extensions_factory(self)
        if isinstance(produced, Mapping):
            extension = produced.get(name, MISSING)
        else:
            extension = getattr(produced, str(name), MISSING)
        if extension is MISSING or extension is None:
            raise UnknownExtension(str(name))
        return extension

    # ============================================================
    # Writing
    # ============================================================

    def set(self, new_value: Any) -> None:
        """
        Replace the value at this link's path.

        A callable is treated as an updater and receives the value currently
        stored in the state, not the value this link captured. Views are
        stored as values even though calling them is a usage error.
        """
        if callable(new_value) and not isinstance(new_value, (RecordView, SequenceView)):
            new_value = new_value(self.state.get(self.path))
        self.state.set(self.path, new_value)

    def with_plugin(self, plugin: PluginFactory) -> "StateLink":
        resolved = resolve_plugin(plugin)
        if resolved.id is BuiltinPlugin.DISABLED_TRACKING:
            self.disabled_tracking = True
            return self
        self.state.register(resolved, self.path)
        return self

    # ============================================================
    # Subscriptions
    # ============================================================

    def subscribe(self, listener: Any) -> None:
        if self._subscribers is None:
            self._subscribers = WeakSubscriberSet()
        self._subscribers.add(listener)

    def unsubscribe(self, listener: Any) -> None:
        if self._subscribers is not None:
            self._subscribers.discard(listener)

    def redirect(self, target: Optional["StateLink"]) -> None:
        """Let `target` decide on this link's behalf whether mutations concern it."""
        self._delegate = target

    # ============================================================
    # Invalidation
    # ============================================================

    def on_set(self, path: Path, actions: List[Action]) -> bool:
        """Queue this link's update into `actions` if `path` touches what it read."""
        if self._delegate is not None:
            handled = self._delegate.on_set(path, actions)
        else:
            handled = self._update_if_used(path, actions)
        if self._subscribers is not None:
            for subscriber in self._subscribers:
                subscriber.on_set(path, actions)
        return handled

    def _update_if_used(self, path: Path, actions: List[Action]) -> bool:
        if self.disabled_tracking and (self._used or self._subtree_used()):
            actions.append(self.on_update_used)
            return True

        if len(path) <= len(self.path):
            if self._used or self._replaced_subtree_used():
                actions.append(self.on_update_used)
                return True
            return False

        next_key = path[len(self.path)]
        child = self._children.get(next_key) if self._children else None
        if child is None:
            return False
        return child.on_set(path, actions)

    def _subtree_used(self) -> bool:
        if not self._children:
            return False
        return any(
            child._used or child._subtree_used() for child in self._children.values()
        )

    def _replaced_subtree_used(self) -> bool:
        if not self._children:
            return False
        for child in self._children.values():
            if self.state.snapshot(child.path) is child._snapshot:
                continue
            if child._used or child._subtree_used():
                logging.debug(f"{child} was replaced under {self}")
                return True
        return False
