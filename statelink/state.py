"""
StateLink State - The Root Store
================================

`State` owns the authoritative value tree, the plugin registry and the set of
subscribers interested in mutations. It is the only place where the tree is
mutated.

Notification Pass
-----------------

A call to `State.set()` runs in two phases:

1. **Collect**: every subscriber receives `on_set(path, actions)` and appends
   the update callbacks it wants to run to `actions`.
2. **Run**: only after every subscriber has contributed are the collected
   callbacks executed, in order.

No callback ever observes a state in which some links have not yet worked out
whether the mutation concerns them.

New Keys
--------

Setting a key that does not exist yet in its parent container is reported as a
change of the parent container: the notification path is truncated to the
parent's path. Links that enumerated the parent (its length, its keys) see the
new key; links that only read sibling keys are left alone.
"""

import logging
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Union,
)

from .exceptions import ConflictingExtension, InvalidPluginRegistration
from .path import (
    MISSING,
    ROOT_PATH,
    Key,
    Path,
    Shape,
    format_path,
    has_key,
    lookup,
    shape_of,
    to_path,
)
from .plugin import (
    BuiltinPlugin,
    PluginFactory,
    PluginId,
    PluginInstance,
    resolve_plugin,
)
from .util import WeakSubscriberSet

if TYPE_CHECKING:
    from .link import StateLink

Action = Callable[[], None]


class Subscriber(Protocol):
    """Anything that wants to hear about mutations."""

    def on_set(self, path: Path, actions: List[Action]) -> None: ...


class Subscribable(Protocol):
    def subscribe(self, listener: Subscriber) -> None: ...

    def unsubscribe(self, listener: Subscriber) -> None: ...


class _PluginSetListener:
    """Forwards every mutation of a state to a plugin's `on_set` hook."""

    def __init__(self, state: "State", hook: Callable[[Path, Any], None]):
        self._state = state
        self._hook = hook

    def on_set(self, path: Path, actions: List[Action]) -> None:
        self._hook(path, self._state.get(ROOT_PATH))


class State:
    """
    Owner of a value tree, its plugins and its subscribers.

    Example:
        ```python
        state = State({"a": 1, "b": [10, 20]})
        state.get(("b", 0))        # 10
        state.set(("b", 0), 99)    # notifies subscribers
        ```
    """

    def __init__(self, initial: Any = None):
        self._value = initial
        self._subscribers: WeakSubscriberSet[Subscriber] = WeakSubscriberSet()
        self._plugins: Dict[Union[PluginId, BuiltinPlugin], PluginInstance] = {}
        self._extensions: Dict[str, PluginInstance] = {}
        self._extension_owners: Dict[str, Union[PluginId, BuiltinPlugin]] = {}
        # plugin listeners have no other owner than this state
        self._plugin_listeners: List[_PluginSetListener] = []

    # ============================================================
    # Value Access
    # ============================================================

    def snapshot(self, path: Iterable[Key]) -> Any:
        """Value at `path`, or `MISSING` if some key along the path is absent."""
        return lookup(self._value, to_path(path))

    def get(self, path: Iterable[Key] = ROOT_PATH) -> Any:
        """Value at `path`; absent keys read as None."""
        value = self.snapshot(path)
        return None if value is MISSING else value

    def set(self, path: Iterable[Key], value: Any) -> None:
        """
        Mutate the tree at `path` and run one notification pass.

        Tuples cannot be assigned into, so writing below one stores a rebuilt
        tuple in its parent instead. The notification path is the same.

        Raises:
            KeyError: the parent of the last key is absent or not a container.
            IndexError: a sequence index lies beyond the end of the sequence.
        """
        path = to_path(path)
        is_new_key = False
        if path:
            parent = lookup(self._value, path[:-1])
            key = path[-1]
            if parent is MISSING:
                raise KeyError(
                    f"Cannot set '{format_path(path)}': "
                    f"'{format_path(path[:-1])}' does not exist"
                )
            shape = shape_of(parent)
            if shape is Shape.SCALAR:
                raise KeyError(
                    f"Cannot set '{format_path(path)}': "
                    f"'{format_path(path[:-1])}' is not a container"
                )
            is_new_key = not has_key(parent, key)
            if is_new_key and shape is Shape.SEQUENCE and (
                not isinstance(key, int) or key != len(parent)
            ):
                raise IndexError(
                    f"Cannot set '{format_path(path)}': index out of range "
                    f"for a sequence of length {len(parent)}"
                )

        self._assign(path, value)
        if is_new_key:
            # a new key changes the shape of its parent container
            path = path[:-1]

        actions: List[Action] = []
        subscribers = self._subscribers.snapshot()
        for subscriber in subscribers:
            subscriber.on_set(path, actions)
        logging.debug(
            f"set at '{format_path(path)}': {len(subscribers)} subscribers, "
            f"{len(actions)} updates"
        )
        for action in actions:
            action()

    def _assign(self, path: Path, value: Any) -> None:
        """Store `value` at a validated `path`; tuples on the way are rebuilt."""
        if not path:
            self._value = value
            return
        parent = lookup(self._value, path[:-1])
        key = path[-1]
        if isinstance(parent, tuple):
            items = list(parent)
            if key == len(items):
                items.append(value)
            else:
                items[key] = value
            self._assign(path[:-1], tuple(items))
        elif shape_of(parent) is Shape.SEQUENCE and key == len(parent):
            parent.append(value)
        else:
            parent[key] = value

    # ============================================================
    # Subscriptions
    # ============================================================

    def subscribe(self, listener: Subscriber) -> None:
        self._subscribers.add(listener)

    def unsubscribe(self, listener: Subscriber) -> None:
        self._subscribers.discard(listener)

    # ============================================================
    # Plugins
    # ============================================================

    def extensions(self) -> Mapping[str, PluginInstance]:
        """Read-only view of extension name -> owning plugin instance."""
        return MappingProxyType(self._extensions)

    def plugin(self, plugin_id: Union[PluginId, BuiltinPlugin]) -> Optional[PluginInstance]:
        return self._plugins.get(plugin_id)

    def register(self, plugin: PluginFactory, path: Optional[Iterable[Key]] = None) -> None:
        """
        Attach a plugin to this state.

        The first registration of a plugin id builds its instance; later ones
        only notify the existing instance through `on_attach`.

        Raises:
            InvalidPluginRegistration: the instance overrides the initial value
                but `path` was given.
            ConflictingExtension: an extension name is already owned by
                another plugin.
        """
        plugin = resolve_plugin(plugin)
        attach_path = ROOT_PATH if path is None else to_path(path)

        existing = self._plugins.get(plugin.id)
        if existing is not None:
            if existing.on_attach is not None:
                existing.on_attach(attach_path, plugin.instance_factory(self._value))
            return

        instance = plugin.instance_factory(self._value)
        override = instance.on_init() if instance.on_init is not None else None
        if override is not None and path is not None:
            raise InvalidPluginRegistration(plugin.id, attach_path)
        for name in instance.extensions:
            owner = self._extension_owners.get(name)
            if owner is not None and owner != plugin.id:
                raise ConflictingExtension(plugin.id, owner, name)

        self._plugins[plugin.id] = instance
        if override is not None:
            self._value = override
        logging.debug(f"plugin {plugin.id} registered at '{format_path(attach_path)}'")

        if instance.on_attach is not None:
            instance.on_attach(attach_path, instance)
        for name in instance.extensions:
            self._extensions[name] = instance
            self._extension_owners[name] = plugin.id
        if instance.on_set is not None:
            listener = _PluginSetListener(self, instance.on_set)
            self._plugin_listeners.append(listener)
            self.subscribe(listener)


class StateRef:
    """
    Shareable handle to a `State`, the starting point for global state.

    Example:
        ```python
        ref = create_state_link({"count": 0})
        link = ref.link(lambda: print("changed"))
        ```
    """

    def __init__(self, state: State):
        self.state = state
        self.disabled_tracking = False

    def with_plugin(self, plugin: PluginFactory) -> "StateRef":
        resolved = resolve_plugin(plugin)
        if resolved.id is BuiltinPlugin.DISABLED_TRACKING:
            self.disabled_tracking = True
            return self
        self.state.register(resolved)
        return self

    def link(self, update: Action) -> "StateLink":
        """Build a root link reporting to `update`; the caller subscribes it."""
        from .link import StateLink

        link = StateLink(self.state, ROOT_PATH, update, self.state.snapshot(ROOT_PATH))
        if self.disabled_tracking:
            link.disabled_tracking = True
        return link


def create_state(initial: Any) -> State:
    """Build a `State`; a callable `initial` is called for the initial value."""
    if callable(initial):
        initial = initial()
    return State(initial)
