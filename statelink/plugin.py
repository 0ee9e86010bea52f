"""
StateLink Plugins - Named Capabilities Attached To A State
==========================================================

A plugin is identified by a globally unique id and knows how to build one
`PluginInstance` per state. The instance may:

- override the initial root value (`on_init`, root-level registration only)
- observe every attachment (`on_attach`)
- observe every mutation (`on_set`)
- expose named extensions, built per link by `extensions_factory`

Built-in plugins are identified by `BuiltinPlugin` members, user plugins by a
`PluginId` token from `plugin_id()`.

Example:
    ```python
    from statelink import Plugin, PluginInstance, plugin_id

    COUNTER = plugin_id("SetCounter")

    def SetCounter():
        def factory(initial):
            calls = []
            return PluginInstance(
                extensions=("set_count",),
                extensions_factory=lambda link: {"set_count": len(calls)},
                on_set=lambda path, root: calls.append(path),
            )
        return Plugin(COUNTER, factory)

    state = create_state_link({"a": 1}).with_plugin(SetCounter)
    ```
"""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence, Union

from .path import Path

if TYPE_CHECKING:
    from .link import StateLink

_serials = itertools.count(1)


class BuiltinPlugin(Enum):
    """Identities of the plugins shipped with statelink."""

    DISABLED_TRACKING = "DisabledTracking"
    PRERENDER = "Prerender"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class PluginId:
    """Opaque identity of a user plugin; two calls never return equal ids."""

    name: str
    serial: int = field(default_factory=lambda: next(_serials))

    def __str__(self):
        return f"{self.name}#{self.serial}"


def plugin_id(name: str) -> PluginId:
    return PluginId(name)


@dataclass
class PluginInstance:
    """Per-state instance of a plugin. Hooks left as None are not called."""

    extensions: Sequence[str] = ()
    extensions_factory: Callable[["StateLink"], Mapping[str, Any]] = lambda link: {}
    on_init: Optional[Callable[[], Any]] = None
    on_attach: Optional[Callable[[Path, "PluginInstance"], None]] = None
    on_set: Optional[Callable[[Path, Any], None]] = None


@dataclass(frozen=True)
class Plugin:
    id: Union[PluginId, BuiltinPlugin]
    instance_factory: Callable[[Any], PluginInstance]


PluginFactory = Union[Plugin, Callable[[], Plugin]]


def resolve_plugin(plugin: PluginFactory) -> Plugin:
    """Accept either a `Plugin` or a zero-argument callable producing one."""
    if isinstance(plugin, Plugin):
        return plugin
    if callable(plugin):
        resolved = plugin()
        if isinstance(resolved, Plugin):
            return resolved
    raise TypeError(f"Expected a Plugin or a plugin factory, got {plugin!r}")


# ============================================================================
# BUILT-IN PLUGINS
# ============================================================================


def DisabledTracking() -> Plugin:
    """
    Turn off per-key usage tracking for a link and the links nested below it.

    Such a link is notified on any mutation reaching it, once anything was read
    through it. Links special-case this plugin: it is never registered in the
    state.
    """
    return Plugin(
        BuiltinPlugin.DISABLED_TRACKING,
        lambda initial: PluginInstance(),
    )


def default_equals(new_value: Any, prev_value: Any) -> bool:
    return new_value is prev_value or new_value == prev_value


def Prerender() -> Plugin:
    """
    Expose `enable_prerender(equals=None)` on links.

    Calling it stores the equality function on the link; a `DerivedTransform`
    over that link then skips the update callback when the transform result
    compares equal to the previous one.
    """

    def extensions_factory(link: "StateLink") -> Mapping[str, Any]:
        def enable_prerender(
            equals: Optional[Callable[[Any, Any], bool]] = None
        ) -> None:
            logging.debug(f"Prerender enabled at {link}")
            link.suppress_equals = equals or default_equals

        return {"enable_prerender": enable_prerender}

    return Plugin(
        BuiltinPlugin.PRERENDER,
        lambda initial: PluginInstance(
            extensions=("enable_prerender",),
            extensions_factory=extensions_factory,
        ),
    )
