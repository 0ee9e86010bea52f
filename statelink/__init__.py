"""
StateLink - Fine-Grained Reactive State Links

A reactive state container that records which parts of a value tree each
consumer actually read, and on a mutation notifies only the consumers whose
data could be affected.
"""

from .binding import (
    Binding,
    create_state_link,
    use_state_link,
    use_state_link_unmounted,
)
from .derived import DerivedTransform, derive
from .exceptions import (
    ConflictingExtension,
    InvalidExtensionUsage,
    InvalidPluginRegistration,
    InvalidUsage,
    StateLinkError,
    UnknownExtension,
)
from .link import StateLink
from .mutation import RecordMutation, SequenceMutation, register_mutation_factory
from .path import MISSING, ROOT_PATH, Path, Shape, format_path, shape_of
from .plugin import (
    BuiltinPlugin,
    DisabledTracking,
    Plugin,
    PluginId,
    PluginInstance,
    Prerender,
    plugin_id,
)
from .state import State, StateRef, create_state
from .views import ExtensionView, RecordView, SequenceView

__all__ = [
    # State
    "State",
    "StateRef",
    "create_state",
    "create_state_link",
    # Links and views
    "StateLink",
    "RecordView",
    "SequenceView",
    "ExtensionView",
    # Consumers
    "Binding",
    "use_state_link",
    "use_state_link_unmounted",
    "DerivedTransform",
    "derive",
    # Plugins
    "Plugin",
    "PluginId",
    "PluginInstance",
    "BuiltinPlugin",
    "plugin_id",
    "DisabledTracking",
    "Prerender",
    # Mutations
    "RecordMutation",
    "SequenceMutation",
    "register_mutation_factory",
    # Paths
    "Path",
    "ROOT_PATH",
    "MISSING",
    "Shape",
    "shape_of",
    "format_path",
    # Exceptions
    "StateLinkError",
    "InvalidUsage",
    "InvalidExtensionUsage",
    "InvalidPluginRegistration",
    "ConflictingExtension",
    "UnknownExtension",
]
