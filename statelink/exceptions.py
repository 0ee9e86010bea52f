"""
StateLink Exceptions
====================

Every error raised by statelink is a usage-contract violation: it is raised
synchronously where the misuse happens and is never caught internally.
"""

from typing import Any

from .path import Path, format_path


class StateLinkError(Exception):
    """Base class for all statelink errors."""

    pass


class InvalidUsage(StateLinkError):
    """A disallowed structural operation was attempted on a read-only view."""

    def __init__(self, op: str, path: Path):
        self.op = op
        self.path = path
        super().__init__(
            f"StateLink is used incorrectly. Attempted '{op}' at '{format_path(path)}'"
        )


class InvalidExtensionUsage(StateLinkError):
    """A disallowed operation was attempted on an extension view."""

    def __init__(self, op: str, path: Path):
        self.op = op
        self.path = path
        super().__init__(
            f"Extension is used incorrectly. Attempted '{op}' at '{format_path(path)}'"
        )


class InvalidPluginRegistration(StateLinkError):
    """A plugin overriding the initial value was attached below the root."""

    def __init__(self, plugin_id: Any, path: Path):
        self.plugin_id = plugin_id
        self.path = path
        super().__init__(
            "Extension with on_init, which overrides initial value, "
            "should be attached to StateRef instance, but not to StateLink instance. "
            f"Attempted 'with {plugin_id}' at '{format_path(path)}'"
        )


class ConflictingExtension(StateLinkError):
    """Two plugins of one state claim the same extension name."""

    def __init__(self, new_id: Any, existing_id: Any, extension: str):
        self.new_id = new_id
        self.existing_id = existing_id
        self.extension = extension
        super().__init__(
            f"Extension '{extension}' is already registered for '{existing_id}'. "
            f"Attempted 'with {new_id}'"
        )


class UnknownExtension(StateLinkError):
    """An extension name is not registered or not produced by its plugin."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Extension '{extension}' is unknown")
