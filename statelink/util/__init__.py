"""Internal helpers shared by statelink components."""

from .subscriber_set import WeakSubscriberSet

__all__ = ["WeakSubscriberSet"]
