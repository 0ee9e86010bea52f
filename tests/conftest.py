"""
Shared pytest fixtures and helpers for statelink tests.
"""

import pytest

from statelink import ROOT_PATH, State, StateLink


class UpdateRecorder:
    """Zero-argument update callback counting its calls."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class RecordingListener:
    """External subscriber remembering every notification path it receives."""

    def __init__(self):
        self.paths = []

    def on_set(self, path, actions):
        self.paths.append(path)


@pytest.fixture
def state():
    """A fresh state shaped like the examples used throughout the tests."""
    return State({"a": 1, "b": [10, 20]})


@pytest.fixture
def recorder():
    """Factory for update callbacks that count their calls."""
    return UpdateRecorder


@pytest.fixture
def listener():
    """Factory for external subscribers recording notification paths."""
    return RecordingListener


@pytest.fixture
def root_link():
    """
    Build a root link subscribed to a state.

    The caller keeps the returned link alive; states only hold weak references
    to their subscribers.
    """

    def build(state, update):
        link = StateLink(state, ROOT_PATH, update, state.snapshot(ROOT_PATH))
        state.subscribe(link)
        return link

    return build
