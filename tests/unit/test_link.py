"""Unit tests for StateLink reading, writing and invalidation."""

import pytest

from statelink import RecordView, SequenceView, State, StateLink


# ============================================================================
# READING
# ============================================================================


@pytest.mark.unit
@pytest.mark.link
def test_scalar_value_is_returned_directly(state, recorder, root_link):
    link = root_link(state, recorder())

    assert link.nested["a"].value == 1


@pytest.mark.unit
@pytest.mark.link
def test_container_value_is_a_read_only_view(state, recorder, root_link):
    link = root_link(state, recorder())

    assert isinstance(link.value, RecordView)
    assert isinstance(link.value["b"], SequenceView)
    assert link.value == {"a": 1, "b": [10, 20]}


@pytest.mark.unit
@pytest.mark.link
def test_value_is_cached_within_a_pass(state, recorder, root_link):
    """Reading the same path twice yields the same object"""
    link = root_link(state, recorder())

    assert link.value is link.value
    assert link.value["b"] is link.value["b"]


@pytest.mark.unit
@pytest.mark.link
def test_nested_links_are_cached_per_key(state, recorder, root_link):
    """Sibling keys map to exactly one child link each"""
    link = root_link(state, recorder())

    assert link.nested["a"] is link.nested["a"]
    assert link.nested.a is link.nested["a"]
    assert link.nested["b"].nested[0] is link.nested["b"].nested[0]
    assert link.nested["b"].nested[0] is not link.nested["b"].nested[1]
    assert link.nested["b"].nested[1].path == ("b", 1)


@pytest.mark.unit
@pytest.mark.link
def test_nested_of_scalar_is_none(state, recorder, root_link):
    link = root_link(state, recorder())

    assert link.nested["a"].nested is None


@pytest.mark.unit
@pytest.mark.link
def test_missing_key_reads_as_none(state, recorder, root_link):
    link = root_link(state, recorder())

    assert link.nested["missing"].value is None
    assert link.value.get("missing") is None
    assert "missing" not in link.nested


@pytest.mark.unit
@pytest.mark.link
def test_value_snapshot_is_taken_when_link_is_built(state, recorder, root_link):
    """A link keeps showing what it captured; a new pass sees the new value"""
    link = root_link(state, recorder())
    child = link.nested["a"]

    state.set(("a",), 2)

    assert child.value == 1
    assert root_link(state, recorder()).nested["a"].value == 2


# ============================================================================
# WRITING
# ============================================================================


@pytest.mark.unit
@pytest.mark.link
def test_set_writes_through_the_state(state, recorder, root_link):
    link = root_link(state, recorder())

    link.nested["b"].nested[0].set(99)

    assert state.get(("b", 0)) == 99


@pytest.mark.unit
@pytest.mark.link
def test_set_updater_receives_current_value_not_snapshot(state, recorder, root_link):
    """Updaters see the value stored in the state at call time"""
    link = root_link(state, recorder())
    counter = link.nested["a"]
    received = []

    state.set(("a",), 5)
    counter.set(lambda prev: received.append(prev) or prev + 1)

    assert received == [5]
    assert state.get(("a",)) == 6


@pytest.mark.unit
@pytest.mark.link
def test_set_on_missing_key_creates_it(state, recorder, root_link):
    link = root_link(state, recorder())

    link.nested["c"].set("new")

    assert state.get(("c",)) == "new"


# ============================================================================
# INVALIDATION
# ============================================================================


@pytest.mark.unit
@pytest.mark.link
def test_unread_branch_is_not_handled(state, recorder, listener, root_link):
    """Reading only /a leaves mutations under /b to the external listeners"""
    update = recorder()
    link = root_link(state, update)
    outside = listener()
    link.subscribe(outside)

    assert link.nested.a.value == 1
    actions = []
    assert link.on_set(("b", 0), actions) is False
    assert actions == []
    assert outside.paths == [("b", 0)]

    state.set(("b", 0), 99)

    assert update.calls == 0
    assert outside.paths == [("b", 0), ("b", 0)]


@pytest.mark.unit
@pytest.mark.link
def test_read_scalar_fires_exactly_once(state, recorder, root_link):
    """A mutation exactly at a read key fires once, however often it was read"""
    update = recorder()
    link = root_link(state, update)
    link.value["a"]
    link.nested["a"].value

    state.set(("a",), 2)

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_mutation_of_sibling_element_does_not_fire(state, recorder, root_link):
    update = recorder()
    link = root_link(state, update)
    link.value["b"][0]

    state.set(("b", 1), 21)
    assert update.calls == 0

    state.set(("b", 0), 11)
    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_new_key_fires_enumerating_link_only(recorder, root_link):
    """Adding /c notifies /: links that enumerated / fire, links reading /a do not"""
    state = State({"a": 1})
    reads_a = recorder()
    enumerates = recorder()
    link_a = root_link(state, reads_a)
    link_all = root_link(state, enumerates)

    assert link_a.nested.a.value == 1
    assert sorted(link_all.value) == ["a"]

    state.set(("c",), 5)

    assert state.get(("c",)) == 5
    assert reads_a.calls == 0
    assert enumerates.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_missing_key_read_fires_when_key_is_created(recorder, root_link):
    """A key that did not exist yet is still tracked for its creation"""
    state = State({"a": 1})
    update = recorder()
    link = root_link(state, update)

    assert link.value.get("c") is None

    state.set(("c",), 5)

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_appending_fires_link_that_iterated(state, recorder, root_link):
    update = recorder()
    link = root_link(state, update)
    assert list(link.value["b"]) == [10, 20]

    state.set(("b", 2), 30)

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_replacing_container_fires_readers_of_its_elements(state, recorder, root_link):
    """Replacing /b fires a link that only read /b/0"""
    update = recorder()
    link = root_link(state, update)
    link.nested["b"].nested[0].value

    state.set(("b",), [1, 2])

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_replacing_root_fires_readers_of_changed_keys(state, recorder, root_link):
    update = recorder()
    link = root_link(state, update)
    link.nested["a"].value

    state.set((), {"a": 100, "b": []})

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_replacing_unread_branch_does_not_fire(state, recorder, root_link):
    update = recorder()
    link = root_link(state, update)
    link.nested["a"].value

    state.set(("b",), [])

    assert update.calls == 0


@pytest.mark.unit
@pytest.mark.link
def test_untouched_link_never_fires(state, recorder, root_link):
    update = recorder()
    link = root_link(state, update)

    state.set((), {"other": True})

    assert link.path == ()
    assert update.calls == 0


@pytest.mark.unit
@pytest.mark.link
def test_structural_read_marks_container_used(state, recorder, root_link):
    """len() of /b depends on /b itself, not on its elements"""
    update = recorder()
    link = root_link(state, update)
    assert len(link.value["b"]) == 2

    state.set(("b",), [1, 2, 3])

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_external_subscribers_hear_every_mutation(state, recorder, listener, root_link):
    """Fan-out to external listeners is not short-circuited by handled results"""
    update = recorder()
    link = root_link(state, update)
    outside = listener()
    link.subscribe(outside)
    link.nested["a"].value

    state.set(("a",), 2)
    state.set(("b", 0), 1)

    assert update.calls == 1
    assert outside.paths == [("a",), ("b", 0)]

    link.unsubscribe(outside)
    state.set(("a",), 3)
    assert outside.paths == [("a",), ("b", 0)]


@pytest.mark.unit
@pytest.mark.link
def test_direct_on_set_reports_handled(state, recorder):
    update = recorder()
    link = StateLink(state, ("a",), update, state.snapshot(("a",)))
    link.value

    actions = []
    assert link.on_set(("a",), actions) is True
    assert actions == [update]


@pytest.mark.unit
@pytest.mark.link
def test_children_report_to_the_parent_update(state, recorder, root_link):
    update = recorder()
    link = root_link(state, update)

    assert link.nested["b"].nested[1].on_update_used is update
