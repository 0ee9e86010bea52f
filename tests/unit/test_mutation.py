"""Unit tests for the structured mutation helpers behind StateLink.inferred."""

import pytest

from statelink import (
    RecordMutation,
    SequenceMutation,
    Shape,
    State,
    register_mutation_factory,
)


@pytest.fixture
def link(recorder, root_link):
    state = State({"user": {"name": "Ann", "age": 40}, "items": [1, 2, 3], "n": 0})
    return root_link(state, recorder())


@pytest.fixture
def restore_factories():
    yield
    register_mutation_factory(Shape.RECORD, RecordMutation)
    register_mutation_factory(Shape.SEQUENCE, SequenceMutation)
    register_mutation_factory(Shape.SCALAR, None)


@pytest.mark.unit
@pytest.mark.link
def test_inferred_helper_follows_the_shape(link):
    assert isinstance(link.nested["user"].inferred, RecordMutation)
    assert isinstance(link.nested["items"].inferred, SequenceMutation)
    assert link.nested["n"].inferred is None


@pytest.mark.unit
@pytest.mark.link
def test_record_merge_and_update(link):
    user = link.nested["user"].inferred

    user.merge({"age": 41})
    assert link.state.get(("user",)) == {"name": "Ann", "age": 41}

    user.merge(lambda prev: {"age": prev["age"] + 1})
    assert link.state.get(("user", "age")) == 42

    user.update("city", "Oslo")
    assert link.state.get(("user", "city")) == "Oslo"

    user.set({"name": "Bob"})
    assert link.state.get(("user",)) == {"name": "Bob"}


@pytest.mark.unit
@pytest.mark.link
@pytest.mark.parametrize(
    "operation, expected",
    [
        (lambda m: m.push(4), [1, 2, 3, 4]),
        (lambda m: m.pop(), [1, 2]),
        (lambda m: m.insert(0, 0), [0, 1, 2, 3]),
        (lambda m: m.remove(1), [1, 3]),
        (lambda m: m.swap(0, 2), [3, 2, 1]),
        (lambda m: m.concat([4, 5]), [1, 2, 3, 4, 5]),
        (lambda m: m.update(1, 20), [1, 20, 3]),
        (lambda m: m.merge({0: 10, 2: 30}), [10, 2, 30]),
        (lambda m: m.set([]), []),
    ],
)
def test_sequence_operations(link, operation, expected):
    operation(link.nested["items"].inferred)

    assert link.state.get(("items",)) == expected


@pytest.mark.unit
@pytest.mark.link
def test_sequence_operations_replace_the_container(link):
    """Helpers never mutate the stored list in place"""
    before = link.state.get(("items",))

    link.nested["items"].inferred.push(4)

    assert before == [1, 2, 3]
    assert link.state.get(("items",)) is not before


@pytest.mark.unit
@pytest.mark.link
def test_inferred_access_marks_the_link_used(recorder, root_link):
    state = State({"items": [1]})
    update = recorder()
    link = root_link(state, update)

    link.nested["items"].inferred.push(2)

    assert update.calls == 1


@pytest.mark.unit
@pytest.mark.link
def test_custom_mutation_factory(link, restore_factories):
    class Counter:
        def __init__(self, set_):
            self.increment = lambda: set_(lambda prev: prev + 1)

    register_mutation_factory(Shape.SCALAR, Counter)
    link.nested["n"].inferred.increment()

    assert link.state.get(("n",)) == 1
