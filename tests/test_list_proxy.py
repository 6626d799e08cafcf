from unittest.mock import Mock

import pytest

from reactivity import (
    LENGTH_KEY,
    TriggerOp,
    effect,
    reactive,
    shallow_reactive,
    to_raw,
)
from reactivity.list_proxy import ListProxy, list_changes
from reactivity.runtime import runtime


def watch_index(state, index):
    """Effect that reads a single index, which may be out of range"""
    spy = Mock()

    def fn():
        try:
            state[index]
        except IndexError:
            pass
        spy()

    effect(fn)
    return spy


def test_list_changes():
    assert list_changes([1, 2], [1, 2]) == []
    assert list_changes([1, 2], [1, 3]) == [(1, TriggerOp.SET, 3)]
    assert list_changes([1, 2, 3], [1]) == [(LENGTH_KEY, TriggerOp.SET, 1)]
    assert list_changes([1], [1, 2, 3]) == [
        (1, TriggerOp.ADD, 2),
        (2, TriggerOp.ADD, 3),
    ]
    # a shorter list with a changed value
    assert list_changes([1, 2], [3]) == [
        (0, TriggerOp.SET, 3),
        (LENGTH_KEY, TriggerOp.SET, 1),
    ]


def test_truncate_triggers_removed_indices():
    state = reactive([1, 2, 3, 4])
    first = watch_index(state, 0)
    second = watch_index(state, 1)
    third = watch_index(state, 2)

    del state[2:]
    assert first.call_count == 1
    assert second.call_count == 1
    assert third.call_count == 2

    del state[1:]
    assert first.call_count == 1
    assert second.call_count == 2

    state.clear()
    assert first.call_count == 2


def test_pop_triggers_length():
    state = reactive([1, 2, 3])
    length_spy = Mock()
    last = watch_index(state, 2)

    @effect
    def _():
        len(state)
        length_spy()

    assert state.pop() == 3
    assert length_spy.call_count == 2
    assert last.call_count == 2


def test_append_triggers_new_index():
    state = reactive([1])
    future = Mock()

    @effect
    def _():
        try:
            future(state[1])
        except IndexError:
            future(None)

    future.assert_called_once_with(None)

    state.append(2)
    assert future.call_count == 2
    future.assert_called_with(2)


def test_assign_past_the_end_raises():
    state = reactive([1])
    with pytest.raises(IndexError):
        state[1] = 2
    assert to_raw(state) == [1]


def test_set_index():
    state = reactive([1, 2])
    first = watch_index(state, 0)
    second = watch_index(state, 1)

    state[1] = 3
    assert first.call_count == 1
    assert second.call_count == 2

    # same value
    state[1] = 3
    assert second.call_count == 2


def test_negative_index_depends_on_length():
    state = reactive([1, 2])
    last = watch_index(state, -1)

    state.append(3)
    assert last.call_count == 2

    state[0] = 5
    assert last.call_count == 2


def test_insert_shifts_indices():
    state = reactive(["a", "b"])
    first = watch_index(state, 0)
    second = watch_index(state, 1)

    state.insert(1, "c")
    assert to_raw(state) == ["a", "c", "b"]
    assert first.call_count == 1
    assert second.call_count == 2

    state.insert(0, "d")
    assert first.call_count == 2
    assert second.call_count == 3


def test_sort_and_reverse():
    state = reactive([3, 1, 2])
    spy = Mock()

    @effect
    def _():
        list(state)
        spy()

    state.sort()
    assert to_raw(state) == [1, 2, 3]
    assert spy.call_count == 2

    # already sorted: nothing changed
    state.sort()
    assert spy.call_count == 2

    state.reverse()
    assert spy.call_count == 3


def test_extend_runs_effect_once():
    state = reactive([])
    spy = Mock()

    @effect
    def _():
        for _item in state:
            pass
        spy()

    state.extend([1, 2, 3])
    assert spy.call_count == 2


def test_inplace_operators_keep_proxy():
    state = reactive([1])
    spy = Mock()

    @effect
    def _():
        len(state)
        spy()

    proxied = state
    state += [2]
    assert state is proxied
    assert isinstance(state, ListProxy)
    assert spy.call_count == 2

    state *= 2
    assert state is proxied
    assert to_raw(state) == [1, 2, 1, 2]
    assert spy.call_count == 3


def test_slice_read_and_write():
    state = reactive([1, 2, 3, 4])
    spy = Mock()

    @effect
    def _():
        state[1:3]
        spy()

    state[0] = 0
    assert spy.call_count == 1

    state[1:3] = [5, 6]
    assert spy.call_count == 2
    assert to_raw(state) == [0, 5, 6, 4]


def test_contains_and_index_track_content():
    state = reactive([1, 2])
    spy = Mock()

    @effect
    def _():
        3 in state
        spy()

    state[1] = 3
    assert spy.call_count == 2
    assert state.index(3) == 1
    assert state.count(3) == 1


def test_written_values_are_unwrapped():
    nested = reactive({"foo": 1})
    state = reactive([])

    state.append(nested)
    state.extend([nested])
    state.insert(0, nested)
    state[0] = nested
    state[1:2] = [nested]
    state += [nested]

    raw = to_raw(state)
    assert all(type(item) is dict for item in raw)
    assert all(item is to_raw(nested) for item in raw)

    # reading wraps them again
    assert state[0] is nested


def test_shallow_list_stores_values_as_is():
    nested = reactive({"foo": 1})
    state = shallow_reactive([])
    state.append(nested)
    assert to_raw(state)[0] is nested
    assert state[0] is nested


def test_iteration_wraps_items():
    state = reactive([{"foo": 1}, [2]])
    items = list(state)
    assert items[0] is state[0]
    assert isinstance(items[1], ListProxy)
    assert list(reversed(state))[1] is items[0]


def test_length_dep_is_tracked_by_len():
    state = reactive([1])

    @effect
    def _():
        len(state)

    deps = runtime.db.deps(to_raw(state))
    assert list(deps) == [LENGTH_KEY]
