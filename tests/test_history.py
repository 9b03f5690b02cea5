"""Tests for the undo/redo history container."""

import pytest

from app.canvas.history import History


def test_set_undo_redo_round_trip():
    history = History("a")
    history.set("b")

    history.undo()
    assert history.present == "a"
    assert history.can_redo

    history.redo()
    assert history.present == "b"
    assert not history.can_redo


def test_set_clears_future():
    history = History(1)
    history.set(2)
    history.set(3)
    history.undo()
    assert history.can_redo

    history.set(4)
    assert not history.can_redo
    assert history.past == [1, 2]
    assert history.present == 4


def test_replace_leaves_stacks_alone():
    history = History(1)
    history.set(2)
    history.set(3)
    history.undo()
    before = (history.can_undo, history.can_redo, history.past, history.future)

    history.replace(99)

    assert history.present == 99
    assert (history.can_undo, history.can_redo, history.past, history.future) == before


def test_undo_redo_on_empty_stacks_is_noop():
    history = History("only")
    history.undo()
    history.redo()
    assert history.present == "only"
    assert not history.can_undo
    assert not history.can_redo


def test_undo_moves_present_to_front_of_future():
    history = History(0)
    for value in (1, 2, 3):
        history.set(value)
    history.undo()
    history.undo()
    assert history.future == [2, 3]
    history.redo()
    assert history.present == 2
    assert history.future == [3]


def test_reset_drops_both_stacks():
    history = History([])
    history.set(["x"])
    history.undo()
    history.reset(["other chat"])
    assert history.present == ["other chat"]
    assert not history.can_undo
    assert not history.can_redo


def test_gesture_commits_pre_gesture_state():
    history = History("start")
    history.begin()
    history.replace("frame 1")
    history.replace("frame 2")
    assert history.commit() is True

    assert history.present == "frame 2"
    assert history.past == ["start"]
    history.undo()
    assert history.present == "start"


def test_gesture_without_change_records_nothing():
    history = History("start")
    history.begin()
    assert history.commit() is False
    assert not history.can_undo


def test_cancel_restores_checkpoint():
    history = History("start")
    history.begin()
    history.replace("moved")
    history.cancel()
    assert history.present == "start"
    assert not history.in_gesture
    assert not history.can_undo


def test_set_inside_gesture_commits_it_first():
    history = History("a")
    history.begin()
    history.replace("b")
    history.set("c")
    assert history.past == ["a", "b"]
    assert not history.in_gesture


def test_limit_drops_oldest_entries():
    history = History(0, limit=2)
    for value in range(1, 5):
        history.set(value)
    assert history.past == [2, 3]


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        History(0, limit=0)
