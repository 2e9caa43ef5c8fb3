"""Tests for reconciliation outcomes, lifecycle states and diagnostics."""

from __future__ import annotations

import threading
from datetime import datetime

import pytest

from console_operator.state import Action, DiagnosticsState, ObjectLocks, ResourceRef, ResourceState


class TestAction:
    """Test cases for Action."""

    def test_requeue(self):
        action = Action.requeue(300.0)
        assert action.requeue_after == 300.0
        assert not action.is_terminal

    def test_await_change(self):
        assert Action.await_change().is_terminal


class TestResourceState:
    """Test cases for ResourceState transitions."""

    @pytest.mark.parametrize(
        "deleting,has_finalizer,created,expected",
        [
            (False, False, False, ResourceState.PENDING),
            (False, True, False, ResourceState.PENDING),
            (False, True, True, ResourceState.CREATED),
            (True, True, True, ResourceState.DELETING),
            (True, True, False, ResourceState.DELETING),
            (True, False, True, ResourceState.REMOVED),
        ],
    )
    def test_of(self, deleting, has_finalizer, created, expected):
        assert ResourceState.of(deleting, has_finalizer, created) is expected


class TestResourceRef:
    def test_str(self):
        assert str(ResourceRef("team-a", "db1")) == "team-a/db1"


class TestDiagnosticsState:
    """Test cases for DiagnosticsState."""

    def test_touch_advances_last_event(self):
        state = DiagnosticsState()
        before = state.last_event

        state.touch()

        assert state.last_event >= before

    def test_snapshot(self):
        snapshot = DiagnosticsState().snapshot()

        assert snapshot["reporter"] == "console.tjo.cloud"
        assert datetime.fromisoformat(snapshot["last_event"]).tzinfo is not None

    def test_concurrent_touch(self):
        state = DiagnosticsState()
        threads = [threading.Thread(target=state.touch) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert state.snapshot()["last_event"]


class TestObjectLocks:
    """Test cases for ObjectLocks."""

    def test_same_key_is_exclusive(self):
        locks = ObjectLocks()
        ref = ResourceRef("team-a", "t1")
        entered = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with locks.hold(ref):
                entered.set()
                release.wait(timeout=5)
                order.append("first")

        def second():
            with locks.hold(ref):
                order.append("second")

        t1 = threading.Thread(target=first)
        t1.start()
        entered.wait(timeout=5)
        t2 = threading.Thread(target=second)
        t2.start()
        t2.join(timeout=0.2)
        assert t2.is_alive()

        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert order == ["first", "second"]
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = ObjectLocks()

        with locks.hold(ResourceRef("team-a", "t1")):
            with locks.hold(ResourceRef("team-a", "t2")):
                assert len(locks) == 2

        assert len(locks) == 0

    def test_entry_released_on_error(self):
        locks = ObjectLocks()

        with pytest.raises(RuntimeError):
            with locks.hold("key"):
                raise RuntimeError("boom")

        assert len(locks) == 0
