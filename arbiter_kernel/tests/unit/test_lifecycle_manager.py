"""Unit tests for LifecycleManager."""

import pytest

from arbiter_kernel.lifecycle import InvalidTransitionError, LifecycleManager
from arbiter_kernel.types import TaskState, TerminalReason
from arbiter_shared.id_generator import SequentialIdGenerator


@pytest.fixture
def lifecycle(mock_logger):
    return LifecycleManager(logger=mock_logger, id_generator=SequentialIdGenerator())


class TestSubmit:
    """Tests for queueing tasks."""

    def test_submit_creates_pending_block(self, lifecycle, drive, make_task):
        task = make_task("t", drive)

        tcb = lifecycle.submit(task, interruptible=False)

        assert tcb.task is task
        assert tcb.name == "t"
        assert tcb.state == TaskState.PENDING
        assert tcb.interruptible is False
        assert tcb.submission_id == "sub_000001"
        assert lifecycle.is_pending(task)

    def test_resubmit_returns_same_block(self, lifecycle, make_task):
        task = make_task("t")
        first = lifecycle.submit(task, interruptible=True)

        second = lifecycle.submit(task, interruptible=False)

        assert second is first
        assert first.interruptible is False
        assert lifecycle.get_counts()["submitted"] == 1

    def test_submit_active_task_queues_new_block(self, lifecycle, make_task):
        task = make_task("t")
        lifecycle.submit(task, interruptible=True)
        running = lifecycle.activate(task, frozenset())

        queued = lifecycle.submit(task, interruptible=False)

        assert queued is not running
        assert queued.submission_id == "sub_000002"
        assert lifecycle.is_active(task)
        assert lifecycle.is_pending(task)
        assert running.interruptible is True

    def test_queue_depth(self, lifecycle, make_task):
        lifecycle.submit(make_task("a"), interruptible=True)
        lifecycle.submit(make_task("b"), interruptible=True)

        assert lifecycle.get_queue_depth() == 2

    def test_pending_blocks_is_a_snapshot(self, lifecycle, make_task):
        a = make_task("a")
        lifecycle.submit(a, interruptible=True)

        snapshot = lifecycle.pending_blocks()
        lifecycle.submit(make_task("b"), interruptible=True)

        assert [tcb.task for tcb in snapshot] == [a]


class TestTransitions:
    """Tests for activate/terminate/drop."""

    def test_activate_moves_to_active(self, lifecycle, drive, make_task):
        task = make_task("t", drive)
        lifecycle.submit(task, interruptible=True)

        tcb = lifecycle.activate(task, frozenset({drive}))

        assert tcb.state == TaskState.ACTIVE
        assert tcb.admitted_at is not None
        assert tcb.required_resources == frozenset({drive})
        assert lifecycle.is_active(task)
        assert not lifecycle.is_pending(task)

    def test_activate_keeps_admission_order(self, lifecycle, make_task):
        a, b = make_task("a"), make_task("b")
        lifecycle.submit(b, interruptible=True)
        lifecycle.submit(a, interruptible=True)

        lifecycle.activate(a, frozenset())
        lifecycle.activate(b, frozenset())

        assert [tcb.task for tcb in lifecycle.active_blocks()] == [a, b]

    def test_activate_unknown_task_raises(self, lifecycle, make_task):
        with pytest.raises(InvalidTransitionError):
            lifecycle.activate(make_task("t"), frozenset())

    def test_activate_while_still_active_raises(self, lifecycle, make_task):
        task = make_task("t")
        lifecycle.submit(task, interruptible=True)
        lifecycle.activate(task, frozenset())
        lifecycle.submit(task, interruptible=True)

        with pytest.raises(InvalidTransitionError, match="still active"):
            lifecycle.activate(task, frozenset())

        assert lifecycle.is_pending(task)

    def test_activate_after_terminating_old_block(self, lifecycle, make_task):
        task = make_task("t")
        lifecycle.submit(task, interruptible=True)
        old = lifecycle.activate(task, frozenset())
        lifecycle.submit(task, interruptible=False)

        lifecycle.terminate(task, TerminalReason.INTERRUPTED)
        new = lifecycle.activate(task, frozenset())

        assert old.state == TaskState.TERMINATED
        assert new.state == TaskState.ACTIVE
        assert lifecycle.active_blocks() == [new]

    def test_terminate_records_reason(self, lifecycle, make_task):
        task = make_task("t")
        lifecycle.submit(task, interruptible=True)
        lifecycle.activate(task, frozenset())

        tcb = lifecycle.terminate(task, TerminalReason.INTERRUPTED)

        assert tcb.state == TaskState.TERMINATED
        assert tcb.terminal_reason == TerminalReason.INTERRUPTED
        assert tcb.terminated_at is not None
        assert tcb.is_terminated()
        assert lifecycle.get_block(task) is None

    def test_terminate_pending_task_raises(self, lifecycle, make_task):
        task = make_task("t")
        lifecycle.submit(task, interruptible=True)

        with pytest.raises(InvalidTransitionError):
            lifecycle.terminate(task, TerminalReason.COMPLETED)

    def test_drop_pending(self, lifecycle, make_task):
        a, b = make_task("a"), make_task("b")
        lifecycle.submit(a, interruptible=True)
        lifecycle.submit(b, interruptible=True)

        dropped = lifecycle.drop_pending()

        assert [tcb.task for tcb in dropped] == [a, b]
        assert all(tcb.state == TaskState.DROPPED for tcb in dropped)
        assert lifecycle.get_queue_depth() == 0

    def test_record_step_counts_active_only(self, lifecycle, make_task):
        active, pending = make_task("active"), make_task("pending")
        lifecycle.submit(active, interruptible=True)
        lifecycle.submit(pending, interruptible=True)
        lifecycle.activate(active, frozenset())

        lifecycle.record_step(active)
        lifecycle.record_step(active)
        lifecycle.record_step(pending)

        assert lifecycle.get_block(active).ticks_active == 2
        assert lifecycle.get_block(pending).ticks_active == 0


class TestCounts:
    """Tests for lifetime counters."""

    def test_counts_by_terminal_reason(self, lifecycle, make_task):
        tasks = [make_task(name) for name in ("a", "b", "c")]
        for task in tasks:
            lifecycle.submit(task, interruptible=True)
            lifecycle.activate(task, frozenset())

        lifecycle.terminate(tasks[0], TerminalReason.COMPLETED)
        lifecycle.terminate(tasks[1], TerminalReason.INTERRUPTED)
        lifecycle.terminate(tasks[2], TerminalReason.DISABLED)

        counts = lifecycle.get_counts()
        assert counts["admitted"] == 3
        assert counts["completed"] == 1
        assert counts["interrupted"] == 1
        assert counts["stopped"] == 1
        assert counts["active"] == 0
