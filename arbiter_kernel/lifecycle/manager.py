"""Lifecycle Manager - pending queue and active set.

This implements the scheduler's task bookkeeping:
- Task submission (pending queue, insertion ordered)
- State transitions (activate, terminate, drop)
- Snapshots for phase-by-phase processing

It never calls task hooks; the Arbiter decides when hooks run.

Layering: ONLY imports from arbiter_protocols and arbiter_shared.
"""

import threading
from typing import Dict, FrozenSet, List, Optional

from arbiter_protocols import (
    IdGeneratorProtocol,
    LoggerProtocol,
    ResourceProtocol,
    TaskProtocol,
)
from arbiter_shared.id_generator import UUIDGenerator
from arbiter_shared.serialization import display_name, display_names, utc_now

from arbiter_kernel.protocols import LifecycleManagerProtocol
from arbiter_kernel.types import TaskControlBlock, TaskState, TerminalReason


# Valid state transitions
_VALID_TRANSITIONS: Dict[TaskState, set[TaskState]] = {
    TaskState.PENDING: {TaskState.ACTIVE, TaskState.DROPPED},
    TaskState.ACTIVE: {TaskState.TERMINATED},
    TaskState.TERMINATED: set(),  # Terminal state
    TaskState.DROPPED: set(),     # Terminal state
}


class InvalidTransitionError(RuntimeError):
    """A task was moved along an edge the state machine does not allow."""


class LifecycleManager(LifecycleManagerProtocol):
    """Task lifecycle manager.

    Keeps two insertion-ordered tables keyed by task identity:
    pending (submission order) and active (admission order). An active
    task that is resubmitted sits in both until its old block is
    terminated and the new one admitted.

    Usage:
        lifecycle = LifecycleManager(logger)

        tcb = lifecycle.submit(task, interruptible=True)
        for tcb in lifecycle.pending_blocks():
            lifecycle.activate(tcb.task, frozenset(tcb.task.required_resources()))

        lifecycle.terminate(task, TerminalReason.COMPLETED)
    """

    def __init__(
        self,
        logger: LoggerProtocol,
        id_generator: Optional[IdGeneratorProtocol] = None,
    ) -> None:
        """Initialize lifecycle manager.

        Args:
            logger: Logger instance
            id_generator: Generator for submission ids
        """
        self._logger = logger.bind(component="lifecycle_manager")
        self._ids = id_generator or UUIDGenerator()

        self._pending: Dict[TaskProtocol, TaskControlBlock] = {}
        self._active: Dict[TaskProtocol, TaskControlBlock] = {}

        # Lifetime counters
        self._submitted = 0
        self._admitted = 0
        self._terminated: Dict[TerminalReason, int] = {
            reason: 0 for reason in TerminalReason
        }
        self._dropped = 0

        self._lock = threading.RLock()

    def submit(
        self,
        task: TaskProtocol,
        interruptible: bool,
        is_default: bool = False,
    ) -> TaskControlBlock:
        """Queue a task, or overwrite the flag of an already pending one.

        The queue position of a resubmitted pending task is kept. An
        active task gets a fresh pending block next to its active one.
        """
        with self._lock:
            tcb = self._pending.get(task)
            if tcb is not None:
                if tcb.interruptible != interruptible:
                    self._logger.debug(
                        "pending_flag_overwritten",
                        task=tcb.name,
                        submission_id=tcb.submission_id,
                        interruptible=interruptible,
                    )
                tcb.interruptible = interruptible
                tcb.is_default = is_default
                return tcb

            tcb = TaskControlBlock(
                task=task,
                submission_id=self._ids.generate_prefixed("sub"),
                name=display_name(task),
                interruptible=interruptible,
                is_default=is_default,
            )
            self._pending[task] = tcb
            self._submitted += 1

            self._logger.debug(
                "task_queued",
                task=tcb.name,
                submission_id=tcb.submission_id,
                interruptible=interruptible,
                is_default=is_default,
                restart=task in self._active,
                queue_depth=len(self._pending),
            )

            return tcb

    def activate(
        self,
        task: TaskProtocol,
        resources: FrozenSet[ResourceProtocol],
    ) -> TaskControlBlock:
        """Move a pending task to the end of the active set.

        A restarting task's previous active block must be terminated first.
        """
        with self._lock:
            tcb = self._pending.get(task)
            if tcb is None:
                raise InvalidTransitionError(
                    f"{display_name(task)} is not pending"
                )
            if task in self._active:
                raise InvalidTransitionError(
                    f"{display_name(task)} is still active"
                )
            self._transition(tcb, TaskState.ACTIVE)

            del self._pending[task]
            tcb.required_resources = resources
            tcb.admitted_at = utc_now()
            self._active[task] = tcb
            self._admitted += 1

            self._logger.info(
                "task_admitted",
                task=tcb.name,
                submission_id=tcb.submission_id,
                interruptible=tcb.interruptible,
                resources=display_names(resources),
            )

            return tcb

    def terminate(
        self,
        task: TaskProtocol,
        reason: TerminalReason,
    ) -> TaskControlBlock:
        """Remove an active task from the active set."""
        with self._lock:
            tcb = self._active.get(task)
            if tcb is None:
                raise InvalidTransitionError(
                    f"{display_name(task)} is not active"
                )
            self._transition(tcb, TaskState.TERMINATED)

            del self._active[task]
            tcb.terminated_at = utc_now()
            tcb.terminal_reason = reason
            self._terminated[reason] += 1

            self._logger.info(
                "task_terminated",
                task=tcb.name,
                submission_id=tcb.submission_id,
                reason=reason.value,
                ticks_active=tcb.ticks_active,
            )

            return tcb

    def drop_pending(self) -> List[TaskControlBlock]:
        """Discard every pending task. No hooks are involved."""
        with self._lock:
            dropped = list(self._pending.values())
            for tcb in dropped:
                self._transition(tcb, TaskState.DROPPED)
            self._pending.clear()
            self._dropped += len(dropped)

            if dropped:
                self._logger.info(
                    "pending_dropped",
                    count=len(dropped),
                    tasks=[tcb.name for tcb in dropped],
                )

            return dropped

    def record_step(self, task: TaskProtocol) -> None:
        """Count one step() call against an active task."""
        with self._lock:
            tcb = self._active.get(task)
            if tcb is not None:
                tcb.ticks_active += 1

    # =========================================================================
    # Queries
    # =========================================================================

    def get_block(self, task: TaskProtocol) -> Optional[TaskControlBlock]:
        with self._lock:
            return self._pending.get(task) or self._active.get(task)

    def is_pending(self, task: TaskProtocol) -> bool:
        with self._lock:
            return task in self._pending

    def is_active(self, task: TaskProtocol) -> bool:
        with self._lock:
            return task in self._active

    def pending_blocks(self) -> List[TaskControlBlock]:
        with self._lock:
            return list(self._pending.values())

    def active_blocks(self) -> List[TaskControlBlock]:
        with self._lock:
            return list(self._active.values())

    def get_queue_depth(self) -> int:
        """Get number of pending tasks."""
        with self._lock:
            return len(self._pending)

    def get_counts(self) -> Dict[str, int]:
        """Current table sizes and lifetime counters."""
        with self._lock:
            return {
                "pending": len(self._pending),
                "active": len(self._active),
                "submitted": self._submitted,
                "admitted": self._admitted,
                "completed": self._terminated[TerminalReason.COMPLETED],
                "interrupted": self._terminated[TerminalReason.INTERRUPTED],
                "stopped": self._terminated[TerminalReason.DISABLED],
                "dropped": self._dropped,
            }

    def _transition(self, tcb: TaskControlBlock, new_state: TaskState) -> None:
        if new_state not in _VALID_TRANSITIONS[tcb.state]:
            self._logger.warning(
                "invalid_state_transition",
                task=tcb.name,
                old_state=tcb.state.value,
                new_state=new_state.value,
            )
            raise InvalidTransitionError(
                f"{tcb.name}: {tcb.state.value} -> {new_state.value}"
            )
        tcb.state = new_state
