"""Arbiter types - scheduler-level abstractions.

These types mirror OS kernel concepts:
- TaskState: Task lifecycle states
- TaskControlBlock: the kernel's view of one submission (like a PCB)
- ArbiterEvent: events emitted by the kernel

Layering: This module ONLY imports from arbiter_protocols and arbiter_shared.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from arbiter_protocols import ResourceProtocol, TaskProtocol
from arbiter_shared.serialization import display_name, display_names, utc_now


# =============================================================================
# TASK STATES
# =============================================================================

class TaskState(str, Enum):
    """Task states as seen by the arbiter.

    State transitions:
        PENDING -> ACTIVE -> TERMINATED
        PENDING -> DROPPED (arbiter disabled)
    """
    PENDING = "pending"            # Submitted, not yet granted resources
    ACTIVE = "active"              # Running, owns its required resources
    TERMINATED = "terminated"      # Stopped by completion, preemption or disable
    DROPPED = "dropped"            # Discarded while pending, no callbacks


class TerminalReason(str, Enum):
    """Why an active task stopped."""
    COMPLETED = "completed"        # is_done() returned True
    INTERRUPTED = "interrupted"    # Preempted by a conflicting task
    DISABLED = "disabled"          # Arbiter disabled

    @property
    def interrupted(self) -> bool:
        """Value passed to Task.teardown()."""
        return self is TerminalReason.INTERRUPTED


# =============================================================================
# TASK CONTROL BLOCK
# =============================================================================

@dataclass
class TaskControlBlock:
    """Kernel's metadata about one submission of a task.

    A fresh block is created for every submission that is not already
    pending; it is discarded once the task leaves the active set.
    """
    task: TaskProtocol
    submission_id: str
    name: str

    # Scheduling
    interruptible: bool = True
    state: TaskState = TaskState.PENDING
    is_default: bool = False

    # Cached at admission; required_resources() must be stable
    required_resources: FrozenSet[ResourceProtocol] = frozenset()

    # Timeline
    submitted_at: datetime = field(default_factory=utc_now)
    admitted_at: Optional[datetime] = None
    terminated_at: Optional[datetime] = None
    terminal_reason: Optional[TerminalReason] = None
    ticks_active: int = 0

    def is_pending(self) -> bool:
        return self.state == TaskState.PENDING

    def is_active(self) -> bool:
        return self.state == TaskState.ACTIVE

    def is_terminated(self) -> bool:
        return self.state in (TaskState.TERMINATED, TaskState.DROPPED)

    def to_dict(self) -> Dict[str, Any]:
        """Export control block data."""
        return {
            "submission_id": self.submission_id,
            "name": self.name,
            "interruptible": self.interruptible,
            "state": self.state.value,
            "is_default": self.is_default,
            "required_resources": display_names(self.required_resources),
            "submitted_at": self.submitted_at.isoformat(),
            "admitted_at": self.admitted_at.isoformat() if self.admitted_at else None,
            "terminated_at": self.terminated_at.isoformat() if self.terminated_at else None,
            "terminal_reason": self.terminal_reason.value if self.terminal_reason else None,
            "ticks_active": self.ticks_active,
        }


# =============================================================================
# ARBITER EVENTS
# =============================================================================

@dataclass
class ArbiterEvent:
    """Event emitted by the kernel.

    Used for monitoring and tests; observers never influence scheduling.
    """
    event_type: str
    timestamp: datetime
    task: Optional[str] = None
    submission_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_task(
        cls,
        event_type: str,
        tcb: TaskControlBlock,
        **data: Any,
    ) -> "ArbiterEvent":
        return cls(
            event_type=event_type,
            timestamp=utc_now(),
            task=tcb.name,
            submission_id=tcb.submission_id,
            data={"interruptible": tcb.interruptible, **data},
        )

    @classmethod
    def task_submitted(cls, tcb: TaskControlBlock) -> "ArbiterEvent":
        return cls.for_task("task.submitted", tcb, is_default=tcb.is_default)

    @classmethod
    def task_admitted(cls, tcb: TaskControlBlock) -> "ArbiterEvent":
        return cls.for_task(
            "task.admitted",
            tcb,
            resources=display_names(tcb.required_resources),
        )

    @classmethod
    def task_blocked(
        cls,
        tcb: TaskControlBlock,
        blocker: TaskControlBlock,
    ) -> "ArbiterEvent":
        return cls.for_task("task.blocked", tcb, blocked_by=blocker.name)

    @classmethod
    def task_terminated(
        cls,
        tcb: TaskControlBlock,
        reason: TerminalReason,
        **data: Any,
    ) -> "ArbiterEvent":
        event_type = {
            TerminalReason.COMPLETED: "task.completed",
            TerminalReason.INTERRUPTED: "task.preempted",
            TerminalReason.DISABLED: "task.stopped",
        }[reason]
        return cls.for_task(event_type, tcb, ticks_active=tcb.ticks_active, **data)

    @classmethod
    def task_dropped(cls, task: TaskProtocol, reason: str) -> "ArbiterEvent":
        return cls(
            event_type="task.dropped",
            timestamp=utc_now(),
            task=display_name(task),
            data={"reason": reason},
        )

    @classmethod
    def resource_event(
        cls,
        event_type: str,
        resource: ResourceProtocol,
        **data: Any,
    ) -> "ArbiterEvent":
        return cls(
            event_type=event_type,
            timestamp=utc_now(),
            data={"resource": display_name(resource), **data},
        )

    @classmethod
    def arbiter_event(cls, event_type: str, **data: Any) -> "ArbiterEvent":
        return cls(event_type=event_type, timestamp=utc_now(), data=data)
