"""Arbiter Kernel - tick-driven resource-arbitrating task scheduler.

This package provides the scheduler that manages:
- Resource registration and default tasks
- Task lifecycle (pending, active, terminated)
- Exclusive resource ownership with preemption
- Lifecycle event streaming

Exports:
    Arbiter: Main scheduler class
    ArbiterProtocol: Protocol interface for the scheduler
    ArbiterSettings: Runtime configuration
    ArbiterEvent: Events emitted by the scheduler
    TaskControlBlock: Per-submission bookkeeping
    TaskState: Task lifecycle states
    TerminalReason: Why an active task stopped
"""

from arbiter_kernel.kernel import Arbiter
from arbiter_kernel.protocols import ArbiterProtocol
from arbiter_kernel.settings import (
    ArbiterSettings,
    configure_from_settings,
    get_arbiter_settings,
    reset_arbiter_settings,
    set_arbiter_settings,
)
from arbiter_kernel.types import (
    ArbiterEvent,
    TaskControlBlock,
    TaskState,
    TerminalReason,
)

__all__ = [
    "Arbiter",
    "ArbiterEvent",
    "ArbiterProtocol",
    "ArbiterSettings",
    "TaskControlBlock",
    "TaskState",
    "TerminalReason",
    "configure_from_settings",
    "get_arbiter_settings",
    "reset_arbiter_settings",
    "set_arbiter_settings",
]
