"""Arbiter protocols - kernel interface definitions.

These protocols define the interface that the Arbiter exposes to the
application driving it, and the seams between its components.

Layering rules:
- arbiter_kernel ONLY imports from arbiter_protocols and arbiter_shared
- Callers import these protocols, not concrete implementations
"""

from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from arbiter_protocols import ResourceProtocol, TaskProtocol
from arbiter_kernel.types import (
    ArbiterEvent,
    TaskControlBlock,
    TerminalReason,
)


EventHandler = Callable[[ArbiterEvent], None]


# =============================================================================
# LIFECYCLE MANAGER PROTOCOL (pending / active tables)
# =============================================================================

@runtime_checkable
class LifecycleManagerProtocol(Protocol):
    """Task lifecycle manager - owns the pending queue and the active set.

    State machine:
        submit()    -> PENDING
        activate()  -> PENDING -> ACTIVE
        terminate() -> ACTIVE -> TERMINATED
        drop_pending() -> PENDING -> DROPPED
    """

    def submit(
        self,
        task: TaskProtocol,
        interruptible: bool,
        is_default: bool = False,
    ) -> TaskControlBlock:
        """Queue a task, or overwrite the flag of an already pending one.

        Args:
            task: Task to queue
            interruptible: Whether the task may be preempted once active
            is_default: True when queued by default-task backfill

        Returns:
            The pending TaskControlBlock
        """
        ...

    def activate(
        self,
        task: TaskProtocol,
        resources: FrozenSet[ResourceProtocol],
    ) -> TaskControlBlock:
        """Move a pending task to the active set.

        Args:
            task: Pending task
            resources: Required resources, cached for release

        Returns:
            The now-active TaskControlBlock
        """
        ...

    def terminate(
        self,
        task: TaskProtocol,
        reason: TerminalReason,
    ) -> TaskControlBlock:
        """Remove an active task from the active set."""
        ...

    def get_block(self, task: TaskProtocol) -> Optional[TaskControlBlock]:
        """Get the pending or active block for a task."""
        ...

    def pending_blocks(self) -> List[TaskControlBlock]:
        """Snapshot of the pending queue, submission order."""
        ...

    def active_blocks(self) -> List[TaskControlBlock]:
        """Snapshot of the active set, admission order."""
        ...

    def drop_pending(self) -> List[TaskControlBlock]:
        """Discard every pending task without callbacks."""
        ...


# =============================================================================
# OWNERSHIP TABLE PROTOCOL (resource registry + owners)
# =============================================================================

@runtime_checkable
class OwnershipTableProtocol(Protocol):
    """Resource registry and exclusive-ownership table.

    Invariant: a resource is owned by at most one task at a time, and an
    owning task owns its entire required set.
    """

    def register(self, resource: ResourceProtocol) -> bool:
        """Register a resource. Returns False if already registered."""
        ...

    def is_registered(self, resource: ResourceProtocol) -> bool:
        ...

    def unregistered(
        self,
        resources: Iterable[ResourceProtocol],
    ) -> List[ResourceProtocol]:
        """Return the subset of resources that were never registered."""
        ...

    def set_default(
        self,
        resource: ResourceProtocol,
        task: Optional[TaskProtocol],
    ) -> None:
        ...

    def get_default(self, resource: ResourceProtocol) -> Optional[TaskProtocol]:
        ...

    def owner_of(self, resource: ResourceProtocol) -> Optional[TaskProtocol]:
        ...

    def allocate(
        self,
        task: TaskProtocol,
        resources: FrozenSet[ResourceProtocol],
    ) -> bool:
        """Assign the task as owner of every resource (all or nothing)."""
        ...

    def release(self, task: TaskProtocol) -> FrozenSet[ResourceProtocol]:
        """Release every resource the task owns. Returns what was released."""
        ...

    def idle_resources(self) -> List[ResourceProtocol]:
        """Registered resources with no owner, registration order."""
        ...

    def get_system_usage(self) -> Dict[str, Any]:
        ...


# =============================================================================
# EVENT AGGREGATOR PROTOCOL
# =============================================================================

@runtime_checkable
class EventAggregatorProtocol(Protocol):
    """Event aggregator - collects and routes arbiter events."""

    def emit_event(self, event: ArbiterEvent) -> None:
        ...

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe to events of one type, or "*" for all events."""
        ...

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        ...

    def get_event_history(
        self,
        task: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
    ) -> List[ArbiterEvent]:
        """Get event history, newest first."""
        ...


# =============================================================================
# ARBITER PROTOCOL (kernel interface)
# =============================================================================

@runtime_checkable
class ArbiterProtocol(Protocol):
    """The unified scheduler interface used by the driving application."""

    def register_resources(self, *resources: ResourceProtocol) -> None:
        """Register resources. Only allowed before enable()."""
        ...

    def set_default_task(
        self,
        resource: ResourceProtocol,
        task: Optional[TaskProtocol],
    ) -> None:
        """Set, replace or clear the fallback task for a resource."""
        ...

    def submit(self, task: TaskProtocol, interruptible: bool = True) -> None:
        """Queue a task for admission on the next tick."""
        ...

    def enable(self) -> None:
        """Run resource setup and start scheduling."""
        ...

    def disable(self) -> None:
        """Stop scheduling, stop active tasks, tear resources down."""
        ...

    def tick(self) -> None:
        """Run one update-reap-admit-backfill-step cycle."""
        ...
