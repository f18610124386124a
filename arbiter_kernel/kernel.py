"""Arbiter Kernel - the unified scheduler interface.

This is the main entry point of the arbiter.
It composes:
- LifecycleManager (pending queue and active set)
- OwnershipTable (resource registry and exclusive ownership)
- EventAggregator (lifecycle events)

and drives resource and task hooks once per tick.

Layering: ONLY imports from arbiter_protocols and arbiter_shared.
"""

import threading
from typing import Any, Dict, FrozenSet, List, Optional

from arbiter_protocols import (
    DefaultTaskMismatchError,
    IdGeneratorProtocol,
    LoggerProtocol,
    RegistrationClosedError,
    ResourceProtocol,
    TaskProtocol,
    UnregisteredResourceError,
)
from arbiter_shared.logging import tick_scope
from arbiter_shared.serialization import display_name, display_names

from arbiter_kernel.events import EventAggregator
from arbiter_kernel.lifecycle import LifecycleManager
from arbiter_kernel.protocols import ArbiterProtocol
from arbiter_kernel.resources import OwnershipConflictError, OwnershipTable
from arbiter_kernel.settings import ArbiterSettings, get_arbiter_settings
from arbiter_kernel.types import ArbiterEvent, TaskControlBlock, TerminalReason


class Arbiter(ArbiterProtocol):
    """Arbiter - tick-driven resource-arbitrating task scheduler.

    A fixed set of mutually-exclusive resources is shared among tasks that
    declare up front which resources they need. Every tick the arbiter:

        1. update   - calls update() on every resource
        2. reap     - tears down tasks whose is_done() is True
        3. admit    - starts pending tasks in submission order, preempting
                      interruptible owners of the resources they need
        4. backfill - submits the default task of every idle resource
        5. step     - calls step() on every active task

    A candidate whose resources are held by any non-interruptible task is
    blocked: it preempts nothing and stays pending until a later tick.

    Usage:
        arbiter = Arbiter(logger)

        # Configure (before enable)
        arbiter.register_resources(drive, arm)
        arbiter.set_default_task(drive, HoldPosition(drive))

        arbiter.enable()
        while running:
            arbiter.submit(DriveForward(drive, 2.0), interruptible=False)
            arbiter.tick()
        arbiter.disable()

    Errors raised by resource or task hooks are not caught; they abort the
    call in progress and reach the caller unchanged.
    """

    def __init__(
        self,
        logger: LoggerProtocol,
        settings: Optional[ArbiterSettings] = None,
        id_generator: Optional[IdGeneratorProtocol] = None,
    ) -> None:
        """Initialize the arbiter.

        Args:
            logger: Logger instance
            settings: Arbiter settings (uses global settings if None)
            id_generator: Generator for submission ids
        """
        self._settings = settings or get_arbiter_settings()
        self._logger = logger.bind(component="arbiter")

        self._lifecycle = LifecycleManager(logger, id_generator)
        self._resources = OwnershipTable(logger)
        self._events = EventAggregator(
            logger,
            history_size=self._settings.event_history_size,
            enabled=self._settings.emit_events,
        )

        self._enabled = False
        self._ticking = False
        self._disabling = False
        self._tick_count = 0
        self._blocked_count = 0

        self._lock = threading.RLock()

        self._logger.info(
            "arbiter_initialized",
            emit_events=self._settings.emit_events,
            strict_default_tasks=self._settings.strict_default_tasks,
        )

    # =========================================================================
    # Component accessors
    # =========================================================================

    @property
    def lifecycle(self) -> LifecycleManager:
        """Get lifecycle manager."""
        return self._lifecycle

    @property
    def resources(self) -> OwnershipTable:
        """Get ownership table."""
        return self._resources

    @property
    def events(self) -> EventAggregator:
        """Get event aggregator."""
        return self._events

    @property
    def settings(self) -> ArbiterSettings:
        return self._settings

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def tick_count(self) -> int:
        """Number of ticks run while enabled."""
        return self._tick_count

    # =========================================================================
    # Configuration
    # =========================================================================

    def register_resources(self, *resources: ResourceProtocol) -> None:
        """Register one or more resources. Only allowed before enable()."""
        with self._lock:
            if self._enabled:
                raise RegistrationClosedError(
                    "Resources must be registered before enable()"
                )

            for resource in resources:
                if self._resources.register(resource):
                    self._events.emit_event(
                        ArbiterEvent.resource_event("resource.registered", resource)
                    )

    def set_default_task(
        self,
        resource: ResourceProtocol,
        task: Optional[TaskProtocol],
    ) -> None:
        """Set, replace or clear the default task of a registered resource.

        The default task should require exactly {resource}. The change only
        affects future backfills; a default task already running keeps
        running.
        """
        with self._lock:
            if not self._resources.is_registered(resource):
                raise UnregisteredResourceError(
                    f"Can't set default task for unregistered resource "
                    f"{display_name(resource)}",
                    resources=[resource],
                )

            if task is not None:
                required = frozenset(task.required_resources())
                self._check_registered(task, required)

                if required != {resource}:
                    if self._settings.strict_default_tasks:
                        raise DefaultTaskMismatchError(
                            f"Default task {display_name(task)} for "
                            f"{display_name(resource)} requires "
                            f"{display_names(required)}"
                        )
                    self._logger.warning(
                        "default_task_resource_mismatch",
                        resource=display_name(resource),
                        task=display_name(task),
                        required=display_names(required),
                    )

            self._resources.set_default(resource, task)
            self._events.emit_event(
                ArbiterEvent.resource_event(
                    "resource.default_set",
                    resource,
                    task=display_name(task) if task is not None else None,
                )
            )

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, task: TaskProtocol, interruptible: bool = True) -> None:
        """Queue a task for admission on the next tick.

        Resubmitting a pending task overwrites its interruptible flag and
        keeps its place in the queue. Submitting while disabled drops the
        task silently. Submitting a task that is already active restarts it:
        the running instance is treated like any other owner of the task's
        resources, so it is torn down (interruptible) or blocks the restart
        until it completes (non-interruptible).
        """
        with self._lock:
            self._check_registered(task, frozenset(task.required_resources()))

            if not self._enabled:
                self._logger.debug(
                    "task_dropped",
                    task=display_name(task),
                    reason="disabled",
                )
                self._events.emit_event(ArbiterEvent.task_dropped(task, "disabled"))
                return

            self._enqueue(task, interruptible)

    # =========================================================================
    # Enable / disable
    # =========================================================================

    def enable(self) -> None:
        """Run setup() on every resource, then start scheduling.

        Calling it again re-runs resource setup.
        """
        with self._lock:
            resources = self._resources.registered()
            for resource in resources:
                resource.setup()

            self._enabled = True

            self._logger.info("arbiter_enabled", resources=len(resources))
            self._events.emit_event(
                ArbiterEvent.arbiter_event("arbiter.enabled", resources=len(resources))
            )

    def disable(self) -> None:
        """Stop scheduling.

        Marks the arbiter disabled first, then calls teardown(False) on every
        active task while ownership is still intact, then teardown() on every
        resource. Pending tasks are dropped without callbacks. A disable()
        issued from one of those teardown hooks is ignored.
        """
        with self._lock:
            if self._disabling:
                self._logger.warning("reentrant_disable_ignored")
                return

            self._enabled = False
            self._disabling = True
            try:
                stopped = 0
                for tcb in self._lifecycle.active_blocks():
                    if not self._lifecycle.is_active(tcb.task):
                        continue
                    self._lifecycle.terminate(tcb.task, TerminalReason.DISABLED)
                    tcb.task.teardown(False)
                    self._events.emit_event(
                        ArbiterEvent.task_terminated(tcb, TerminalReason.DISABLED)
                    )
                    stopped += 1

                for resource in self._resources.registered():
                    resource.teardown()

                self._resources.release_all()

                for tcb in self._lifecycle.drop_pending():
                    self._events.emit_event(
                        ArbiterEvent.task_dropped(tcb.task, "disabled")
                    )
            finally:
                self._disabling = False

            self._logger.info("arbiter_disabled", stopped_tasks=stopped)
            self._events.emit_event(
                ArbiterEvent.arbiter_event("arbiter.disabled", stopped_tasks=stopped)
            )

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self) -> None:
        """Run one update-reap-admit-backfill-step cycle.

        No-op while disabled. If a hook disables the arbiter, the remaining
        phases of this tick are skipped.
        """
        with self._lock:
            if not self._enabled:
                return

            if self._ticking:
                self._logger.warning("reentrant_tick_ignored", tick=self._tick_count)
                return

            self._tick_count += 1
            self._ticking = True
            try:
                with tick_scope(self._tick_count):
                    for phase in (
                        self._update_resources,
                        self._reap_finished,
                        self._admit_pending,
                        self._backfill_defaults,
                        self._step_active,
                    ):
                        if not self._enabled:
                            self._logger.info(
                                "tick_aborted",
                                reason="disabled",
                                phase=phase.__name__.lstrip("_"),
                            )
                            return
                        phase()

                    self._logger.debug(
                        "tick_complete",
                        active=self._lifecycle.get_counts()["active"],
                        pending=self._lifecycle.get_queue_depth(),
                    )
            finally:
                self._ticking = False

    def _update_resources(self) -> None:
        for resource in self._resources.registered():
            if not self._enabled:
                return
            resource.update()

    def _reap_finished(self) -> None:
        finished = [
            tcb for tcb in self._lifecycle.active_blocks()
            if tcb.task.is_done()
        ]
        for tcb in finished:
            if self._lifecycle.is_active(tcb.task):
                self._stop(tcb, TerminalReason.COMPLETED)

    def _admit_pending(self) -> None:
        # Snapshot: tasks submitted by hooks during this pass wait a tick
        for tcb in self._lifecycle.pending_blocks():
            if not self._enabled:
                return
            if self._lifecycle.is_pending(tcb.task):
                self._try_admit(tcb)

    def _backfill_defaults(self) -> None:
        for resource in self._resources.idle_resources():
            if not self._enabled:
                return
            # An earlier backfill in this pass may have claimed it
            if self._resources.owner_of(resource) is not None:
                continue

            default = self._resources.get_default(resource)
            if default is None:
                continue

            tcb = self._enqueue(default, interruptible=True, is_default=True)
            if tcb is None:
                continue

            self._events.emit_event(
                ArbiterEvent.for_task(
                    "task.backfilled", tcb, resource=display_name(resource)
                )
            )
            self._try_admit(tcb)

    def _step_active(self) -> None:
        for tcb in self._lifecycle.active_blocks():
            if not self._lifecycle.is_active(tcb.task):
                continue
            tcb.task.step()
            self._lifecycle.record_step(tcb.task)

    # =========================================================================
    # Admission and termination
    # =========================================================================

    def _try_admit(self, tcb: TaskControlBlock) -> bool:
        """Admit one pending task if no non-interruptible task is in the way.

        Every conflict is evaluated before anything is preempted, so a
        blocked candidate leaves the active set untouched. A running
        instance of the candidate itself counts as a conflict.
        """
        task = tcb.task
        required = frozenset(task.required_resources())

        owners = set(self._resources.owners_of(required))
        owners.add(task)
        conflicts = [
            block for block in self._lifecycle.active_blocks()
            if block.task in owners
        ]

        blocker = next((b for b in conflicts if not b.interruptible), None)
        if blocker is not None:
            self._blocked_count += 1
            self._logger.debug(
                "task_blocked",
                task=tcb.name,
                blocked_by=blocker.name,
                resources=display_names(required & blocker.required_resources),
            )
            self._events.emit_event(ArbiterEvent.task_blocked(tcb, blocker))
            return False

        for victim in conflicts:
            self._logger.info(
                "task_preempted",
                task=victim.name,
                preempted_by=tcb.name,
            )
            self._stop(victim, TerminalReason.INTERRUPTED, preempted_by=tcb.name)

        # A victim's teardown hook may have disabled the arbiter
        if not self._enabled:
            return False

        if not self._resources.allocate(task, required):
            raise OwnershipConflictError(
                f"{tcb.name} could not take ownership of "
                f"{display_names(required)}"
            )
        self._lifecycle.activate(task, required)
        self._events.emit_event(ArbiterEvent.task_admitted(tcb))

        task.setup()
        return True

    def _stop(
        self,
        tcb: TaskControlBlock,
        reason: TerminalReason,
        **data: Any,
    ) -> None:
        # Out of the active set before the hook runs, owning its resources
        # until the hook returns
        self._lifecycle.terminate(tcb.task, reason)
        try:
            tcb.task.teardown(reason.interrupted)
        finally:
            self._resources.release(tcb.task)
        self._events.emit_event(ArbiterEvent.task_terminated(tcb, reason, **data))

    def _enqueue(
        self,
        task: TaskProtocol,
        interruptible: bool,
        is_default: bool = False,
    ) -> Optional[TaskControlBlock]:
        if is_default and self._lifecycle.is_active(task):
            self._logger.debug("default_already_active", task=display_name(task))
            return None

        tcb = self._lifecycle.submit(task, interruptible, is_default=is_default)
        self._events.emit_event(ArbiterEvent.task_submitted(tcb))
        return tcb

    def _check_registered(
        self,
        task: TaskProtocol,
        required: FrozenSet[ResourceProtocol],
    ) -> None:
        missing = self._resources.unregistered(required)
        if missing:
            raise UnregisteredResourceError(
                f"Task {display_name(task)} requires unregistered resource(s) "
                f"{display_names(missing)}",
                resources=missing,
            )

    # =========================================================================
    # Introspection
    # =========================================================================

    def registered_resources(self) -> List[ResourceProtocol]:
        return self._resources.registered()

    def default_task(self, resource: ResourceProtocol) -> Optional[TaskProtocol]:
        return self._resources.get_default(resource)

    def owner_of(self, resource: ResourceProtocol) -> Optional[TaskProtocol]:
        return self._resources.owner_of(resource)

    def pending_tasks(self) -> List[TaskProtocol]:
        """Pending tasks in submission order."""
        return [tcb.task for tcb in self._lifecycle.pending_blocks()]

    def active_tasks(self) -> List[TaskProtocol]:
        """Active tasks in admission order."""
        return [tcb.task for tcb in self._lifecycle.active_blocks()]

    def is_pending(self, task: TaskProtocol) -> bool:
        return self._lifecycle.is_pending(task)

    def is_active(self, task: TaskProtocol) -> bool:
        return self._lifecycle.is_active(task)

    def get_control_block(self, task: TaskProtocol) -> Optional[TaskControlBlock]:
        """Pending or active control block for a task, None otherwise."""
        return self._lifecycle.get_block(task)

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of scheduler state and lifetime counters."""
        with self._lock:
            return {
                "enabled": self._enabled,
                "tick_count": self._tick_count,
                "blocked": self._blocked_count,
                **self._resources.get_system_usage(),
                **self._lifecycle.get_counts(),
            }
