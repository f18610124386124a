"""Ownership Table - resource registry and exclusive ownership.

This implements resource management:
- Registration (registration ordered, append-only)
- Default task per resource
- Exclusive ownership by active tasks
- Usage snapshot

Layering: ONLY imports from arbiter_protocols and arbiter_shared.
"""

import threading
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from arbiter_protocols import LoggerProtocol, ResourceProtocol, TaskProtocol
from arbiter_shared.serialization import display_name, display_names

from arbiter_kernel.protocols import OwnershipTableProtocol


class OwnershipConflictError(RuntimeError):
    """An admitted task could not take ownership of its resources."""


class OwnershipTable(OwnershipTableProtocol):
    """Resource registry and ownership table.

    Invariant: every owned resource maps to exactly one task, and that
    task owns every resource it was allocated. Allocation is all or nothing.

    Usage:
        table = OwnershipTable(logger)
        table.register(drive)

        if table.owner_of(drive) is None:
            table.allocate(task, frozenset({drive}))

        table.release(task)
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        self._logger = logger.bind(component="ownership_table")

        # Resource -> default task (None when unset), registration order
        self._registry: Dict[ResourceProtocol, Optional[TaskProtocol]] = {}

        # Resource -> owning task
        self._owners: Dict[ResourceProtocol, TaskProtocol] = {}

        # Task -> resources it owns, cached at allocation
        self._held: Dict[TaskProtocol, FrozenSet[ResourceProtocol]] = {}

        self._lock = threading.RLock()

    # =========================================================================
    # Registry
    # =========================================================================

    def register(self, resource: ResourceProtocol) -> bool:
        """Register a resource with no default task."""
        with self._lock:
            if resource in self._registry:
                self._logger.warning(
                    "duplicate_registration",
                    resource=display_name(resource),
                )
                return False

            self._registry[resource] = None

            self._logger.debug(
                "resource_registered",
                resource=display_name(resource),
                registered=len(self._registry),
            )

            return True

    def is_registered(self, resource: ResourceProtocol) -> bool:
        with self._lock:
            return resource in self._registry

    def unregistered(
        self,
        resources: Iterable[ResourceProtocol],
    ) -> List[ResourceProtocol]:
        with self._lock:
            return [r for r in resources if r not in self._registry]

    def registered(self) -> List[ResourceProtocol]:
        """All registered resources, registration order."""
        with self._lock:
            return list(self._registry)

    def set_default(
        self,
        resource: ResourceProtocol,
        task: Optional[TaskProtocol],
    ) -> None:
        """Set, replace or clear (None) the default task of a resource.

        Callers must check registration first.
        """
        with self._lock:
            previous = self._registry[resource]
            self._registry[resource] = task

            self._logger.info(
                "default_task_set",
                resource=display_name(resource),
                task=display_name(task) if task is not None else None,
                replaced=display_name(previous) if previous is not None else None,
            )

    def get_default(self, resource: ResourceProtocol) -> Optional[TaskProtocol]:
        with self._lock:
            return self._registry.get(resource)

    # =========================================================================
    # Ownership
    # =========================================================================

    def owner_of(self, resource: ResourceProtocol) -> Optional[TaskProtocol]:
        with self._lock:
            return self._owners.get(resource)

    def owners_of(
        self,
        resources: Iterable[ResourceProtocol],
    ) -> List[TaskProtocol]:
        """Distinct current owners of any of the given resources."""
        with self._lock:
            owners: List[TaskProtocol] = []
            for resource in resources:
                owner = self._owners.get(resource)
                if owner is not None and owner not in owners:
                    owners.append(owner)
            return owners

    def held_by(self, task: TaskProtocol) -> FrozenSet[ResourceProtocol]:
        with self._lock:
            return self._held.get(task, frozenset())

    def allocate(
        self,
        task: TaskProtocol,
        resources: FrozenSet[ResourceProtocol],
    ) -> bool:
        """Make the task owner of every resource.

        Returns False, allocating nothing, if any resource is owned by
        another task or the task already holds resources.
        """
        with self._lock:
            if task in self._held:
                self._logger.warning(
                    "duplicate_allocation",
                    task=display_name(task),
                )
                return False

            conflicts = [
                r for r in resources
                if r in self._owners and self._owners[r] is not task
            ]
            if conflicts:
                self._logger.warning(
                    "allocation_conflict",
                    task=display_name(task),
                    resources=display_names(conflicts),
                )
                return False

            for resource in resources:
                self._owners[resource] = task
            self._held[task] = resources

            self._logger.debug(
                "resources_allocated",
                task=display_name(task),
                resources=display_names(resources),
            )

            return True

    def release(self, task: TaskProtocol) -> FrozenSet[ResourceProtocol]:
        """Release every resource the task owns."""
        with self._lock:
            resources = self._held.pop(task, frozenset())
            for resource in resources:
                if self._owners.get(resource) is task:
                    del self._owners[resource]

            if resources:
                self._logger.debug(
                    "resources_released",
                    task=display_name(task),
                    resources=display_names(resources),
                )

            return resources

    def release_all(self) -> None:
        """Forget every ownership. Used after the arbiter is disabled."""
        with self._lock:
            self._owners.clear()
            self._held.clear()

    def idle_resources(self) -> List[ResourceProtocol]:
        with self._lock:
            return [r for r in self._registry if r not in self._owners]

    def ownership_snapshot(self) -> Dict[ResourceProtocol, TaskProtocol]:
        """Copy of the resource -> owner mapping."""
        with self._lock:
            return dict(self._owners)

    def get_system_usage(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "registered_resources": len(self._registry),
                "owned_resources": len(self._owners),
                "idle_resources": len(self._registry) - len(self._owners),
                "resources_with_default": sum(
                    1 for task in self._registry.values() if task is not None
                ),
                "owning_tasks": len(self._held),
            }
