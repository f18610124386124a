"""Base classes for resources and tasks.

Both classes implement their protocol with no-op hooks so that concrete
implementations only override what they need.

Usage:
    class Drive(Resource):
        def update(self) -> None:
            self.odometry.refresh()

    class DriveForward(Task):
        def __init__(self, drive: Drive, distance: float):
            super().__init__(drive)
            self._drive = drive
            self._distance = distance

        def step(self) -> None:
            self._drive.forward()

        def is_done(self) -> bool:
            return self._drive.travelled >= self._distance
"""

from typing import FrozenSet, Optional

from arbiter_protocols.protocols import ResourceProtocol


class Resource:
    """Base resource with no-op lifecycle hooks."""

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or type(self).__name__

    def setup(self) -> None:
        """Runs once when the arbiter is enabled."""

    def update(self) -> None:
        """Runs once per tick while the arbiter is enabled."""

    def teardown(self) -> None:
        """Runs once when the arbiter is disabled."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class Task:
    """Base task with no-op lifecycle hooks.

    The required-resource set is fixed at construction. A default task
    should return False from is_done() forever.
    """

    def __init__(
        self,
        *resources: ResourceProtocol,
        name: Optional[str] = None,
    ) -> None:
        self.name = name or type(self).__name__
        self._required: FrozenSet[ResourceProtocol] = frozenset(resources)

    def required_resources(self) -> FrozenSet[ResourceProtocol]:
        """Resources this task must own exclusively while active."""
        return self._required

    def setup(self) -> None:
        """Runs once when the task is admitted."""

    def step(self) -> None:
        """Runs once per tick while the task is active."""

    def teardown(self, interrupted: bool) -> None:
        """Runs once when the task stops.

        Args:
            interrupted: True if the task was preempted by another task
        """

    def is_done(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
