"""Protocol definitions - interfaces for dependency injection.

These are typing.Protocol classes for static type checking. Concrete
resources and tasks are written by the application; the arbiter only ever
talks to them through these hook sets.
"""

from typing import Any, Iterable, Protocol, runtime_checkable


# =============================================================================
# LOGGING
# =============================================================================

@runtime_checkable
class LoggerProtocol(Protocol):
    """Structured logging interface."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def bind(self, **kwargs: Any) -> "LoggerProtocol": ...


# =============================================================================
# RESOURCES (subsystems)
# =============================================================================

@runtime_checkable
class ResourceProtocol(Protocol):
    """A mutually-exclusive capability unit that tasks compete for.

    Hooks:
        setup()     - once, when the arbiter is enabled
        update()    - once per tick, before any task processing
        teardown()  - once, when the arbiter is disabled

    Identity is object identity; resources must stay hashable.
    """

    def setup(self) -> None: ...
    def update(self) -> None: ...
    def teardown(self) -> None: ...


# =============================================================================
# TASKS (commands)
# =============================================================================

@runtime_checkable
class TaskProtocol(Protocol):
    """A schedulable unit of work with a declared resource requirement set.

    Hooks:
        required_resources() - stable for the task's lifetime, may be empty
        setup()              - once on Pending -> Active
        step()               - once per tick while Active
        teardown(interrupted) - once on Active -> Terminated
        is_done()            - polled once per tick before step()
    """

    def required_resources(self) -> Iterable[ResourceProtocol]: ...
    def setup(self) -> None: ...
    def step(self) -> None: ...
    def teardown(self, interrupted: bool) -> None: ...
    def is_done(self) -> bool: ...


# =============================================================================
# ID GENERATION
# =============================================================================

@runtime_checkable
class IdGeneratorProtocol(Protocol):
    """ID generator interface."""

    def generate(self) -> str: ...
    def generate_prefixed(self, prefix: str) -> str: ...
