"""Error taxonomy for arbiter configuration mistakes.

Only configuration errors are defined here. Exceptions raised from inside
resource or task hooks are never wrapped; they propagate to whoever called
enable(), tick() or disable().
"""

from typing import Any, Iterable, Tuple


class ConfigurationError(Exception):
    """Arbiter misconfiguration with a code.

    Raised synchronously from the offending call. The call has no effect.
    """

    code = "configuration_error"

    def __init__(self, message: str, code: str = ""):
        self.code = code or self.code
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class RegistrationClosedError(ConfigurationError, RuntimeError):
    """Resources were registered after the arbiter was enabled."""

    code = "registration_closed"


class UnregisteredResourceError(ConfigurationError, ValueError):
    """A resource referenced by a call was never registered."""

    code = "unregistered_resource"

    def __init__(self, message: str, resources: Iterable[Any] = ()):
        self.resources: Tuple[Any, ...] = tuple(resources)
        super().__init__(message)


class DefaultTaskMismatchError(ConfigurationError, ValueError):
    """A default task requires something other than exactly its own resource."""

    code = "default_task_mismatch"
