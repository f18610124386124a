"""Arbiter Protocols Package - core type contracts for all layers.

This package provides the interfaces and base classes that form the contract
between the arbiter and application code.

Layering:
    - arbiter_protocols sits at L0 (no dependencies on other arbiter packages)
    - Protocols define interfaces; the kernel lives in arbiter_kernel

Package Structure:
    - protocols.py: LoggerProtocol, ResourceProtocol, TaskProtocol, IdGeneratorProtocol
    - core.py: Resource and Task base classes with no-op hooks
    - errors.py: ConfigurationError and its subclasses
"""

from arbiter_protocols.core import Resource, Task
from arbiter_protocols.errors import (
    ConfigurationError,
    DefaultTaskMismatchError,
    RegistrationClosedError,
    UnregisteredResourceError,
)
from arbiter_protocols.protocols import (
    IdGeneratorProtocol,
    LoggerProtocol,
    ResourceProtocol,
    TaskProtocol,
)

__all__ = [
    # Base classes
    "Resource",
    "Task",
    # Errors
    "ConfigurationError",
    "DefaultTaskMismatchError",
    "RegistrationClosedError",
    "UnregisteredResourceError",
    # Protocols
    "IdGeneratorProtocol",
    "LoggerProtocol",
    "ResourceProtocol",
    "TaskProtocol",
]
