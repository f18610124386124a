"""Shared utilities for the arbiter runtime.

This package provides common utilities that can be used by all layers
without creating circular dependencies. It sits at L0 alongside arbiter_protocols.

Exports:
- Logging: Logger, configure_logging, create_logger, get_component_logger, tick_scope
- Serialization: utc_now, utc_now_iso, display_name, display_names
- IDs: UUIDGenerator, SequentialIdGenerator
"""

from arbiter_shared.id_generator import SequentialIdGenerator, UUIDGenerator
from arbiter_shared.logging import (
    Logger,
    configure_logging,
    create_logger,
    get_component_logger,
    get_current_logger,
    logger_name,
    reset_logging,
    set_current_logger,
    tick_scope,
)
from arbiter_shared.serialization import (
    display_name,
    display_names,
    utc_now,
    utc_now_iso,
)

__all__ = [
    # Logging
    "Logger",
    "configure_logging",
    "create_logger",
    "get_component_logger",
    "get_current_logger",
    "logger_name",
    "reset_logging",
    "set_current_logger",
    "tick_scope",
    # Serialization
    "display_name",
    "display_names",
    "utc_now",
    "utc_now_iso",
    # IDs
    "SequentialIdGenerator",
    "UUIDGenerator",
]
