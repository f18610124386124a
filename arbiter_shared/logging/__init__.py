"""Structured logging for the arbiter packages.

Every kernel component receives a LoggerProtocol and binds its own
``component`` field. This module supplies the structlog-backed
implementation and the one-time process setup.

Usage:
    from arbiter_shared.logging import configure_logging, create_logger

    configure_logging(level="INFO", json_output=False)

    arbiter = Arbiter(logger=create_logger("robot"))
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List, Optional

import structlog

from arbiter_protocols import LoggerProtocol

# Level for the "arbiter" stdlib logger, overriding the default level
KERNEL_LEVEL_ENV = "ARBITER_KERNEL_LOG_LEVEL"

# Parent of every component's stdlib logger ("arbiter.<component>")
ROOT_LOGGER_NAME = "arbiter"

_configured = False
_leveled: List[str] = []

_ambient_logger: ContextVar[Optional[LoggerProtocol]] = ContextVar(
    "arbiter_ambient_logger",
    default=None,
)


class Logger:
    """structlog-backed LoggerProtocol.

    The bound fields are kept alongside the structlog logger so that
    bind() can build children without reaching into structlog internals.
    Once configure_logging() has run, output goes through the stdlib logger
    named after the bound component, so per-component levels apply.
    """

    def __init__(
        self,
        base_logger: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self._fields: Dict[str, Any] = dict(context or {})
        if base_logger is None:
            base_logger = structlog.get_logger(logger_name(self._fields.get("component")))
        self._target = base_logger.bind(**self._fields) if self._fields else base_logger

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._fields)

    def bind(self, **fields: Any) -> "Logger":
        return Logger(context={**self._fields, **fields})

    def _emit(self, method: str, event: str, fields: Dict[str, Any]) -> None:
        getattr(self._target, method)(event, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def critical(self, event: str, **fields: Any) -> None:
        self._emit("critical", event, fields)

    def exception(self, event: str, **fields: Any) -> None:
        """Like error(), with the active exception's traceback attached."""
        self._emit("exception", event, fields)


def logger_name(component: Optional[str] = None) -> str:
    """Stdlib logger name used for a component."""
    if not component or component == ROOT_LOGGER_NAME:
        return ROOT_LOGGER_NAME
    return f"{ROOT_LOGGER_NAME}.{component}"


def _level_number(name: str, fallback: int = logging.INFO) -> int:
    return getattr(logging, name.upper(), fallback)


def _processors(json_output: bool) -> List[Any]:
    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
    component_levels: Optional[Dict[str, str]] = None,
) -> None:
    """Set up stdlib logging and structlog for the process.

    Only the first call has an effect until reset_logging() is called.

    Args:
        level: Default level name, e.g. "DEBUG"
        json_output: JSON lines when True, colored console output when False
        component_levels: Component name -> level name overrides, e.g.
            {"lifecycle_manager": "DEBUG"}. The level of every component
            without an override follows ARBITER_KERNEL_LOG_LEVEL, or
            ``level`` when that is unset.
    """
    global _configured

    if _configured:
        return

    default_level = _level_number(level)
    logging.basicConfig(level=default_level, format="%(message)s", stream=sys.stdout)

    levels = {ROOT_LOGGER_NAME: os.environ.get(KERNEL_LEVEL_ENV) or level}
    for component, level_name in (component_levels or {}).items():
        levels[logger_name(component)] = level_name
    for name, level_name in levels.items():
        logging.getLogger(name).setLevel(_level_number(level_name, default_level))
        _leveled.append(name)

    structlog.configure(
        processors=_processors(json_output),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True


def reset_logging() -> None:
    """Undo configure_logging(). Intended for tests."""
    global _configured
    _configured = False
    while _leveled:
        logging.getLogger(_leveled.pop()).setLevel(logging.NOTSET)
    structlog.reset_defaults()


def create_logger(component: str, **context: Any) -> LoggerProtocol:
    """Build a logger to inject into an Arbiter or one of its components."""
    return Logger(context={"component": component, **context})


def get_current_logger() -> LoggerProtocol:
    """Logger set for the current context, or an unbound default."""
    return _ambient_logger.get() or Logger()


def set_current_logger(logger: LoggerProtocol) -> None:
    _ambient_logger.set(logger)


def get_component_logger(
    component: str,
    logger: Optional[LoggerProtocol] = None,
) -> LoggerProtocol:
    """Bind a component name onto an injected logger.

    Falls back to the context logger when none is injected.
    """
    return (logger or get_current_logger()).bind(component=component)


@contextmanager
def tick_scope(tick: int) -> Iterator[int]:
    """Bind the tick number to every log line emitted inside the scope.

    Uses structlog's contextvars, so loggers created anywhere (including
    inside task and resource hooks) pick it up.
    """
    with structlog.contextvars.bound_contextvars(tick=tick):
        yield tick


__all__ = [
    "KERNEL_LEVEL_ENV",
    "Logger",
    "ROOT_LOGGER_NAME",
    "configure_logging",
    "create_logger",
    "get_component_logger",
    "get_current_logger",
    "logger_name",
    "reset_logging",
    "set_current_logger",
    "tick_scope",
]
