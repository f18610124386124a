"""Arbiter settings.

Runtime configuration for the arbiter, loaded from environment variables
(ARBITER_LOG_LEVEL=DEBUG) or a .env file. Prefer passing an ArbiterSettings
instance to Arbiter() over the global getter.
"""

from typing import TYPE_CHECKING, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from arbiter_protocols import LoggerProtocol


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ArbiterSettings(BaseSettings):
    """Arbiter configuration."""

    log_level: str = "INFO"
    """Default log level passed to configure_logging()."""

    json_logs: bool = True
    """Render logs as JSON; console rendering when False."""

    emit_events: bool = True
    """Record lifecycle events in the event aggregator.

    When disabled, subscribers receive nothing and history stays empty.
    Scheduling behavior is unaffected.
    """

    event_history_size: int = Field(default=1000, ge=1)
    """Ring buffer size for event history."""

    strict_default_tasks: bool = False
    """Reject default tasks whose required set is not exactly {resource}.

    When disabled the mismatch is only logged as a warning.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARBITER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def log_status(self, logger: "LoggerProtocol") -> None:
        """Log current settings using structured logging."""
        logger.info(
            "arbiter_settings",
            log_level=self.log_level,
            json_logs=self.json_logs,
            emit_events=self.emit_events,
            event_history_size=self.event_history_size,
            strict_default_tasks=self.strict_default_tasks,
        )

    def validate_settings(self) -> list[str]:
        """Validate settings that pydantic cannot check on its own.

        Returns:
            List of validation errors (empty if all valid)
        """
        errors = []

        if self.log_level.upper() not in _LOG_LEVELS:
            errors.append(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )

        return errors


# Lazy initialization - no module-level instantiation
_arbiter_settings: Optional[ArbiterSettings] = None


def get_arbiter_settings() -> ArbiterSettings:
    """Get the global settings instance, creating it lazily."""
    global _arbiter_settings
    if _arbiter_settings is None:
        _arbiter_settings = ArbiterSettings()
    return _arbiter_settings


def set_arbiter_settings(settings: ArbiterSettings) -> None:
    """Set the global settings instance.

    Use at bootstrap time to inject pre-configured settings.
    """
    global _arbiter_settings
    _arbiter_settings = settings


def reset_arbiter_settings() -> None:
    """Force re-creation on next get_arbiter_settings() call."""
    global _arbiter_settings
    _arbiter_settings = None


def configure_from_settings(
    settings: Optional[ArbiterSettings] = None,
) -> "LoggerProtocol":
    """Configure logging from settings and return a logger for the arbiter.

    Args:
        settings: Settings to apply (uses global settings if None)

    Returns:
        Logger bound to component "arbiter", ready to pass to Arbiter()
    """
    from arbiter_shared.logging import configure_logging, create_logger

    settings = settings or get_arbiter_settings()
    configure_logging(level=settings.log_level, json_output=settings.json_logs)
    return create_logger("arbiter")
