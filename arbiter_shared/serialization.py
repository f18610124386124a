"""Time and naming helpers shared by the arbiter packages."""

from datetime import datetime, timezone
from typing import Any, Iterable, List


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return current UTC time as ISO format string."""
    return utc_now().isoformat()


def display_name(obj: Any) -> str:
    """Human-readable name for a task or resource, for logs and events.

    Prefers a ``name`` attribute, falls back to the class name.
    """
    name = getattr(obj, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(obj).__name__


def display_names(objs: Iterable[Any]) -> List[str]:
    """display_name() for each item, sorted for stable log output."""
    return sorted(display_name(obj) for obj in objs)
