"""Event Aggregator - lifecycle event bus.

Records every ArbiterEvent in a bounded history (global and per task) and
fans it out to subscribers. Subscribers only observe; they cannot change
what the scheduler does.

Layering: ONLY imports from arbiter_protocols and arbiter_shared.
"""

import threading
from collections import Counter, defaultdict, deque
from typing import Deque, DefaultDict, Dict, List, Optional, Sequence

from arbiter_protocols import LoggerProtocol

from arbiter_kernel.protocols import EventAggregatorProtocol, EventHandler
from arbiter_kernel.types import ArbiterEvent

# Subscription key that receives every event type
WILDCARD = "*"

_PER_TASK_HISTORY = 100


class EventAggregator(EventAggregatorProtocol):
    """Arbiter event bus with history.

    Usage:
        aggregator = EventAggregator(logger)

        aggregator.subscribe("task.preempted", on_preempted)
        aggregator.subscribe("*", audit)

        aggregator.get_event_history(task="DriveForward", limit=10)
    """

    def __init__(
        self,
        logger: LoggerProtocol,
        history_size: int = 1000,
        enabled: bool = True,
    ) -> None:
        """Initialize event aggregator.

        Args:
            logger: Logger instance
            history_size: Capacity of the global history
            enabled: When False, emit_event() drops every event
        """
        self._logger = logger.bind(component="event_aggregator")
        self._enabled = enabled

        self._handlers: DefaultDict[str, List[EventHandler]] = defaultdict(list)

        self._history: Deque[ArbiterEvent] = deque(maxlen=history_size)
        self._by_task: DefaultDict[str, Deque[ArbiterEvent]] = defaultdict(
            lambda: deque(maxlen=_PER_TASK_HISTORY)
        )
        self._counts: Counter = Counter()

        self._lock = threading.RLock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def emit_event(self, event: ArbiterEvent) -> None:
        """Record an event, then hand it to typed and wildcard subscribers."""
        if not self._enabled:
            return

        with self._lock:
            self._record(event)
            # Snapshot so a handler may (un)subscribe while being called
            typed = list(self._handlers.get(event.event_type, ()))
            wildcard = list(self._handlers.get(WILDCARD, ()))

        self._dispatch(typed, event, "event_handler_error")
        self._dispatch(wildcard, event, "wildcard_handler_error")

    def _record(self, event: ArbiterEvent) -> None:
        self._history.append(event)
        if event.task:
            self._by_task[event.task].append(event)
        self._counts[event.event_type] += 1

    def _dispatch(
        self,
        handlers: Sequence[EventHandler],
        event: ArbiterEvent,
        failure: str,
    ) -> None:
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(failure, event_type=event.event_type, error=str(e))

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Call handler for every event of event_type ("*" for all)."""
        with self._lock:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def get_event_history(
        self,
        task: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
    ) -> List[ArbiterEvent]:
        """Recorded events, newest first.

        Args:
            task: Only events about this task name
            event_type: Only events of this type
            limit: Maximum number of events returned
        """
        with self._lock:
            if task:
                events = list(self._by_task.get(task, ()))
            else:
                events = list(self._history)

        matching = [
            e for e in reversed(events)
            if event_type is None or e.event_type == event_type
        ]
        return matching[:limit]

    def get_event_counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def get_subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, ()))

    def get_history_size(self) -> int:
        """Number of events currently held in the global history."""
        with self._lock:
            return len(self._history)

    def clear_history(self) -> None:
        """Forget recorded events and counts. Subscribers stay."""
        with self._lock:
            self._history.clear()
            self._by_task.clear()
            self._counts.clear()
