"""Event handling - lifecycle event bus and history."""

from arbiter_kernel.events.aggregator import EventAggregator

__all__ = ["EventAggregator"]
