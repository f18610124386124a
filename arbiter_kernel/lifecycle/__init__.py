"""Lifecycle management - pending queue and active set.

This module implements the arbiter's task bookkeeping:
- Submission and resubmission
- State machine transitions
- Ordered snapshots for each tick phase
"""

from arbiter_kernel.lifecycle.manager import InvalidTransitionError, LifecycleManager

__all__ = ["InvalidTransitionError", "LifecycleManager"]
