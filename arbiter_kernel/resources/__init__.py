"""Resource management - registry and exclusive ownership.

This module implements resource tracking and enforcement:
- Registration and default tasks
- Exclusive ownership by active tasks
- Usage snapshot
"""

from arbiter_kernel.resources.tracker import OwnershipConflictError, OwnershipTable

__all__ = ["OwnershipConflictError", "OwnershipTable"]
