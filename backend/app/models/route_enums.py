"""
Route and route-stop enumerations.
"""

import enum


class RouteStatus(str, enum.Enum):
    """Route status. COMPLETED once every stop is resolved."""
    PLANNING = "Planning"
    COMPLETED = "Completed"


class StopStatus(str, enum.Enum):
    """Route stop status enumeration."""
    PENDING = "Pending"  # Not yet reached
    COMPLETED = "Completed"  # Reached on time
    LATE = "Late"  # Reached after ETA


RESOLVED_STOP_STATUSES = (StopStatus.COMPLETED, StopStatus.LATE)
