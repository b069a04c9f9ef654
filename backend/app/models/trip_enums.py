"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "Draft"  # Planned, vehicle and driver not yet committed
    DISPATCHED = "Dispatched"  # Vehicle On Trip, driver On Duty
    COMPLETED = "Completed"  # Terminal, revenue computed
    CANCELLED = "Cancelled"  # Terminal


# Statuses a trip may be created in
INITIAL_TRIP_STATUSES = (TripStatus.DRAFT, TripStatus.DISPATCHED)

# No transition leaves these
TERMINAL_TRIP_STATUSES = (TripStatus.COMPLETED, TripStatus.CANCELLED)
