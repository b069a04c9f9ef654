"""
Vehicle and driver status enumerations.

Values are the display strings consumed by the dashboard.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    AVAILABLE = "Available"  # Ready for dispatch
    ON_TRIP = "On Trip"  # Assigned to a dispatched trip
    IN_SHOP = "In Shop"  # Under maintenance
    RETIRED = "Retired"  # Soft-deleted, terminal


class DriverStatus(str, enum.Enum):
    """Driver status enumeration."""
    OFF_DUTY = "Off Duty"  # Free to be assigned
    ON_DUTY = "On Duty"  # Driving a dispatched trip
    SUSPENDED = "Suspended"  # Blocked from assignment
