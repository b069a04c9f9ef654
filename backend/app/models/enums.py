"""
User roles enumeration.

Defines the role types for the fleet operations system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        FLEET_MANAGER: Full control over fleet records, trips and deletions
        DISPATCHER: Creates and dispatches trips, registers vehicles and drivers
        SAFETY_OFFICER: Records incidents and manages driver standing
        FINANCIAL_ANALYST: Read-only access to operational records
        DRIVER: Updates the trips assigned to their driver profile
    """
    FLEET_MANAGER = "FLEET_MANAGER"
    DISPATCHER = "DISPATCHER"
    SAFETY_OFFICER = "SAFETY_OFFICER"
    FINANCIAL_ANALYST = "FINANCIAL_ANALYST"
    DRIVER = "DRIVER"
