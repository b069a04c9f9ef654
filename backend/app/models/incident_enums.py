"""
Incident-related enumerations.
"""

import enum


class IncidentType(str, enum.Enum):
    """Incident type enumeration."""
    ACCIDENT = "Accident"
    TRAFFIC_VIOLATION = "Traffic Violation"
    CARGO_DAMAGE = "Cargo Damage"
    SAFETY_COMPLAINT = "Safety Complaint"
    OTHER = "Other"


class IncidentSeverity(str, enum.Enum):
    """Incident severity enumeration."""
    LOW = "Low"
    MEDIUM = "Medium"
    CRITICAL = "Critical"


# Safety score points deducted per severity
SEVERITY_PENALTIES = {
    IncidentSeverity.LOW: 5,
    IncidentSeverity.MEDIUM: 15,
    IncidentSeverity.CRITICAL: 30,
}
