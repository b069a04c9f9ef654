"""
Incident schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from backend.app.models.incident_enums import IncidentType, IncidentSeverity
from backend.app.schemas.common import UtcDateTime


class IncidentCreate(BaseModel):
    """Schema for reporting an incident against a driver."""
    driver_id: int
    vehicle_id: Optional[int] = None
    type: IncidentType
    severity: IncidentSeverity
    description: str = Field(..., min_length=1)
    date: Optional[UtcDateTime] = None


class IncidentResponse(BaseModel):
    id: int
    driver_id: int
    vehicle_id: Optional[int]
    type: IncidentType
    severity: IncidentSeverity
    description: str
    penalty_applied: int
    reported_by: Optional[int]
    date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class IncidentCreateResponse(IncidentResponse):
    """Incident plus the driver's score after the penalty."""
    driver_safety_score: int
