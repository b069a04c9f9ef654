"""
Maintenance log schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from backend.app.schemas.common import UtcDateTime


class MaintenanceCreate(BaseModel):
    """Schema for logging maintenance. The vehicle is moved In Shop."""
    vehicle_id: int
    service_type: str = Field(..., min_length=1, max_length=150)
    cost: float = Field(..., ge=0)
    notes: Optional[str] = None
    date: Optional[UtcDateTime] = None


class MaintenanceUpdate(BaseModel):
    service_type: Optional[str] = Field(None, min_length=1, max_length=150)
    cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    date: Optional[UtcDateTime] = None


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    service_type: str
    cost: float
    notes: Optional[str]
    date: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
