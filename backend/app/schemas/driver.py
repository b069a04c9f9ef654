"""
Driver Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from backend.app.models.fleet_enums import DriverStatus
from backend.app.schemas.common import UtcDateTime


class DriverCreate(BaseModel):
    """Schema for registering a new driver. Drivers start Off Duty with a score of 100."""
    name: str = Field(..., min_length=1, max_length=150)
    license_expiry_date: UtcDateTime = Field(..., description="License expiry (ISO 8601)")
    allowed_vehicle_type: List[str] = Field(..., min_length=1, description="Vehicle types the driver is certified for")
    user_id: Optional[int] = Field(None, description="Login account of the driver")


class DriverUpdate(BaseModel):
    """
    Schema for updating a driver.

    A status change is applied through the status engine; On Duty is only
    ever set by dispatching a trip.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    license_expiry_date: Optional[UtcDateTime] = None
    allowed_vehicle_type: Optional[List[str]] = Field(None, min_length=1)
    safety_score: Optional[int] = Field(None, ge=0)
    completion_rate: Optional[float] = Field(None, ge=0, le=100)
    status: Optional[DriverStatus] = None
    user_id: Optional[int] = None


class DriverResponse(BaseModel):
    """Schema for driver response."""
    id: int
    name: str
    license_expiry_date: datetime
    allowed_vehicle_type: List[str]
    safety_score: int
    completion_rate: float
    status: DriverStatus
    user_id: Optional[int]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
