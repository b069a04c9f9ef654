"""
Trip schemas.

Schemas for trip creation, status updates and visibility.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from backend.app.models.trip_enums import TripStatus


class TripCreate(BaseModel):
    """
    Schema for creating a trip.

    status may be Draft (default) or Dispatched; a Dispatched trip commits
    the vehicle and driver immediately.
    """
    vehicle_id: int
    driver_id: int
    cargo_weight: float = Field(..., ge=0, description="Cargo weight in kg")
    status: Optional[str] = Field(None, description="Draft or Dispatched")
    revenue: Optional[float] = Field(None, ge=0)


class TripUpdate(BaseModel):
    """
    Schema for requesting a trip status transition.

    status is free text: a transition outside the lifecycle table is a
    no-op rather than an error.
    """
    status: Optional[str] = None
    end_odometer: Optional[int] = Field(None, ge=0, description="Required to complete a trip")


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    vehicle_id: int
    driver_id: int
    cargo_weight: float
    status: TripStatus
    start_odometer: Optional[int]
    end_odometer: Optional[int]
    revenue: float
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
