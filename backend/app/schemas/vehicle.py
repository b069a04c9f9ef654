"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle management.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from backend.app.models.fleet_enums import VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    model: str = Field(..., min_length=1, max_length=150, description="Vehicle model or name")
    license_plate: str = Field(..., min_length=1, max_length=50, description="Unique license plate")
    max_capacity: float = Field(..., gt=0, description="Maximum cargo capacity in kg")
    odometer: int = Field(0, ge=0, description="Current odometer reading in km")
    acquisition_cost: float = Field(..., ge=0, description="Purchase cost")
    type: str = Field(..., min_length=1, max_length=100, description="Vehicle type (e.g., Truck, Van, Car)")
    region: str = Field(..., min_length=1, max_length=100, description="Operating region")


class VehicleUpdate(BaseModel):
    """
    Schema for updating an existing vehicle.

    A status change is applied through the status engine, which refuses
    moves that would contradict an active trip.
    """
    model: Optional[str] = Field(None, min_length=1, max_length=150)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    max_capacity: Optional[float] = Field(None, gt=0)
    odometer: Optional[int] = Field(None, ge=0)
    acquisition_cost: Optional[float] = Field(None, ge=0)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    region: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[VehicleStatus] = None


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    model: str
    license_plate: str
    max_capacity: float
    odometer: int
    acquisition_cost: float
    type: str
    region: str
    status: VehicleStatus
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
