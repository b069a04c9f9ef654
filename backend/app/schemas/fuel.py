"""
Fuel log schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from backend.app.schemas.common import UtcDateTime


class FuelCreate(BaseModel):
    vehicle_id: int
    liters: float = Field(..., gt=0)
    cost: float = Field(..., ge=0)
    date: Optional[UtcDateTime] = None


class FuelUpdate(BaseModel):
    liters: Optional[float] = Field(None, gt=0)
    cost: Optional[float] = Field(None, ge=0)
    date: Optional[UtcDateTime] = None


class FuelResponse(BaseModel):
    id: int
    vehicle_id: int
    liters: float
    cost: float
    date: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
