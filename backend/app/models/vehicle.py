"""
Vehicle database model.

Vehicles are registered with capacity and identification details and are
moved between statuses by the status engine.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Enum
from backend.app.db.session import Base
from backend.app.models.fleet_enums import VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    Soft-deleted (is_active=False, status Retired) rather than removed,
    since trips, maintenance and incidents keep referencing it.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    model = Column(String(150), nullable=False)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    type = Column(String(100), nullable=False)  # e.g., "Truck", "Van", "Car"
    region = Column(String(100), nullable=False)

    # Capacity (kg) and usage (km)
    max_capacity = Column(Float, nullable=False)
    odometer = Column(Integer, default=0, nullable=False)
    acquisition_cost = Column(Float, nullable=False)

    status = Column(
        Enum(VehicleStatus, name="vehicle_status", values_callable=lambda e: [m.value for m in e]),
        default=VehicleStatus.AVAILABLE,
        nullable=False,
        index=True
    )
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
