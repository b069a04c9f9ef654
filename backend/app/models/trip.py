"""
Trip database model.

A trip moves cargo with one vehicle and one driver. Its status is owned by
the trip lifecycle controller.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, Float, Boolean, ForeignKey, DateTime, Enum
from backend.app.db.session import Base
from backend.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    start_odometer / end_odometer are captured from the vehicle at dispatch
    and completion; revenue is computed at completion.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    cargo_weight = Column(Float, nullable=False)

    status = Column(
        Enum(TripStatus, name="trip_status", values_callable=lambda e: [m.value for m in e]),
        default=TripStatus.DRAFT,
        nullable=False,
        index=True
    )

    start_odometer = Column(Integer, nullable=True)
    end_odometer = Column(Integer, nullable=True)
    revenue = Column(Float, default=0.0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
