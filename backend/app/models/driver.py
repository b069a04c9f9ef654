"""
Driver database model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Enum, JSON, ForeignKey
from backend.app.db.session import Base
from backend.app.models.fleet_enums import DriverStatus


class Driver(Base):
    """
    Driver model.

    safety_score starts at 100 and moves with incident penalties.
    allowed_vehicle_type lists the vehicle types the driver is certified for.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(150), nullable=False)

    license_expiry_date = Column(DateTime, nullable=False)
    allowed_vehicle_type = Column(JSON, nullable=False, default=list)

    safety_score = Column(Integer, default=100, nullable=False)
    completion_rate = Column(Float, default=100.0, nullable=False)

    status = Column(
        Enum(DriverStatus, name="driver_status", values_callable=lambda e: [m.value for m in e]),
        default=DriverStatus.OFF_DUTY,
        nullable=False,
        index=True
    )

    # Login account of the driver, if any
    user_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.name}', status='{self.status.value}')>"
