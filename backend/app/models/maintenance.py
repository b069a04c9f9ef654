"""
Maintenance log database model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey
from backend.app.db.session import Base


class Maintenance(Base):
    """Service record for a vehicle. Creating one puts the vehicle In Shop."""
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    service_type = Column(String(150), nullable=False)
    cost = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Maintenance(id={self.id}, vehicle_id={self.vehicle_id}, service='{self.service_type}')>"
