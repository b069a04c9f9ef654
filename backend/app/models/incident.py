"""
Incident database model.

An incident deducts a severity-based penalty from the driver's safety score.
penalty_applied snapshots that penalty so deletion can reverse it.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum
from backend.app.db.session import Base
from backend.app.models.incident_enums import IncidentType, IncidentSeverity


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)

    type = Column(
        Enum(IncidentType, name="incident_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    severity = Column(
        Enum(IncidentSeverity, name="incident_severity", values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    description = Column(Text, nullable=False)

    # Nominal penalty for the severity, not the amount actually deducted
    penalty_applied = Column(Integer, default=0, nullable=False)

    reported_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Incident(id={self.id}, driver_id={self.driver_id}, severity='{self.severity.value}')>"
