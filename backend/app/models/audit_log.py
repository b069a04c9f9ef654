"""
Audit Log Database Model.

Immutable record of every mutation: who did what to which entity.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Actions: Create, Update, Delete, StatusChange.
    Entity types: Vehicle, Driver, Trip, Maintenance, Fuel, Incident.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # What action was performed
    action = Column(String(50), nullable=False, index=True)

    # Which entity it was performed on
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)

    # Who performed it
    performed_by = Column(Integer, index=True, nullable=False)

    # Additional context (JSON for flexibility)
    details = Column(JSON, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
