"""
Audit logging service.

Appends an immutable record for every mutation. Recording is best-effort:
a failure is logged and swallowed so it never aborts the mutation itself.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog

logger = logging.getLogger("fleetops.audit")


class AuditAction:
    """Standardized audit action constants."""
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    STATUS_CHANGE = "StatusChange"


class EntityType:
    """Audited entity types."""
    VEHICLE = "Vehicle"
    DRIVER = "Driver"
    TRIP = "Trip"
    MAINTENANCE = "Maintenance"
    FUEL = "Fuel"
    INCIDENT = "Incident"


async def log_action(
    db: AsyncSession,
    actor_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: int,
    details: Optional[Dict[str, Any]] = None
) -> Optional[AuditLog]:
    """
    Record a mutation in the audit log.

    Call after the mutation itself has been committed; this commits the
    audit row on its own.

    Args:
        db: Database session
        actor_id: ID of the user performing the action
        action: Action performed (use AuditAction constants)
        entity_type: Type of the affected entity (use EntityType constants)
        entity_id: ID of the affected entity
        details: Additional context as JSON

    Returns:
        Created AuditLog instance, or None if it could not be recorded
    """
    if not actor_id:
        logger.warning("Audit skipped for %s %s:%s, no actor", action, entity_type, entity_id)
        return None

    audit_log = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        performed_by=actor_id,
        details=details or {}
    )

    try:
        db.add(audit_log)
        await db.commit()
    except Exception:
        logger.exception("Audit log write failed for %s %s:%s", action, entity_type, entity_id)
        await db.rollback()
        return None

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Args:
        db: Database session
        entity_type: Filter by entity type
        entity_id: Filter by entity ID
        action: Filter by action type
        limit: Maximum number of records to return

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
