"""
Audit trail API endpoints (Fleet Manager only).
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_fleet_manager
from backend.app.schemas.audit import AuditLogResponse
from backend.app.services.audit import get_audit_trail

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=List[AuditLogResponse])
async def list_audit_logs(
    entity_type: Optional[str] = Query(None, description="Vehicle, Driver, Trip, Maintenance, Fuel or Incident"),
    entity_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None, description="Create, Update, Delete or StatusChange"),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_fleet_manager),
    db: AsyncSession = Depends(get_db)
):
    """Most recent audit entries first."""
    logs = await get_audit_trail(
        db, entity_type=entity_type, entity_id=entity_id, action=action, limit=limit
    )
    return [AuditLogResponse.model_validate(log) for log in logs]
