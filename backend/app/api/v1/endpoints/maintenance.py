"""
Maintenance log API endpoints.

Logging maintenance sends the vehicle to the shop. The status engine runs
before the record is added, so a refused transition leaves no log behind.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import require_role
from backend.app.models.enums import UserRole
from backend.app.models.maintenance import Maintenance
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.maintenance import MaintenanceCreate, MaintenanceResponse, MaintenanceUpdate
from backend.app.services.audit import log_action, AuditAction, EntityType
from backend.app.services.notifier import Events, Notifier, get_notifier
from backend.app.services.status_engine import StatusEngine

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


async def get_maintenance_log(db: AsyncSession, log_id: int) -> Maintenance:
    record = await db.get(Maintenance, log_id)
    if not record:
        raise ResourceNotFoundError("Maintenance log", log_id)
    return record


@router.get("", response_model=List[MaintenanceResponse])
async def list_maintenance(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Maintenance history, most recent service date first."""
    query = select(Maintenance)
    if vehicle_id is not None:
        query = query.where(Maintenance.vehicle_id == vehicle_id)

    result = await db.execute(query.order_by(Maintenance.date.desc(), Maintenance.id.desc()))
    return [MaintenanceResponse.model_validate(m) for m in result.scalars().all()]


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance(
    log_data: MaintenanceCreate,
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.DISPATCHER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Log maintenance and move the vehicle In Shop.

    Refused while the vehicle is On Trip.
    """
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == log_data.vehicle_id, Vehicle.is_active == True)
    )
    if result.scalar_one_or_none() is None:
        raise ResourceNotFoundError("Vehicle", log_data.vehicle_id)

    engine = StatusEngine(db, notifier)
    await engine.log_maintenance(log_data.vehicle_id)

    record = Maintenance(
        vehicle_id=log_data.vehicle_id,
        service_type=log_data.service_type,
        cost=log_data.cost,
        notes=log_data.notes,
        date=log_data.date or datetime.utcnow()
    )
    db.add(record)

    try:
        await db.commit()
    except Exception:
        engine.discard_pending()
        raise
    await db.refresh(record)

    response = MaintenanceResponse.model_validate(record)

    await log_action(
        db, current_user["user_id"], AuditAction.CREATE, EntityType.MAINTENANCE, response.id,
        {"vehicle_id": response.vehicle_id, "service_type": response.service_type, "cost": response.cost}
    )
    await engine.publish_pending()
    await notifier.publish(Events.MAINTENANCE_CREATED, response.model_dump(mode="json"))

    return response


@router.put("/{log_id}", response_model=MaintenanceResponse)
async def update_maintenance(
    log_data: MaintenanceUpdate,
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """Correct a maintenance record. The vehicle's status is not touched."""
    record = await get_maintenance_log(db, log_id)

    changes = log_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(record, field, value)

    await db.commit()
    await db.refresh(record)

    response = MaintenanceResponse.model_validate(record)
    await log_action(
        db, current_user["user_id"], AuditAction.UPDATE, EntityType.MAINTENANCE, log_id,
        {"fields": sorted(changes)}
    )
    return response


@router.delete("/{log_id}", response_model=MessageResponse)
async def delete_maintenance(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    """Remove a maintenance record permanently."""
    record = await get_maintenance_log(db, log_id)
    vehicle_id = record.vehicle_id

    await db.delete(record)
    await db.commit()

    await log_action(
        db, current_user["user_id"], AuditAction.DELETE, EntityType.MAINTENANCE, log_id,
        {"vehicle_id": vehicle_id}
    )
    return MessageResponse(message="Maintenance log removed")
