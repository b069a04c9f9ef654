"""
Fuel log API endpoints.
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
from backend.app.models.fuel import Fuel
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.fuel import FuelCreate, FuelResponse, FuelUpdate
from backend.app.services.audit import log_action, AuditAction, EntityType
from backend.app.services.notifier import Events, Notifier, get_notifier

router = APIRouter(prefix="/fuel", tags=["Fuel"])


async def get_fuel_log(db: AsyncSession, log_id: int) -> Fuel:
    record = await db.get(Fuel, log_id)
    if not record:
        raise ResourceNotFoundError("Fuel log", log_id)
    return record


@router.get("", response_model=List[FuelResponse])
async def list_fuel(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(Fuel)
    if vehicle_id is not None:
        query = query.where(Fuel.vehicle_id == vehicle_id)

    result = await db.execute(query.order_by(Fuel.date.desc(), Fuel.id.desc()))
    return [FuelResponse.model_validate(f) for f in result.scalars().all()]


@router.post("", response_model=FuelResponse, status_code=status.HTTP_201_CREATED)
async def create_fuel(
    log_data: FuelCreate,
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.DISPATCHER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Record a refuelling. The vehicle must exist."""
    if await db.get(Vehicle, log_data.vehicle_id) is None:
        raise ResourceNotFoundError("Vehicle", log_data.vehicle_id)

    record = Fuel(
        vehicle_id=log_data.vehicle_id,
        liters=log_data.liters,
        cost=log_data.cost,
        date=log_data.date or datetime.utcnow()
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)

    response = FuelResponse.model_validate(record)

    await log_action(
        db, current_user["user_id"], AuditAction.CREATE, EntityType.FUEL, response.id,
        {"vehicle_id": response.vehicle_id, "liters": response.liters, "cost": response.cost}
    )
    await notifier.publish(Events.FUEL_CREATED, response.model_dump(mode="json"))

    return response


@router.put("/{log_id}", response_model=FuelResponse)
async def update_fuel(
    log_data: FuelUpdate,
    log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    record = await get_fuel_log(db, log_id)

    changes = log_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(record, field, value)

    await db.commit()
    await db.refresh(record)

    response = FuelResponse.model_validate(record)
    await log_action(
        db, current_user["user_id"], AuditAction.UPDATE, EntityType.FUEL, log_id,
        {"fields": sorted(changes)}
    )
    return response


@router.delete("/{log_id}", response_model=MessageResponse)
async def delete_fuel(
    log_id: int = Path(..., description="Fuel log ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db)
):
    record = await get_fuel_log(db, log_id)
    vehicle_id = record.vehicle_id

    await db.delete(record)
    await db.commit()

    await log_action(
        db, current_user["user_id"], AuditAction.DELETE, EntityType.FUEL, log_id,
        {"vehicle_id": vehicle_id}
    )
    return MessageResponse(message="Fuel log removed")
