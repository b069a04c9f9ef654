"""
Driver roster API endpoints.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import require_role
from backend.app.models.driver import Driver
from backend.app.models.enums import UserRole
from backend.app.models.fleet_enums import DriverStatus
from backend.app.models.user import User
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.driver import DriverCreate, DriverResponse, DriverUpdate
from backend.app.services.audit import log_action, AuditAction, EntityType
from backend.app.services.notifier import Events, Notifier, get_notifier
from backend.app.services.status_engine import StatusEngine

router = APIRouter(prefix="/drivers", tags=["Drivers"])


async def get_active_driver(db: AsyncSession, driver_id: int) -> Driver:
    result = await db.execute(
        select(Driver).where(Driver.id == driver_id, Driver.is_active == True)
    )
    driver = result.scalar_one_or_none()
    if not driver:
        raise ResourceNotFoundError("Driver", driver_id)
    return driver


async def ensure_user_exists(db: AsyncSession, user_id: Optional[int]):
    if user_id is not None and await db.get(User, user_id) is None:
        raise ResourceNotFoundError("User", user_id)


@router.get("", response_model=List[DriverResponse])
async def list_drivers(
    status_filter: Optional[DriverStatus] = Query(None, alias="status", description="Filter by status"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List active drivers, newest first."""
    query = select(Driver).where(Driver.is_active == True)
    if status_filter:
        query = query.where(Driver.status == status_filter)

    result = await db.execute(query.order_by(Driver.created_at.desc(), Driver.id.desc()))
    return [DriverResponse.model_validate(d) for d in result.scalars().all()]


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return DriverResponse.model_validate(await get_active_driver(db, driver_id))


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.DISPATCHER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Register a driver: Off Duty, safety score 100, completion rate 100."""
    await ensure_user_exists(db, driver_data.user_id)

    driver = Driver(
        **driver_data.model_dump(),
        status=DriverStatus.OFF_DUTY,
        safety_score=100,
        completion_rate=100.0
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)

    response = DriverResponse.model_validate(driver)

    await log_action(
        db, current_user["user_id"], AuditAction.CREATE, EntityType.DRIVER, response.id,
        {"name": response.name}
    )
    await notifier.publish(Events.DRIVER_CREATED, response.model_dump(mode="json"))

    return response


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: DriverUpdate,
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_role([
        UserRole.FLEET_MANAGER, UserRole.DISPATCHER, UserRole.SAFETY_OFFICER
    ])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Update driver details.

    A status change is applied through the status engine; a driver on an
    active trip cannot be suspended or taken off duty by hand.
    """
    driver = await get_active_driver(db, driver_id)
    previous_status = driver.status

    changes = driver_data.model_dump(exclude_unset=True, exclude_none=True)
    new_status = changes.pop("status", None)

    if "user_id" in changes:
        await ensure_user_exists(db, changes["user_id"])

    for field, value in changes.items():
        setattr(driver, field, value)

    engine = StatusEngine(db, notifier)
    if new_status is not None:
        await engine.set_driver_status(driver.id, new_status)

    try:
        await db.commit()
    except Exception:
        engine.discard_pending()
        raise
    await db.refresh(driver)

    response = DriverResponse.model_validate(driver)
    status_changed = response.status != previous_status

    if changes:
        await log_action(
            db, current_user["user_id"], AuditAction.UPDATE, EntityType.DRIVER, driver_id,
            {"fields": sorted(changes)}
        )
    if status_changed:
        await log_action(
            db, current_user["user_id"], AuditAction.STATUS_CHANGE, EntityType.DRIVER, driver_id,
            {"from": previous_status.value, "to": response.status.value}
        )

    await engine.publish_pending()
    if not status_changed:
        await notifier.publish(Events.DRIVER_UPDATED, response.model_dump(mode="json"))

    return response


@router.delete("/{driver_id}", response_model=MessageResponse)
async def delete_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Deactivate a driver (soft delete, Suspended). Refused while On Duty."""
    await get_active_driver(db, driver_id)

    engine = StatusEngine(db, notifier)
    await engine.deactivate_driver(driver_id)

    try:
        await db.commit()
    except Exception:
        engine.discard_pending()
        raise

    await log_action(
        db, current_user["user_id"], AuditAction.DELETE, EntityType.DRIVER, driver_id,
        {"note": "Soft deleted"}
    )
    await engine.publish_pending()

    return MessageResponse(message="Driver removed")
