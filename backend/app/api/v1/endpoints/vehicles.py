"""
Vehicle registry API endpoints.

Status changes are never written here directly: they go through the
status engine, which refuses moves that contradict an active trip.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import FieldValidationError, ResourceNotFoundError
from backend.app.core.guards import require_role
from backend.app.models.enums import UserRole
from backend.app.models.fleet_enums import VehicleStatus
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from backend.app.services.audit import log_action, AuditAction, EntityType
from backend.app.services.notifier import Events, Notifier, get_notifier
from backend.app.services.status_engine import StatusEngine

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


async def get_active_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.is_active == True)
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def ensure_plate_free(db: AsyncSession, license_plate: str, vehicle_id: int = None):
    query = select(Vehicle.id).where(Vehicle.license_plate == license_plate)
    if vehicle_id is not None:
        query = query.where(Vehicle.id != vehicle_id)

    result = await db.execute(query)
    if result.scalars().first() is not None:
        raise FieldValidationError(
            f"A vehicle with license plate {license_plate} already exists",
            details={"license_plate": license_plate}
        )


@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(
    type: Optional[str] = Query(None, description="Filter by vehicle type"),
    status_filter: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    region: Optional[str] = Query(None, description="Filter by region"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List active vehicles, newest first."""
    query = select(Vehicle).where(Vehicle.is_active == True)

    if type:
        query = query.where(Vehicle.type == type)
    if status_filter:
        query = query.where(Vehicle.status == status_filter)
    if region:
        query = query.where(Vehicle.region == region)

    result = await db.execute(query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc()))
    return [VehicleResponse.model_validate(v) for v in result.scalars().all()]


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return VehicleResponse.model_validate(await get_active_vehicle(db, vehicle_id))


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.DISPATCHER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Register a vehicle. New vehicles start Available."""
    await ensure_plate_free(db, vehicle_data.license_plate)

    vehicle = Vehicle(**vehicle_data.model_dump(), status=VehicleStatus.AVAILABLE)
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)

    response = VehicleResponse.model_validate(vehicle)

    await log_action(
        db, current_user["user_id"], AuditAction.CREATE, EntityType.VEHICLE, response.id,
        {"license_plate": response.license_plate, "type": response.type}
    )
    await notifier.publish(Events.VEHICLE_CREATED, response.model_dump(mode="json"))

    return response


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.DISPATCHER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Update vehicle details.

    The odometer may only move forward. A status change is applied through
    the status engine (On Trip cannot be set by hand).
    """
    vehicle = await get_active_vehicle(db, vehicle_id)
    previous_status = vehicle.status

    changes = vehicle_data.model_dump(exclude_unset=True, exclude_none=True)
    new_status = changes.pop("status", None)

    engine = StatusEngine(db, notifier)

    if "odometer" in changes and changes["odometer"] != vehicle.odometer:
        if changes["odometer"] < vehicle.odometer:
            raise FieldValidationError(
                "Odometer reading cannot decrease",
                details={"current": vehicle.odometer, "requested": changes["odometer"]}
            )
        # Trip completion sets the odometer from the trip's end reading
        if await engine.count_active_trips(vehicle_id=vehicle.id) > 0:
            raise FieldValidationError(
                "Odometer cannot be edited while the vehicle has an active dispatched trip",
                details={"current": vehicle.odometer, "requested": changes["odometer"]}
            )

    if "license_plate" in changes and changes["license_plate"] != vehicle.license_plate:
        await ensure_plate_free(db, changes["license_plate"], vehicle.id)

    for field, value in changes.items():
        setattr(vehicle, field, value)

    if new_status is not None:
        await engine.set_vehicle_status(vehicle.id, new_status)

    try:
        await db.commit()
    except Exception:
        engine.discard_pending()
        raise
    await db.refresh(vehicle)

    response = VehicleResponse.model_validate(vehicle)
    status_changed = response.status != previous_status

    if changes:
        await log_action(
            db, current_user["user_id"], AuditAction.UPDATE, EntityType.VEHICLE, vehicle_id,
            {"fields": sorted(changes)}
        )
    if status_changed:
        await log_action(
            db, current_user["user_id"], AuditAction.STATUS_CHANGE, EntityType.VEHICLE, vehicle_id,
            {"from": previous_status.value, "to": response.status.value}
        )

    await engine.publish_pending()
    if not status_changed:
        await notifier.publish(Events.VEHICLE_UPDATED, response.model_dump(mode="json"))

    return response


@router.delete("/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Retire a vehicle (soft delete). Refused while the vehicle is On Trip."""
    await get_active_vehicle(db, vehicle_id)

    engine = StatusEngine(db, notifier)
    await engine.retire_vehicle(vehicle_id)

    try:
        await db.commit()
    except Exception:
        engine.discard_pending()
        raise

    await log_action(
        db, current_user["user_id"], AuditAction.DELETE, EntityType.VEHICLE, vehicle_id,
        {"note": "Soft deleted"}
    )
    await engine.publish_pending()

    return MessageResponse(message="Vehicle removed")
