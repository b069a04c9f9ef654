"""
Trip API endpoints.

Thin HTTP layer over the trip lifecycle controller. Users with the DRIVER
role only ever see and update the trips of their own driver profile.
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
from backend.app.models.trip_enums import TripStatus
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.trip import TripCreate, TripResponse, TripUpdate
from backend.app.services.notifier import Notifier, get_notifier
from backend.app.services.trip_lifecycle import TripLifecycle

router = APIRouter(prefix="/trips", tags=["Trips"])


async def driver_profile_id(db: AsyncSession, current_user: dict) -> Optional[int]:
    """
    Driver profile linked to a DRIVER user, None for any other role.

    Raises:
        ResourceNotFoundError: DRIVER user without an active profile
    """
    if current_user.get("role") != UserRole.DRIVER.value:
        return None

    result = await db.execute(
        select(Driver.id).where(
            Driver.user_id == current_user["user_id"],
            Driver.is_active == True
        )
    )
    driver_id = result.scalars().first()
    if driver_id is None:
        raise ResourceNotFoundError("Driver profile")
    return driver_id


@router.get("", response_model=List[TripResponse])
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status", description="Filter by trip status"),
    driver_id: Optional[int] = Query(None, description="Filter by driver"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """List active trips, newest first."""
    own_driver_id = await driver_profile_id(db, current_user)
    if own_driver_id is not None:
        driver_id = own_driver_id

    lifecycle = TripLifecycle(db, notifier, current_user)
    trips = await lifecycle.list_trips(status=status_filter, driver_id=driver_id)
    return [TripResponse.model_validate(trip) for trip in trips]


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    own_driver_id = await driver_profile_id(db, current_user)

    trip = await TripLifecycle(db, notifier, current_user).get_trip(trip_id)
    if own_driver_id is not None and trip.driver_id != own_driver_id:
        raise ResourceNotFoundError("Trip", trip_id)

    return TripResponse.model_validate(trip)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(require_role([UserRole.DISPATCHER, UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Create a trip as Draft or Dispatched.

    Rejected without writing anything if the cargo exceeds the vehicle's
    capacity, the driver is not certified for the vehicle type, or (for
    Dispatched) the vehicle or driver cannot be dispatched.
    """
    return await TripLifecycle(db, notifier, current_user).create(trip_data)


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_role([
        UserRole.DISPATCHER, UserRole.FLEET_MANAGER, UserRole.DRIVER
    ])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Request a status transition.

    Completing a trip requires end_odometer. Requests outside the
    lifecycle (e.g. re-dispatching a completed trip) leave the status as is.
    """
    lifecycle = TripLifecycle(db, notifier, current_user)

    own_driver_id = await driver_profile_id(db, current_user)
    if own_driver_id is not None:
        trip = await lifecycle.get_trip(trip_id)
        if trip.driver_id != own_driver_id:
            raise ResourceNotFoundError("Trip", trip_id)

    return await lifecycle.update(trip_id, trip_data)


@router.delete("/{trip_id}", response_model=MessageResponse)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Soft-delete a trip. A Dispatched trip is cancelled first."""
    await TripLifecycle(db, notifier, current_user).soft_delete(trip_id)
    return MessageResponse(message="Trip removed")
