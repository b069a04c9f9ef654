"""
Vehicle / driver status transition engine.

The only code allowed to change Vehicle.status and Driver.status. Trip and
maintenance commands call into it; the generic update and delete endpoints
go through its reconciling operations instead of setting status directly.

Every operation checks all of its preconditions before writing, so a
rejected transition leaves nothing behind. Writes are flushed into the
caller's session but never committed here: the caller commits them together
with its own entity (trip, maintenance log) in one transaction, then calls
publish_pending() so change events only go out for committed state.
"""

import logging
from datetime import datetime
from typing import Any, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InvalidStateError, LicenseExpiredError, ResourceNotFoundError
)
from backend.app.models.driver import Driver
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.driver import DriverResponse
from backend.app.schemas.vehicle import VehicleResponse
from backend.app.services.notifier import Events, Notifier, serialize

logger = logging.getLogger("fleetops.status_engine")


class StatusEngine:
    """
    Status transitions for vehicles and drivers.

    Usage:
        engine = StatusEngine(db, notifier)
        vehicle, driver = await engine.dispatch(vehicle_id, driver_id)
        await db.commit()
        await engine.publish_pending()
    """

    def __init__(self, db: AsyncSession, notifier: Notifier):
        self.db = db
        self.notifier = notifier
        self._pending: List[Tuple[str, Any]] = []

    # Loading

    async def _get_vehicle(self, vehicle_id: int) -> Vehicle:
        # Row lock on PostgreSQL; SQLite ignores FOR UPDATE
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.id == vehicle_id).with_for_update()
        )
        vehicle = result.scalar_one_or_none()
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    async def _get_driver(self, driver_id: int) -> Driver:
        result = await self.db.execute(
            select(Driver).where(Driver.id == driver_id).with_for_update()
        )
        driver = result.scalar_one_or_none()
        if not driver:
            raise ResourceNotFoundError("Driver", driver_id)
        return driver

    async def count_active_trips(self, vehicle_id: int = None, driver_id: int = None) -> int:
        """
        Count Dispatched, non-deleted trips holding a vehicle or a driver.

        Should be 0 or 1 (dispatch requires an Available vehicle and an
        Off Duty driver).
        """
        query = select(func.count(Trip.id)).where(
            Trip.status == TripStatus.DISPATCHED,
            Trip.is_active == True
        )
        if vehicle_id is not None:
            query = query.where(Trip.vehicle_id == vehicle_id)
        if driver_id is not None:
            query = query.where(Trip.driver_id == driver_id)

        result = await self.db.execute(query)
        return result.scalar()

    # Events

    def _queue_vehicle(self, vehicle: Vehicle):
        self._pending.append((Events.VEHICLE_UPDATED, serialize(VehicleResponse, vehicle)))

    def _queue_driver(self, driver: Driver):
        self._pending.append((Events.DRIVER_UPDATED, serialize(DriverResponse, driver)))

    async def publish_pending(self) -> None:
        """Push the change events of the committed transitions."""
        events, self._pending = self._pending, []
        for event, payload in events:
            await self.notifier.publish(event, payload)

    def discard_pending(self) -> None:
        """Drop queued events after the caller rolled back."""
        self._pending = []

    # Trip transitions

    async def dispatch(self, vehicle_id: int, driver_id: int) -> Tuple[Vehicle, Driver]:
        """
        Commit a vehicle and a driver to a trip.

        Preconditions, checked in order:
        - vehicle is Available
        - driver license has not expired
        - driver is Off Duty

        Cargo capacity and driver certification are trip rules and must be
        checked by the caller first.

        Returns:
            (vehicle, driver) after the transition (On Trip / On Duty)

        Raises:
            InvalidStateError, LicenseExpiredError, ResourceNotFoundError
        """
        vehicle = await self._get_vehicle(vehicle_id)
        driver = await self._get_driver(driver_id)

        if vehicle.status != VehicleStatus.AVAILABLE:
            raise InvalidStateError(
                "Vehicle is not currently available for dispatch",
                details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
            )

        if driver.license_expiry_date < datetime.utcnow():
            raise LicenseExpiredError(driver.id)

        if driver.status != DriverStatus.OFF_DUTY:
            raise InvalidStateError(
                f"Driver cannot be assigned because they are currently {driver.status.value}",
                details={"driver_id": driver.id, "status": driver.status.value}
            )

        vehicle.status = VehicleStatus.ON_TRIP
        driver.status = DriverStatus.ON_DUTY
        await self.db.flush()

        logger.info("Dispatched vehicle %s with driver %s", vehicle.id, driver.id)
        self._queue_vehicle(vehicle)
        self._queue_driver(driver)

        return vehicle, driver

    async def complete(self, vehicle_id: int, driver_id: int, end_odometer: int) -> Tuple[Vehicle, Driver]:
        """
        Release a vehicle and driver at the end of a trip.

        The caller guarantees end_odometer is not behind the trip's start
        reading; it is written to the vehicle as-is.
        """
        vehicle = await self._get_vehicle(vehicle_id)
        driver = await self._get_driver(driver_id)

        vehicle.status = VehicleStatus.AVAILABLE
        vehicle.odometer = end_odometer
        driver.status = DriverStatus.OFF_DUTY
        await self.db.flush()

        logger.info("Completed trip for vehicle %s (odometer %s), driver %s", vehicle.id, end_odometer, driver.id)
        self._queue_vehicle(vehicle)
        self._queue_driver(driver)

        return vehicle, driver

    async def cancel(self, vehicle_id: int, driver_id: int) -> None:
        """Release a vehicle and driver from a cancelled trip. The odometer is left alone."""
        vehicle = await self._get_vehicle(vehicle_id)
        driver = await self._get_driver(driver_id)

        vehicle.status = VehicleStatus.AVAILABLE
        driver.status = DriverStatus.OFF_DUTY
        await self.db.flush()

        logger.info("Released vehicle %s and driver %s from cancelled trip", vehicle.id, driver.id)
        self._queue_vehicle(vehicle)
        self._queue_driver(driver)

    # Maintenance

    async def log_maintenance(self, vehicle_id: int) -> Vehicle:
        """Send a vehicle to the shop. Refused while the vehicle is On Trip."""
        vehicle = await self._get_vehicle(vehicle_id)

        if vehicle.status == VehicleStatus.ON_TRIP:
            raise InvalidStateError(
                "Cannot log maintenance for a vehicle currently On Trip",
                details={"vehicle_id": vehicle.id}
            )

        vehicle.status = VehicleStatus.IN_SHOP
        await self.db.flush()

        self._queue_vehicle(vehicle)
        return vehicle

    # Manual status changes and soft deletes

    async def set_vehicle_status(self, vehicle_id: int, status: VehicleStatus) -> Vehicle:
        """
        Manually move a vehicle to Available, In Shop or Retired.

        On Trip is only reachable through dispatch. A vehicle held by an
        active Dispatched trip cannot be moved; a stale On Trip with no
        such trip may be reconciled.
        """
        vehicle = await self._get_vehicle(vehicle_id)

        if status == vehicle.status:
            return vehicle

        if status == VehicleStatus.ON_TRIP:
            raise InvalidStateError(
                "A vehicle is set On Trip only by dispatching a trip",
                details={"vehicle_id": vehicle.id}
            )

        if await self.count_active_trips(vehicle_id=vehicle.id) > 0:
            raise InvalidStateError(
                "Vehicle has an active dispatched trip; complete or cancel it first",
                details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
            )

        if vehicle.status == VehicleStatus.ON_TRIP:
            logger.warning("Reconciling vehicle %s: On Trip without an active trip", vehicle.id)

        vehicle.status = status
        await self.db.flush()

        self._queue_vehicle(vehicle)
        return vehicle

    async def set_driver_status(self, driver_id: int, status: DriverStatus) -> Driver:
        """
        Manually move a driver to Off Duty or Suspended.

        On Duty is only reachable through dispatch; a driver on an active
        Dispatched trip cannot be moved.
        """
        driver = await self._get_driver(driver_id)

        if status == driver.status:
            return driver

        if status == DriverStatus.ON_DUTY:
            raise InvalidStateError(
                "A driver is set On Duty only by dispatching a trip",
                details={"driver_id": driver.id}
            )

        if await self.count_active_trips(driver_id=driver.id) > 0:
            raise InvalidStateError(
                "Driver has an active dispatched trip; complete or cancel it first",
                details={"driver_id": driver.id, "status": driver.status.value}
            )

        if driver.status == DriverStatus.ON_DUTY:
            logger.warning("Reconciling driver %s: On Duty without an active trip", driver.id)

        driver.status = status
        await self.db.flush()

        self._queue_driver(driver)
        return driver

    async def retire_vehicle(self, vehicle_id: int) -> Vehicle:
        """Soft-delete a vehicle: inactive and Retired. Refused while On Trip."""
        vehicle = await self._get_vehicle(vehicle_id)

        if vehicle.status == VehicleStatus.ON_TRIP:
            raise InvalidStateError(
                "Cannot delete a vehicle currently On Trip",
                details={"vehicle_id": vehicle.id}
            )

        vehicle.is_active = False
        vehicle.status = VehicleStatus.RETIRED
        await self.db.flush()

        self._pending.append((Events.VEHICLE_DELETED, vehicle.id))
        self._queue_vehicle(vehicle)
        return vehicle

    async def deactivate_driver(self, driver_id: int) -> Driver:
        """Soft-delete a driver: inactive and Suspended. Refused while On Duty."""
        driver = await self._get_driver(driver_id)

        if driver.status == DriverStatus.ON_DUTY:
            raise InvalidStateError(
                "Cannot delete a driver currently On Duty",
                details={"driver_id": driver.id}
            )

        driver.is_active = False
        driver.status = DriverStatus.SUSPENDED
        await self.db.flush()

        self._pending.append((Events.DRIVER_DELETED, driver.id))
        self._queue_driver(driver)
        return driver
