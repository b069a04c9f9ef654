"""
Trip lifecycle controller.

Owns the trip state machine:

    Draft -> Dispatched -> Completed
    Draft -> Cancelled
    Dispatched -> Cancelled

Completed and Cancelled are terminal. A requested transition outside this
table is accepted as a no-op on status (the trip is still saved and
audited). Every transition that involves the vehicle or driver runs through
the status engine before the trip itself is written.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    CapacityExceededError, CertificationMismatchError, FieldValidationError,
    InvalidOdometerError, MissingFieldError, ResourceNotFoundError
)
from backend.app.models.driver import Driver
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus, INITIAL_TRIP_STATUSES, TERMINAL_TRIP_STATUSES
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.trip import TripCreate, TripResponse, TripUpdate
from backend.app.services.audit import log_action, AuditAction, EntityType
from backend.app.services.notifier import Events, Notifier
from backend.app.services.status_engine import StatusEngine

logger = logging.getLogger("fleetops.trips")

# Revenue policy
RATE_PER_KM = Decimal("2.50")
RATE_PER_KG = Decimal("0.50")
CENT = Decimal("0.01")


def calculate_revenue(distance: float, cargo_weight: float) -> float:
    """
    Trip revenue: $2.50 per km driven plus $0.50 per kg of cargo,
    rounded half-up to the cent.
    """
    amount = Decimal(str(distance)) * RATE_PER_KM + Decimal(str(cargo_weight)) * RATE_PER_KG
    return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))


class TripLifecycle:
    """
    Trip commands for one request.

    Args:
        db: Database session of the request
        notifier: Event publisher
        actor: Decoded token payload of the caller (for the audit trail)
    """

    def __init__(self, db: AsyncSession, notifier: Notifier, actor: dict):
        self.db = db
        self.notifier = notifier
        self.actor_id = actor.get("user_id")
        self.engine = StatusEngine(db, notifier)

    async def _get_active_trip(self, trip_id: int) -> Trip:
        result = await self.db.execute(
            select(Trip).where(Trip.id == trip_id, Trip.is_active == True)
        )
        trip = result.scalar_one_or_none()
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)
        return trip

    async def _get_active(self, model, entity_id: int, resource: str):
        result = await self.db.execute(
            select(model).where(model.id == entity_id, model.is_active == True)
        )
        entity = result.scalar_one_or_none()
        if not entity:
            raise ResourceNotFoundError(resource, entity_id)
        return entity

    async def _commit(self, trip: Trip) -> TripResponse:
        try:
            await self.db.commit()
        except Exception:
            self.engine.discard_pending()
            raise
        await self.db.refresh(trip)
        return TripResponse.model_validate(trip)

    async def _finish(self, event: str, response: TripResponse) -> None:
        await self.engine.publish_pending()
        await self.notifier.publish(event, response.model_dump(mode="json"))

    async def create(self, data: TripCreate) -> TripResponse:
        """
        Create a trip in Draft, or directly Dispatched.

        Validation order: vehicle and driver exist and are active, cargo
        fits the vehicle, driver is certified for the vehicle type, then
        (for Dispatched) the status engine. No trip is written unless all
        of these pass.
        """
        initial_status = data.status or TripStatus.DRAFT.value
        if initial_status not in [s.value for s in INITIAL_TRIP_STATUSES]:
            raise FieldValidationError(
                f"A trip can only be created as Draft or Dispatched, not {initial_status}",
                details={"status": initial_status}
            )
        initial_status = TripStatus(initial_status)

        vehicle = await self._get_active(Vehicle, data.vehicle_id, "Vehicle")
        driver = await self._get_active(Driver, data.driver_id, "Driver")

        if data.cargo_weight > vehicle.max_capacity:
            raise CapacityExceededError(data.cargo_weight, vehicle.max_capacity)

        allowed_types = driver.allowed_vehicle_type or []
        if allowed_types and vehicle.type not in allowed_types:
            raise CertificationMismatchError(driver.name, vehicle.type, allowed_types)

        start_odometer = None
        if initial_status == TripStatus.DISPATCHED:
            dispatched_vehicle, _ = await self.engine.dispatch(vehicle.id, driver.id)
            start_odometer = dispatched_vehicle.odometer

        trip = Trip(
            vehicle_id=vehicle.id,
            driver_id=driver.id,
            cargo_weight=data.cargo_weight,
            status=initial_status,
            start_odometer=start_odometer,
            revenue=data.revenue or 0.0
        )
        self.db.add(trip)
        response = await self._commit(trip)

        logger.info("Trip %s created as %s", trip.id, initial_status.value)
        await log_action(
            self.db, self.actor_id, AuditAction.CREATE, EntityType.TRIP, trip.id,
            {"status": initial_status.value, "vehicle_id": vehicle.id, "driver_id": driver.id}
        )
        await self._finish(Events.TRIP_CREATED, response)

        return response

    async def update(self, trip_id: int, data: TripUpdate) -> TripResponse:
        """
        Apply a requested status transition to an active trip.

        - Draft -> Dispatched: dispatch, capture the start odometer
        - Dispatched -> Completed: needs end_odometer >= start_odometer;
          releases vehicle and driver and computes revenue
        - Draft or Dispatched -> Cancelled: releases vehicle and driver
          first if the trip was Dispatched
        - anything else: status unchanged
        """
        trip = await self._get_active_trip(trip_id)
        previous_status = trip.status
        requested = data.status

        if requested == TripStatus.DISPATCHED.value and previous_status == TripStatus.DRAFT:
            vehicle, _ = await self.engine.dispatch(trip.vehicle_id, trip.driver_id)
            trip.status = TripStatus.DISPATCHED
            trip.start_odometer = vehicle.odometer

        elif requested == TripStatus.COMPLETED.value and previous_status == TripStatus.DISPATCHED:
            if data.end_odometer is None:
                raise MissingFieldError(
                    "end_odometer", "End odometer reading is required to complete trip"
                )
            start_odometer = trip.start_odometer or 0
            if data.end_odometer < start_odometer:
                raise InvalidOdometerError(start_odometer, data.end_odometer)

            await self.engine.complete(trip.vehicle_id, trip.driver_id, data.end_odometer)

            distance = data.end_odometer - start_odometer
            trip.status = TripStatus.COMPLETED
            trip.end_odometer = data.end_odometer
            trip.revenue = calculate_revenue(distance, trip.cargo_weight)

        elif requested == TripStatus.CANCELLED.value and previous_status not in TERMINAL_TRIP_STATUSES:
            if previous_status == TripStatus.DISPATCHED:
                await self.engine.cancel(trip.vehicle_id, trip.driver_id)
            trip.status = TripStatus.CANCELLED

        else:
            logger.debug("Trip %s: no transition from %s to %s", trip.id, previous_status.value, requested)

        response = await self._commit(trip)

        await log_action(
            self.db, self.actor_id, AuditAction.STATUS_CHANGE, EntityType.TRIP, trip.id,
            {"from": previous_status.value, "to": trip.status.value}
        )
        await self._finish(Events.TRIP_UPDATED, response)

        return response

    async def soft_delete(self, trip_id: int) -> TripResponse:
        """
        Deactivate a trip and force it to Cancelled.

        A Dispatched trip releases its vehicle and driver first.
        """
        # Looks up deleted trips too: a repeat delete succeeds again and is audited again
        trip = await self.db.get(Trip, trip_id)
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)

        if trip.status == TripStatus.DISPATCHED:
            await self.engine.cancel(trip.vehicle_id, trip.driver_id)

        trip.is_active = False
        trip.status = TripStatus.CANCELLED
        response = await self._commit(trip)

        await log_action(
            self.db, self.actor_id, AuditAction.DELETE, EntityType.TRIP, trip.id,
            {"note": "Soft deleted"}
        )
        await self.engine.publish_pending()
        await self.notifier.publish(Events.TRIP_DELETED, trip.id)
        await self.notifier.publish(Events.TRIP_UPDATED, response.model_dump(mode="json"))

        return response

    async def list_trips(
        self,
        status: Optional[TripStatus] = None,
        driver_id: Optional[int] = None
    ) -> List[Trip]:
        """Active trips, newest first."""
        query = select(Trip).where(Trip.is_active == True)

        if status:
            query = query.where(Trip.status == status)

        if driver_id is not None:
            query = query.where(Trip.driver_id == driver_id)

        query = query.order_by(Trip.created_at.desc(), Trip.id.desc())
        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_trip(self, trip_id: int) -> Trip:
        return await self._get_active_trip(trip_id)
