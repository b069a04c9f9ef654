"""
Incident and safety score coupling.

Reporting an incident deducts the severity penalty from the driver's
safety score, floored at 0. Deleting it adds the stored nominal penalty
back, even when the original deduction was cut short by the floor.

Both score changes are single UPDATE statements evaluated by the database,
so concurrent incidents against the same driver cannot lose a deduction.
"""

import logging
from datetime import datetime
from typing import Tuple

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.models.driver import Driver
from backend.app.models.incident import Incident
from backend.app.models.incident_enums import IncidentSeverity, SEVERITY_PENALTIES
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.incident import IncidentCreate

logger = logging.getLogger("fleetops.safety")


def penalty_for(severity: IncidentSeverity) -> int:
    return SEVERITY_PENALTIES[IncidentSeverity(severity)]


async def deduct_safety_score(db: AsyncSession, driver_id: int, penalty: int) -> None:
    """Lower a driver's score by penalty, never below 0."""
    lowered = Driver.safety_score - penalty
    await db.execute(
        update(Driver)
        .where(Driver.id == driver_id)
        .values(safety_score=case((lowered < 0, 0), else_=lowered))
        .execution_options(synchronize_session=False)
    )


async def restore_safety_score(db: AsyncSession, driver_id: int, penalty: int) -> None:
    """Add penalty back to a driver's current score."""
    await db.execute(
        update(Driver)
        .where(Driver.id == driver_id)
        .values(safety_score=Driver.safety_score + penalty)
        .execution_options(synchronize_session=False)
    )


async def record_incident(
    db: AsyncSession,
    data: IncidentCreate,
    reported_by: int
) -> Tuple[Incident, Driver]:
    """
    Store an incident and apply its penalty in one transaction.

    Returns:
        (incident, driver) with the driver's score re-read after the update

    Raises:
        ResourceNotFoundError: driver (or the given vehicle) missing or inactive
    """
    driver = await db.get(Driver, data.driver_id)
    if not driver or not driver.is_active:
        raise ResourceNotFoundError("Driver", data.driver_id)

    if data.vehicle_id is not None:
        vehicle = await db.get(Vehicle, data.vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", data.vehicle_id)

    penalty = penalty_for(data.severity)

    incident = Incident(
        driver_id=driver.id,
        vehicle_id=data.vehicle_id,
        type=data.type,
        severity=data.severity,
        description=data.description,
        penalty_applied=penalty,
        reported_by=reported_by,
        date=data.date or datetime.utcnow()
    )
    db.add(incident)
    await deduct_safety_score(db, driver.id, penalty)
    await db.commit()

    await db.refresh(incident)
    driver = await db.get(Driver, driver.id, populate_existing=True)

    logger.info(
        "Incident %s (%s) against driver %s: -%s, score now %s",
        incident.id, incident.severity.value, driver.id, penalty, driver.safety_score
    )
    return incident, driver


async def remove_incident(db: AsyncSession, incident_id: int) -> Tuple[Incident, Driver]:
    """
    Delete an incident and give its nominal penalty back to the driver.

    Returns:
        (deleted incident, driver re-read after the restore)
    """
    incident = await db.get(Incident, incident_id)
    if not incident:
        raise ResourceNotFoundError("Incident", incident_id)

    await restore_safety_score(db, incident.driver_id, incident.penalty_applied)
    await db.delete(incident)
    await db.commit()

    driver = await db.get(Driver, incident.driver_id, populate_existing=True)
    logger.info(
        "Incident %s removed, driver %s +%s",
        incident_id, incident.driver_id, incident.penalty_applied
    )
    return incident, driver
