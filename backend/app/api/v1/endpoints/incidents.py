"""
Incident API endpoints.

Reporting an incident lowers the driver's safety score; deleting one
restores the nominal penalty.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_role
from backend.app.models.enums import UserRole
from backend.app.models.incident import Incident
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.driver import DriverResponse
from backend.app.schemas.incident import IncidentCreate, IncidentCreateResponse, IncidentResponse
from backend.app.services.audit import log_action, AuditAction, EntityType
from backend.app.services.notifier import Events, Notifier, get_notifier, serialize
from backend.app.services.safety import record_incident, remove_incident

router = APIRouter(prefix="/incidents", tags=["Incidents"])


@router.get("", response_model=List[IncidentResponse])
async def list_incidents(
    driver_id: Optional[int] = Query(None, description="Filter by driver"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.SAFETY_OFFICER])),
    db: AsyncSession = Depends(get_db)
):
    """Incidents, most recent first."""
    query = select(Incident)
    if driver_id is not None:
        query = query.where(Incident.driver_id == driver_id)

    result = await db.execute(query.order_by(Incident.date.desc(), Incident.id.desc()))
    return [IncidentResponse.model_validate(i) for i in result.scalars().all()]


@router.post("", response_model=IncidentCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_incident(
    incident_data: IncidentCreate,
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER, UserRole.SAFETY_OFFICER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Report an incident against a driver.

    Penalties: Low 5, Medium 15, Critical 30 points, floored at 0.
    """
    incident, driver = await record_incident(db, incident_data, current_user["user_id"])

    response = IncidentCreateResponse(
        **IncidentResponse.model_validate(incident).model_dump(),
        driver_safety_score=driver.safety_score
    )
    driver_payload = serialize(DriverResponse, driver)

    await log_action(
        db, current_user["user_id"], AuditAction.CREATE, EntityType.INCIDENT, response.id,
        {
            "driver_id": response.driver_id,
            "severity": response.severity.value,
            "penalty": response.penalty_applied
        }
    )
    await notifier.publish(Events.INCIDENT_CREATED, response.model_dump(mode="json"))
    await notifier.publish(Events.DRIVER_UPDATED, driver_payload)

    return response


@router.delete("/{incident_id}", response_model=MessageResponse)
async def delete_incident(
    incident_id: int = Path(..., description="Incident ID"),
    current_user: dict = Depends(require_role([UserRole.FLEET_MANAGER])),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Delete an incident and add its penalty back to the driver's score."""
    incident, driver = await remove_incident(db, incident_id)
    driver_payload = serialize(DriverResponse, driver)

    await log_action(
        db, current_user["user_id"], AuditAction.DELETE, EntityType.INCIDENT, incident_id,
        {"driver_id": incident.driver_id, "restored": incident.penalty_applied}
    )
    await notifier.publish(Events.DRIVER_UPDATED, driver_payload)

    return MessageResponse(message="Incident removed and safety score restored")
