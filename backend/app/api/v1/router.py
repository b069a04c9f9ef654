"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, trips, vehicles, drivers,
    maintenance, fuel, incidents,
    audit_logs, events
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Fleet registry
router.include_router(vehicles.router)
router.include_router(drivers.router)

# Trip lifecycle
router.include_router(trips.router)

# Vehicle upkeep
router.include_router(maintenance.router)
router.include_router(fuel.router)

# Safety
router.include_router(incidents.router)

# Audit trail
router.include_router(audit_logs.router)

# Real-time push channel
router.include_router(events.router)
