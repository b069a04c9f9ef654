"""
Maintenance and fuel log API tests.
"""

import pytest
from sqlalchemy import select, func

from backend.app.models.fleet_enums import VehicleStatus
from backend.app.models.maintenance import Maintenance
from backend.tests.helpers import auth


@pytest.mark.asyncio
async def test_log_maintenance_moves_vehicle_in_shop(client, db_session, dispatcher, vehicle, notifier):
    response = await client.post("/v1/maintenance", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id,
        "service_type": "Oil change",
        "cost": 120.5
    })

    assert response.status_code == 201
    assert response.json()["service_type"] == "Oil change"
    assert notifier.names() == ["vehicleUpdated", "maintenanceCreated"]
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.IN_SHOP


@pytest.mark.asyncio
async def test_maintenance_refused_while_on_trip(client, db_session, dispatcher, vehicle, driver):
    await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "status": "Dispatched"
    })

    response = await client.post("/v1/maintenance", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "service_type": "Brakes", "cost": 300
    })

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot log maintenance for a vehicle currently On Trip"
    result = await db_session.execute(select(func.count(Maintenance.id)))
    assert result.scalar() == 0


@pytest.mark.asyncio
async def test_maintenance_for_retired_vehicle_not_found(client, dispatcher, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.RETIRED, is_active=False)

    response = await client.post("/v1/maintenance", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "service_type": "Brakes", "cost": 300
    })

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_maintenance_update_and_delete(client, db_session, dispatcher, manager, vehicle):
    created = await client.post("/v1/maintenance", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "service_type": "Tyres", "cost": 400
    })
    log_id = created.json()["id"]

    response = await client.put(f"/v1/maintenance/{log_id}", headers=auth(dispatcher), json={"cost": 450})
    assert response.status_code == 403

    response = await client.put(f"/v1/maintenance/{log_id}", headers=auth(manager), json={"cost": 450})
    assert response.status_code == 200
    assert response.json()["cost"] == 450

    response = await client.delete(f"/v1/maintenance/{log_id}", headers=auth(manager))
    assert response.status_code == 200

    listed = await client.get("/v1/maintenance", params={"vehicle_id": vehicle.id}, headers=auth(manager))
    assert listed.json() == []

    # Deleting the record does not take the vehicle out of the shop
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.IN_SHOP


@pytest.mark.asyncio
async def test_maintenance_listed_newest_first(client, dispatcher, manager, vehicle):
    for service, date in [("First", "2024-01-01T00:00:00"), ("Second", "2024-06-01T00:00:00")]:
        await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"status": "Available"})
        await client.post("/v1/maintenance", headers=auth(dispatcher), json={
            "vehicle_id": vehicle.id, "service_type": service, "cost": 10, "date": date
        })

    response = await client.get("/v1/maintenance", headers=auth(manager))

    assert [m["service_type"] for m in response.json()] == ["Second", "First"]


# Fuel

@pytest.mark.asyncio
async def test_fuel_lifecycle(client, dispatcher, manager, vehicle, notifier):
    response = await client.post("/v1/fuel", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "liters": 60, "cost": 95.4
    })
    assert response.status_code == 201
    fuel_id = response.json()["id"]
    assert notifier.names() == ["fuelCreated"]

    response = await client.put(f"/v1/fuel/{fuel_id}", headers=auth(manager), json={"liters": 62})
    assert response.json()["liters"] == 62

    response = await client.delete(f"/v1/fuel/{fuel_id}", headers=auth(manager))
    assert response.status_code == 200

    listed = await client.get("/v1/fuel", headers=auth(dispatcher))
    assert listed.json() == []


@pytest.mark.asyncio
async def test_fuel_for_unknown_vehicle(client, dispatcher):
    response = await client.post("/v1/fuel", headers=auth(dispatcher), json={
        "vehicle_id": 999, "liters": 60, "cost": 95.4
    })

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_fuel_liters_must_be_positive(client, dispatcher, vehicle):
    response = await client.post("/v1/fuel", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "liters": 0, "cost": 10
    })

    assert response.status_code == 422
