"""
Vehicle and driver registry API tests.
"""

import pytest
from sqlalchemy import select

from backend.app.models.audit_log import AuditLog
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.tests.helpers import auth

VEHICLE_PAYLOAD = {
    "model": "Ford Transit",
    "license_plate": "VAN-100",
    "max_capacity": 1000,
    "odometer": 500,
    "acquisition_cost": 35000,
    "type": "Van",
    "region": "North"
}


# Vehicles

@pytest.mark.asyncio
async def test_create_vehicle(client, db_session, dispatcher, notifier):
    response = await client.post("/v1/vehicles", headers=auth(dispatcher), json=VEHICLE_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "Available"
    assert body["is_active"] is True
    assert notifier.names() == ["vehicleCreated"]

    result = await db_session.execute(select(AuditLog).where(AuditLog.entity_type == "Vehicle"))
    entry = result.scalar_one()
    assert entry.action == "Create"
    assert entry.entity_id == body["id"]


@pytest.mark.asyncio
async def test_duplicate_plate_rejected(client, dispatcher, vehicle):
    response = await client.post("/v1/vehicles", headers=auth(dispatcher), json={
        **VEHICLE_PAYLOAD, "license_plate": vehicle.license_plate
    })

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


@pytest.mark.asyncio
async def test_list_vehicles_filters_and_hides_retired(client, analyst, make_vehicle):
    await make_vehicle(license_plate="VAN-001")
    await make_vehicle(license_plate="TRK-001", type="Truck")
    await make_vehicle(license_plate="OLD-001", status=VehicleStatus.RETIRED, is_active=False)

    response = await client.get("/v1/vehicles", headers=auth(analyst))
    assert sorted(v["license_plate"] for v in response.json()) == ["TRK-001", "VAN-001"]

    response = await client.get("/v1/vehicles", params={"type": "Truck"}, headers=auth(analyst))
    assert [v["license_plate"] for v in response.json()] == ["TRK-001"]


@pytest.mark.asyncio
async def test_odometer_cannot_decrease(client, dispatcher, vehicle):
    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"odometer": 400})

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"odometer": 700})
    assert response.status_code == 200
    assert response.json()["odometer"] == 700


@pytest.mark.asyncio
async def test_odometer_locked_during_active_trip(client, db_session, dispatcher, vehicle, driver):
    created = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "status": "Dispatched"
    })

    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"odometer": 900})
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"

    # Unchanged reading is not an edit
    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"odometer": 500})
    assert response.status_code == 200

    response = await client.put(f"/v1/trips/{created.json()['id']}", headers=auth(dispatcher), json={
        "status": "Completed", "end_odometer": 600
    })
    assert response.status_code == 200

    await db_session.refresh(vehicle)
    assert vehicle.odometer == 600

    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"odometer": 900})
    assert response.status_code == 200
    assert response.json()["odometer"] == 900


@pytest.mark.asyncio
async def test_manual_status_change_goes_through_engine(client, db_session, dispatcher, vehicle, notifier):
    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"status": "In Shop"})

    assert response.status_code == 200
    assert response.json()["status"] == "In Shop"
    assert notifier.names() == ["vehicleUpdated"]

    result = await db_session.execute(
        select(AuditLog).where(AuditLog.entity_id == vehicle.id, AuditLog.action == "StatusChange")
    )
    assert result.scalar_one().details == {"from": "Available", "to": "In Shop"}


@pytest.mark.asyncio
async def test_manual_on_trip_rejected(client, dispatcher, vehicle):
    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={"status": "On Trip"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_STATE_001"


@pytest.mark.asyncio
async def test_status_change_refused_during_active_trip(client, db_session, dispatcher, vehicle, driver):
    await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "status": "Dispatched"
    })

    response = await client.put(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher), json={
        "status": "Available", "region": "South"
    })

    assert response.status_code == 400
    await db_session.refresh(vehicle)
    assert vehicle.status == VehicleStatus.ON_TRIP
    assert vehicle.region == "North"


@pytest.mark.asyncio
async def test_delete_vehicle_retires_it(client, db_session, manager, vehicle, notifier):
    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=auth(manager))

    assert response.status_code == 200
    assert notifier.names() == ["vehicleDeleted", "vehicleUpdated"]
    await db_session.refresh(vehicle)
    assert vehicle.is_active is False
    assert vehicle.status == VehicleStatus.RETIRED

    response = await client.get(f"/v1/vehicles/{vehicle.id}", headers=auth(manager))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_vehicle_on_trip_rejected(client, manager, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.ON_TRIP)

    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=auth(manager))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_dispatcher_cannot_delete_vehicle(client, dispatcher, vehicle):
    response = await client.delete(f"/v1/vehicles/{vehicle.id}", headers=auth(dispatcher))
    assert response.status_code == 403


# Drivers

@pytest.mark.asyncio
async def test_create_driver_defaults(client, dispatcher, notifier):
    response = await client.post("/v1/drivers", headers=auth(dispatcher), json={
        "name": "Dana Driver",
        "license_expiry_date": "2030-01-01T00:00:00Z",
        "allowed_vehicle_type": ["Van"]
    })

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "Off Duty"
    assert body["safety_score"] == 100
    assert body["completion_rate"] == 100.0
    assert body["license_expiry_date"].startswith("2030-01-01T00:00:00")
    assert notifier.names() == ["driverCreated"]


@pytest.mark.asyncio
async def test_create_driver_requires_vehicle_type(client, dispatcher):
    response = await client.post("/v1/drivers", headers=auth(dispatcher), json={
        "name": "Dana Driver",
        "license_expiry_date": "2030-01-01T00:00:00Z",
        "allowed_vehicle_type": []
    })

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_driver_with_unknown_user(client, dispatcher):
    response = await client.post("/v1/drivers", headers=auth(dispatcher), json={
        "name": "Dana Driver",
        "license_expiry_date": "2030-01-01T00:00:00Z",
        "allowed_vehicle_type": ["Van"],
        "user_id": 999
    })

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_safety_officer_suspends_driver(client, safety_officer, driver):
    response = await client.put(f"/v1/drivers/{driver.id}", headers=auth(safety_officer), json={"status": "Suspended"})

    assert response.status_code == 200
    assert response.json()["status"] == "Suspended"


@pytest.mark.asyncio
async def test_driver_on_active_trip_cannot_be_suspended(client, dispatcher, safety_officer, vehicle, driver):
    await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "status": "Dispatched"
    })

    response = await client.put(f"/v1/drivers/{driver.id}", headers=auth(safety_officer), json={"status": "Suspended"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_analyst_cannot_update_driver(client, analyst, driver):
    response = await client.put(f"/v1/drivers/{driver.id}", headers=auth(analyst), json={"name": "X"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_driver(client, db_session, manager, driver, notifier):
    response = await client.delete(f"/v1/drivers/{driver.id}", headers=auth(manager))

    assert response.status_code == 200
    assert notifier.names() == ["driverDeleted", "driverUpdated"]
    await db_session.refresh(driver)
    assert driver.is_active is False
    assert driver.status == DriverStatus.SUSPENDED


@pytest.mark.asyncio
async def test_delete_driver_on_duty_rejected(client, manager, make_driver):
    driver = await make_driver(status=DriverStatus.ON_DUTY)

    response = await client.delete(f"/v1/drivers/{driver.id}", headers=auth(manager))

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete a driver currently On Duty"
