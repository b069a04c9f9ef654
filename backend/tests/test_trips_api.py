"""
Trip API integration tests.
"""

import pytest

from backend.app.models.enums import UserRole
from backend.app.models.fleet_enums import DriverStatus, VehicleStatus
from backend.tests.helpers import auth


@pytest.mark.asyncio
async def test_dispatch_complete_flow(client, db_session, dispatcher, vehicle, driver, notifier):
    response = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id,
        "driver_id": driver.id,
        "cargo_weight": 300,
        "status": "Dispatched"
    })
    assert response.status_code == 201
    trip = response.json()
    assert trip["status"] == "Dispatched"
    assert trip["start_odometer"] == 500
    assert notifier.names() == ["vehicleUpdated", "driverUpdated", "tripCreated"]

    response = await client.put(f"/v1/trips/{trip['id']}", headers=auth(dispatcher), json={
        "status": "Completed",
        "end_odometer": 600
    })
    assert response.status_code == 200
    assert response.json()["revenue"] == 400.0

    await db_session.refresh(vehicle)
    await db_session.refresh(driver)
    assert vehicle.odometer == 600
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert driver.status == DriverStatus.OFF_DUTY


@pytest.mark.asyncio
async def test_capacity_error_response(client, dispatcher, vehicle, driver):
    response = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id,
        "driver_id": driver.id,
        "cargo_weight": 1001
    })

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_TRIP_001"
    assert body["details"] == {"cargo_weight": 1001, "max_capacity": 1000.0}


@pytest.mark.asyncio
async def test_vehicle_not_available_error(client, dispatcher, make_vehicle, driver):
    vehicle = await make_vehicle(status=VehicleStatus.IN_SHOP)

    response = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id,
        "driver_id": driver.id,
        "cargo_weight": 100,
        "status": "Dispatched"
    })

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_STATE_001"
    assert response.json()["message"] == "Vehicle is not currently available for dispatch"


@pytest.mark.asyncio
async def test_missing_end_odometer(client, dispatcher, vehicle, driver):
    created = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "status": "Dispatched"
    })

    response = await client.put(f"/v1/trips/{created.json()['id']}", headers=auth(dispatcher), json={
        "status": "Completed"
    })

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_TRIP_003"


@pytest.mark.asyncio
async def test_negative_cargo_is_request_validation_error(client, dispatcher, vehicle, driver):
    response = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": -5
    })

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_unknown_trip_is_404(client, dispatcher):
    response = await client.get("/v1/trips/999", headers=auth(dispatcher))

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_delete_trip_requires_fleet_manager(client, dispatcher, manager, vehicle, driver):
    created = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "status": "Dispatched"
    })
    trip_id = created.json()["id"]

    response = await client.delete(f"/v1/trips/{trip_id}", headers=auth(dispatcher))
    assert response.status_code == 403

    response = await client.delete(f"/v1/trips/{trip_id}", headers=auth(manager))
    assert response.status_code == 200
    assert response.json() == {"message": "Trip removed"}

    listed = await client.get("/v1/trips", headers=auth(manager))
    assert listed.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.SAFETY_OFFICER, UserRole.FINANCIAL_ANALYST, UserRole.DRIVER])
async def test_create_trip_forbidden_roles(client, make_user, vehicle, driver, role):
    user = await make_user(role)

    response = await client.post("/v1/trips", headers=auth(user), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100
    })

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_analyst_can_read_trips(client, analyst, dispatcher, vehicle, driver):
    await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100
    })

    response = await client.get("/v1/trips", headers=auth(analyst))

    assert response.status_code == 200
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_list_trips_status_filter(client, dispatcher, make_vehicle, make_driver, vehicle, driver):
    other_vehicle = await make_vehicle(license_plate="VAN-002")
    other_driver = await make_driver(name="Sam Hauler")
    await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100
    })
    await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": other_vehicle.id, "driver_id": other_driver.id, "cargo_weight": 100, "status": "Dispatched"
    })

    response = await client.get("/v1/trips", params={"status": "Dispatched"}, headers=auth(dispatcher))

    assert [t["driver_id"] for t in response.json()] == [other_driver.id]


# Driver visibility

@pytest.mark.asyncio
async def test_driver_user_sees_only_own_trips(client, make_user, make_driver, make_vehicle, dispatcher, vehicle):
    driver_user = await make_user(UserRole.DRIVER)
    own_profile = await make_driver(user_id=driver_user.id)
    someone_else = await make_driver(name="Sam Hauler")
    other_vehicle = await make_vehicle(license_plate="VAN-002")

    own = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": own_profile.id, "cargo_weight": 100
    })
    other = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": other_vehicle.id, "driver_id": someone_else.id, "cargo_weight": 100
    })

    response = await client.get("/v1/trips", params={"driver_id": someone_else.id}, headers=auth(driver_user))
    assert [t["id"] for t in response.json()] == [own.json()["id"]]

    response = await client.get(f"/v1/trips/{other.json()['id']}", headers=auth(driver_user))
    assert response.status_code == 404

    response = await client.put(f"/v1/trips/{other.json()['id']}", headers=auth(driver_user), json={
        "status": "Cancelled"
    })
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_driver_user_can_complete_own_trip(client, make_user, make_driver, dispatcher, vehicle):
    driver_user = await make_user(UserRole.DRIVER)
    profile = await make_driver(user_id=driver_user.id)
    created = await client.post("/v1/trips", headers=auth(dispatcher), json={
        "vehicle_id": vehicle.id, "driver_id": profile.id, "cargo_weight": 200, "status": "Dispatched"
    })

    response = await client.put(f"/v1/trips/{created.json()['id']}", headers=auth(driver_user), json={
        "status": "Completed", "end_odometer": 600
    })

    assert response.status_code == 200
    assert response.json()["revenue"] == 350.0


@pytest.mark.asyncio
async def test_driver_user_without_profile_gets_404(client, make_user):
    driver_user = await make_user(UserRole.DRIVER)

    response = await client.get("/v1/trips", headers=auth(driver_user))

    assert response.status_code == 404
