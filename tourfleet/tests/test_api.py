"""
HTTP API tests.

Exercises the routers end to end against the in-memory database,
including the error response shapes.
"""

import pytest
from datetime import date, timedelta

TOUR_DATE = "2031-06-03"


def vehicle_payload(plate, capacity=6, **overrides):
    today = date.today()
    payload = {
        "make": "Mercedes",
        "model": f"Sprinter {capacity}",
        "license_plate": plate,
        "capacity": capacity,
        "vehicle_type": "sprinter",
        "registration_expiry": (today + timedelta(days=365)).isoformat(),
        "insurance_expiry": (today + timedelta(days=365)).isoformat(),
        "last_dot_inspection": (today - timedelta(days=30)).isoformat(),
    }
    payload.update(overrides)
    return payload


async def add_vehicle(client, plate, capacity=6, **overrides):
    response = await client.post("/v1/fleet/vehicles", json=vehicle_payload(plate, capacity, **overrides))
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health_and_root(client):
    health = await client.get("/health")
    root = await client.get("/")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["slot_lock_backend"] == "local"
    assert root.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_fleet_crud(client):
    vehicle = await add_vehicle(client, "TF-API1", capacity=14)
    assert vehicle["name"] == "Mercedes Sprinter 14"
    assert vehicle["status"] == "available"

    duplicate = await client.post("/v1/fleet/vehicles", json=vehicle_payload("TF-API1"))
    assert duplicate.status_code == 400
    assert duplicate.json()["error_code"] == "ERR_INVALID_REQUEST"

    updated = await client.patch(f"/v1/fleet/vehicles/{vehicle['id']}", json={"status": "maintenance"})
    assert updated.json()["status"] == "maintenance"
    assert updated.json()["capacity"] == 14

    archived = await client.post(f"/v1/fleet/vehicles/{vehicle['id']}/archive")
    assert archived.json()["archived_at"] is not None

    listed = await client.get("/v1/fleet/vehicles")
    assert listed.json()["total"] == 0
    listed = await client.get("/v1/fleet/vehicles", params={"include_archived": True})
    assert listed.json()["total"] == 1


@pytest.mark.asyncio
async def test_update_vehicle_rejects_null_for_required_fields(client):
    vehicle = await add_vehicle(client, "TF-API1N", capacity=8)

    response = await client.patch(f"/v1/fleet/vehicles/{vehicle['id']}", json={"capacity": None})

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"
    unchanged = await client.get(f"/v1/fleet/vehicles/{vehicle['id']}")
    assert unchanged.json()["capacity"] == 8

    cleared = await client.patch(f"/v1/fleet/vehicles/{vehicle['id']}", json={"vehicle_type": None})
    assert cleared.status_code == 200
    assert cleared.json()["vehicle_type"] is None


@pytest.mark.asyncio
async def test_hold_on_archived_vehicle_is_refused(client):
    vehicle = await add_vehicle(client, "TF-API1A")
    await client.post(f"/v1/fleet/vehicles/{vehicle['id']}/archive")

    response = await client.post("/v1/holds", json={
        "vehicle_id": vehicle["id"], "block_date": TOUR_DATE, "start_time": "10:00", "end_time": "14:00"
    })

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_missing_vehicle_is_404(client):
    response = await client.get("/v1/fleet/vehicles/999")

    assert response.status_code == 404
    assert response.json() == {
        "error_code": "ERR_NOT_FOUND_001",
        "message": "Vehicle with ID 999 not found",
        "details": {"resource": "Vehicle", "id": 999},
    }


@pytest.mark.asyncio
async def test_availability_check(client):
    vehicle = await add_vehicle(client, "TF-API2")

    response = await client.post("/v1/availability/check", json={
        "tour_date": TOUR_DATE, "start_time": "10:00", "duration_hours": 4, "party_size": 4,
    })

    body = response.json()
    assert response.status_code == 200
    assert body["available"] is True
    assert body["vehicle_id"] == vehicle["id"]
    assert body["end_time"] == "14:00"


@pytest.mark.asyncio
async def test_availability_outside_hours_is_normal_response(client):
    await add_vehicle(client, "TF-API3")

    response = await client.post("/v1/availability/check", json={
        "tour_date": TOUR_DATE, "start_time": "19:00", "duration_hours": 4, "party_size": 4,
    })

    assert response.status_code == 200
    assert response.json()["available"] is False
    assert response.json()["conflicts"] == ["Tours must be between 08:00 and 22:00"]


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"start_time": "7:00"},
    {"duration_hours": 2},
    {"party_size": 0},
])
async def test_availability_validation_errors(client, overrides):
    payload = {"tour_date": TOUR_DATE, "start_time": "10:00", "duration_hours": 4, "party_size": 4}
    payload.update(overrides)

    response = await client.post("/v1/availability/check", json=payload)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_slots_and_available_vehicles(client):
    await add_vehicle(client, "TF-API4", capacity=4)
    await add_vehicle(client, "TF-API5", capacity=14)

    slots = await client.get("/v1/availability/slots", params={
        "date": TOUR_DATE, "duration_hours": 4, "party_size": 2,
    })
    vehicles = await client.get("/v1/availability/vehicles", params={
        "date": TOUR_DATE, "start_time": "10:00", "end_time": "14:00", "party_size": 6,
    })

    assert slots.json()["available_count"] == 11
    assert len(slots.json()["slots"]) == 11
    assert [v["capacity"] for v in vehicles.json()["vehicles"]] == [14]


@pytest.mark.asyncio
async def test_hold_conflict_is_409(client):
    vehicle = await add_vehicle(client, "TF-API6")
    hold = {"vehicle_id": vehicle["id"], "block_date": TOUR_DATE, "start_time": "10:00", "end_time": "14:00"}

    first = await client.post("/v1/holds", json=hold)
    second = await client.post("/v1/holds", json={**hold, "start_time": "12:00", "end_time": "16:00"})

    assert first.status_code == 201
    assert first.json()["block_type"] == "hold"
    assert first.json()["start_time"] == "10:00"
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_SLOT_CONFLICT"


@pytest.mark.asyncio
async def test_hold_convert_and_release(client):
    vehicle = await add_vehicle(client, "TF-API7")
    hold = (await client.post("/v1/holds", json={
        "vehicle_id": vehicle["id"], "block_date": TOUR_DATE, "start_time": "10:00", "end_time": "14:00",
    })).json()

    converted = await client.post(f"/v1/holds/{hold['id']}/convert", json={"booking_id": 42})
    again = await client.post(f"/v1/holds/{hold['id']}/convert", json={"booking_id": 43})
    released = await client.delete(f"/v1/holds/{hold['id']}")

    assert converted.json()["block_type"] == "booking"
    assert converted.json()["booking_id"] == 42
    assert again.status_code == 404
    assert released.json() == {"hold_id": hold["id"], "released": False}


@pytest.mark.asyncio
async def test_maintenance_and_calendar(client):
    vehicle = await add_vehicle(client, "TF-API8")
    await client.post("/v1/holds", json={
        "vehicle_id": vehicle["id"], "block_date": TOUR_DATE, "start_time": "10:00", "end_time": "14:00",
    })

    refused = await client.post("/v1/blocks/maintenance", json={
        "vehicle_id": vehicle["id"], "block_date": TOUR_DATE,
        "start_time": "12:00", "end_time": "16:00", "reason": "Oil change",
    })
    created = await client.post("/v1/blocks/maintenance", json={
        "vehicle_id": vehicle["id"], "block_date": TOUR_DATE,
        "start_time": "15:00", "end_time": "17:00", "reason": "Oil change",
    })
    calendar = await client.get("/v1/blocks", params={"date": TOUR_DATE})
    schedule = await client.get(f"/v1/vehicles/{vehicle['id']}/blocks", params={"date": TOUR_DATE})

    assert refused.status_code == 422
    assert refused.json()["message"] == "Cannot create maintenance block - time slot has existing bookings"
    assert created.status_code == 201
    assert calendar.json()["total"] == 2
    assert calendar.json()["blocks"][0]["vehicle_name"] == "Mercedes Sprinter 6"
    assert [b["block_type"] for b in schedule.json()["blocks"]] == ["hold", "maintenance"]

    deleted = await client.delete(f"/v1/blocks/{created.json()['id']}")
    assert deleted.status_code == 204


@pytest.mark.asyncio
async def test_booking_block_cannot_be_deleted_directly(client):
    vehicle = await add_vehicle(client, "TF-API9")
    hold = (await client.post("/v1/holds", json={
        "vehicle_id": vehicle["id"], "block_date": TOUR_DATE, "start_time": "10:00", "end_time": "14:00",
    })).json()
    await client.post(f"/v1/holds/{hold['id']}/convert", json={"booking_id": 8})

    refused = await client.delete(f"/v1/blocks/{hold['id']}")
    cancelled = await client.delete("/v1/bookings/8/blocks")

    assert refused.status_code == 422
    assert cancelled.json() == {"booking_id": 8, "deleted": 1}


@pytest.mark.asyncio
async def test_checkout_and_confirm(client):
    await add_vehicle(client, "TF-API10")

    checkout = await client.post("/v1/bookings/checkout", json={
        "tour_date": TOUR_DATE, "start_time": "10:00", "duration_hours": 4, "party_size": 4,
    })
    body = checkout.json()
    confirm = await client.post("/v1/bookings/confirm", json={
        "hold_id": body["hold"]["id"], "booking_id": 900,
    })

    assert body["availability"]["available"] is True
    assert body["pricing"]["total_price"] == 992
    assert confirm.status_code == 200
    assert confirm.json()["booking_block"]["booking_id"] == 900
    assert len(confirm.json()["buffers"]) == 2


@pytest.mark.asyncio
async def test_confirm_blocked_by_compliance(client):
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    await add_vehicle(client, "TF-API11", registration_expiry=yesterday)
    checkout = (await client.post("/v1/bookings/checkout", json={
        "tour_date": TOUR_DATE, "start_time": "10:00", "duration_hours": 4, "party_size": 4,
    })).json()

    response = await client.post("/v1/bookings/confirm", json={
        "hold_id": checkout["hold"]["id"], "booking_id": 901,
    })

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_COMPLIANCE_BLOCKED"
    assert response.json()["details"]["violations"][0]["type"] == "registration_expired"


@pytest.mark.asyncio
async def test_blackouts_close_dates(client):
    await add_vehicle(client, "TF-API12")

    created = await client.post("/v1/blackouts", json={"blackout_date": TOUR_DATE, "reason": "Festival"})
    check = await client.post("/v1/availability/check", json={
        "tour_date": TOUR_DATE, "start_time": "10:00", "duration_hours": 4, "party_size": 4,
    })
    listed = await client.get("/v1/blackouts")

    assert created.status_code == 201
    assert check.json()["conflicts"] == ["Festival"]
    assert listed.json()["total"] == 1

    await client.delete(f"/v1/blackouts/{created.json()['id']}")
    check = await client.post("/v1/availability/check", json={
        "tour_date": TOUR_DATE, "start_time": "10:00", "duration_hours": 4, "party_size": 4,
    })
    assert check.json()["available"] is True


@pytest.mark.asyncio
async def test_pricing_quote_and_compliance_views(client):
    vehicle = await add_vehicle(client, "TF-API13")

    quote = await client.post("/v1/pricing/quote", json={
        "tour_date": "2031-06-07", "party_size": 4, "duration_hours": 4,
    })
    vehicle_check = await client.get(f"/v1/compliance/vehicles/{vehicle['id']}")
    driver_check = await client.get("/v1/compliance/drivers/55")

    assert quote.json()["base_price"] == 800
    assert vehicle_check.json()["is_compliant"] is True
    assert driver_check.json()["can_proceed"] is False
    assert driver_check.json()["violations"][0]["type"] == "driver_inactive"


@pytest.mark.asyncio
async def test_correlation_id_echoed(client):
    supplied = await client.get("/health", headers={"X-Correlation-ID": "checkout-abc"})
    generated = await client.get("/health")

    assert supplied.headers["X-Correlation-ID"] == "checkout-abc"
    assert len(generated.headers["X-Correlation-ID"]) == 36


@pytest.mark.asyncio
async def test_health_reports_redis_lock_backend(client, monkeypatch):
    from tourfleet.app.core.config import settings
    monkeypatch.setattr(settings, "slot_lock_backend", "redis")

    response = await client.get("/health")

    assert response.json()["slot_lock_backend"] == "redis"
    assert response.json()["redis"] == "ok"
    assert response.json()["status"] == "healthy"
