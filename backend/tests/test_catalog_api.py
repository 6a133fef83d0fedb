"""
Catalog and Notification API Tests.
"""

import json
import pytest

from backend.app.services.cache import CACHE_PREFIX


@pytest.mark.asyncio
async def test_catalog_lists_are_public_and_active_only(client, catalog):
    packages = await client.get("/v1/packages")
    assert packages.status_code == 200
    assert [p["name"] for p in packages.json()] == ["Box M"]
    assert packages.json()[0]["price"] == "50.00"

    plans = await client.get("/v1/delivery-plans")
    assert [p["name"] for p in plans.json()] == ["Standard", "Fast"]

    provinces = await client.get("/v1/provinces")
    assert [p["name"] for p in provinces.json()] == ["Bangkok", "Chiang Mai", "Phuket"]


@pytest.mark.asyncio
async def test_catalog_lists_are_cached(client, catalog, redis_client_session):
    await client.get("/v1/banks")

    cached = json.loads(redis_client_session.store[CACHE_PREFIX + "banks"])
    assert cached[0]["code"] == "KBANK"

    # Second read is served from the cache
    redis_client_session.store[CACHE_PREFIX + "banks"] = json.dumps([{**cached[0], "name": "Cached Bank"}])
    response = await client.get("/v1/banks")
    assert response.json()[0]["name"] == "Cached Bank"


@pytest.mark.asyncio
async def test_single_catalog_items(client, catalog):
    plan = await client.get(f"/v1/delivery-plans/{catalog.fast.id}")
    assert plan.json()["fast_delivery_fee"] == "40.00"

    missing = await client.get("/v1/optional-services/9999")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_price_calculator_uses_latest_address(client, sender, catalog):
    response = await client.post(
        "/v1/parcels/calculate",
        json={
            "weight": 10, "dimension_x": 20, "dimension_y": 20, "dimension_z": 20,
            "dest_province": "Chiang Mai",
            "delivery_plan_id": catalog.fast.id,
            "optional_service_ids": [catalog.insurance.id]
        },
        headers=sender["headers"]
    )
    assert response.status_code == 200
    body = response.json()
    assert body["origin_province"] == "Bangkok"
    assert body["delivery_plan"] == "Fast"
    assert body["base_price"] == "216.00"
    assert body["fast_delivery_fee"] == "40.00"
    assert body["service_fee"] == "30.00"
    assert body["total_price"] == "286.00"


@pytest.mark.asyncio
async def test_price_calculator_requires_sender_address(client, make_account, catalog):
    account = await make_account("sender", "no-address@test.com")

    response = await client.post(
        "/v1/parcels/calculate",
        json={
            "weight": 10, "dimension_x": 20, "dimension_y": 20, "dimension_z": 20,
            "dest_province": "Chiang Mai"
        },
        headers=account["headers"]
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"
    assert "address" in response.json()["message"]


@pytest.mark.asyncio
async def test_mark_notifications_read(client, sender, in_transit_parcel):
    inbox = await client.get("/v1/notifications/sender", headers=sender["headers"])
    first_id = inbox.json()["notifications"][0]["id"]

    one = await client.put(f"/v1/notifications/{first_id}/read", headers=sender["headers"])
    assert one.json()["updated"] == 1

    rest = await client.put("/v1/notifications/read-all", headers=sender["headers"])
    assert rest.json()["updated"] == 1

    inbox = await client.get("/v1/notifications/sender", headers=sender["headers"])
    assert inbox.json()["unread_count"] == 0
    assert all(n["is_read"] for n in inbox.json()["notifications"])


@pytest.mark.asyncio
async def test_cannot_mark_someone_elses_notification(client, carrier, sender, in_transit_parcel):
    inbox = await client.get("/v1/notifications/sender", headers=sender["headers"])
    first_id = inbox.json()["notifications"][0]["id"]

    response = await client.put(f"/v1/notifications/{first_id}/read", headers=carrier["headers"])
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["cache"] == "up"
