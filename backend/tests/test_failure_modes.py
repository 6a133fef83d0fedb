"""
Failure Injection Tests.

A step failing mid-transition must leave no partial state behind.
"""

import pytest
from sqlalchemy import select, func

from backend.app.domain.routing.route_planner import RouteStopPlanner
from backend.app.domain.catalog.catalog_repository import CatalogRepository
from backend.app.domain.parcels import tracking
from backend.app.models.parcel import Parcel
from backend.app.models.transaction import Transaction


@pytest.mark.asyncio
async def test_route_planning_failure_rolls_back_creation(client, db_session, sender, parcel_payload, mocker):
    mocker.patch.object(RouteStopPlanner, "build_route_stops", side_effect=RuntimeError("planner down"))

    response = await client.post("/v1/parcels", json=parcel_payload, headers=sender["headers"])
    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_INTERNAL_SERVER"

    parcels = await db_session.execute(select(func.count(Parcel.id)))
    assert parcels.scalar() == 0

    debits = await db_session.execute(
        select(func.count(Transaction.id)).where(Transaction.parcel_id.is_not(None))
    )
    assert debits.scalar() == 0

    balance = await client.get("/v1/balance", headers=sender["headers"])
    assert balance.json()["balance"] == "500.00"


@pytest.mark.asyncio
async def test_notification_failure_rolls_back_measurement(client, db_session, sender, carrier, accepted_parcel, mocker):
    mocker.patch(
        "backend.app.services.notification_service.NotificationService.notify_sender",
        side_effect=RuntimeError("notification store unavailable")
    )

    response = await client.post(
        f"/v1/carriers/submit-measurements/{accepted_parcel}",
        json={"weight": 2.0},
        headers=carrier["headers"]
    )
    assert response.status_code == 500

    row = await db_session.execute(select(Parcel.status, Parcel.weight).where(Parcel.id == accepted_parcel))
    status, weight = row.one()
    assert status.value == "Awaiting Pickup"
    assert weight is None

    balance = await client.get("/v1/balance", headers=sender["headers"])
    assert balance.json()["balance"] == "450.00"


@pytest.mark.asyncio
async def test_pricing_failure_uses_fallback(client, sender, carrier, accepted_parcel, mocker):
    """Catalog lookups failing never block a pickup."""
    mocker.patch.object(CatalogRepository, "get_province_mapping", side_effect=RuntimeError("catalog down"))

    response = await client.post(
        f"/v1/carriers/submit-measurements/{accepted_parcel}",
        json={"weight": 2.0},
        headers=carrier["headers"]
    )
    assert response.status_code == 200
    assert response.json()["base_delivery_price"] == "100.00"


@pytest.mark.asyncio
async def test_tracking_number_exhaustion(client, sender, parcel_payload, mocker):
    """Every candidate collides: creation fails cleanly after the retry budget."""
    first = await client.post("/v1/parcels", json=parcel_payload, headers=sender["headers"])
    taken = first.json()["tracking_number"]

    mocker.patch.object(tracking, "generate_tracking_number", return_value=taken)

    response = await client.post("/v1/parcels", json=parcel_payload, headers=sender["headers"])
    assert response.status_code == 500

    balance = await client.get("/v1/balance", headers=sender["headers"])
    assert balance.json()["balance"] == "450.00"

