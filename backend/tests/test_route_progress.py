"""
Route Progress Tests.

Stop arrivals, warehouse-stop gating of status updates, and public tracking.
"""

import pytest
from sqlalchemy import select, func

from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.route import Route
from backend.app.models.route_enums import RouteStatus
from backend.app.models.shipment_event import ShipmentEvent


async def get_stops(client, carrier, parcel_id):
    response = await client.get(f"/v1/carriers/route-stops/{parcel_id}", headers=carrier["headers"])
    assert response.status_code == 200, response.text
    return response.json()["stops"]


async def parcel_state(db_session, parcel_id):
    status = await db_session.execute(select(Parcel.status).where(Parcel.id == parcel_id))
    events = await db_session.execute(
        select(func.count(ShipmentEvent.id)).where(ShipmentEvent.parcel_id == parcel_id)
    )
    return status.scalar(), events.scalar()


async def clear_warehouse_stops(client, carrier, parcel_id):
    for stop in await get_stops(client, carrier, parcel_id):
        if stop["warehouse_id"] is not None:
            response = await client.post(
                f"/v1/carriers/route-stops/{parcel_id}/{stop['id']}/arrive",
                json={"is_late": False},
                headers=carrier["headers"]
            )
            assert response.status_code == 200


@pytest.mark.asyncio
async def test_route_view(client, carrier, sender, in_transit_parcel):
    stops = await get_stops(client, carrier, in_transit_parcel)

    assert [s["sequence"] for s in stops] == list(range(1, len(stops) + 1))
    assert 4 <= len(stops) <= 5
    assert stops[0]["warehouse_id"] is None
    assert stops[0]["location"]["id"] == sender["origin_location_id"]
    assert stops[-1]["location"]["province"] == "Chiang Mai"
    assert all(s["warehouse_name"].startswith("Hub ") for s in stops[1:-1])
    assert all(s["stop_status"] == "Pending" for s in stops)


@pytest.mark.asyncio
async def test_status_update_gated_by_warehouse_stops(client, db_session, carrier, in_transit_parcel):
    stops = await get_stops(client, carrier, in_transit_parcel)
    warehouse_stops = [s for s in stops if s["warehouse_id"] is not None]
    status_before, events_before = await parcel_state(db_session, in_transit_parcel)

    blocked = await client.post(
        f"/v1/carriers/update-status/{in_transit_parcel}",
        json={"event_type": "Out for Delivery", "status": "In Transit"},
        headers=carrier["headers"]
    )
    assert blocked.status_code == 409
    assert blocked.json()["details"] == {"pendingStops": len(warehouse_stops)}
    assert await parcel_state(db_session, in_transit_parcel) == (status_before, events_before)

    first = warehouse_stops[0]
    arrived = await client.post(
        f"/v1/carriers/route-stops/{in_transit_parcel}/{first['id']}/arrive",
        json={"is_late": True},
        headers=carrier["headers"]
    )
    assert arrived.status_code == 200
    assert arrived.json()["stop"]["stop_status"] == "Late"
    assert arrived.json()["route_completed"] is False

    still_blocked = await client.post(
        f"/v1/carriers/update-status/{in_transit_parcel}",
        json={"event_type": "Out for Delivery", "status": "In Transit"},
        headers=carrier["headers"]
    )
    assert still_blocked.status_code == 409
    assert still_blocked.json()["details"] == {"pendingStops": len(warehouse_stops) - 1}
    # Only the arrival event was added
    assert await parcel_state(db_session, in_transit_parcel) == (ParcelStatus.IN_TRANSIT, events_before + 1)

    for stop in warehouse_stops[1:]:
        response = await client.post(
            f"/v1/carriers/route-stops/{in_transit_parcel}/{stop['id']}/arrive",
            json={"is_late": False},
            headers=carrier["headers"]
        )
        assert response.json()["stop"]["stop_status"] == "Completed"

    # Origin and destination stops do not gate status updates
    delivered = await client.post(
        f"/v1/carriers/update-status/{in_transit_parcel}",
        json={"event_type": "Delivered", "status": "Delivered", "description": "Handed to receiver"},
        headers=carrier["headers"]
    )
    assert delivered.status_code == 200, delivered.text
    assert delivered.json()["status"] == "Delivered"

    again = await client.post(
        f"/v1/carriers/update-status/{in_transit_parcel}",
        json={"event_type": "Delivered", "status": "Delivered"},
        headers=carrier["headers"]
    )
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_route_completes_when_every_stop_resolved(client, db_session, carrier, in_transit_parcel):
    stops = await get_stops(client, carrier, in_transit_parcel)

    responses = []
    for stop in stops:
        response = await client.post(
            f"/v1/carriers/route-stops/{in_transit_parcel}/{stop['id']}/arrive",
            json={"is_late": False},
            headers=carrier["headers"]
        )
        assert response.status_code == 200
        responses.append(response.json())

    assert [r["route_completed"] for r in responses] == [False] * (len(stops) - 1) + [True]

    status = await db_session.execute(select(Route.status).where(Route.parcel_id == in_transit_parcel))
    assert status.scalar() == RouteStatus.COMPLETED


@pytest.mark.asyncio
async def test_stop_arrival_rules(client, carrier, in_transit_parcel):
    stops = await get_stops(client, carrier, in_transit_parcel)
    stop_url = f"/v1/carriers/route-stops/{in_transit_parcel}/{stops[1]['id']}/arrive"

    missing_flag = await client.post(stop_url, json={}, headers=carrier["headers"])
    assert missing_flag.status_code == 400

    first = await client.post(stop_url, json={"is_late": False}, headers=carrier["headers"])
    assert first.status_code == 200

    repeat = await client.post(stop_url, json={"is_late": True}, headers=carrier["headers"])
    assert repeat.status_code == 409

    foreign = await client.post(
        f"/v1/carriers/route-stops/{in_transit_parcel}/99999/arrive",
        json={"is_late": False},
        headers=carrier["headers"]
    )
    assert foreign.status_code == 404


@pytest.mark.asyncio
async def test_stop_arrival_writes_event(client, sender, carrier, catalog, in_transit_parcel):
    stops = await get_stops(client, carrier, in_transit_parcel)
    warehouse_stop = next(s for s in stops if s["warehouse_id"] is not None)

    await client.post(
        f"/v1/carriers/route-stops/{in_transit_parcel}/{warehouse_stop['id']}/arrive",
        json={"is_late": True},
        headers=carrier["headers"]
    )

    detail = await client.get(f"/v1/parcels/{in_transit_parcel}", headers=sender["headers"])
    event = detail.json()["events"][-1]
    assert event["event_type"] == "Warehouse Arrival"
    assert event["status"] == "In Transit"
    assert event["description"] == f"Arrived late at {warehouse_stop['warehouse_name']}"
    assert event["location_id"] == warehouse_stop["location"]["id"]


@pytest.mark.asyncio
async def test_status_update_requires_fields(client, carrier, in_transit_parcel):
    response = await client.post(
        f"/v1/carriers/update-status/{in_transit_parcel}",
        json={"event_type": "Delivered"},
        headers=carrier["headers"]
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_update_rejects_unknown_location(client, db_session, carrier, in_transit_parcel):
    await clear_warehouse_stops(client, carrier, in_transit_parcel)
    before = await parcel_state(db_session, in_transit_parcel)

    response = await client.post(
        f"/v1/carriers/update-status/{in_transit_parcel}",
        json={"event_type": "Delivered", "status": "Delivered", "location_id": 999999},
        headers=carrier["headers"]
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"
    assert response.json()["details"] == {"location_id": 999999}
    assert await parcel_state(db_session, in_transit_parcel) == before


@pytest.mark.asyncio
async def test_public_tracking_hides_prices(client, sender, in_transit_parcel):
    detail = await client.get(f"/v1/parcels/{in_transit_parcel}", headers=sender["headers"])
    tracking_number = detail.json()["parcel"]["tracking_number"]

    response = await client.get(f"/v1/parcels/track/{tracking_number.lower()}")
    assert response.status_code == 200
    body = response.json()

    assert body["parcel"]["tracking_number"] == tracking_number
    assert body["parcel"]["status"] == "In Transit"
    for hidden in ("price", "package_price", "service_fee", "fast_delivery_fee", "sender_id"):
        assert hidden not in body["parcel"]
    assert [e["event_type"] for e in body["events"]] == ["Created", "Accepted", "Picked Up"]


@pytest.mark.asyncio
async def test_tracking_unknown_number(client, catalog):
    response = await client.get("/v1/parcels/track/ZZZZZZZZZZZZ")
    assert response.status_code == 404

    malformed = await client.get("/v1/parcels/track/SHORT")
    assert malformed.status_code == 422
