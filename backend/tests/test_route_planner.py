"""
Route Stop Planner Tests.

Stop selection is random; a seeded Random makes it reproducible.
"""

import random
import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from sqlalchemy import select

from backend.app.domain.routing.route_planner import RouteStopPlanner
from backend.app.models.route import Route, RouteStop
from backend.app.models.route_enums import RouteStatus, StopStatus

NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)
ORIGIN, DEST = 1001, 1002


def make_warehouses(n):
    return [SimpleNamespace(id=i, location_id=100 + i) for i in range(1, n + 1)]


def test_no_warehouses_gives_origin_and_destination():
    stops = RouteStopPlanner(random.Random(1)).plan_stops(ORIGIN, DEST, [], now=NOW)

    assert [s.sequence for s in stops] == [1, 2]
    assert [s.location_id for s in stops] == [ORIGIN, DEST]
    assert all(s.warehouse_id is None for s in stops)
    assert stops[0].eta == NOW + timedelta(hours=2)
    assert stops[1].eta == NOW + timedelta(hours=12)


def test_single_warehouse_is_always_used():
    stops = RouteStopPlanner(random.Random(1)).plan_stops(ORIGIN, DEST, make_warehouses(1), now=NOW)

    assert [s.warehouse_id for s in stops] == [None, 1, None]
    assert stops[1].location_id == 101


@pytest.mark.parametrize("seed", range(10))
def test_warehouse_sample_bounds(seed):
    warehouses = make_warehouses(5)
    stops = RouteStopPlanner(random.Random(seed)).plan_stops(ORIGIN, DEST, warehouses, now=NOW)

    middle = stops[1:-1]
    assert 2 <= len(middle) <= 4
    assert len({s.warehouse_id for s in middle}) == len(middle)
    assert [s.sequence for s in stops] == list(range(1, len(stops) + 1))
    assert stops[0].location_id == ORIGIN
    assert stops[-1].location_id == DEST

    for stop in stops[1:]:
        assert stop.eta == NOW + timedelta(hours=6 * stop.sequence)


def test_same_seed_same_route():
    warehouses = make_warehouses(5)
    first = RouteStopPlanner(random.Random(42)).plan_stops(ORIGIN, DEST, warehouses, now=NOW)
    second = RouteStopPlanner(random.Random(42)).plan_stops(ORIGIN, DEST, warehouses, now=NOW)

    assert [s.warehouse_id for s in first] == [s.warehouse_id for s in second]


@pytest.mark.asyncio
async def test_new_parcel_route_skips_inactive_warehouses(db_session, catalog, sender, parcel_payload, client):
    catalog.warehouses[0].is_active = False
    db_session.add(catalog.warehouses[0])
    await db_session.commit()

    response = await client.post("/v1/parcels", json=parcel_payload, headers=sender["headers"])
    assert response.status_code == 201
    parcel_id = response.json()["id"]

    route = (await db_session.execute(select(Route).where(Route.parcel_id == parcel_id))).scalar_one()
    stops = (await db_session.execute(
        select(RouteStop).where(RouteStop.route_id == route.id).order_by(RouteStop.sequence)
    )).scalars().all()

    assert route.status == RouteStatus.PLANNING
    assert [s.sequence for s in stops] == [1, 2, 3, 4]
    assert {s.warehouse_id for s in stops[1:-1]} == {w.id for w in catalog.warehouses[1:]}
    assert stops[0].location_id == sender["origin_location_id"]
    assert all(s.stop_status == StopStatus.PENDING for s in stops)
