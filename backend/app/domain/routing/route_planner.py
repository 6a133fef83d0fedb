"""
Route Stop Planner.

Builds the checkpoint sequence of a new parcel:
origin -> K random active warehouses -> destination.

Warehouses are sampled in process (uniform, without replacement).
ETAs follow a fixed spacing heuristic: origin at +2h, stop `seq` at +6h*seq.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.models.warehouse import Warehouse
from backend.app.models.route import Route, RouteStop
from backend.app.models.route_enums import StopStatus

logger = logging.getLogger(__name__)

MIN_WAREHOUSE_STOPS = 2
MAX_WAREHOUSE_STOPS = 4
ORIGIN_ETA_HOURS = 2
HOURS_PER_SEQUENCE = 6


@dataclass
class PlannedStop:
    sequence: int
    location_id: int
    warehouse_id: Optional[int]
    eta: datetime


class RouteStopPlanner:

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def plan_stops(
        self,
        origin_location_id: int,
        dest_location_id: int,
        warehouses: Sequence[Warehouse],
        now: Optional[datetime] = None
    ) -> List[PlannedStop]:
        now = now or datetime.now(timezone.utc)

        stops = [PlannedStop(1, origin_location_id, None, now + timedelta(hours=ORIGIN_ETA_HOURS))]

        available = len(warehouses)
        if available:
            k = self.rng.randint(min(MIN_WAREHOUSE_STOPS, available), min(MAX_WAREHOUSE_STOPS, available))
            chosen = self.rng.sample(list(warehouses), k)
            for seq, warehouse in enumerate(chosen, start=2):
                stops.append(PlannedStop(
                    seq, warehouse.location_id, warehouse.id,
                    now + timedelta(hours=HOURS_PER_SEQUENCE * seq)
                ))

        last_seq = len(stops) + 1
        stops.append(PlannedStop(
            last_seq, dest_location_id, None,
            now + timedelta(hours=HOURS_PER_SEQUENCE * last_seq)
        ))
        return stops

    async def build_route_stops(
        self,
        db: AsyncSession,
        route: Route,
        parcel_id: int,
        origin_location_id: int,
        dest_location_id: int,
        now: Optional[datetime] = None
    ) -> List[RouteStop]:
        """Persist planned stops for a route. Flushes; the caller commits."""
        result = await db.execute(
            select(Warehouse).where(Warehouse.is_active == True).order_by(Warehouse.id)
        )
        warehouses = result.scalars().all()

        planned = self.plan_stops(origin_location_id, dest_location_id, warehouses, now=now)

        stops = [
            RouteStop(
                route_id=route.id,
                parcel_id=parcel_id,
                location_id=p.location_id,
                warehouse_id=p.warehouse_id,
                sequence=p.sequence,
                stop_status=StopStatus.PENDING,
                eta=p.eta,
            )
            for p in planned
        ]
        db.add_all(stops)
        await db.flush()

        logger.info(
            "Planned route %s for parcel %s with %d stops (%d warehouses)",
            route.id, parcel_id, len(stops), len(stops) - 2
        )
        return stops
