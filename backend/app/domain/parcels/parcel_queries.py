"""
Parcel Queries.

Read-side views over parcels: sender lists, detail with tracking history,
public tracking, carrier job board and route stops. No mutations.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from backend.app.core.exceptions import InsufficientPermissionsError, ResourceNotFoundError
from backend.app.models.enums import UserRole
from backend.app.models.location import Location
from backend.app.models.optional_service import OptionalService, ParcelService
from backend.app.models.parcel import Parcel, ParcelLocation, ParcelAssignment
from backend.app.models.parcel_enums import ParcelStatus, AssignmentStatus, ParcelLocationType
from backend.app.models.route import Route, RouteStop
from backend.app.models.route_enums import StopStatus
from backend.app.models.shipment_event import ShipmentEvent
from backend.app.models.warehouse import Warehouse


@dataclass
class ParcelView:
    parcel: Parcel
    origin: Optional[Location] = None
    destination: Optional[Location] = None


@dataclass
class ParcelServiceView:
    service_id: int
    name: str
    service_fee: Decimal


@dataclass
class ParcelDetail(ParcelView):
    events: List[ShipmentEvent] = field(default_factory=list)
    services: List[ParcelServiceView] = field(default_factory=list)
    assignment: Optional[ParcelAssignment] = None


@dataclass
class RouteStopView:
    id: int
    sequence: int
    stop_status: StopStatus
    eta: datetime
    arrived_at: Optional[datetime]
    location: Location
    warehouse_id: Optional[int] = None
    warehouse_name: Optional[str] = None


@dataclass
class RouteView:
    route: Route
    stops: List[RouteStopView] = field(default_factory=list)


class ParcelQueries:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _locations_for(self, parcel_ids: List[int]) -> Dict[int, Dict[ParcelLocationType, Location]]:
        if not parcel_ids:
            return {}
        result = await self.db.execute(
            select(ParcelLocation.parcel_id, ParcelLocation.location_type, Location)
            .join(Location, Location.id == ParcelLocation.location_id)
            .where(ParcelLocation.parcel_id.in_(parcel_ids))
        )
        by_parcel: Dict[int, Dict[ParcelLocationType, Location]] = {}
        for parcel_id, location_type, location in result.all():
            by_parcel.setdefault(parcel_id, {})[location_type] = location
        return by_parcel

    async def _views(self, parcels: List[Parcel]) -> List[ParcelView]:
        locations = await self._locations_for([p.id for p in parcels])
        views = []
        for parcel in parcels:
            found = locations.get(parcel.id, {})
            views.append(ParcelView(
                parcel=parcel,
                origin=found.get(ParcelLocationType.ORIGIN),
                destination=found.get(ParcelLocationType.DESTINATION),
            ))
        return views

    async def _get_parcel(self, parcel_id: int) -> Parcel:
        result = await self.db.execute(select(Parcel).where(Parcel.id == parcel_id))
        parcel = result.scalar_one_or_none()
        if not parcel:
            raise ResourceNotFoundError("Parcel", parcel_id)
        return parcel

    async def _get_assignment(self, parcel_id: int) -> Optional[ParcelAssignment]:
        result = await self.db.execute(
            select(ParcelAssignment).where(ParcelAssignment.parcel_id == parcel_id)
        )
        return result.scalar_one_or_none()

    async def _build_detail(self, parcel: Parcel) -> ParcelDetail:
        view = (await self._views([parcel]))[0]

        events = await self.db.execute(
            select(ShipmentEvent)
            .where(ShipmentEvent.parcel_id == parcel.id)
            .order_by(ShipmentEvent.event_time, ShipmentEvent.id)
        )
        services = await self.db.execute(
            select(ParcelService.service_id, OptionalService.name, ParcelService.service_fee)
            .join(OptionalService, OptionalService.id == ParcelService.service_id)
            .where(ParcelService.parcel_id == parcel.id)
            .order_by(ParcelService.id)
        )

        return ParcelDetail(
            parcel=parcel,
            origin=view.origin,
            destination=view.destination,
            events=list(events.scalars().all()),
            services=[ParcelServiceView(*row) for row in services.all()],
            assignment=await self._get_assignment(parcel.id),
        )

    async def list_sender_parcels(self, sender_id: int) -> List[ParcelView]:
        result = await self.db.execute(
            select(Parcel)
            .where(Parcel.sender_id == sender_id)
            .order_by(desc(Parcel.created_at), desc(Parcel.id))
        )
        return await self._views(list(result.scalars().all()))

    async def get_parcel_detail(self, parcel_id: int, role: UserRole, actor_id: int) -> ParcelDetail:
        """
        Detail view for an authenticated caller.

        Senders see their own parcels. Carriers see parcels assigned to them
        and parcels still open for acceptance.
        """
        parcel = await self._get_parcel(parcel_id)

        if role == UserRole.SENDER:
            if parcel.sender_id != actor_id:
                raise InsufficientPermissionsError("You do not own this parcel")
        else:
            assignment = await self._get_assignment(parcel_id)
            visible = assignment is not None and (
                assignment.carrier_id == actor_id or assignment.status == AssignmentStatus.PENDING
            )
            if not visible:
                raise InsufficientPermissionsError("Parcel is not assigned to you")

        return await self._build_detail(parcel)

    async def track(self, tracking_number: str) -> ParcelDetail:
        """Public lookup. The response schema drops every price field."""
        result = await self.db.execute(
            select(Parcel).where(Parcel.tracking_number == tracking_number.upper())
        )
        parcel = result.scalar_one_or_none()
        if not parcel:
            raise ResourceNotFoundError("Parcel", tracking_number)
        return await self._build_detail(parcel)

    async def list_available_parcels(self) -> List[ParcelView]:
        """Broadcast parcels nobody has accepted yet."""
        result = await self.db.execute(
            select(Parcel)
            .join(ParcelAssignment, ParcelAssignment.parcel_id == Parcel.id)
            .where(
                Parcel.status == ParcelStatus.PENDING,
                ParcelAssignment.status == AssignmentStatus.PENDING
            )
            .order_by(desc(Parcel.created_at), desc(Parcel.id))
        )
        return await self._views(list(result.scalars().all()))

    async def list_carrier_parcels(self, carrier_id: int) -> List[ParcelView]:
        result = await self.db.execute(
            select(Parcel)
            .join(ParcelAssignment, ParcelAssignment.parcel_id == Parcel.id)
            .where(ParcelAssignment.carrier_id == carrier_id)
            .order_by(desc(ParcelAssignment.assigned_at), desc(Parcel.id))
        )
        return await self._views(list(result.scalars().all()))

    async def get_route(self, carrier_id: int, parcel_id: int) -> RouteView:
        await self._get_parcel(parcel_id)
        assignment = await self._get_assignment(parcel_id)
        if not assignment or assignment.carrier_id != carrier_id:
            raise InsufficientPermissionsError("Parcel is not assigned to you")

        route_result = await self.db.execute(select(Route).where(Route.parcel_id == parcel_id))
        route = route_result.scalar_one_or_none()
        if not route:
            raise ResourceNotFoundError("Route")

        result = await self.db.execute(
            select(RouteStop, Location, Warehouse.name)
            .join(Location, Location.id == RouteStop.location_id)
            .outerjoin(Warehouse, Warehouse.id == RouteStop.warehouse_id)
            .where(RouteStop.route_id == route.id)
            .order_by(RouteStop.sequence)
        )
        stops = [
            RouteStopView(
                id=stop.id,
                sequence=stop.sequence,
                stop_status=stop.stop_status,
                eta=stop.eta,
                arrived_at=stop.arrived_at,
                location=location,
                warehouse_id=stop.warehouse_id,
                warehouse_name=warehouse_name,
            )
            for stop, location, warehouse_name in result.all()
        ]
        return RouteView(route=route, stops=stops)
