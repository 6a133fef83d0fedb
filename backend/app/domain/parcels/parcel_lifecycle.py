"""
Parcel Lifecycle (Domain Logic).

State machine for a parcel and its assignment, route and stops:

    Parcel:     Pending -> Awaiting Pickup -> In Transit -> Delivered
    Assignment: Pending -> Accepted
    RouteStop:  Pending -> Completed | Late
    Route:      Planning -> Completed

Each transition is one unit of work: it commits once on success and
rolls back completely on any failure. Domain errors propagate unchanged;
anything else is logged and surfaced as InternalServerError.
Ownership and assignment checks run before any mutation.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, desc
from sqlalchemy.exc import IntegrityError

from backend.app.core.exceptions import (
    AppException,
    InsufficientPermissionsError,
    InternalServerError,
    PreconditionFailedError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.domain.billing.balance_ledger import BalanceLedger
from backend.app.domain.catalog.catalog_repository import CatalogRepository
from backend.app.domain.locations.location_service import get_or_create_location
from backend.app.domain.parcels.tracking import allocate_tracking_number
from backend.app.domain.pricing.pricing_engine import PricingEngine, PriceQuote, ServiceFeeQuote, to_money
from backend.app.domain.routing.route_planner import RouteStopPlanner
from backend.app.models.billing_enums import TransactionType
from backend.app.models.location import Location, UserLocation
from backend.app.models.notification import NotificationType
from backend.app.models.optional_service import ParcelService
from backend.app.models.parcel import Parcel, ParcelLocation, ParcelAssignment
from backend.app.models.parcel_enums import (
    ParcelStatus,
    AssignmentStatus,
    ParcelLocationType,
    ShipmentEventType,
)
from backend.app.models.route import Route, RouteStop
from backend.app.models.route_enums import RouteStatus, StopStatus, RESOLVED_STOP_STATUSES
from backend.app.models.shipment_event import ShipmentEvent
from backend.app.models.warehouse import Warehouse
from backend.app.schemas.parcel import ParcelCreate
from backend.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

MIN_MEASUREMENT = 0.1
ROUTE_DATE_OFFSET = timedelta(days=1)
DELIVERED_STATUS = ParcelStatus.DELIVERED.value


@dataclass
class MeasurementResult:
    parcel: Parcel
    base_delivery_price: Decimal
    fast_delivery_fee: Decimal
    delivery_price: Decimal
    package_price: Decimal
    service_fee: Decimal
    total_price: Decimal
    est_delivery_date: datetime


@dataclass
class StopArrivalResult:
    stop: RouteStop
    route_completed: bool


@dataclass
class PricePreview:
    quote: PriceQuote
    services: ServiceFeeQuote
    origin_province: Optional[str]
    dest_province: str

    @property
    def total_price(self) -> Decimal:
        return to_money(self.quote.total_price + self.services.total_fee)


class ParcelLifecycle:

    def __init__(
        self,
        db: AsyncSession,
        catalog: CatalogRepository,
        pricing: PricingEngine,
        planner: RouteStopPlanner,
        ledger: BalanceLedger,
        notifier=NotificationService
    ):
        self.db = db
        self.catalog = catalog
        self.pricing = pricing
        self.planner = planner
        self.ledger = ledger
        self.notifier = notifier

    @asynccontextmanager
    async def _transition(self, name: str, parcel_id: Optional[int] = None):
        try:
            yield
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except Exception as exc:
            await self.db.rollback()
            logger.exception("Transition %s failed for parcel %s, rolled back", name, parcel_id)
            raise InternalServerError() from exc

    # Lookups

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

    async def _get_assigned_parcel(self, carrier_id: int, parcel_id: int) -> Tuple[Parcel, ParcelAssignment]:
        parcel = await self._get_parcel(parcel_id)
        assignment = await self._get_assignment(parcel_id)
        if (
            not assignment
            or assignment.carrier_id != carrier_id
            or assignment.status != AssignmentStatus.ACCEPTED
        ):
            raise InsufficientPermissionsError("Parcel is not assigned to you")
        return parcel, assignment

    async def _get_parcel_location(self, parcel_id: int, location_type: ParcelLocationType) -> Optional[Location]:
        result = await self.db.execute(
            select(Location)
            .join(ParcelLocation, ParcelLocation.location_id == Location.id)
            .where(
                ParcelLocation.parcel_id == parcel_id,
                ParcelLocation.location_type == location_type
            )
        )
        return result.scalar_one_or_none()

    async def _get_sender_origin(self, sender_id: int, location_id: int) -> Location:
        result = await self.db.execute(
            select(Location)
            .join(UserLocation, UserLocation.location_id == Location.id)
            .where(UserLocation.user_id == sender_id, Location.id == location_id)
        )
        origin = result.scalar_one_or_none()
        if not origin:
            raise ValidationFailedError(
                "Origin location not found in your addresses",
                details={"origin_location_id": location_id}
            )
        if not origin.province:
            raise ValidationFailedError("Origin location has no province")
        return origin

    async def _record_event(
        self,
        parcel_id: int,
        event_type: str,
        status: str,
        description: str,
        location_id: Optional[int]
    ) -> ShipmentEvent:
        event = ShipmentEvent(
            parcel_id=parcel_id,
            event_type=event_type,
            status=status,
            description=description,
            location_id=location_id,
            event_time=datetime.now(timezone.utc),
        )
        self.db.add(event)
        await self.db.flush()
        return event

    # 1. Create

    async def create_parcel(self, sender_id: int, data: ParcelCreate) -> Parcel:
        """
        Create a parcel in Pending.

        Charges the selected package and optional services, stores origin
        and destination, records the Created event and plans the route.
        """
        async with self._transition("create_parcel"):
            now = datetime.now(timezone.utc)
            origin = await self._get_sender_origin(sender_id, data.origin_location_id)

            package_price = Decimal("0.00")
            if data.selected_package_id is not None:
                package = await self.catalog.get_package_type(data.selected_package_id)
                if not package:
                    raise ValidationFailedError(
                        "Invalid package selected",
                        details={"selected_package_id": data.selected_package_id}
                    )
                package_price = to_money(package.price)

            plan = await self.pricing.resolve_plan(data.delivery_plan_id)
            fast_fee = self.pricing.fast_fee_for(plan)
            services = await self.pricing.calculate_service_fees(data.optional_service_ids)

            upfront = package_price + services.total_fee
            if upfront > 0:
                await self.ledger.ensure_sufficient(sender_id, upfront)

            destination = await get_or_create_location(self.db, **data.destination.model_dump())

            tracking_number = await allocate_tracking_number(self.db)
            parcel = Parcel(
                tracking_number=tracking_number,
                sender_id=sender_id,
                receiver_name=data.receiver_name,
                receiver_phone=data.receiver_phone,
                item_type=data.item_type,
                selected_package_id=data.selected_package_id,
                package_price=package_price,
                delivery_plan_id=plan.id if plan else None,
                fast_delivery_fee=fast_fee,
                service_fee=services.total_fee,
                status=ParcelStatus.PENDING,
            )
            self.db.add(parcel)
            await self.db.flush()

            if package_price > 0:
                await self.ledger.debit(
                    sender_id, package_price, TransactionType.PACKAGE,
                    f"Package purchase for parcel {tracking_number}",
                    parcel_id=parcel.id
                )
            if services.total_fee > 0:
                await self.ledger.debit(
                    sender_id, services.total_fee, TransactionType.SERVICE,
                    f"Optional services for parcel {tracking_number}",
                    parcel_id=parcel.id
                )

            self.db.add_all([
                ParcelService(parcel_id=parcel.id, service_id=s.id, service_fee=s.service_fee)
                for s in services.services
            ])
            self.db.add_all([
                ParcelLocation(parcel_id=parcel.id, location_id=origin.id, location_type=ParcelLocationType.ORIGIN),
                ParcelLocation(parcel_id=parcel.id, location_id=destination.id, location_type=ParcelLocationType.DESTINATION),
            ])

            await self._record_event(
                parcel.id, ShipmentEventType.CREATED, ParcelStatus.PENDING.value,
                "Parcel created - awaiting carrier pickup", origin.id
            )

            route = Route(parcel_id=parcel.id, status=RouteStatus.PLANNING, route_date=now + ROUTE_DATE_OFFSET)
            self.db.add(route)
            await self.db.flush()
            await self.planner.build_route_stops(self.db, route, parcel.id, origin.id, destination.id, now=now)

        await self.db.refresh(parcel)
        logger.info("Parcel %s created by sender %s", parcel.tracking_number, sender_id)
        return parcel

    # 2. Notify carriers

    async def notify_carriers(self, sender_id: int, parcel_id: int) -> int:
        """Broadcast a Pending parcel to available carriers. Returns the notified count."""
        async with self._transition("notify_carriers", parcel_id):
            parcel = await self._get_parcel(parcel_id)
            if parcel.sender_id != sender_id:
                raise InsufficientPermissionsError("You do not own this parcel")
            if parcel.status != ParcelStatus.PENDING:
                raise PreconditionFailedError(
                    "Parcel is no longer pending",
                    details={"status": parcel.status.value}
                )

            notified = await self.notifier.broadcast_to_available_carriers(
                self.db,
                title="New parcel available",
                message=f"Parcel {parcel.tracking_number} is waiting for pickup",
                parcel_id=parcel.id
            )

            if await self._get_assignment(parcel.id) is None:
                try:
                    async with self.db.begin_nested():
                        self.db.add(ParcelAssignment(parcel_id=parcel.id, status=AssignmentStatus.PENDING))
                        await self.db.flush()
                except IntegrityError:
                    logger.info("Assignment for parcel %s created concurrently", parcel.id)

        logger.info("Parcel %s broadcast to %d carriers", parcel_id, notified)
        return notified

    # 3. Accept

    async def accept_parcel(self, carrier_id: int, parcel_id: int) -> Parcel:
        """
        Claim a broadcast parcel.

        Both conditional updates must hit exactly one row; a lost race
        leaves nothing behind.
        """
        async with self._transition("accept_parcel", parcel_id):
            parcel = await self._get_parcel(parcel_id)

            claimed = await self.db.execute(
                update(Parcel)
                .where(Parcel.id == parcel_id, Parcel.status == ParcelStatus.PENDING)
                .values(status=ParcelStatus.AWAITING_PICKUP)
            )
            if claimed.rowcount != 1:
                raise PreconditionFailedError("Parcel not available", details={"parcel_id": parcel_id})

            assigned = await self.db.execute(
                update(ParcelAssignment)
                .where(
                    ParcelAssignment.parcel_id == parcel_id,
                    ParcelAssignment.status == AssignmentStatus.PENDING
                )
                .values(
                    carrier_id=carrier_id,
                    status=AssignmentStatus.ACCEPTED,
                    assigned_at=datetime.now(timezone.utc)
                )
            )
            if assigned.rowcount != 1:
                raise PreconditionFailedError("Parcel not available", details={"parcel_id": parcel_id})

            origin = await self._get_parcel_location(parcel_id, ParcelLocationType.ORIGIN)
            await self._record_event(
                parcel_id, ShipmentEventType.ACCEPTED, ParcelStatus.AWAITING_PICKUP.value,
                "Carrier accepted - will pick up parcel", origin.id if origin else None
            )
            await self.notifier.notify_sender(
                self.db,
                user_id=parcel.sender_id,
                title="Parcel accepted",
                message=f"Your parcel {parcel.tracking_number} has been accepted by a carrier",
                type=NotificationType.PARCEL_ACCEPTED,
                parcel_id=parcel_id
            )

        await self.db.refresh(parcel)
        logger.info("Parcel %s accepted by carrier %s", parcel_id, carrier_id)
        return parcel

    # 4. Submit measurements

    async def submit_measurements(
        self,
        carrier_id: int,
        parcel_id: int,
        weight: float,
        dim_x: Optional[float] = None,
        dim_y: Optional[float] = None,
        dim_z: Optional[float] = None
    ) -> MeasurementResult:
        """
        Fix the parcel's economic terms at pickup and charge the sender.

        Succeeds once: the parcel must still be Awaiting Pickup with no weight.
        """
        async with self._transition("submit_measurements", parcel_id):
            parcel, _ = await self._get_assigned_parcel(carrier_id, parcel_id)
            if parcel.status != ParcelStatus.AWAITING_PICKUP or parcel.weight is not None:
                raise PreconditionFailedError(
                    "Measurements already submitted or parcel not awaiting pickup",
                    details={"status": parcel.status.value}
                )

            if weight is None or weight < MIN_MEASUREMENT:
                raise ValidationFailedError(f"Weight must be at least {MIN_MEASUREMENT}")

            if parcel.selected_package_id is not None:
                package = await self.catalog.get_package_type(parcel.selected_package_id, active_only=False)
                if not package:
                    raise ResourceNotFoundError("Package", parcel.selected_package_id)
                dim_x, dim_y, dim_z = package.dimension_x, package.dimension_y, package.dimension_z
            else:
                dims = {"dimension_x": dim_x, "dimension_y": dim_y, "dimension_z": dim_z}
                invalid = [name for name, value in dims.items() if value is None or value < MIN_MEASUREMENT]
                if invalid:
                    raise ValidationFailedError(
                        f"Dimensions must each be at least {MIN_MEASUREMENT}",
                        details={"fields": invalid}
                    )

            origin = await self._get_parcel_location(parcel_id, ParcelLocationType.ORIGIN)
            destination = await self._get_parcel_location(parcel_id, ParcelLocationType.DESTINATION)

            quote = await self.pricing.calculate_with_plan(
                weight, dim_x, dim_y, dim_z,
                origin.province if origin else None,
                destination.province if destination else None,
                plan_id=parcel.delivery_plan_id,
                active_only=False
            )
            fast_fee = to_money(parcel.fast_delivery_fee or 0)
            delivery_price = to_money(quote.base_price + fast_fee)

            await self.ledger.ensure_sufficient(parcel.sender_id, delivery_price)

            updated = await self.db.execute(
                update(Parcel)
                .where(
                    Parcel.id == parcel_id,
                    Parcel.status == ParcelStatus.AWAITING_PICKUP,
                    Parcel.weight.is_(None)
                )
                .values(
                    weight=weight,
                    dimension_x=dim_x,
                    dimension_y=dim_y,
                    dimension_z=dim_z,
                    price=delivery_price,
                    est_delivery_date=quote.est_delivery_date,
                    status=ParcelStatus.IN_TRANSIT
                )
            )
            if updated.rowcount != 1:
                raise PreconditionFailedError("Measurements already submitted")

            await self.ledger.debit(
                parcel.sender_id, delivery_price, TransactionType.PARCEL,
                f"Delivery payment for parcel {parcel.tracking_number}",
                parcel_id=parcel_id
            )

            await self._record_event(
                parcel_id, ShipmentEventType.PICKED_UP, ParcelStatus.IN_TRANSIT.value,
                f"Parcel picked up - weight: {weight}kg, dimensions: {dim_x}x{dim_y}x{dim_z}cm",
                origin.id if origin else None
            )

            package_price = to_money(parcel.package_price or 0)
            service_fee = to_money(parcel.service_fee or 0)
            total_price = to_money(delivery_price + package_price + service_fee)

            await self.notifier.notify_sender(
                self.db,
                user_id=parcel.sender_id,
                title="Parcel picked up",
                message=f"Your parcel {parcel.tracking_number} was picked up. Total cost: {total_price}",
                type=NotificationType.PARCEL_PICKED_UP,
                parcel_id=parcel_id
            )

        await self.db.refresh(parcel)
        logger.info("Parcel %s measured, charged %s", parcel_id, delivery_price)

        return MeasurementResult(
            parcel=parcel,
            base_delivery_price=quote.base_price,
            fast_delivery_fee=fast_fee,
            delivery_price=delivery_price,
            package_price=package_price,
            service_fee=service_fee,
            total_price=total_price,
            est_delivery_date=quote.est_delivery_date,
        )

    # 5. Route-stop progression

    async def record_stop_arrival(
        self,
        carrier_id: int,
        parcel_id: int,
        stop_id: int,
        is_late: Optional[bool],
        event_type: Optional[str] = None,
        status: Optional[str] = None
    ) -> StopArrivalResult:
        async with self._transition("record_stop_arrival", parcel_id):
            if is_late is None:
                raise ValidationFailedError("is_late is required")

            parcel, _ = await self._get_assigned_parcel(carrier_id, parcel_id)
            if parcel.status != ParcelStatus.IN_TRANSIT:
                raise PreconditionFailedError(
                    "Parcel is not in transit",
                    details={"status": parcel.status.value}
                )

            result = await self.db.execute(
                select(RouteStop)
                .join(Route, Route.id == RouteStop.route_id)
                .where(RouteStop.id == stop_id, Route.parcel_id == parcel_id)
            )
            stop = result.scalar_one_or_none()
            if not stop:
                raise ResourceNotFoundError("Route stop", stop_id)

            arrived = await self.db.execute(
                update(RouteStop)
                .where(RouteStop.id == stop_id, RouteStop.stop_status == StopStatus.PENDING)
                .values(
                    stop_status=StopStatus.LATE if is_late else StopStatus.COMPLETED,
                    arrived_at=datetime.now(timezone.utc)
                )
            )
            if arrived.rowcount != 1:
                raise PreconditionFailedError("Route stop already recorded", details={"stop_id": stop_id})

            if stop.warehouse_id is not None:
                warehouse = await self.db.get(Warehouse, stop.warehouse_id)
                place = warehouse.name if warehouse else f"warehouse {stop.warehouse_id}"
            else:
                place = "origin" if stop.sequence == 1 else "destination"

            await self._record_event(
                parcel_id,
                event_type or ShipmentEventType.WAREHOUSE_ARRIVAL,
                status or parcel.status.value,
                f"Arrived{' late' if is_late else ''} at {place}",
                stop.location_id
            )

            unresolved = await self.db.execute(
                select(func.count(RouteStop.id)).where(
                    RouteStop.route_id == stop.route_id,
                    RouteStop.stop_status.not_in(RESOLVED_STOP_STATUSES)
                )
            )
            route_completed = unresolved.scalar() == 0
            if route_completed:
                await self.db.execute(
                    update(Route).where(Route.id == stop.route_id).values(status=RouteStatus.COMPLETED)
                )

        await self.db.refresh(stop)
        logger.info("Stop %s of parcel %s recorded (late=%s)", stop_id, parcel_id, is_late)
        return StopArrivalResult(stop=stop, route_completed=route_completed)

    # 6. General status update

    async def update_status(
        self,
        carrier_id: int,
        parcel_id: int,
        event_type: Optional[str],
        status: Optional[str],
        description: Optional[str] = None,
        location_id: Optional[int] = None
    ) -> Parcel:
        """Free-form status update; only allowed once every warehouse stop is cleared."""
        async with self._transition("update_status", parcel_id):
            if not event_type or not status:
                raise ValidationFailedError("event_type and status are required")

            parcel, _ = await self._get_assigned_parcel(carrier_id, parcel_id)
            if parcel.status != ParcelStatus.IN_TRANSIT:
                raise PreconditionFailedError(
                    "Parcel is not in transit",
                    details={"status": parcel.status.value}
                )

            pending = await self.db.execute(
                select(func.count(RouteStop.id)).where(
                    RouteStop.parcel_id == parcel_id,
                    RouteStop.stop_status == StopStatus.PENDING,
                    RouteStop.warehouse_id.is_not(None)
                )
            )
            pending_stops = pending.scalar()
            if pending_stops:
                raise PreconditionFailedError(
                    "All warehouse stops must be completed before updating status",
                    details={"pendingStops": pending_stops}
                )

            if location_id is not None and await self.db.get(Location, location_id) is None:
                raise ValidationFailedError("Unknown location", details={"location_id": location_id})

            await self._record_event(
                parcel_id, event_type, status,
                description or f"Status updated to {status}",
                location_id
            )

            parcel.status = ParcelStatus.DELIVERED if status == DELIVERED_STATUS else ParcelStatus.IN_TRANSIT
            await self.db.flush()

            await self.notifier.notify_sender(
                self.db,
                user_id=parcel.sender_id,
                title="Parcel status updated",
                message=f"Your parcel {parcel.tracking_number} is now: {status}",
                type=NotificationType.STATUS_UPDATE,
                parcel_id=parcel_id
            )

        await self.db.refresh(parcel)
        logger.info("Parcel %s status updated to %s by carrier %s", parcel_id, status, carrier_id)
        return parcel

    # Price calculator

    async def preview_price(
        self,
        sender_id: int,
        weight: float,
        dim_x: float,
        dim_y: float,
        dim_z: float,
        dest_province: str,
        plan_id: Optional[int] = None,
        service_ids=None
    ) -> PricePreview:
        """Quote a parcel from the sender's most recently added address. Read-only."""
        result = await self.db.execute(
            select(Location.province)
            .join(UserLocation, UserLocation.location_id == Location.id)
            .where(UserLocation.user_id == sender_id)
            .order_by(desc(UserLocation.created_at), desc(UserLocation.id))
            .limit(1)
        )
        origin_province = result.scalar_one_or_none()
        if not origin_province:
            raise ValidationFailedError("Please add your address with province first")

        quote = await self.pricing.calculate_with_plan(
            weight, dim_x, dim_y, dim_z, origin_province, dest_province, plan_id=plan_id
        )
        services = await self.pricing.calculate_service_fees(service_ids)
        return PricePreview(
            quote=quote,
            services=services,
            origin_province=origin_province,
            dest_province=dest_province,
        )
