"""
Carrier API Endpoints.

Profile, job board and the carrier-driven lifecycle transitions:
accept, pickup measurements, route-stop arrivals and status updates.
"""

from typing import List
from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.carrier import Carrier
from backend.app.schemas.user import CarrierProfileResponse, CarrierProfileUpdate
from backend.app.schemas.parcel import ParcelSummaryResponse
from backend.app.schemas.carrier import (
    AcceptParcelResponse,
    MeasurementSubmit,
    MeasurementResponse,
    RouteResponse,
    RouteStopResponse,
    StopArrivalRequest,
    StopArrivalResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from backend.app.core.guards import require_carrier
from backend.app.core.dependencies import get_parcel_lifecycle, get_parcel_queries
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.domain.parcels.parcel_lifecycle import ParcelLifecycle
from backend.app.domain.parcels.parcel_queries import ParcelQueries
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/carriers", tags=["Carrier"])


async def _get_carrier(db: AsyncSession, carrier_id: int) -> Carrier:
    result = await db.execute(select(Carrier).where(Carrier.id == carrier_id))
    carrier = result.scalar_one_or_none()
    if not carrier:
        raise ResourceNotFoundError("Carrier", carrier_id)
    return carrier


@router.get("/profile", response_model=CarrierProfileResponse)
async def get_profile(
    current_user: dict = Depends(require_carrier),
    db: AsyncSession = Depends(get_db)
):
    carrier = await _get_carrier(db, current_user["user_id"])
    return CarrierProfileResponse.model_validate(carrier)


@router.patch("/profile", response_model=CarrierProfileResponse)
async def update_profile(
    data: CarrierProfileUpdate,
    current_user: dict = Depends(require_carrier),
    db: AsyncSession = Depends(get_db)
):
    """Partial update; is_available controls whether new parcels are broadcast to this carrier."""
    carrier = await _get_carrier(db, current_user["user_id"])

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(carrier, field, value)

    await db.commit()
    await db.refresh(carrier)

    if changes:
        await log_actor_event(
            db, current_user, AuditAction.PROFILE_UPDATED,
            target_id=carrier.id, metadata={"fields": sorted(changes)}
        )

    return CarrierProfileResponse.model_validate(carrier)


@router.get("/available-parcels", response_model=List[ParcelSummaryResponse])
async def list_available_parcels(
    current_user: dict = Depends(require_carrier),
    queries: ParcelQueries = Depends(get_parcel_queries)
):
    """Parcels broadcast to carriers and not yet accepted."""
    views = await queries.list_available_parcels()
    return [ParcelSummaryResponse.model_validate(v) for v in views]


@router.post("/accept-parcel/{parcel_id}", response_model=AcceptParcelResponse)
async def accept_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_carrier),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle),
    db: AsyncSession = Depends(get_db)
):
    """Claim a parcel. Only the first carrier wins; others get 409."""
    parcel = await lifecycle.accept_parcel(current_user["user_id"], parcel_id)

    await log_actor_event(db, current_user, AuditAction.PARCEL_ACCEPTED, target_id=parcel.id)

    return AcceptParcelResponse(
        message="Parcel accepted",
        parcel_id=parcel.id,
        status=parcel.status
    )


@router.post("/submit-measurements/{parcel_id}", response_model=MeasurementResponse)
async def submit_measurements(
    parcel_id: int = Path(..., description="Parcel ID"),
    data: MeasurementSubmit = ...,
    current_user: dict = Depends(require_carrier),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle),
    db: AsyncSession = Depends(get_db)
):
    """Record pickup measurements and charge the sender the delivery price."""
    result = await lifecycle.submit_measurements(
        current_user["user_id"], parcel_id,
        data.weight, data.dimension_x, data.dimension_y, data.dimension_z
    )
    parcel = result.parcel

    await log_actor_event(
        db, current_user, AuditAction.MEASUREMENTS_SUBMITTED,
        target_id=parcel.id,
        metadata={"weight": parcel.weight, "delivery_price": str(result.delivery_price)}
    )

    return MeasurementResponse(
        parcel_id=parcel.id,
        tracking_number=parcel.tracking_number,
        status=parcel.status,
        weight=parcel.weight,
        dimension_x=parcel.dimension_x,
        dimension_y=parcel.dimension_y,
        dimension_z=parcel.dimension_z,
        base_delivery_price=result.base_delivery_price,
        fast_delivery_fee=result.fast_delivery_fee,
        delivery_price=result.delivery_price,
        package_price=result.package_price,
        service_fee=result.service_fee,
        total_price=result.total_price,
        est_delivery_date=result.est_delivery_date
    )


@router.get("/my-parcels", response_model=List[ParcelSummaryResponse])
async def list_my_parcels(
    current_user: dict = Depends(require_carrier),
    queries: ParcelQueries = Depends(get_parcel_queries)
):
    views = await queries.list_carrier_parcels(current_user["user_id"])
    return [ParcelSummaryResponse.model_validate(v) for v in views]


@router.get("/route-stops/{parcel_id}", response_model=RouteResponse)
async def get_route_stops(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_carrier),
    queries: ParcelQueries = Depends(get_parcel_queries)
):
    view = await queries.get_route(current_user["user_id"], parcel_id)
    return RouteResponse(
        route_id=view.route.id,
        parcel_id=view.route.parcel_id,
        status=view.route.status,
        route_date=view.route.route_date,
        stops=[RouteStopResponse.model_validate(s) for s in view.stops]
    )


@router.post("/route-stops/{parcel_id}/{stop_id}/arrive", response_model=StopArrivalResponse)
async def record_stop_arrival(
    parcel_id: int = Path(..., description="Parcel ID"),
    stop_id: int = Path(..., description="Route stop ID"),
    data: StopArrivalRequest = ...,
    current_user: dict = Depends(require_carrier),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle),
    db: AsyncSession = Depends(get_db)
):
    """Mark a route stop as reached (on time or late)."""
    result = await lifecycle.record_stop_arrival(
        current_user["user_id"], parcel_id, stop_id,
        data.is_late, event_type=data.event_type, status=data.status
    )

    await log_actor_event(
        db, current_user, AuditAction.STOP_ARRIVAL_RECORDED,
        target_id=parcel_id,
        metadata={"stop_id": stop_id, "is_late": data.is_late, "route_completed": result.route_completed}
    )

    return StopArrivalResponse(
        stop=RouteStopResponse.model_validate(result.stop),
        route_completed=result.route_completed
    )


@router.post("/update-status/{parcel_id}", response_model=StatusUpdateResponse)
async def update_status(
    parcel_id: int = Path(..., description="Parcel ID"),
    data: StatusUpdateRequest = ...,
    current_user: dict = Depends(require_carrier),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle),
    db: AsyncSession = Depends(get_db)
):
    """General status update. Rejected while any warehouse stop is still pending."""
    parcel = await lifecycle.update_status(
        current_user["user_id"], parcel_id,
        data.event_type, data.status,
        description=data.description, location_id=data.location_id
    )

    await log_actor_event(
        db, current_user, AuditAction.PARCEL_STATUS_UPDATED,
        target_id=parcel.id, metadata={"event_type": data.event_type, "status": data.status}
    )

    return StatusUpdateResponse(
        message="Status updated",
        parcel_id=parcel.id,
        status=parcel.status
    )
