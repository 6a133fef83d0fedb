"""
Parcel API Endpoints (sender side and public tracking).

Thin wrappers: every rule lives in ParcelLifecycle / ParcelQueries.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.schemas.parcel import (
    ParcelCreate,
    ParcelResponse,
    ParcelSummaryResponse,
    ParcelDetailResponse,
    PriceCalculationRequest,
    PriceCalculationResponse,
    TrackingResponse,
    NotifyCarriersResponse,
)
from backend.app.core.guards import require_sender, require_role
from backend.app.core.dependencies import get_parcel_lifecycle, get_parcel_queries
from backend.app.domain.parcels.parcel_lifecycle import ParcelLifecycle
from backend.app.domain.parcels.parcel_queries import ParcelQueries
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.post("/calculate", response_model=PriceCalculationResponse)
async def calculate_price(
    data: PriceCalculationRequest,
    current_user: dict = Depends(require_sender),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle)
):
    """Price calculator. Origin is the sender's most recently added address."""
    preview = await lifecycle.preview_price(
        current_user["user_id"],
        data.weight, data.dimension_x, data.dimension_y, data.dimension_z,
        data.dest_province,
        plan_id=data.delivery_plan_id,
        service_ids=data.optional_service_ids
    )
    return PriceCalculationResponse(
        origin_province=preview.origin_province,
        dest_province=preview.dest_province,
        delivery_plan=preview.quote.plan.name if preview.quote.plan else None,
        base_price=preview.quote.base_price,
        fast_delivery_fee=preview.quote.fast_delivery_fee,
        service_fee=preview.services.total_fee,
        total_price=preview.total_price,
        est_delivery_date=preview.quote.est_delivery_date
    )


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    data: ParcelCreate,
    current_user: dict = Depends(require_sender),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a parcel (Sender only).

    Charges the selected package and optional services up front.
    """
    parcel = await lifecycle.create_parcel(current_user["user_id"], data)

    await log_actor_event(
        db, current_user, AuditAction.PARCEL_CREATED,
        target_id=parcel.id,
        metadata={
            "tracking_number": parcel.tracking_number,
            "package_price": str(parcel.package_price),
            "service_fee": str(parcel.service_fee)
        }
    )

    return ParcelResponse.model_validate(parcel)


@router.get("/sender", response_model=List[ParcelSummaryResponse])
async def list_sender_parcels(
    current_user: dict = Depends(require_sender),
    queries: ParcelQueries = Depends(get_parcel_queries)
):
    views = await queries.list_sender_parcels(current_user["user_id"])
    return [ParcelSummaryResponse.model_validate(v) for v in views]


@router.get("/track/{tracking_number}", response_model=TrackingResponse)
async def track_parcel(
    tracking_number: str = Path(..., min_length=12, max_length=12),
    queries: ParcelQueries = Depends(get_parcel_queries)
):
    """Public tracking. No authentication; price fields are never included."""
    detail = await queries.track(tracking_number)
    return TrackingResponse.model_validate(detail)


@router.get("/{parcel_id}", response_model=ParcelDetailResponse)
async def get_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_role([UserRole.SENDER, UserRole.CARRIER])),
    queries: ParcelQueries = Depends(get_parcel_queries)
):
    detail = await queries.get_parcel_detail(
        parcel_id, UserRole(current_user["role"]), current_user["user_id"]
    )
    return ParcelDetailResponse.model_validate(detail)


@router.post("/{parcel_id}/notify", response_model=NotifyCarriersResponse)
async def notify_carriers(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_sender),
    lifecycle: ParcelLifecycle = Depends(get_parcel_lifecycle),
    db: AsyncSession = Depends(get_db)
):
    """Broadcast a pending parcel to every available carrier."""
    notified = await lifecycle.notify_carriers(current_user["user_id"], parcel_id)

    await log_actor_event(
        db, current_user, AuditAction.CARRIERS_NOTIFIED,
        target_id=parcel_id, metadata={"notified_count": notified}
    )

    return NotifyCarriersResponse(
        message=f"Notified {notified} carriers",
        notified_count=notified
    )
