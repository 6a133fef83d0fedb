"""
Pricing Engine (Domain Logic).

Computes delivery price, estimated delivery date, delivery-plan surcharge
and optional-service fees. Reference data comes from an injected
CatalogRepository.

Base price resolution:
1. Directed province mapping (origin, dest) -> flat price
2. Two distinct provinces known -> average of their base prices + surcharge
3. One province known (or origin == dest) -> its base price
4. Default price

Pricing never blocks a measurement submission: any lookup failure yields
the fallback price instead of raising.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from backend.app.domain.catalog.catalog_repository import (
    CatalogRepository,
    STANDARD_PLAN_NAME,
    FAST_PLAN_NAME,
)
from backend.app.models.delivery_plan import DeliveryPlan
from backend.app.models.optional_service import OptionalService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

PRICE_PER_KG = Decimal("5")
PRICE_PER_LITER = Decimal("2")
PROVINCE_PAIR_SURCHARGE = Decimal("30")
DEFAULT_BASE_PRICE = Decimal("50.00")
FALLBACK_PRICE = Decimal("100.00")
DEFAULT_DELIVERY_DAYS = 3
MIN_DELIVERY_DAYS = 1


def to_money(value) -> Decimal:
    """Round to 2 decimals, half-up. Floats go through str() to avoid binary noise."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class PriceQuote:
    base_price: Decimal
    fast_delivery_fee: Decimal
    total_price: Decimal
    est_delivery_date: datetime
    plan: Optional[DeliveryPlan] = None


@dataclass
class ServiceFeeQuote:
    services: List[OptionalService] = field(default_factory=list)
    total_fee: Decimal = Decimal("0.00")


class PricingEngine:

    def __init__(self, catalog: CatalogRepository):
        self.catalog = catalog

    async def calculate_base_price(
        self,
        weight: float,
        dim_x: float,
        dim_y: float,
        dim_z: float,
        origin_province: Optional[str],
        dest_province: Optional[str]
    ) -> Decimal:
        """
        Delivery price for a measured parcel.

        Example:
            mapping (A, B) = 150, weight 10kg, 20x20x20cm
            150 + 10*5 + (8000/1000)*2 = 216.00
        """
        try:
            route_price = await self._resolve_route_price(origin_province, dest_province)

            weight_cost = Decimal(str(weight)) * PRICE_PER_KG
            volume_liters = (Decimal(str(dim_x)) * Decimal(str(dim_y)) * Decimal(str(dim_z))) / Decimal("1000")
            volume_cost = volume_liters * PRICE_PER_LITER

            return to_money(route_price + weight_cost + volume_cost)
        except Exception:
            logger.exception(
                "Base price calculation failed for %s -> %s, using fallback %s",
                origin_province, dest_province, FALLBACK_PRICE
            )
            return FALLBACK_PRICE

    async def _resolve_route_price(self, origin_province: Optional[str], dest_province: Optional[str]) -> Decimal:
        if origin_province and dest_province:
            mapping = await self.catalog.get_province_mapping(origin_province, dest_province)
            if mapping:
                return Decimal(mapping.price)

        origin = await self.catalog.get_province(origin_province) if origin_province else None
        dest = await self.catalog.get_province(dest_province) if dest_province else None

        # Same province resolves to a single row, priced without the pair surcharge
        if origin and dest and origin.id != dest.id:
            return (Decimal(origin.base_price) + Decimal(dest.base_price)) / 2 + PROVINCE_PAIR_SURCHARGE
        if origin:
            return Decimal(origin.base_price)
        if dest:
            return Decimal(dest.base_price)
        return DEFAULT_BASE_PRICE

    async def calculate_delivery_date(
        self,
        origin_province: Optional[str],
        dest_province: Optional[str],
        now: Optional[datetime] = None
    ) -> datetime:
        now = now or datetime.now(timezone.utc)
        try:
            days = await self._resolve_delivery_days(origin_province, dest_province)
        except Exception:
            logger.exception(
                "Delivery date lookup failed for %s -> %s, using %s days",
                origin_province, dest_province, DEFAULT_DELIVERY_DAYS
            )
            days = DEFAULT_DELIVERY_DAYS
        return now + timedelta(days=days)

    async def _resolve_delivery_days(self, origin_province: Optional[str], dest_province: Optional[str]) -> int:
        if origin_province and dest_province:
            mapping = await self.catalog.get_province_mapping(origin_province, dest_province)
            if mapping and mapping.delivery_days:
                return mapping.delivery_days

        if dest_province:
            dest = await self.catalog.get_province(dest_province)
            if dest and dest.delivery_days:
                return dest.delivery_days

        return DEFAULT_DELIVERY_DAYS

    async def resolve_plan(self, plan_id: Optional[int] = None, active_only: bool = True) -> Optional[DeliveryPlan]:
        """
        Explicit plan, else the active Standard plan, else None.

        Pass active_only=False when re-pricing a parcel whose plan was chosen
        earlier and may since have been deactivated.
        """
        if plan_id is not None:
            plan = await self.catalog.get_delivery_plan(plan_id, active_only=active_only)
            if plan:
                return plan
        return await self.catalog.get_delivery_plan_by_name(STANDARD_PLAN_NAME)

    @staticmethod
    def fast_fee_for(plan: Optional[DeliveryPlan]) -> Decimal:
        if plan and plan.name == FAST_PLAN_NAME:
            return to_money(plan.fast_delivery_fee or 0)
        return Decimal("0.00")

    async def calculate_with_plan(
        self,
        weight: float,
        dim_x: float,
        dim_y: float,
        dim_z: float,
        origin_province: Optional[str],
        dest_province: Optional[str],
        plan_id: Optional[int] = None,
        now: Optional[datetime] = None,
        active_only: bool = True
    ) -> PriceQuote:
        now = now or datetime.now(timezone.utc)

        base_price = await self.calculate_base_price(weight, dim_x, dim_y, dim_z, origin_province, dest_province)
        est_delivery_date = await self.calculate_delivery_date(origin_province, dest_province, now=now)

        plan = await self.resolve_plan(plan_id, active_only=active_only)
        fast_fee = self.fast_fee_for(plan)

        if plan and plan.name == FAST_PLAN_NAME:
            reduction = plan.delivery_days_reduction or 0
            earliest = now + timedelta(days=MIN_DELIVERY_DAYS)
            est_delivery_date = max(est_delivery_date - timedelta(days=reduction), earliest)

        return PriceQuote(
            base_price=base_price,
            fast_delivery_fee=fast_fee,
            total_price=to_money(base_price + fast_fee),
            est_delivery_date=est_delivery_date,
            plan=plan,
        )

    async def calculate_service_fees(self, service_ids: Optional[Iterable[int]]) -> ServiceFeeQuote:
        ids = list(service_ids or [])
        if not ids:
            return ServiceFeeQuote()

        services = await self.catalog.get_optional_services(ids)
        total = sum((Decimal(s.service_fee) for s in services), Decimal("0"))
        return ServiceFeeQuote(services=services, total_fee=to_money(total))
