"""
Pricing Engine Tests.

Base price resolution order, delivery date estimation, delivery plans
and optional service fees.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from backend.app.domain.catalog.catalog_repository import CatalogRepository
from backend.app.domain.pricing.pricing_engine import PricingEngine, to_money, FALLBACK_PRICE
from backend.app.models.delivery_plan import DeliveryPlan
from backend.app.models.province import ProvinceMapping

NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(db_session, catalog):
    return PricingEngine(CatalogRepository(db_session))


def test_to_money_rounds_half_up():
    assert to_money(Decimal("1.005")) == Decimal("1.01")
    assert to_money(0.1 + 0.2) == Decimal("0.30")
    assert str(to_money(216)) == "216.00"


@pytest.mark.asyncio
async def test_mapping_price(engine):
    """Directed mapping wins: 150 + 10*5 + (8000/1000)*2."""
    price = await engine.calculate_base_price(10, 20, 20, 20, "Bangkok", "Chiang Mai")
    assert price == Decimal("216.00")


@pytest.mark.asyncio
async def test_average_price_without_mapping(engine):
    """No mapping: (80 + 100)/2 + 30 + 50 + 16."""
    price = await engine.calculate_base_price(10, 20, 20, 20, "Bangkok", "Phuket")
    assert price == Decimal("186.00")


@pytest.mark.asyncio
async def test_mapping_is_directed(engine):
    """Chiang Mai -> Bangkok has no row of its own."""
    price = await engine.calculate_base_price(10, 20, 20, 20, "Chiang Mai", "Bangkok")
    assert price == Decimal("186.00")


@pytest.mark.asyncio
async def test_single_known_province(engine):
    price = await engine.calculate_base_price(1, 10, 10, 10, "Atlantis", "Chiang Mai")
    # 100 + 5 + 2
    assert price == Decimal("107.00")


@pytest.mark.asyncio
async def test_same_province_uses_its_base_price(engine):
    """Phuket -> Phuket has no mapping and takes no pair surcharge."""
    price = await engine.calculate_base_price(1, 10, 10, 10, "Phuket", "Phuket")
    # 100 + 5 + 2
    assert price == Decimal("107.00")


@pytest.mark.asyncio
async def test_default_price_when_no_province_resolves(engine):
    price = await engine.calculate_base_price(1, 10, 10, 10, None, "Atlantis")
    assert price == Decimal("57.00")


@pytest.mark.asyncio
async def test_lookup_failure_returns_fallback(engine, mocker):
    mocker.patch.object(
        CatalogRepository, "get_province_mapping",
        side_effect=RuntimeError("catalog unavailable")
    )

    price = await engine.calculate_base_price(10, 20, 20, 20, "Bangkok", "Chiang Mai")
    assert price == FALLBACK_PRICE


@pytest.mark.asyncio
async def test_delivery_date_resolution(engine):
    mapped = await engine.calculate_delivery_date("Bangkok", "Chiang Mai", now=NOW)
    by_dest = await engine.calculate_delivery_date("Bangkok", "Phuket", now=NOW)
    unknown = await engine.calculate_delivery_date("Atlantis", "Lemuria", now=NOW)

    assert mapped == NOW + timedelta(days=3)
    assert by_dest == NOW + timedelta(days=5)
    assert unknown == NOW + timedelta(days=3)


@pytest.mark.asyncio
async def test_standard_plan_is_default(engine, catalog):
    quote = await engine.calculate_with_plan(10, 20, 20, 20, "Bangkok", "Chiang Mai", now=NOW)

    assert quote.plan.id == catalog.standard.id
    assert quote.fast_delivery_fee == Decimal("0.00")
    assert quote.total_price == Decimal("216.00")
    assert quote.est_delivery_date == NOW + timedelta(days=3)


@pytest.mark.asyncio
async def test_fast_plan_adds_fee_and_shortens_delivery(engine, catalog):
    quote = await engine.calculate_with_plan(
        10, 20, 20, 20, "Bangkok", "Chiang Mai", plan_id=catalog.fast.id, now=NOW
    )

    assert quote.base_price == Decimal("216.00")
    assert quote.fast_delivery_fee == Decimal("40.00")
    assert quote.total_price == Decimal("256.00")
    assert quote.est_delivery_date == NOW + timedelta(days=2)


@pytest.mark.asyncio
async def test_fast_plan_never_estimates_same_day(engine, catalog, db_session):
    db_session.add(ProvinceMapping(
        origin_province_id=catalog.chiang_mai.id, dest_province_id=catalog.bangkok.id,
        price=Decimal("150.00"), delivery_days=1
    ))
    await db_session.commit()

    quote = await engine.calculate_with_plan(
        1, 10, 10, 10, "Chiang Mai", "Bangkok", plan_id=catalog.fast.id, now=NOW
    )
    assert quote.est_delivery_date == NOW + timedelta(days=1)


@pytest.mark.asyncio
async def test_inactive_plan_falls_back_to_standard(engine, catalog, db_session):
    express = DeliveryPlan(name="Express", fast_delivery_fee=Decimal("90.00"), delivery_days_reduction=2, is_active=False)
    db_session.add(express)
    await db_session.commit()

    plan = await engine.resolve_plan(express.id)
    assert plan.id == catalog.standard.id


@pytest.mark.asyncio
async def test_deactivated_plan_still_applies_when_requested(engine, catalog, db_session):
    catalog.fast.is_active = False
    await db_session.commit()

    assert (await engine.resolve_plan(catalog.fast.id)).id == catalog.standard.id

    quote = await engine.calculate_with_plan(
        10, 20, 20, 20, "Bangkok", "Chiang Mai", plan_id=catalog.fast.id, now=NOW, active_only=False
    )
    assert quote.plan.id == catalog.fast.id
    assert quote.fast_delivery_fee == Decimal("40.00")
    assert quote.est_delivery_date == NOW + timedelta(days=2)


@pytest.mark.asyncio
async def test_service_fees_sum_known_services(engine, catalog):
    quote = await engine.calculate_service_fees([catalog.insurance.id, catalog.fragile.id, 9999])

    assert quote.total_fee == Decimal("50.00")
    assert {s.id for s in quote.services} == {catalog.insurance.id, catalog.fragile.id}

    empty = await engine.calculate_service_fees([])
    assert empty.total_fee == Decimal("0.00")
