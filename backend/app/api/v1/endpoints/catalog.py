"""
Reference catalog endpoints (public).

List endpoints are cached in Redis; a Redis outage falls back to the database.
"""

from typing import List
from fastapi import APIRouter, Depends, Path
from backend.app.core.redis_client import get_redis
from backend.app.core.dependencies import get_catalog
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.domain.catalog.catalog_repository import CatalogRepository
from backend.app.schemas.catalog import (
    ProvinceResponse,
    BankResponse,
    PackageTypeResponse,
    DeliveryPlanResponse,
    OptionalServiceResponse,
)
from backend.app.services.cache import CacheService

router = APIRouter(tags=["Catalog"])


def get_cache(redis=Depends(get_redis)) -> CacheService:
    return CacheService(redis)


async def _cached_list(cache: CacheService, key: str, loader, schema):
    cached = await cache.get(key)
    if cached is not None:
        return cached

    rows = await loader()
    data = [schema.model_validate(row).model_dump(mode="json") for row in rows]
    await cache.set(key, data)
    return data


@router.get("/provinces", response_model=List[ProvinceResponse])
async def list_provinces(
    catalog: CatalogRepository = Depends(get_catalog),
    cache: CacheService = Depends(get_cache)
):
    return await _cached_list(cache, "provinces", catalog.list_provinces, ProvinceResponse)


@router.get("/banks", response_model=List[BankResponse])
async def list_banks(
    catalog: CatalogRepository = Depends(get_catalog),
    cache: CacheService = Depends(get_cache)
):
    return await _cached_list(cache, "banks", catalog.list_banks, BankResponse)


@router.get("/packages", response_model=List[PackageTypeResponse])
async def list_packages(
    catalog: CatalogRepository = Depends(get_catalog),
    cache: CacheService = Depends(get_cache)
):
    return await _cached_list(cache, "packages", catalog.list_package_types, PackageTypeResponse)


@router.get("/delivery-plans", response_model=List[DeliveryPlanResponse])
async def list_delivery_plans(
    catalog: CatalogRepository = Depends(get_catalog),
    cache: CacheService = Depends(get_cache)
):
    return await _cached_list(cache, "delivery-plans", catalog.list_delivery_plans, DeliveryPlanResponse)


@router.get("/delivery-plans/{plan_id}", response_model=DeliveryPlanResponse)
async def get_delivery_plan(
    plan_id: int = Path(..., description="Delivery plan ID"),
    catalog: CatalogRepository = Depends(get_catalog)
):
    plan = await catalog.get_delivery_plan(plan_id)
    if not plan:
        raise ResourceNotFoundError("Delivery plan", plan_id)
    return DeliveryPlanResponse.model_validate(plan)


@router.get("/optional-services", response_model=List[OptionalServiceResponse])
async def list_optional_services(
    catalog: CatalogRepository = Depends(get_catalog),
    cache: CacheService = Depends(get_cache)
):
    return await _cached_list(cache, "optional-services", catalog.list_optional_services, OptionalServiceResponse)


@router.get("/optional-services/{service_id}", response_model=OptionalServiceResponse)
async def get_optional_service(
    service_id: int = Path(..., description="Optional service ID"),
    catalog: CatalogRepository = Depends(get_catalog)
):
    service = await catalog.get_optional_service(service_id)
    if not service:
        raise ResourceNotFoundError("Optional service", service_id)
    return OptionalServiceResponse.model_validate(service)
