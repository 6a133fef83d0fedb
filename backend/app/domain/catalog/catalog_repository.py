"""
Catalog Repository.

Read-only access to reference data: provinces, province mappings,
package types, delivery plans, optional services and banks.
Injected into the pricing engine and the parcel lifecycle.
"""

from typing import Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.models.province import Province, ProvinceMapping
from backend.app.models.package_type import PackageType
from backend.app.models.delivery_plan import DeliveryPlan
from backend.app.models.optional_service import OptionalService
from backend.app.models.bank import Bank


STANDARD_PLAN_NAME = "Standard"
FAST_PLAN_NAME = "Fast"


class CatalogRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    # Provinces

    async def get_province(self, name: str) -> Optional[Province]:
        result = await self.db.execute(select(Province).where(Province.name == name))
        return result.scalar_one_or_none()

    async def get_province_mapping(self, origin_name: str, dest_name: str) -> Optional[ProvinceMapping]:
        """Directed lookup: (origin, dest) does not match (dest, origin)."""
        origin = await self.get_province(origin_name)
        dest = await self.get_province(dest_name)
        if not origin or not dest:
            return None

        result = await self.db.execute(
            select(ProvinceMapping).where(
                ProvinceMapping.origin_province_id == origin.id,
                ProvinceMapping.dest_province_id == dest.id
            )
        )
        return result.scalar_one_or_none()

    async def list_provinces(self) -> List[Province]:
        result = await self.db.execute(select(Province).order_by(Province.name))
        return list(result.scalars().all())

    # Packages

    async def get_package_type(self, package_id: int, active_only: bool = True) -> Optional[PackageType]:
        query = select(PackageType).where(PackageType.id == package_id)
        if active_only:
            query = query.where(PackageType.is_active == True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_package_types(self) -> List[PackageType]:
        result = await self.db.execute(
            select(PackageType).where(PackageType.is_active == True).order_by(PackageType.price)
        )
        return list(result.scalars().all())

    # Delivery plans

    async def get_delivery_plan(self, plan_id: int, active_only: bool = True) -> Optional[DeliveryPlan]:
        query = select(DeliveryPlan).where(DeliveryPlan.id == plan_id)
        if active_only:
            query = query.where(DeliveryPlan.is_active == True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_delivery_plan_by_name(self, name: str) -> Optional[DeliveryPlan]:
        result = await self.db.execute(
            select(DeliveryPlan).where(DeliveryPlan.name == name, DeliveryPlan.is_active == True)
        )
        return result.scalar_one_or_none()

    async def list_delivery_plans(self) -> List[DeliveryPlan]:
        result = await self.db.execute(
            select(DeliveryPlan).where(DeliveryPlan.is_active == True).order_by(DeliveryPlan.id)
        )
        return list(result.scalars().all())

    # Optional services

    async def get_optional_service(self, service_id: int) -> Optional[OptionalService]:
        result = await self.db.execute(
            select(OptionalService).where(
                OptionalService.id == service_id,
                OptionalService.is_active == True
            )
        )
        return result.scalar_one_or_none()

    async def get_optional_services(self, service_ids: Iterable[int]) -> List[OptionalService]:
        ids = list(service_ids)
        if not ids:
            return []
        result = await self.db.execute(
            select(OptionalService).where(
                OptionalService.id.in_(ids),
                OptionalService.is_active == True
            ).order_by(OptionalService.id)
        )
        return list(result.scalars().all())

    async def list_optional_services(self) -> List[OptionalService]:
        result = await self.db.execute(
            select(OptionalService).where(OptionalService.is_active == True).order_by(OptionalService.id)
        )
        return list(result.scalars().all())

    # Banks

    async def get_bank(self, bank_id: int) -> Optional[Bank]:
        result = await self.db.execute(
            select(Bank).where(Bank.id == bank_id, Bank.is_active == True)
        )
        return result.scalar_one_or_none()

    async def list_banks(self) -> List[Bank]:
        result = await self.db.execute(
            select(Bank).where(Bank.is_active == True).order_by(Bank.name)
        )
        return list(result.scalars().all())
