"""
Database seeding script for reference catalogs and demo accounts.

Creates provinces, province mappings, package types, delivery plans,
optional services, banks, warehouses and one demo sender and carrier.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from backend.app.db.session import MarketplaceSession, engine, Base
from backend.app.core.security import get_password_hash
from backend.app.domain.locations.location_service import get_or_create_location
from backend.app.models.bank import Bank
from backend.app.models.carrier import Carrier
from backend.app.models.delivery_plan import DeliveryPlan
from backend.app.models.optional_service import OptionalService
from backend.app.models.package_type import PackageType
from backend.app.models.province import Province, ProvinceMapping
from backend.app.models.user import User
from backend.app.models.warehouse import Warehouse

# name, base price, delivery days
PROVINCES = [
    ("Bangkok", "40.00", 1),
    ("Chiang Mai", "80.00", 3),
    ("Phuket", "100.00", 3),
    ("Khon Kaen", "70.00", 2),
    ("Songkhla", "90.00", 3),
]

# origin, destination, flat price, delivery days
PROVINCE_MAPPINGS = [
    ("Bangkok", "Chiang Mai", "150.00", 2),
    ("Chiang Mai", "Bangkok", "150.00", 2),
    ("Bangkok", "Phuket", "170.00", 2),
    ("Phuket", "Bangkok", "170.00", 2),
    ("Bangkok", "Khon Kaen", "120.00", 1),
]

# name, type, size, x, y, z, price
PACKAGE_TYPES = [
    ("Envelope A4", "Envelope", "S", 32.0, 23.0, 1.0, "10.00"),
    ("Box S", "Box", "S", 20.0, 15.0, 10.0, "25.00"),
    ("Box M", "Box", "M", 30.0, 20.0, 10.0, "50.00"),
    ("Box L", "Box", "L", 45.0, 35.0, 25.0, "80.00"),
]

DELIVERY_PLANS = [
    ("Standard", "Regular delivery", "0.00", 0),
    ("Fast", "Priority handling, one day faster", "40.00", 1),
]

OPTIONAL_SERVICES = [
    ("Insurance", "Covers loss or damage up to 5,000", "30.00"),
    ("Fragile Handling", "Extra padding and careful handling", "20.00"),
    ("SMS Tracking", "Status updates by SMS to the receiver", "5.00"),
]

BANKS = [
    ("Kasikorn Bank", "KBANK"),
    ("Siam Commercial Bank", "SCB"),
    ("Bangkok Bank", "BBL"),
]

# name, code, address tuple
WAREHOUSES = [
    ("Bangkok Central Hub", "WH-BKK", ("99 Vibhavadi Rangsit Rd", "Chatuchak", "Lat Yao", "Bangkok")),
    ("Ayutthaya Transit", "WH-AYT", ("12 Asian Highway", "Bang Pa-in", "Ban Len", "Phra Nakhon Si Ayutthaya")),
    ("Nakhon Sawan Depot", "WH-NSN", ("45 Phahonyothin Rd", "Mueang", "Pak Nam Pho", "Nakhon Sawan")),
    ("Chiang Mai North Hub", "WH-CNX", ("8 Superhighway Rd", "Mueang", "Wat Ket", "Chiang Mai")),
    ("Surat Thani South Hub", "WH-URT", ("3 Karoonrat Rd", "Mueang", "Makham Tia", "Surat Thani")),
]


async def seed_catalog():
    """Seed reference data. Skips everything if provinces already exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with MarketplaceSession() as db:
        print("🌱 Starting catalog seeding...")

        result = await db.execute(select(Province).limit(1))
        if result.scalar_one_or_none():
            print("ℹ️  Catalog already seeded, skipping")
            return

        provinces = {}
        for name, base_price, days in PROVINCES:
            province = Province(name=name, base_price=Decimal(base_price), delivery_days=days)
            db.add(province)
            provinces[name] = province
        await db.flush()
        print(f"✅ Created {len(PROVINCES)} provinces")

        for origin, dest, price, days in PROVINCE_MAPPINGS:
            db.add(ProvinceMapping(
                origin_province_id=provinces[origin].id,
                dest_province_id=provinces[dest].id,
                price=Decimal(price),
                delivery_days=days
            ))
        print(f"✅ Created {len(PROVINCE_MAPPINGS)} province mappings")

        for name, type_, size, x, y, z, price in PACKAGE_TYPES:
            db.add(PackageType(
                name=name, type=type_, size=size,
                dimension_x=x, dimension_y=y, dimension_z=z,
                price=Decimal(price), is_active=True
            ))
        print(f"✅ Created {len(PACKAGE_TYPES)} package types")

        for name, description, fee, reduction in DELIVERY_PLANS:
            db.add(DeliveryPlan(
                name=name, description=description,
                fast_delivery_fee=Decimal(fee), delivery_days_reduction=reduction, is_active=True
            ))
        print("✅ Created delivery plans (Standard, Fast)")

        for name, description, fee in OPTIONAL_SERVICES:
            db.add(OptionalService(name=name, description=description, service_fee=Decimal(fee), is_active=True))
        print(f"✅ Created {len(OPTIONAL_SERVICES)} optional services")

        for name, code in BANKS:
            db.add(Bank(name=name, code=code, is_active=True))
        print(f"✅ Created {len(BANKS)} banks")

        for name, code, (address, district, subdistrict, province) in WAREHOUSES:
            location = await get_or_create_location(db, address, district, subdistrict, province)
            db.add(Warehouse(name=name, code=code, location_id=location.id, is_active=True))
        print(f"✅ Created {len(WAREHOUSES)} warehouses")

        db.add(User(
            email="sender@parcel.com",
            phone="0800000001",
            firstname="Demo",
            lastname="Sender",
            hashed_password=get_password_hash("sender123"),
            balance=Decimal("0.00"),
            is_active=True
        ))
        db.add(Carrier(
            email="carrier@parcel.com",
            phone="0800000002",
            firstname="Demo",
            lastname="Carrier",
            hashed_password=get_password_hash("carrier123"),
            vehicle_info="Pickup truck",
            vehicle_license="1กข-1234",
            employment_type="Freelance",
            is_available=True,
            is_active=True
        ))

        await db.commit()

        print("\n🎉 Catalog seeding completed successfully!")
        print("\nDemo accounts:")
        print("  - SENDER:  sender@parcel.com / sender123")
        print("  - CARRIER: carrier@parcel.com / carrier123")


if __name__ == "__main__":
    asyncio.run(seed_catalog())
