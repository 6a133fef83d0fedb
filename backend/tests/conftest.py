"""
Centralized Test Configuration.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.redis_client import get_redis
import backend.app.core.redis_client as redis_client_module
from backend.app.models.bank import Bank
from backend.app.models.delivery_plan import DeliveryPlan
from backend.app.models.location import Location
from backend.app.models.optional_service import OptionalService
from backend.app.models.package_type import PackageType
from backend.app.models.province import Province, ProvinceMapping
from backend.app.models.warehouse import Warehouse

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}

# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()

@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """

    # Patch the global redis client used by the health check
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client

@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


# --- Reference data ---

@pytest.fixture
async def catalog(db_session):
    """
    Deterministic catalog.

    Bangkok -> Chiang Mai has a flat mapping (150, 3 days); Bangkok -> Phuket
    has none and falls back to the province average plus surcharge.
    """
    bangkok = Province(name="Bangkok", base_price=Decimal("80.00"), delivery_days=2)
    chiang_mai = Province(name="Chiang Mai", base_price=Decimal("100.00"), delivery_days=4)
    phuket = Province(name="Phuket", base_price=Decimal("100.00"), delivery_days=5)
    db_session.add_all([bangkok, chiang_mai, phuket])
    await db_session.flush()

    db_session.add(ProvinceMapping(
        origin_province_id=bangkok.id, dest_province_id=chiang_mai.id,
        price=Decimal("150.00"), delivery_days=3
    ))

    box = PackageType(
        name="Box M", type="Box", size="M",
        dimension_x=30.0, dimension_y=20.0, dimension_z=10.0,
        price=Decimal("50.00"), is_active=True
    )
    retired_box = PackageType(
        name="Box XL", type="Box", size="XL",
        dimension_x=60.0, dimension_y=40.0, dimension_z=40.0,
        price=Decimal("90.00"), is_active=False
    )
    standard = DeliveryPlan(name="Standard", fast_delivery_fee=Decimal("0.00"), delivery_days_reduction=0, is_active=True)
    fast = DeliveryPlan(name="Fast", fast_delivery_fee=Decimal("40.00"), delivery_days_reduction=1, is_active=True)
    insurance = OptionalService(name="Insurance", service_fee=Decimal("30.00"), is_active=True)
    fragile = OptionalService(name="Fragile Handling", service_fee=Decimal("20.00"), is_active=True)
    bank = Bank(name="Kasikorn Bank", code="KBANK", is_active=True)
    db_session.add_all([box, retired_box, standard, fast, insurance, fragile, bank])
    await db_session.flush()

    warehouses = []
    for i, province in enumerate(["Bangkok", "Nakhon Sawan", "Chiang Mai"], start=1):
        location = Location(
            address=f"{i} Warehouse Rd", district="Mueang", subdistrict="Center",
            province=province, country="Thailand"
        )
        db_session.add(location)
        await db_session.flush()
        warehouse = Warehouse(name=f"Hub {province}", code=f"WH-{i}", location_id=location.id, is_active=True)
        db_session.add(warehouse)
        warehouses.append(warehouse)

    await db_session.commit()

    return SimpleNamespace(
        bangkok=bangkok, chiang_mai=chiang_mai, phuket=phuket,
        box=box, retired_box=retired_box,
        standard=standard, fast=fast,
        insurance=insurance, fragile=fragile,
        bank=bank, warehouses=warehouses
    )


# --- Accounts ---

async def register(client, role: str, email: str, **extra) -> dict:
    payload = {
        "email": email,
        "password": "secret123",
        "firstname": "Test",
        "lastname": role.title(),
        "phone": "0812345678",
        **extra
    }
    response = await client.post(f"/v1/auth/{role}/register", json=payload)
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "id": data["user_id"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"}
    }


@pytest.fixture
async def sender(client, catalog):
    """Sender with 500.00 topped up and a Bangkok home address."""
    account = await register(client, "sender", "sender@test.com")

    topup = await client.post(
        "/v1/balance/topup",
        json={"bank_id": catalog.bank.id, "amount": "500.00"},
        headers=account["headers"]
    )
    assert topup.status_code == 200, topup.text

    address = await client.post(
        "/v1/addresses",
        json={
            "name": "Home",
            "address": "1 Sukhumvit Rd",
            "district": "Watthana",
            "subdistrict": "Khlong Toei Nuea",
            "province": "Bangkok"
        },
        headers=account["headers"]
    )
    assert address.status_code == 201, address.text
    account["origin_location_id"] = address.json()["location_id"]
    return account


@pytest.fixture
async def carrier(client):
    return await register(client, "carrier", "carrier@test.com", vehicle_info="Van")


@pytest.fixture
def parcel_payload(sender, catalog):
    """Parcel from Bangkok to Chiang Mai in a Box M (50.00)."""
    return {
        "receiver_name": "Somchai",
        "receiver_phone": "0899999999",
        "item_type": "Electronics",
        "origin_location_id": sender["origin_location_id"],
        "destination": {
            "address": "22 Nimman Rd",
            "district": "Mueang",
            "subdistrict": "Suthep",
            "province": "Chiang Mai"
        },
        "selected_package_id": catalog.box.id
    }


# --- Lifecycle shortcuts ---

@pytest.fixture
async def accepted_parcel(client, sender, carrier, parcel_payload):
    """A parcel created, broadcast and accepted by `carrier`. Returns its id."""
    created = await client.post("/v1/parcels", json=parcel_payload, headers=sender["headers"])
    assert created.status_code == 201, created.text
    parcel_id = created.json()["id"]

    notified = await client.post(f"/v1/parcels/{parcel_id}/notify", headers=sender["headers"])
    assert notified.status_code == 200, notified.text

    accepted = await client.post(f"/v1/carriers/accept-parcel/{parcel_id}", headers=carrier["headers"])
    assert accepted.status_code == 200, accepted.text
    return parcel_id


@pytest.fixture
async def in_transit_parcel(client, carrier, accepted_parcel):
    """`accepted_parcel` after a 2kg pickup measurement."""
    measured = await client.post(
        f"/v1/carriers/submit-measurements/{accepted_parcel}",
        json={"weight": 2.0},
        headers=carrier["headers"]
    )
    assert measured.status_code == 200, measured.text
    return accepted_parcel


@pytest.fixture
def make_account(client):
    """Register extra senders/carriers: `await make_account("carrier", "c2@test.com")`."""
    async def _make(role: str, email: str, **extra):
        return await register(client, role, email, **extra)
    return _make
