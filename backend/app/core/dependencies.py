"""
FastAPI dependencies.

Authentication (JWT -> caller identity dict) and the wiring of the
domain services for each request. All domain services of a request
share the request's database session.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.core.jwt import decode_access_token
from backend.app.db.session import get_db
from backend.app.domain.billing.balance_ledger import BalanceLedger
from backend.app.domain.catalog.catalog_repository import CatalogRepository
from backend.app.domain.parcels.parcel_lifecycle import ParcelLifecycle
from backend.app.domain.parcels.parcel_queries import ParcelQueries
from backend.app.domain.pricing.pricing_engine import PricingEngine
from backend.app.domain.routing.route_planner import RouteStopPlanner
from backend.app.models.carrier import Carrier
from backend.app.models.enums import UserRole
from backend.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks:
    1. Validates JWT token signature and expiry
    2. Requires user_id and a known role in the payload
    3. Verifies the sender/carrier still exists and is active (real-time check)

    Returns:
        Decoded token payload ({"sub", "user_id", "role", "exp"})

    Raises:
        HTTPException: 401 if authentication fails, 403 if the account is inactive
    """
    token = credentials.credentials

    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        role = None

    if not user_id or role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. Real-time database check: senders and carriers live in separate tables
    model = User if role == UserRole.SENDER else Carrier
    result = await db.execute(select(model).where(model.id == user_id))
    account = result.scalar_one_or_none()

    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    return payload


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogRepository:
    return CatalogRepository(db)


def get_pricing_engine(catalog: CatalogRepository = Depends(get_catalog)) -> PricingEngine:
    return PricingEngine(catalog)


def get_route_planner() -> RouteStopPlanner:
    return RouteStopPlanner()


def get_balance_ledger(db: AsyncSession = Depends(get_db)) -> BalanceLedger:
    return BalanceLedger(db)


def get_parcel_queries(db: AsyncSession = Depends(get_db)) -> ParcelQueries:
    return ParcelQueries(db)


def get_parcel_lifecycle(
    db: AsyncSession = Depends(get_db),
    catalog: CatalogRepository = Depends(get_catalog),
    pricing: PricingEngine = Depends(get_pricing_engine),
    planner: RouteStopPlanner = Depends(get_route_planner),
    ledger: BalanceLedger = Depends(get_balance_ledger)
) -> ParcelLifecycle:
    return ParcelLifecycle(db, catalog, pricing, planner, ledger)
