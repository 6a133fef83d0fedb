"""
FastAPI Application Entry Point.

This is the main application file for the Parcel Marketplace Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import ping_redis
from backend.app.db.session import engine, Base
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.carrier import Carrier
from backend.app.models.location import Location, UserLocation
from backend.app.models.province import Province, ProvinceMapping
from backend.app.models.warehouse import Warehouse
from backend.app.models.package_type import PackageType
from backend.app.models.delivery_plan import DeliveryPlan
from backend.app.models.bank import Bank
from backend.app.models.parcel import Parcel, ParcelLocation, ParcelAssignment
from backend.app.models.optional_service import OptionalService, ParcelService
from backend.app.models.route import Route, RouteStop
from backend.app.models.shipment_event import ShipmentEvent
from backend.app.models.transaction import Transaction
from backend.app.models.notification import Notification
from backend.app.models.audit_log import AuditLog

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup and disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel delivery marketplace connecting senders and carriers",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and cache reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "cache": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Parcel Marketplace Backend API",
        "docs": "/docs",
        "health": "/health",
    }
