"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, users, addresses, balance,
    parcels, carriers, catalog, notifications
)

router = APIRouter()

# Authentication (senders and carriers)
router.include_router(auth.router)

# Sender endpoints
router.include_router(users.router)
router.include_router(addresses.router)
router.include_router(balance.router)

# Parcel lifecycle
router.include_router(parcels.router)
router.include_router(carriers.router)

# Reference catalogs
router.include_router(catalog.router)

# Notifications
router.include_router(notifications.router)
