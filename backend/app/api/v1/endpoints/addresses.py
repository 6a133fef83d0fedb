"""
Sender address book endpoints.

Addresses are user labels on shared, deduplicated locations.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.location import Location, UserLocation
from backend.app.schemas.address import AddressCreate, AddressResponse, AddressDeleteResponse, LocationResponse
from backend.app.core.guards import require_sender
from backend.app.domain.locations.location_service import (
    add_user_address,
    update_user_address,
    delete_user_address,
)
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/addresses", tags=["Sender - Addresses"])


def _split(data: AddressCreate):
    fields = data.model_dump()
    name = fields.pop("name")
    return name, fields


async def _to_response(db: AsyncSession, user_location: UserLocation) -> AddressResponse:
    location = await db.get(Location, user_location.location_id)
    return AddressResponse(
        id=user_location.id,
        name=user_location.name,
        location_id=user_location.location_id,
        location=LocationResponse.model_validate(location)
    )


@router.post("", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
async def create_address(
    data: AddressCreate,
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    """Add an address. Re-adding an existing location just renames it."""
    name, fields = _split(data)
    user_location = await add_user_address(db, current_user["user_id"], name, **fields)
    await db.commit()
    await db.refresh(user_location)

    await log_actor_event(db, current_user, AuditAction.ADDRESS_CREATED, target_id=user_location.id)
    return await _to_response(db, user_location)


@router.get("", response_model=List[AddressResponse])
async def list_addresses(
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(UserLocation, Location)
        .join(Location, Location.id == UserLocation.location_id)
        .where(UserLocation.user_id == current_user["user_id"])
        .order_by(UserLocation.id)
    )
    return [
        AddressResponse(
            id=user_location.id,
            name=user_location.name,
            location_id=location.id,
            location=LocationResponse.model_validate(location)
        )
        for user_location, location in result.all()
    ]


@router.put("/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: int = Path(..., description="Address ID"),
    data: AddressCreate = ...,
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    name, fields = _split(data)
    user_location = await update_user_address(db, current_user["user_id"], address_id, name, **fields)
    await db.commit()
    await db.refresh(user_location)

    await log_actor_event(db, current_user, AuditAction.ADDRESS_UPDATED, target_id=user_location.id)
    return await _to_response(db, user_location)


@router.delete("/{address_id}", response_model=AddressDeleteResponse)
async def delete_address(
    address_id: int = Path(..., description="Address ID"),
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    """Remove an address; the location itself goes only when nothing else uses it."""
    location_deleted = await delete_user_address(db, current_user["user_id"], address_id)
    await db.commit()

    await log_actor_event(
        db, current_user, AuditAction.ADDRESS_DELETED,
        target_id=address_id, metadata={"location_deleted": location_deleted}
    )
    return AddressDeleteResponse(message="Address deleted", location_deleted=location_deleted)
