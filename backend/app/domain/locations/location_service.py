"""
Location Service.

Locations are deduplicated by their exact
(address, district, subdistrict, province, country) tuple and shared by
user addresses, parcels, warehouses and route stops. A Location row is
removed only once none of those four tables reference it.

Functions flush; the caller commits.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from sqlalchemy.exc import IntegrityError

from backend.app.core.config import settings
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.models.location import Location, UserLocation
from backend.app.models.parcel import ParcelLocation
from backend.app.models.route import RouteStop
from backend.app.models.warehouse import Warehouse

logger = logging.getLogger(__name__)


async def _find_location(
    db: AsyncSession,
    address: str,
    district: str,
    subdistrict: str,
    province: str,
    country: str
) -> Optional[Location]:
    result = await db.execute(
        select(Location).where(
            Location.address == address,
            Location.district == district,
            Location.subdistrict == subdistrict,
            Location.province == province,
            Location.country == country,
        )
    )
    return result.scalar_one_or_none()


async def get_or_create_location(
    db: AsyncSession,
    address: str,
    district: str,
    subdistrict: str,
    province: str,
    country: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None
) -> Location:
    """
    Return the Location for this exact tuple, inserting it if needed.

    A concurrent insert of the same tuple trips the unique constraint;
    the savepoint is rolled back and the winner's row is returned.
    """
    country = country or settings.default_country

    location = await _find_location(db, address, district, subdistrict, province, country)
    if location:
        return location

    try:
        async with db.begin_nested():
            location = Location(
                address=address,
                district=district,
                subdistrict=subdistrict,
                province=province,
                country=country,
                latitude=latitude,
                longitude=longitude,
            )
            db.add(location)
            await db.flush()
        return location
    except IntegrityError:
        logger.info("Location insert raced for %s, %s; re-fetching", address, province)
        location = await _find_location(db, address, district, subdistrict, province, country)
        if location is None:
            raise
        return location


async def is_location_referenced(db: AsyncSession, location_id: int) -> bool:
    referencing = (
        select(UserLocation.id).where(UserLocation.location_id == location_id).exists(),
        select(ParcelLocation.id).where(ParcelLocation.location_id == location_id).exists(),
        select(Warehouse.id).where(Warehouse.location_id == location_id).exists(),
        select(RouteStop.id).where(RouteStop.location_id == location_id).exists(),
    )
    result = await db.execute(select(or_(*referencing)))
    return bool(result.scalar())


async def delete_location_if_unreferenced(db: AsyncSession, location_id: int) -> bool:
    """Delete the Location when nothing references it. Returns True if deleted."""
    if await is_location_referenced(db, location_id):
        return False

    await db.execute(delete(Location).where(Location.id == location_id))
    await db.flush()
    logger.info("Deleted unreferenced location %s", location_id)
    return True


async def _get_user_location(db: AsyncSession, user_id: int, user_location_id: int) -> UserLocation:
    result = await db.execute(
        select(UserLocation).where(
            UserLocation.id == user_location_id,
            UserLocation.user_id == user_id
        )
    )
    user_location = result.scalar_one_or_none()
    if not user_location:
        raise ResourceNotFoundError("Address", user_location_id)
    return user_location


async def _find_association(db: AsyncSession, user_id: int, location_id: int) -> Optional[UserLocation]:
    result = await db.execute(
        select(UserLocation).where(
            UserLocation.user_id == user_id,
            UserLocation.location_id == location_id
        )
    )
    return result.scalar_one_or_none()


async def add_user_address(db: AsyncSession, user_id: int, name: str, **fields) -> UserLocation:
    """Link a (deduplicated) location to the user. An existing link is renamed."""
    location = await get_or_create_location(db, **fields)

    user_location = await _find_association(db, user_id, location.id)
    if user_location:
        user_location.name = name
    else:
        user_location = UserLocation(user_id=user_id, location_id=location.id, name=name)
        db.add(user_location)

    await db.flush()
    return user_location


async def update_user_address(
    db: AsyncSession,
    user_id: int,
    user_location_id: int,
    name: str,
    **fields
) -> UserLocation:
    """
    Point an address at a new location tuple.

    If the user already has the target location under another entry, that
    entry is renamed and the edited one is removed.
    """
    user_location = await _get_user_location(db, user_id, user_location_id)
    old_location_id = user_location.location_id

    location = await get_or_create_location(db, **fields)

    if location.id == old_location_id:
        user_location.name = name
        await db.flush()
        return user_location

    existing = await _find_association(db, user_id, location.id)
    if existing:
        await db.delete(user_location)
        existing.name = name
        user_location = existing
    else:
        user_location.location_id = location.id
        user_location.name = name

    await db.flush()
    await delete_location_if_unreferenced(db, old_location_id)
    return user_location


async def delete_user_address(db: AsyncSession, user_id: int, user_location_id: int) -> bool:
    """Remove the address; returns True if the underlying Location was deleted too."""
    user_location = await _get_user_location(db, user_id, user_location_id)
    location_id = user_location.location_id

    await db.delete(user_location)
    await db.flush()

    return await delete_location_if_unreferenced(db, location_id)
