"""
Tracking number allocation.

12 characters from [A-Z0-9]; uniqueness is enforced by the parcels
table constraint, the pre-check only keeps collisions out of the commit.
"""

import secrets
import string

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.core.exceptions import InternalServerError
from backend.app.models.parcel import Parcel

TRACKING_ALPHABET = string.ascii_uppercase + string.digits
TRACKING_NUMBER_LENGTH = 12
MAX_ALLOCATION_ATTEMPTS = 5


def generate_tracking_number(length: int = TRACKING_NUMBER_LENGTH) -> str:
    return "".join(secrets.choice(TRACKING_ALPHABET) for _ in range(length))


async def allocate_tracking_number(db: AsyncSession) -> str:
    for _ in range(MAX_ALLOCATION_ATTEMPTS):
        candidate = generate_tracking_number()
        result = await db.execute(
            select(Parcel.id).where(Parcel.tracking_number == candidate)
        )
        if result.scalar_one_or_none() is None:
            return candidate

    raise InternalServerError("Could not allocate a unique tracking number")
