"""
Sender profile endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.user import SenderProfileResponse, SenderProfileUpdate
from backend.app.core.guards import require_sender
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/users", tags=["Sender - Profile"])


async def _get_sender(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    sender = result.scalar_one_or_none()
    if not sender:
        raise ResourceNotFoundError("User", user_id)
    return sender


@router.get("/me", response_model=SenderProfileResponse)
async def get_profile(
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    sender = await _get_sender(db, current_user["user_id"])
    return SenderProfileResponse.model_validate(sender)


@router.patch("/me", response_model=SenderProfileResponse)
async def update_profile(
    data: SenderProfileUpdate,
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    """
    Partial profile update.

    Only fields sent in the body are changed. Balance and email are not editable here.
    """
    sender = await _get_sender(db, current_user["user_id"])

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(sender, field, value)

    await db.commit()
    await db.refresh(sender)

    if changes:
        await log_actor_event(
            db, current_user, AuditAction.PROFILE_UPDATED,
            target_id=sender.id, metadata={"fields": sorted(changes)}
        )

    return SenderProfileResponse.model_validate(sender)
