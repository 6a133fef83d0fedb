"""
Notification API Endpoints.

Senders and carriers read their own in-app notifications.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.core.guards import require_sender, require_carrier
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.services.notification_service import NotificationService
from backend.app.schemas.notification import NotificationResponse, NotificationListResponse, MarkReadResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


async def _list(db: AsyncSession, role: UserRole, recipient_id: int) -> NotificationListResponse:
    notifications = await NotificationService.list_for(db, role, recipient_id)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=sum(1 for n in notifications if not n.is_read)
    )


@router.get("/sender", response_model=NotificationListResponse)
async def list_sender_notifications(
    current_user: dict = Depends(require_sender),
    db: AsyncSession = Depends(get_db)
):
    """Latest 50 notifications of the current sender."""
    return await _list(db, UserRole.SENDER, current_user["user_id"])


@router.get("/carrier", response_model=NotificationListResponse)
async def list_carrier_notifications(
    current_user: dict = Depends(require_carrier),
    db: AsyncSession = Depends(get_db)
):
    """Latest 50 notifications of the current carrier."""
    return await _list(db, UserRole.CARRIER, current_user["user_id"])


@router.put("/read-all", response_model=MarkReadResponse)
async def mark_all_notifications_read(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark all notifications as read."""
    count = await NotificationService.mark_all_read(db, UserRole(current_user["role"]), current_user["user_id"])
    await db.commit()
    return MarkReadResponse(updated=count)


@router.put("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_notification_read(
    notification_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a specific notification as read."""
    success = await NotificationService.mark_read(
        db, notification_id, UserRole(current_user["role"]), current_user["user_id"]
    )
    if not success:
        raise ResourceNotFoundError("Notification", notification_id)

    await db.commit()
    return MarkReadResponse(updated=1)
