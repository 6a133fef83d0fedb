"""
Notification Service.

Writes in-app notifications for senders and carriers. Lifecycle
transitions call it inside their own unit of work: it only flushes,
the caller commits.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc
from datetime import datetime, timezone
from typing import Optional, List

from backend.app.models.notification import Notification, NotificationType
from backend.app.models.carrier import Carrier
from backend.app.models.enums import UserRole

NOTIFICATION_LIST_LIMIT = 50


def _recipient_column(role: UserRole):
    return Notification.user_id if role == UserRole.SENDER else Notification.carrier_id


class NotificationService:

    @staticmethod
    async def notify_sender(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.STATUS_UPDATE,
        parcel_id: Optional[int] = None
    ) -> Notification:
        notif = Notification(
            user_id=user_id,
            parcel_id=parcel_id,
            type=type,
            title=title,
            message=message
        )
        db.add(notif)
        await db.flush()  # Caller commits
        return notif

    @staticmethod
    async def broadcast_to_available_carriers(
        db: AsyncSession,
        title: str,
        message: str,
        parcel_id: Optional[int] = None
    ) -> int:
        """Notify every active carrier currently marked available."""
        result = await db.execute(
            select(Carrier.id).where(Carrier.is_available == True, Carrier.is_active == True)
        )
        carrier_ids = result.scalars().all()

        notifications = [
            Notification(
                carrier_id=cid,
                parcel_id=parcel_id,
                title=title,
                message=message,
                type=NotificationType.PARCEL_AVAILABLE
            )
            for cid in carrier_ids
        ]

        if notifications:
            db.add_all(notifications)
            await db.flush()

        return len(notifications)

    @staticmethod
    async def list_for(
        db: AsyncSession,
        role: UserRole,
        recipient_id: int,
        limit: int = NOTIFICATION_LIST_LIMIT
    ) -> List[Notification]:
        column = _recipient_column(role)
        result = await db.execute(
            select(Notification)
            .where(column == recipient_id)
            .order_by(desc(Notification.created_at), desc(Notification.id))
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, role: UserRole, recipient_id: int) -> bool:
        """Mark a notification as read."""
        column = _recipient_column(role)
        stmt = update(Notification).where(
            Notification.id == notification_id,
            column == recipient_id
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, role: UserRole, recipient_id: int) -> int:
        """Mark all unread notifications of the recipient as read."""
        column = _recipient_column(role)
        stmt = update(Notification).where(
            column == recipient_id,
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount
