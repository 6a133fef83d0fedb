"""
Notification database model.

In-app messages for senders (user_id) or carriers (carrier_id).
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    PARCEL_AVAILABLE = "ParcelAvailable"
    PARCEL_ACCEPTED = "ParcelAccepted"
    PARCEL_PICKED_UP = "ParcelPickedUp"
    STATUS_UPDATE = "StatusUpdate"


class Notification(Base):
    """
    In-App Notification.
    Exactly one of user_id / carrier_id is set.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    carrier_id = Column(Integer, ForeignKey("carriers.id"), nullable=True, index=True)

    parcel_id = Column(Integer, ForeignKey("parcels.id"), nullable=True)

    # Content
    type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # State
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        recipient = f"user={self.user_id}" if self.user_id else f"carrier={self.carrier_id}"
        return f"<Notification(id={self.id}, {recipient}, title='{self.title}')>"
