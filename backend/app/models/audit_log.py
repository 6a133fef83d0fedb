"""
Audit Log Database Model.

Tracks authentication events, balance top-ups and parcel transitions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - SENDER_REGISTERED / CARRIER_REGISTERED
    - LOGIN_SUCCESS / LOGIN_FAILED
    - BALANCE_TOPUP
    - PARCEL_* lifecycle transitions
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None when unknown, e.g. failed login)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_role = Column(String(20), nullable=True)
    actor_username = Column(String(255), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Affected entity (parcel id, transaction id, ...)
    target_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username})>"
