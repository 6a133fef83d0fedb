"""
Audit logging service for tracking authentication, balance and parcel events.

Entries are written after the business commit, so a failed audit write
never rolls back a completed transition.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    SENDER_REGISTERED = "SENDER_REGISTERED"
    CARRIER_REGISTERED = "CARRIER_REGISTERED"
    PROFILE_UPDATED = "PROFILE_UPDATED"

    # Addresses
    ADDRESS_CREATED = "ADDRESS_CREATED"
    ADDRESS_UPDATED = "ADDRESS_UPDATED"
    ADDRESS_DELETED = "ADDRESS_DELETED"

    # Balance
    BALANCE_TOPUP = "BALANCE_TOPUP"

    # Parcel lifecycle
    PARCEL_CREATED = "PARCEL_CREATED"
    CARRIERS_NOTIFIED = "CARRIERS_NOTIFIED"
    PARCEL_ACCEPTED = "PARCEL_ACCEPTED"
    MEASUREMENTS_SUBMITTED = "MEASUREMENTS_SUBMITTED"
    STOP_ARRIVAL_RECORDED = "STOP_ARRIVAL_RECORDED"
    PARCEL_STATUS_UPDATED = "PARCEL_STATUS_UPDATED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_role: Optional[str] = None,
    actor_username: Optional[str] = None,
    target_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of the sender or carrier performing the action
        actor_role: "sender" or "carrier"
        actor_username: Email of the actor
        target_id: ID of the affected entity (parcel, transaction, address)
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_role=actor_role,
        actor_username=actor_username,
        action=action,
        target_id=target_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_actor_event(
    db: AsyncSession,
    current_user: dict,
    action: str,
    target_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an event performed by the authenticated caller (JWT payload)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_role=current_user.get("role"),
        actor_username=current_user.get("sub"),
        target_id=target_id,
        metadata=metadata
    )


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    username: Optional[str],
    role: Optional[str] = None,
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log an authentication event (login success/failure, registration).

    Args:
        db: Database session
        action: AuditAction constant
        user_id: ID of the account attempting login
        username: Email attempting login
        role: Account role
        ip_address: IP address of login attempt
        metadata: Additional context (e.g., failure reason)

    Returns:
        Created AuditLog instance
    """
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_role=role,
        actor_username=username,
        ip_address=ip_address,
        metadata=metadata
    )
