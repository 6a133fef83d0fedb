"""
Security guards for role-based access control.

Senders and carriers share one token format; the role claim decides
which side of the marketplace an endpoint belongs to. Ownership of
parcels and assignments is checked by the domain layer.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from backend.app.models.enums import UserRole
from backend.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/parcels")
        async def create_parcel(current_user: dict = Depends(require_role([UserRole.SENDER]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        # Convert string role to UserRole enum
        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        # Check if user role is in allowed roles
        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


require_sender = require_role([UserRole.SENDER])
require_carrier = require_role([UserRole.CARRIER])
