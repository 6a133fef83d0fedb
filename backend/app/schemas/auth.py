"""
Authentication Pydantic schemas.

Defines request and response schemas for sender and carrier authentication.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from backend.app.models.enums import UserRole


class SenderRegister(BaseModel):
    """
    Schema for sender registration.

    Used by POST /auth/sender/register.
    """
    email: EmailStr = Field(..., description="Sender email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=3, max_length=30)


class CarrierRegister(SenderRegister):
    """
    Schema for carrier registration.

    Used by POST /auth/carrier/register.
    """
    vehicle_info: Optional[str] = Field(None, max_length=255)
    vehicle_license: Optional[str] = Field(None, max_length=50)
    employment_type: Optional[str] = Field(None, max_length=50)


class LoginRequest(BaseModel):
    """Schema for sender/carrier login."""
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login/register operations.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="Sender or carrier ID")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="Account role")
    firstname: str
    lastname: str


class MeResponse(BaseModel):
    """
    Schema for GET /auth/me.

    Identity of the caller as carried by the token and confirmed against the database.
    """
    id: int
    email: str
    role: UserRole
    firstname: str
    lastname: str
    is_active: bool
