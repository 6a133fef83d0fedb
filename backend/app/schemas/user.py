"""
Profile schemas for senders and carriers.

Updates are typed partial patches: only fields present in the request
body are applied (model_dump(exclude_unset=True)).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from backend.app.schemas.common import Money


class SenderProfileResponse(BaseModel):
    id: int
    email: str
    phone: str
    firstname: str
    lastname: str
    balance: Money
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SenderProfileUpdate(BaseModel):
    firstname: Optional[str] = Field(None, min_length=1, max_length=100)
    lastname: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=3, max_length=30)


class CarrierProfileResponse(BaseModel):
    id: int
    email: str
    phone: str
    firstname: str
    lastname: str
    vehicle_info: Optional[str]
    vehicle_license: Optional[str]
    employment_type: Optional[str]
    is_available: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CarrierProfileUpdate(BaseModel):
    firstname: Optional[str] = Field(None, min_length=1, max_length=100)
    lastname: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=3, max_length=30)
    vehicle_info: Optional[str] = Field(None, max_length=255)
    vehicle_license: Optional[str] = Field(None, max_length=50)
    employment_type: Optional[str] = Field(None, max_length=50)
    is_available: Optional[bool] = None
