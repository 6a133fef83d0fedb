"""
Address and location schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class AddressFields(BaseModel):
    """Location tuple; identical tuples share one Location row."""
    address: str = Field(..., min_length=1, max_length=500)
    district: str = Field(..., min_length=1, max_length=100)
    subdistrict: str = Field(..., min_length=1, max_length=100)
    province: str = Field(..., min_length=1, max_length=100)
    country: Optional[str] = Field(None, max_length=100, description="Defaults to the marketplace country")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class AddressCreate(AddressFields):
    name: str = Field(..., min_length=1, max_length=100, description="Label, e.g. Home")


class LocationResponse(BaseModel):
    id: int
    address: str
    district: str
    subdistrict: str
    province: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    class Config:
        from_attributes = True


class AddressResponse(BaseModel):
    id: int
    name: str
    location_id: int
    location: LocationResponse


class AddressDeleteResponse(BaseModel):
    message: str
    location_deleted: bool
