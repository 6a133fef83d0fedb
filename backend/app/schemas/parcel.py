"""
Parcel Pydantic schemas.

Defines request and response models for the sender side of the parcel
lifecycle and for public tracking.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.parcel_enums import ParcelStatus, AssignmentStatus, ItemType
from backend.app.schemas.address import AddressFields, LocationResponse
from backend.app.schemas.common import Money


class ParcelCreate(BaseModel):
    """Schema for creating a new parcel."""
    receiver_name: str = Field(..., min_length=1, max_length=200)
    receiver_phone: str = Field(..., min_length=3, max_length=30)
    item_type: ItemType
    origin_location_id: int = Field(..., description="Location ID of one of the sender's addresses")
    destination: AddressFields
    selected_package_id: Optional[int] = Field(None, description="Packaging to buy; omit for own packaging")
    delivery_plan_id: Optional[int] = Field(None, description="Defaults to the Standard plan")
    optional_service_ids: List[int] = Field(default_factory=list)


class PriceCalculationRequest(BaseModel):
    """Schema for the price calculator (origin = sender's latest address)."""
    weight: float = Field(..., ge=0.1, description="Weight in kilograms")
    dimension_x: float = Field(..., ge=0.1, description="Length in centimeters")
    dimension_y: float = Field(..., ge=0.1, description="Width in centimeters")
    dimension_z: float = Field(..., ge=0.1, description="Height in centimeters")
    dest_province: str = Field(..., min_length=1)
    delivery_plan_id: Optional[int] = None
    optional_service_ids: List[int] = Field(default_factory=list)


class PriceCalculationResponse(BaseModel):
    origin_province: Optional[str]
    dest_province: str
    delivery_plan: Optional[str]
    base_price: Money
    fast_delivery_fee: Money
    service_fee: Money
    total_price: Money
    est_delivery_date: datetime


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    tracking_number: str
    sender_id: int
    receiver_name: str
    receiver_phone: str
    item_type: ItemType
    selected_package_id: Optional[int]
    package_price: Money
    delivery_plan_id: Optional[int]
    weight: Optional[float]
    dimension_x: Optional[float]
    dimension_y: Optional[float]
    dimension_z: Optional[float]
    price: Optional[Money]
    fast_delivery_fee: Money
    service_fee: Money
    est_delivery_date: Optional[datetime]
    status: ParcelStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ParcelSummaryResponse(BaseModel):
    """Parcel with its origin and destination."""
    parcel: ParcelResponse
    origin: Optional[LocationResponse]
    destination: Optional[LocationResponse]

    class Config:
        from_attributes = True


class ShipmentEventResponse(BaseModel):
    id: int
    event_type: str
    status: str
    description: Optional[str]
    location_id: Optional[int]
    event_time: datetime

    class Config:
        from_attributes = True


class ParcelServiceResponse(BaseModel):
    service_id: int
    name: str
    service_fee: Money

    class Config:
        from_attributes = True


class AssignmentResponse(BaseModel):
    carrier_id: Optional[int]
    status: AssignmentStatus
    assigned_at: Optional[datetime]

    class Config:
        from_attributes = True


class ParcelDetailResponse(ParcelSummaryResponse):
    events: List[ShipmentEventResponse]
    services: List[ParcelServiceResponse]
    assignment: Optional[AssignmentResponse]


class TrackedParcel(BaseModel):
    """Public parcel view. Carries no price or fee fields."""
    tracking_number: str
    item_type: ItemType
    receiver_name: str
    weight: Optional[float]
    est_delivery_date: Optional[datetime]
    status: ParcelStatus
    created_at: datetime

    class Config:
        from_attributes = True


class TrackingResponse(BaseModel):
    parcel: TrackedParcel
    origin: Optional[LocationResponse]
    destination: Optional[LocationResponse]
    events: List[ShipmentEventResponse]

    class Config:
        from_attributes = True


class NotifyCarriersResponse(BaseModel):
    message: str
    notified_count: int
