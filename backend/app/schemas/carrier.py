"""
Carrier-side lifecycle schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.parcel_enums import ParcelStatus
from backend.app.models.route_enums import RouteStatus, StopStatus
from backend.app.schemas.address import LocationResponse
from backend.app.schemas.common import Money


class MeasurementSubmit(BaseModel):
    """
    Pickup measurements.

    Dimensions are ignored when the sender bought packaging; the
    package's fixed dimensions are used instead.
    """
    weight: float = Field(..., ge=0.1, description="Weight in kilograms")
    dimension_x: Optional[float] = Field(None, ge=0.1)
    dimension_y: Optional[float] = Field(None, ge=0.1)
    dimension_z: Optional[float] = Field(None, ge=0.1)


class MeasurementResponse(BaseModel):
    parcel_id: int
    tracking_number: str
    status: ParcelStatus
    weight: float
    dimension_x: float
    dimension_y: float
    dimension_z: float
    base_delivery_price: Money
    fast_delivery_fee: Money
    delivery_price: Money
    package_price: Money
    service_fee: Money
    total_price: Money
    est_delivery_date: datetime


class AcceptParcelResponse(BaseModel):
    message: str
    parcel_id: int
    status: ParcelStatus


class StopArrivalRequest(BaseModel):
    is_late: Optional[bool] = Field(None, description="Required: whether the stop was reached after its ETA")
    event_type: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = Field(None, max_length=50)


class RouteStopResponse(BaseModel):
    id: int
    sequence: int
    stop_status: StopStatus
    eta: datetime
    arrived_at: Optional[datetime]
    warehouse_id: Optional[int]
    warehouse_name: Optional[str] = None
    location: Optional[LocationResponse] = None

    class Config:
        from_attributes = True


class StopArrivalResponse(BaseModel):
    stop: RouteStopResponse
    route_completed: bool


class RouteResponse(BaseModel):
    route_id: int
    parcel_id: int
    status: RouteStatus
    route_date: Optional[datetime]
    stops: List[RouteStopResponse]


class StatusUpdateRequest(BaseModel):
    event_type: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    location_id: Optional[int] = None


class StatusUpdateResponse(BaseModel):
    message: str
    parcel_id: int
    status: ParcelStatus
