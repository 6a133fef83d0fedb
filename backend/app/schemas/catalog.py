"""
Reference catalog schemas.
"""

from pydantic import BaseModel
from typing import Optional
from backend.app.schemas.common import Money


class ProvinceResponse(BaseModel):
    id: int
    name: str
    base_price: Money
    delivery_days: int

    class Config:
        from_attributes = True


class BankResponse(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True


class PackageTypeResponse(BaseModel):
    id: int
    name: str
    type: Optional[str]
    size: Optional[str]
    dimension_x: float
    dimension_y: float
    dimension_z: float
    price: Money

    class Config:
        from_attributes = True


class DeliveryPlanResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    fast_delivery_fee: Money
    delivery_days_reduction: int

    class Config:
        from_attributes = True


class OptionalServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    service_fee: Money

    class Config:
        from_attributes = True
