"""
Balance and transaction schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.billing_enums import TransactionType, TransactionStatus
from backend.app.schemas.common import Money


class BalanceResponse(BaseModel):
    balance: Money


class TopupRequest(BaseModel):
    bank_id: int
    amount: Decimal = Field(..., gt=0, description="Top-up amount, minimum 1.00")


class TransactionResponse(BaseModel):
    id: int
    type: TransactionType
    amount: Money
    status: TransactionStatus
    reference: Optional[str]
    description: Optional[str]
    bank_id: Optional[int]
    parcel_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class TopupResponse(BaseModel):
    message: str
    balance: Money
    transaction: TransactionResponse


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
