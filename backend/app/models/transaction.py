"""
Transaction database model.

Immutable ledger row paired with every balance mutation.
"""

from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Numeric, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.billing_enums import TransactionType, TransactionStatus


class Transaction(Base):
    """
    Ledger entry.

    `amount` is always a positive magnitude; the sign comes from `type`
    (TOPUP credits, everything else debits). NO updates or deletions.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    parcel_id = Column(Integer, ForeignKey("parcels.id"), nullable=True, index=True)

    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(TransactionStatus), default=TransactionStatus.COMPLETED, nullable=False)
    reference = Column(String(100), nullable=True)
    description = Column(String(255), nullable=True)

    # Immutable - no updated_at
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def signed_amount(self) -> Decimal:
        amount = Decimal(self.amount)
        return amount if self.type.is_credit else -amount

    def __repr__(self):
        return f"<Transaction(id={self.id}, type='{self.type.value}', amount={self.amount})>"
