"""
User (sender) database model.

Senders own parcels and pay for them from an internal balance.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base


class User(Base):
    """
    Sender account.

    `balance` is a cached projection of the sender's transaction ledger.
    Only BalanceLedger writes it, always together with a Transaction row.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=False)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Running total, 2-decimal fixed point
    balance = Column(Numeric(12, 2), nullable=False, default=0)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', balance={self.balance})>"
