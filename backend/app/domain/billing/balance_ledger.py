"""
Balance Ledger (Domain Logic).

Single writer of User.balance. Every balance mutation is paired with
exactly one immutable Transaction row in the same flush, so the balance
column stays a cached projection of the ledger:

    User.balance == sum(signed Transaction.amount)

Never commits: the surrounding lifecycle transition owns the unit of work.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc

from backend.app.core.exceptions import (
    InsufficientBalanceError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.domain.pricing.pricing_engine import to_money
from backend.app.models.bank import Bank
from backend.app.models.billing_enums import TransactionType, TransactionStatus
from backend.app.models.transaction import Transaction
from backend.app.models.user import User

logger = logging.getLogger(__name__)

TRANSACTION_HISTORY_LIMIT = 50
MIN_TOPUP_AMOUNT = Decimal("1.00")


class BalanceLedger:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_user(self, user_id: int, for_update: bool = False) -> User:
        query = select(User).where(User.id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        user = result.scalar_one_or_none()
        if not user:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def get_balance(self, user_id: int) -> Decimal:
        user = await self._get_user(user_id)
        return to_money(user.balance)

    async def ensure_sufficient(self, user_id: int, amount: Decimal) -> Decimal:
        """Raise InsufficientBalanceError when balance < amount. No mutation."""
        amount = to_money(amount)
        balance = await self.get_balance(user_id)
        if balance < amount:
            raise InsufficientBalanceError(required=amount, current=balance)
        return balance

    async def debit(
        self,
        user_id: int,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        parcel_id: Optional[int] = None
    ) -> Transaction:
        """
        Debit a sender.

        Locks the user row, checks sufficiency, then applies a conditional
        decrement so a stale read can never push the balance below zero.
        """
        if tx_type.is_credit:
            raise ValidationFailedError(f"{tx_type.value} is not a debit transaction type")

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationFailedError("Debit amount must be positive")

        user = await self._get_user(user_id, for_update=True)
        current = to_money(user.balance)
        if current < amount:
            raise InsufficientBalanceError(required=amount, current=current)

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.balance >= amount)
            .values(balance=User.balance - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.refresh(user)
            raise InsufficientBalanceError(required=amount, current=to_money(user.balance))

        transaction = Transaction(
            user_id=user_id,
            parcel_id=parcel_id,
            type=tx_type,
            amount=amount,
            status=TransactionStatus.COMPLETED,
            description=description,
        )
        self.db.add(transaction)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("Debited %s from user %s (%s)", amount, user_id, tx_type.value)
        return transaction

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        bank_id: Optional[int] = None,
        reference: Optional[str] = None
    ) -> Transaction:
        if not tx_type.is_credit:
            raise ValidationFailedError(f"{tx_type.value} is not a credit transaction type")

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationFailedError("Credit amount must be positive")

        user = await self._get_user(user_id, for_update=True)

        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + amount)
            .execution_options(synchronize_session=False)
        )

        transaction = Transaction(
            user_id=user_id,
            bank_id=bank_id,
            type=tx_type,
            amount=amount,
            status=TransactionStatus.COMPLETED,
            reference=reference,
            description=description,
        )
        self.db.add(transaction)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info("Credited %s to user %s (%s)", amount, user_id, tx_type.value)
        return transaction

    async def topup(
        self,
        user_id: int,
        amount: Decimal,
        bank: Bank,
        reference: Optional[str] = None
    ) -> Transaction:
        """Simulated bank top-up. No payment gateway is involved."""
        amount = to_money(amount)
        if amount < MIN_TOPUP_AMOUNT:
            raise ValidationFailedError(
                f"Minimum top-up amount is {MIN_TOPUP_AMOUNT}",
                details={"amount": float(amount)}
            )

        if reference is None:
            reference = f"TOPUP-{int(datetime.now(timezone.utc).timestamp() * 1000)}"

        return await self.credit(
            user_id,
            amount,
            TransactionType.TOPUP,
            description=f"Topup via {bank.name}",
            bank_id=bank.id,
            reference=reference,
        )

    async def derive_balance(self, user_id: int) -> Decimal:
        """Recompute a user's balance from the ledger."""
        result = await self.db.execute(
            select(Transaction).where(Transaction.user_id == user_id)
        )
        total = sum((t.signed_amount for t in result.scalars().all()), Decimal("0"))
        return to_money(total)

    async def list_transactions(self, user_id: int, limit: int = TRANSACTION_HISTORY_LIMIT) -> List[Transaction]:
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(desc(Transaction.created_at), desc(Transaction.id))
            .limit(limit)
        )
        return list(result.scalars().all())
