"""
Sender balance endpoints.

Top-up is simulated: choosing an active bank credits the balance directly.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.schemas.balance import (
    BalanceResponse,
    TopupRequest,
    TopupResponse,
    TransactionResponse,
    TransactionListResponse,
)
from backend.app.core.guards import require_sender
from backend.app.core.dependencies import get_balance_ledger, get_catalog
from backend.app.core.exceptions import ValidationFailedError
from backend.app.domain.billing.balance_ledger import BalanceLedger
from backend.app.domain.catalog.catalog_repository import CatalogRepository
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/balance", tags=["Sender - Balance"])


@router.get("", response_model=BalanceResponse)
async def get_balance(
    current_user: dict = Depends(require_sender),
    ledger: BalanceLedger = Depends(get_balance_ledger)
):
    return BalanceResponse(balance=await ledger.get_balance(current_user["user_id"]))


@router.post("/topup", response_model=TopupResponse)
async def topup(
    data: TopupRequest,
    current_user: dict = Depends(require_sender),
    ledger: BalanceLedger = Depends(get_balance_ledger),
    catalog: CatalogRepository = Depends(get_catalog),
    db: AsyncSession = Depends(get_db)
):
    """Credit the sender's balance via a (simulated) bank transfer."""
    bank = await catalog.get_bank(data.bank_id)
    if not bank:
        raise ValidationFailedError("Invalid bank selected", details={"bank_id": data.bank_id})

    try:
        transaction = await ledger.topup(current_user["user_id"], data.amount, bank)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(transaction)
    balance = await ledger.get_balance(current_user["user_id"])

    await log_actor_event(
        db, current_user, AuditAction.BALANCE_TOPUP,
        target_id=transaction.id,
        metadata={"amount": str(transaction.amount), "bank_id": bank.id, "reference": transaction.reference}
    )

    return TopupResponse(
        message="Topup successful",
        balance=balance,
        transaction=TransactionResponse.model_validate(transaction)
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    current_user: dict = Depends(require_sender),
    ledger: BalanceLedger = Depends(get_balance_ledger)
):
    """Latest 50 transactions, newest first."""
    transactions = await ledger.list_transactions(current_user["user_id"])
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions]
    )
