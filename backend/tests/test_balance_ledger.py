"""
Balance Ledger Tests.

The cached balance must always equal the signed sum of the ledger.
"""

import pytest
from decimal import Decimal
from sqlalchemy import select

from backend.app.core.exceptions import InsufficientBalanceError, ValidationFailedError
from backend.app.domain.billing.balance_ledger import BalanceLedger
from backend.app.models.billing_enums import TransactionType
from backend.app.models.transaction import Transaction
from backend.app.models.user import User


@pytest.fixture
async def account(db_session):
    user = User(
        email="ledger@test.com", phone="0800000000",
        firstname="Ledger", lastname="Test", hashed_password="x"
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.mark.asyncio
async def test_topup_then_debits_conserve_balance(db_session, catalog, account):
    ledger = BalanceLedger(db_session)

    topup = await ledger.topup(account.id, Decimal("500"), catalog.bank)
    assert topup.reference.startswith("TOPUP-")
    assert topup.description == "Topup via Kasikorn Bank"

    await ledger.debit(account.id, Decimal("50"), TransactionType.PACKAGE, "Package purchase")
    await ledger.debit(account.id, Decimal("172.00"), TransactionType.PARCEL, "Delivery payment")
    await db_session.commit()

    assert await ledger.get_balance(account.id) == Decimal("278.00")
    assert await ledger.derive_balance(account.id) == Decimal("278.00")


@pytest.mark.asyncio
async def test_overdraw_rejected_without_mutation(db_session, catalog, account):
    ledger = BalanceLedger(db_session)
    await ledger.topup(account.id, Decimal("40"), catalog.bank)
    await db_session.commit()

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await ledger.debit(account.id, Decimal("50"), TransactionType.PACKAGE, "Package purchase")

    assert exc_info.value.required == Decimal("50.00")
    assert exc_info.value.current == Decimal("40.00")
    assert exc_info.value.details == {"required": 50.0, "current": 40.0}

    await db_session.rollback()
    count = await db_session.execute(select(Transaction).where(Transaction.user_id == account.id))
    assert len(count.scalars().all()) == 1
    assert await ledger.get_balance(account.id) == Decimal("40.00")


@pytest.mark.asyncio
async def test_ensure_sufficient_does_not_mutate(db_session, account):
    ledger = BalanceLedger(db_session)

    with pytest.raises(InsufficientBalanceError):
        await ledger.ensure_sufficient(account.id, Decimal("0.01"))

    assert await ledger.ensure_sufficient(account.id, Decimal("0")) == Decimal("0.00")


@pytest.mark.asyncio
async def test_direction_and_amount_validation(db_session, catalog, account):
    ledger = BalanceLedger(db_session)

    with pytest.raises(ValidationFailedError):
        await ledger.debit(account.id, Decimal("10"), TransactionType.TOPUP, "wrong direction")

    with pytest.raises(ValidationFailedError):
        await ledger.credit(account.id, Decimal("10"), TransactionType.PARCEL, "wrong direction")

    with pytest.raises(ValidationFailedError):
        await ledger.debit(account.id, Decimal("0"), TransactionType.PACKAGE, "nothing")

    with pytest.raises(ValidationFailedError):
        await ledger.topup(account.id, Decimal("0.50"), catalog.bank)


@pytest.mark.asyncio
async def test_signed_amounts(db_session, catalog, account):
    ledger = BalanceLedger(db_session)
    credit = await ledger.topup(account.id, Decimal("100"), catalog.bank)
    debit = await ledger.debit(account.id, Decimal("30"), TransactionType.SERVICE, "Insurance")

    assert credit.signed_amount == Decimal("100.00")
    assert debit.signed_amount == Decimal("-30.00")


@pytest.mark.asyncio
async def test_topup_endpoint(client, sender, catalog):
    response = await client.post(
        "/v1/balance/topup",
        json={"bank_id": catalog.bank.id, "amount": "25.50"},
        headers=sender["headers"]
    )
    assert response.status_code == 200
    body = response.json()
    assert body["balance"] == "525.50"
    assert body["transaction"]["type"] == "Topup"
    assert body["transaction"]["amount"] == "25.50"

    history = await client.get("/v1/balance/transactions", headers=sender["headers"])
    amounts = [t["amount"] for t in history.json()["transactions"]]
    assert amounts == ["25.50", "500.00"]


@pytest.mark.asyncio
async def test_topup_rejects_unknown_bank(client, sender):
    response = await client.post(
        "/v1/balance/topup",
        json={"bank_id": 9999, "amount": "10"},
        headers=sender["headers"]
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid bank selected"

    balance = await client.get("/v1/balance", headers=sender["headers"])
    assert balance.json()["balance"] == "500.00"
