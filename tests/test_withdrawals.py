import pytest
from fastapi import HTTPException

from fincare.database.models import Withdrawal, Transaction
from fincare.schemas import WithdrawalCreate, WithdrawalUpdate, AdminWithdrawalUpdate
from fincare.services.withdrawal_service import withdrawal_service
from tests.conftest import reload_user


def _request(amount):
    return WithdrawalCreate(
        amount=amount,
        account_name="Ada Member",
        bank_name="First Bank",
        account_number="0123456789",
    )


@pytest.mark.asyncio
async def test_withdrawal_reserves_savings(make_user):
    user = await make_user(savings_balance=1000)

    result = await withdrawal_service.create_withdrawal(_request(400), str(user.id))

    assert result["withdrawal"]["status"] == "pending"
    assert (await reload_user(user)).savings_balance == 600


@pytest.mark.asyncio
@pytest.mark.parametrize("amount, detail", [
    (0, "Amount must be greater than zero"),
    (-5, "Amount must be greater than zero"),
    (5000, "Insufficient savings balance"),
])
async def test_withdrawal_amount_checks(make_user, amount, detail):
    user = await make_user(savings_balance=1000)

    with pytest.raises(HTTPException) as exc:
        await withdrawal_service.create_withdrawal(_request(amount), str(user.id))
    assert exc.value.status_code == 400
    assert exc.value.detail == detail


@pytest.mark.asyncio
async def test_pending_withdrawals_count_against_balance(make_user):
    user = await make_user(savings_balance=1000)
    await withdrawal_service.create_withdrawal(_request(400), str(user.id))

    # 600 left, but 400 is still pending
    with pytest.raises(HTTPException) as exc:
        await withdrawal_service.create_withdrawal(_request(500), str(user.id))
    assert exc.value.detail == "Insufficient balance considering pending withdrawals"


@pytest.mark.asyncio
async def test_update_moves_the_difference(make_user):
    user = await make_user(savings_balance=1000)
    created = await withdrawal_service.create_withdrawal(_request(400), str(user.id))

    await withdrawal_service.update_withdrawal(created["withdrawal"]["id"], WithdrawalUpdate(amount=300), str(user.id))

    assert (await reload_user(user)).savings_balance == 700


@pytest.mark.asyncio
async def test_cancel_refunds_and_deletes(make_user):
    user = await make_user(savings_balance=1000)
    created = await withdrawal_service.create_withdrawal(_request(400), str(user.id))

    await withdrawal_service.cancel_withdrawal(created["withdrawal"]["id"], str(user.id))

    assert await Withdrawal.find_one({"user_id": user.id}) is None
    assert (await reload_user(user)).savings_balance == 1000


@pytest.mark.asyncio
async def test_admin_rejection_refunds(make_user):
    user = await make_user(savings_balance=1000)
    created = await withdrawal_service.create_withdrawal(_request(400), str(user.id))

    result = await withdrawal_service.process_withdrawal(
        created["withdrawal"]["id"], AdminWithdrawalUpdate(status="rejected", admin_notes="Bad account"), "admin@fincare.test"
    )

    assert result["withdrawal"]["status"] == "rejected"
    assert result["withdrawal"]["processed_by"] == "admin@fincare.test"
    assert (await reload_user(user)).savings_balance == 1000


@pytest.mark.asyncio
async def test_admin_completion_records_transaction_once(make_user):
    user = await make_user(savings_balance=1000)
    created = await withdrawal_service.create_withdrawal(_request(400), str(user.id))
    withdrawal_id = created["withdrawal"]["id"]

    await withdrawal_service.process_withdrawal(withdrawal_id, AdminWithdrawalUpdate(status="completed"))

    txn = await Transaction.find_one({"user_id": user.id})
    assert txn.type == "withdrawal"
    assert txn.amount == 400
    assert (await reload_user(user)).savings_balance == 600

    with pytest.raises(HTTPException) as exc:
        await withdrawal_service.process_withdrawal(withdrawal_id, AdminWithdrawalUpdate(status="rejected"))
    assert exc.value.detail == "Withdrawal has already been processed"


@pytest.mark.asyncio
async def test_processed_withdrawal_cannot_be_edited(make_user):
    user = await make_user(savings_balance=1000)
    created = await withdrawal_service.create_withdrawal(_request(400), str(user.id))
    await withdrawal_service.process_withdrawal(created["withdrawal"]["id"], AdminWithdrawalUpdate(status="processing"))

    with pytest.raises(HTTPException) as exc:
        await withdrawal_service.update_withdrawal(created["withdrawal"]["id"], WithdrawalUpdate(notes="x"), str(user.id))
    assert exc.value.status_code == 400
