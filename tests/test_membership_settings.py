import pytest
from fastapi import HTTPException

from fincare.database.models import SettingsHistory, Loan
from fincare.schemas import LoanSettingsUpdate, MembershipPaymentCreate, MembershipReview, LoanCreate
from fincare.services.settings_service import settings_service
from fincare.services.membership_service import membership_service
from fincare.services.loan_service import loan_service
from fincare.services.transaction_service import transaction_service
from tests.conftest import reload_user


@pytest.mark.asyncio
async def test_defaults_until_settings_are_stored(db):
    loan_settings = await settings_service.get_loan_settings()

    assert loan_settings["interest_rate"] == 10
    assert loan_settings["processing_fee_rate"] == 1


@pytest.mark.asyncio
async def test_update_settings_upserts_and_keeps_history(db):
    await settings_service.update_loan_settings(LoanSettingsUpdate(interest_rate=15, processing_fee_rate=2), "admin@fincare.test")
    updated = await settings_service.update_loan_settings(LoanSettingsUpdate(interest_rate=18), "admin@fincare.test")

    assert updated["interest_rate"] == 18
    assert updated["updated_by"] == "admin@fincare.test"
    history = await SettingsHistory.find({}).to_list()
    assert len(history) == 2
    previous_rates = sorted(
        h.previous_settings["interest_rate"] if h.previous_settings else 0 for h in history
    )
    assert previous_rates == [0, 15]


@pytest.mark.asyncio
async def test_invalid_settings_are_refused(db):
    with pytest.raises(HTTPException) as exc:
        await settings_service.update_loan_settings(LoanSettingsUpdate(interest_rate=0))
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        await settings_service.update_loan_settings(
            LoanSettingsUpdate(interest_rate=5, min_loan_amount=5000, max_loan_amount=100)
        )
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_new_loans_use_stored_pricing(make_user):
    user = await make_user()
    await settings_service.update_loan_settings(LoanSettingsUpdate(interest_rate=20, processing_fee_rate=2))

    await loan_service.create_loan(LoanCreate(
        loan_amount=10000,
        purpose="Shop",
        duration=6,
        full_name="Ada",
        phone="080",
        email="ada@example.com",
        gender="female",
    ), str(user.id))

    loan = await Loan.find_one({"user_id": user.id})
    assert loan.loan_details.interest_amount == 1000
    assert loan.loan_details.processing_fee == 200


@pytest.mark.asyncio
async def test_membership_payment_and_approval(make_user):
    user = await make_user()

    submitted = await membership_service.submit_payment(
        MembershipPaymentCreate(amount=5000, payment_proof="transfer.pdf"), str(user.id)
    )
    assert (await reload_user(user)).membership_status == "pending"

    with pytest.raises(HTTPException) as exc:
        await membership_service.submit_payment(MembershipPaymentCreate(amount=5000, payment_proof="again.pdf"), str(user.id))
    assert exc.value.status_code == 400

    await membership_service.review_payment(
        MembershipReview(payment_id=submitted["payment"]["id"], action="approve"), "admin@fincare.test"
    )
    refreshed = await reload_user(user)
    assert refreshed.membership_status == "approved"
    assert refreshed.membership_approval_date is not None

    status = await membership_service.get_status(str(user.id))
    assert status["membership"]["status"] == "approved"
    assert status["latest_payment"]["status"] == "approved"


@pytest.mark.asyncio
async def test_membership_review_keeps_balances(make_user):
    user = await make_user(savings_balance=750)
    submitted = await membership_service.submit_payment(
        MembershipPaymentCreate(amount=5000, payment_proof="transfer.pdf"), str(user.id)
    )

    await membership_service.review_payment(MembershipReview(payment_id=submitted["payment"]["id"], action="reject"))

    refreshed = await reload_user(user)
    assert refreshed.membership_status == "rejected"
    assert refreshed.savings_balance == 750


@pytest.mark.asyncio
async def test_transaction_status_update(make_user):
    user = await make_user()
    txn = await transaction_service.record(user_id=user.id, type="revenue", amount=50, status="pending")

    updated = await transaction_service.update_status(str(txn.id), "completed")
    assert updated["status"] == "completed"

    with pytest.raises(HTTPException) as exc:
        await transaction_service.update_status(str(txn.id), "lost")
    assert exc.value.status_code == 400

    listed = await transaction_service.list_transactions(type_filter="revenue")
    assert listed["transactions"][0]["user"]["email"] == user.email
