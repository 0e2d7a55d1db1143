import pytest
from types import SimpleNamespace
from fastapi import HTTPException

from fincare.database.models import Loan, LoanRepayment, BorrowerDetails
from fincare.services.loan_service import calculate_loan_terms
from fincare.services.repayment_service import repayment_service, loan_total_amount, REJECTION_REASON
from tests.conftest import reload_user


async def _active_loan(user, amount=10000, duration=12, with_details=True):
    loan = Loan(
        user_id=user.id,
        loan_amount=amount,
        purpose="Stock",
        duration=duration,
        borrower_details=BorrowerDetails(full_name="Ada", phone="080", email="ada@example.com", gender="female"),
        status="active",
        loan_details=calculate_loan_terms(amount, duration, 0.1, 0.01) if with_details else None,
    )
    await loan.insert()
    return loan


def test_loan_total_falls_back_to_default_interest():
    loan = SimpleNamespace(loan_amount=6000, duration=6, loan_details=None)
    assert loan_total_amount(loan) == pytest.approx(6300)


@pytest.mark.asyncio
async def test_submit_moves_loan_to_payment_pending(make_user):
    user = await make_user(total_loans=10000)
    loan = await _active_loan(user)

    result = await repayment_service.submit_repayment(str(loan.id), 2000, str(user.id), "receipt.png")

    assert result["repayment"]["status"] == "pending_review"
    assert result["repayment"]["proof_reference"] == "receipt.png"
    assert (await Loan.find_one({"_id": loan.id})).status == "payment_pending"
    assert (await reload_user(user)).total_loans == 10000


@pytest.mark.asyncio
async def test_submit_rejects_non_repayable_loan(make_user):
    user = await make_user()
    loan = await _active_loan(user)
    loan.status = "pending"
    await loan.save()

    with pytest.raises(HTTPException) as exc:
        await repayment_service.submit_repayment(str(loan.id), 2000, str(user.id))
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_submit_requires_positive_amount(make_user):
    user = await make_user()
    loan = await _active_loan(user)

    with pytest.raises(HTTPException) as exc:
        await repayment_service.submit_repayment(str(loan.id), 0, str(user.id))
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_confirm_invalid_action(make_user):
    with pytest.raises(HTTPException) as exc:
        await repayment_service.confirm_repayment("64b000000000000000000000", "maybe")
    assert exc.value.detail == "Invalid action"


@pytest.mark.asyncio
async def test_partial_repayment_returns_loan_to_active(make_user):
    user = await make_user(total_loans=10000)
    loan = await _active_loan(user)
    submitted = await repayment_service.submit_repayment(str(loan.id), 4000, str(user.id))

    result = await repayment_service.confirm_repayment(submitted["repayment"]["id"], "approve", "admin@fincare.test")

    assert result["loan"]["status"] == "active"
    assert result["loan"]["paid_amount"] == 4000
    assert result["loan"]["remaining_balance"] == 7000
    stored = await Loan.find_one({"_id": loan.id})
    assert stored.loan_details.remaining_balance == 7000
    assert stored.payments[-1].amount == 4000
    assert (await reload_user(user)).total_loans == 10000


@pytest.mark.asyncio
async def test_final_repayment_completes_loan(make_user):
    user = await make_user(total_loans=10000)
    loan = await _active_loan(user)
    submitted = await repayment_service.submit_repayment(str(loan.id), 11000, str(user.id))

    result = await repayment_service.confirm_repayment(submitted["repayment"]["id"], "approve")

    assert result["loan"]["status"] == "completed"
    assert result["loan"]["remaining_balance"] == 0
    assert (await reload_user(user)).total_loans == 0


@pytest.mark.asyncio
async def test_repayment_on_loan_without_details_uses_fallback(make_user):
    user = await make_user()
    loan = await _active_loan(user, amount=6000, duration=6, with_details=False)
    submitted = await repayment_service.submit_repayment(str(loan.id), 300, str(user.id))

    result = await repayment_service.confirm_repayment(submitted["repayment"]["id"], "approve")

    assert result["loan"]["total_loan_amount"] == pytest.approx(6300)
    assert result["loan"]["remaining_balance"] == pytest.approx(6000)


@pytest.mark.asyncio
async def test_reject_leaves_loan_balance(make_user):
    user = await make_user()
    loan = await _active_loan(user)
    submitted = await repayment_service.submit_repayment(str(loan.id), 4000, str(user.id))

    await repayment_service.confirm_repayment(submitted["repayment"]["id"], "reject", "admin@fincare.test")

    repayment = await LoanRepayment.find_one({"loan_id": loan.id})
    assert repayment.status == "rejected"
    assert repayment.rejection_reason == REJECTION_REASON
    stored = await Loan.find_one({"_id": loan.id})
    assert stored.loan_details.paid_amount == 0


@pytest.mark.asyncio
async def test_review_queue_includes_loan_and_user(make_user):
    user = await make_user()
    loan = await _active_loan(user)
    await repayment_service.submit_repayment(str(loan.id), 1000, str(user.id))

    result = await repayment_service.list_for_review()

    assert result["pagination"]["total"] == 1
    assert result["repayments"][0]["amount"] == 1000
