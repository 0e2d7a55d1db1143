import pytest
from fastapi import HTTPException

from fincare.database.models import Loan, Transaction, BorrowerDetails
from fincare.schemas import LoanCreate, LoanUpdate, AdminLoanPatch
from fincare.services.loan_service import (
    loan_service,
    calculate_loan_terms,
    total_loans_delta,
    apply_status_transition,
)
from tests.conftest import reload_user


def _application(**overrides):
    data = dict(
        loan_amount=12000,
        purpose="School fees",
        duration=12,
        full_name="Ada Member",
        phone="08000000000",
        email="ada@example.com",
        gender="female",
    )
    data.update(overrides)
    return LoanCreate(**data)


async def _loan(user, status="pending", amount=10000, duration=12, with_details=True):
    loan = Loan(
        user_id=user.id,
        loan_amount=amount,
        purpose="Stock",
        duration=duration,
        borrower_details=BorrowerDetails(full_name="Ada", phone="080", email="ada@example.com", gender="female"),
        status=status,
        loan_details=calculate_loan_terms(amount, duration, 0.1, 0.01) if with_details else None,
    )
    await loan.insert()
    return loan


def test_calculate_loan_terms_simple_interest():
    details = calculate_loan_terms(12000, 6, 0.1, 0.01)

    assert details.processing_fee == 120
    assert details.interest_amount == 600
    assert details.total_loan_amount == 12600
    assert details.monthly_installment == 2100
    assert details.remaining_balance == 12600
    assert details.paid_amount == 0
    assert details.processing_fee_paid is False


def test_total_loans_delta_counts_only_family_boundaries():
    assert total_loans_delta("pending", "approved", 500) == 500
    assert total_loans_delta("approved", "active", 500) == 0
    assert total_loans_delta("active", "payment_pending", 500) == 0
    assert total_loans_delta("payment_pending", "completed", 500) == -500
    assert total_loans_delta("approved", "liquidated", 500) == -500
    assert total_loans_delta(None, "pending", 500) == 0
    assert total_loans_delta("rejected", "pending", 500) == 0


@pytest.mark.asyncio
async def test_create_loan_requires_fields(make_user):
    user = await make_user()

    with pytest.raises(HTTPException) as exc:
        await loan_service.create_loan(_application(purpose=None), str(user.id))

    assert exc.value.status_code == 400
    assert exc.value.detail == "Required fields are missing"


@pytest.mark.asyncio
async def test_create_loan_uses_default_pricing(make_user):
    user = await make_user()

    result = await loan_service.create_loan(_application(), str(user.id))

    loan = await Loan.find_one({"user_id": user.id})
    assert result["loan_id"] == str(loan.id)
    assert loan.status == "pending"
    assert loan.loan_details.interest_amount == 1200
    assert loan.loan_details.processing_fee == 120
    assert loan.loan_details.total_loan_amount == 13200
    assert (await reload_user(user)).total_loans == 0


@pytest.mark.asyncio
async def test_get_loan_of_another_user_is_not_found(make_user):
    owner = await make_user()
    other = await make_user()
    loan = await _loan(owner)

    with pytest.raises(HTTPException) as exc:
        await loan_service.get_loan(str(loan.id), str(other.id))
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        await loan_service.get_loan("not-an-id", str(owner.id))
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_approval_and_completion_move_total_loans(make_user):
    user = await make_user()
    loan = await _loan(user)

    await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), status="approved"))
    assert (await reload_user(user)).total_loans == 10000

    # Moving inside the approved family leaves the total alone
    loan = await Loan.find_one({"_id": loan.id})
    await apply_status_transition(loan, "payment_pending")
    await loan.save()
    assert (await reload_user(user)).total_loans == 10000

    await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), status="completed"))
    assert (await reload_user(user)).total_loans == 0


@pytest.mark.asyncio
async def test_update_loan_adjusts_total_for_approved_loan(make_user):
    user = await make_user(total_loans=10000)
    loan = await _loan(user, status="approved")

    result = await loan_service.update_loan(str(loan.id), LoanUpdate(loan_amount=15000), str(user.id))

    assert result["loan"]["loan_details"]["total_loan_amount"] == 16500
    assert (await reload_user(user)).total_loans == 15000


@pytest.mark.asyncio
async def test_delete_approved_loan_removes_its_principal(make_user):
    user = await make_user(total_loans=10000)
    loan = await _loan(user, status="active")

    await loan_service.delete_loan(str(loan.id), str(user.id))

    assert await Loan.find_one({"_id": loan.id}) is None
    assert (await reload_user(user)).total_loans == 0


@pytest.mark.asyncio
async def test_pay_processing_fee_activates_loan(make_user):
    user = await make_user(total_loans=10000)
    loan = await _loan(user, status="approved")

    result = await loan_service.pay_processing_fee(str(loan.id), str(user.id))

    assert result["status"] == "active"
    assert result["processing_fee"] == 100
    stored = await Loan.find_one({"_id": loan.id})
    assert stored.loan_details.processing_fee_paid is True
    txn = await Transaction.find_one({"loan_id": loan.id})
    assert txn.type == "processing_fee"
    assert txn.amount == 100
    assert (await reload_user(user)).total_loans == 10000


@pytest.mark.asyncio
async def test_pay_processing_fee_rejects_unapproved_and_repeat(make_user):
    user = await make_user()
    pending = await _loan(user, status="pending")

    with pytest.raises(HTTPException) as exc:
        await loan_service.pay_processing_fee(str(pending.id), str(user.id))
    assert exc.value.status_code == 400

    approved = await _loan(user, status="approved")
    approved.loan_details.processing_fee_paid = True
    await approved.save()
    with pytest.raises(HTTPException) as exc:
        await loan_service.pay_processing_fee(str(approved.id), str(user.id))
    assert exc.value.detail == "Processing fee already paid"


@pytest.mark.asyncio
async def test_liquidate_credits_half_of_remaining(make_user):
    user = await make_user(total_loans=10000)
    loan = await _loan(user, status="approved")

    result = await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), action="liquidate"))

    assert result["credit_amount"] == "5500.00"
    stored = await Loan.find_one({"_id": loan.id})
    assert stored.status == "liquidated"
    assert stored.loan_details.paid_amount == 5500
    assert stored.loan_details.remaining_balance == 0
    assert stored.payments[-1].type == "liquidation"
    assert (await reload_user(user)).total_loans == 0


@pytest.mark.asyncio
async def test_liquidate_requires_approved_loan(make_user):
    user = await make_user()
    loan = await _loan(user, status="active")

    with pytest.raises(HTTPException) as exc:
        await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), action="liquidate"))
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_processing_fee_flag_needs_boolean(make_user):
    user = await make_user()
    loan = await _loan(user, status="approved", with_details=False)

    with pytest.raises(HTTPException):
        await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), action="update-processing-fee"))

    result = await loan_service.admin_patch_loan(
        AdminLoanPatch(loan_id=str(loan.id), action="update-processing-fee", processing_fee_paid=True)
    )
    assert result["processing_fee_paid"] is True
    stored = await Loan.find_one({"_id": loan.id})
    assert stored.loan_details is not None
    assert stored.loan_details.processing_fee_paid is True


@pytest.mark.asyncio
async def test_resend_email_only_for_approved(make_user):
    user = await make_user()
    loan = await _loan(user, status="pending")

    with pytest.raises(HTTPException) as exc:
        await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), action="resend-email"))
    assert exc.value.detail == "Can only resend emails for approved loans"


@pytest.mark.asyncio
async def test_admin_list_filters_by_fee_flag(make_user):
    user = await make_user()
    paid = await _loan(user, status="active")
    paid.loan_details.processing_fee_paid = True
    await paid.save()
    await _loan(user, status="approved")

    result = await loan_service.list_admin_loans(processing_fee_paid=True)

    assert result["pagination"]["total"] == 1
    assert result["loans"][0]["id"] == str(paid.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("current, notices", [("pending", 1), ("approved", 0), ("active", 0), ("payment_pending", 0)])
async def test_approval_notice_sent_only_on_entering_approved_family(make_user, monkeypatch, current, notices):
    import fincare.services.loan_service as loan_module

    sent = []
    monkeypatch.setattr(loan_module, "send_loan_approval_notice", lambda loan: sent.append(loan.id))
    user = await make_user()
    loan = await _loan(user, status=current)

    await loan_service.admin_patch_loan(AdminLoanPatch(loan_id=str(loan.id), status="approved"))

    assert len(sent) == notices
