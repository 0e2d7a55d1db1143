from types import SimpleNamespace
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from fincare.database.models import Saving, Investment
from fincare.schemas import (
    SavingCreate,
    SavingVerifyRequest,
    AdminSavingCreate,
    AdminSavingPatch,
    InvestmentPlanCreate,
    InvestmentCreate,
    InvestmentUpdate,
)
from fincare.services.savings_service import savings_service, deposit_amount
from fincare.services.investment_service import investment_service
from tests.conftest import reload_user


def test_deposit_amount_takes_first_positive_field():
    assert deposit_amount(SimpleNamespace(amount=0, current_balance=250, target_amount=900)) == 250
    assert deposit_amount(SimpleNamespace(amount=0, current_balance=0, target_amount=900)) == 900
    assert deposit_amount(SimpleNamespace(amount=0, current_balance=0, target_amount=0)) == 0


@pytest.mark.asyncio
async def test_saving_with_allocation_moves_balance(make_user):
    user = await make_user(savings_balance=1000)

    await savings_service.create_saving(
        SavingCreate(target_amount=5000, reason="Rent", allocation={"source": "savings", "amount": 300}),
        str(user.id),
    )

    refreshed = await reload_user(user)
    assert refreshed.savings_balance == 700
    assert refreshed.total_savings == 300
    saving = await Saving.find_one({"user_id": user.id})
    assert saving.current_balance == 300


@pytest.mark.asyncio
async def test_allocation_beyond_balance_is_refused(make_user):
    user = await make_user(savings_balance=100)

    with pytest.raises(HTTPException) as exc:
        await savings_service.create_saving(
            SavingCreate(target_amount=5000, reason="Rent", allocation={"source": "savings", "amount": 300}),
            str(user.id),
        )
    assert exc.value.detail == "Insufficient savings balance"


@pytest.mark.asyncio
async def test_verification_flow_credits_once(make_user):
    user = await make_user()
    created = await savings_service.create_saving(SavingCreate(target_amount=800, reason="Deposit"), str(user.id))
    saving_id = created["saving"]["id"]

    submitted = await savings_service.submit_verification(
        SavingVerifyRequest(saving_id=saving_id, proof_reference="teller-slip.jpg", amount=500), str(user.id)
    )
    assert submitted["status"] == "pending_verification"

    await savings_service.review_saving(AdminSavingPatch(saving_id=saving_id, action="verify"), "admin@fincare.test")
    refreshed = await reload_user(user)
    assert refreshed.savings_balance == 500
    assert refreshed.total_savings == 500

    with pytest.raises(HTTPException):
        await savings_service.review_saving(AdminSavingPatch(saving_id=saving_id, action="verify"))


@pytest.mark.asyncio
async def test_reject_records_reason(make_user):
    user = await make_user()
    created = await savings_service.create_saving(SavingCreate(target_amount=800, reason="Deposit"), str(user.id))

    result = await savings_service.review_saving(
        AdminSavingPatch(saving_id=created["saving"]["id"], action="reject", reason="Blurry slip")
    )

    assert result["saving"]["status"] == "rejected"
    assert result["saving"]["rejection_reason"] == "Blurry slip"
    assert (await reload_user(user)).savings_balance == 0


@pytest.mark.asyncio
async def test_manual_deposit_is_verified_immediately(make_user):
    user = await make_user()

    result = await savings_service.create_manual_deposit(AdminSavingCreate(user_id=str(user.id), amount=250), "admin@fincare.test")

    assert result["saving"]["type"] == "manual_deposit"
    assert result["saving"]["status"] == "verified"
    assert (await reload_user(user)).savings_balance == 250


@pytest.mark.asyncio
async def test_admin_list_filters_by_status(make_user):
    user = await make_user()
    await savings_service.create_manual_deposit(AdminSavingCreate(user_id=str(user.id), amount=250))
    await savings_service.create_saving(SavingCreate(target_amount=800, reason="Goal"), str(user.id))

    result = await savings_service.list_admin_savings(status_filter="verified")

    assert result["pagination"]["total"] == 1
    assert result["savings"][0]["user"]["email"] == user.email


async def _plan():
    result = await investment_service.create_plan(InvestmentPlanCreate(
        name="Treasury Notes",
        unit_price=100,
        interest_rate=12,
        type="fixed",
        maturity_date=datetime.utcnow() + timedelta(days=365),
    ))
    return result["investment"]["id"]


@pytest.mark.asyncio
async def test_investment_buys_units_from_savings(make_user):
    user = await make_user(savings_balance=1000)
    plan_id = await _plan()

    await investment_service.create_investment(InvestmentCreate(plan_id=plan_id, amount=500), str(user.id))

    investment = await Investment.find_one({"user_id": user.id})
    assert investment.units == 5
    assert investment.current_value == 500
    refreshed = await reload_user(user)
    assert refreshed.savings_balance == 500
    assert refreshed.total_investment == 500


@pytest.mark.asyncio
async def test_investment_needs_plan_and_funds(make_user):
    user = await make_user(savings_balance=100)
    plan_id = await _plan()

    with pytest.raises(HTTPException) as exc:
        await investment_service.create_investment(InvestmentCreate(plan_id=plan_id, amount=500), str(user.id))
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        await investment_service.create_investment(
            InvestmentCreate(plan_id="64b000000000000000000000", amount=50), str(user.id)
        )
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_update_and_delete_investment_move_savings(make_user):
    user = await make_user(savings_balance=1000)
    plan_id = await _plan()
    created = await investment_service.create_investment(InvestmentCreate(plan_id=plan_id, amount=500), str(user.id))

    await investment_service.update_investment(created["investment_id"], InvestmentUpdate(amount=700), str(user.id))
    refreshed = await reload_user(user)
    assert refreshed.savings_balance == 300
    assert refreshed.total_investment == 700

    await investment_service.delete_investment(created["investment_id"], str(user.id))
    refreshed = await reload_user(user)
    assert refreshed.savings_balance == 1000
    assert refreshed.total_investment == 0
