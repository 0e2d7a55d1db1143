import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from main import app
from fincare.core.auth_dependencies import get_current_user, get_current_admin
from fincare.database.models import AdminUser, Loan, BorrowerDetails
from fincare.schemas import AdminCreate, AdminUpdate, CustomerUpdate, ProfileUpdate, MembershipPaymentCreate
from fincare.services.auth_service import auth_service
from fincare.services.customer_service import customer_service
from fincare.services.membership_service import membership_service
from tests.conftest import reload_user


async def _loan(user, status):
    loan = Loan(
        user_id=user.id,
        loan_amount=5000,
        purpose="Stock",
        duration=6,
        borrower_details=BorrowerDetails(full_name="Ada", phone="080", email=user.email, gender="female"),
        status=status,
    )
    await loan.insert()
    return loan


async def _admin(email, role="admin"):
    return await auth_service.create_admin(AdminCreate(email=email, full_name="Back Office", password="admin-pass-1", role=role))


@pytest.mark.asyncio
async def test_admin_updates_customer_details(make_user):
    user = await make_user()
    other = await make_user()

    result = await customer_service.update_customer(
        str(user.id), CustomerUpdate(phone=" 08011112222 ", bank="First Bank", account_number="0123456789")
    )

    assert result["customer"]["phone"] == "08011112222"
    refreshed = await reload_user(user)
    assert refreshed.bank == "First Bank"
    assert refreshed.savings_balance == 0

    with pytest.raises(HTTPException) as exc:
        await customer_service.update_customer(str(user.id), CustomerUpdate(email=other.email.upper()))
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_customer_with_outstanding_loan_is_kept(make_user):
    user = await make_user()
    await _loan(user, "active")

    with pytest.raises(HTTPException) as exc:
        await customer_service.delete_customer(str(user.id))
    assert exc.value.status_code == 400
    assert await reload_user(user) is not None


@pytest.mark.asyncio
async def test_delete_customer(make_user):
    user = await make_user()
    await _loan(user, "completed")

    await customer_service.delete_customer(str(user.id))

    assert await reload_user(user) is None
    with pytest.raises(HTTPException) as exc:
        await customer_service.delete_customer(str(user.id))
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_suspend_and_reactivate_customer(make_user):
    user = await make_user(membership_status="approved")

    result = await customer_service.set_customer_status(str(user.id), "suspend")
    assert result["message"] == "Customer suspended successfully"
    assert (await reload_user(user)).membership_status == "suspended"

    with pytest.raises(HTTPException) as exc:
        await membership_service.submit_payment(MembershipPaymentCreate(amount=5000, payment_proof="slip.pdf"), str(user.id))
    assert exc.value.status_code == 403

    await customer_service.set_customer_status(str(user.id), "reactivate")
    assert (await reload_user(user)).membership_status == "approved"

    with pytest.raises(HTTPException) as exc:
        await customer_service.set_customer_status(str(user.id), "reactivate")
    assert exc.value.detail == "Customer is not suspended"


@pytest.mark.asyncio
async def test_profile_lists_holdings(make_user):
    user = await make_user()
    await _loan(user, "approved")
    await _loan(user, "pending")

    profile = await customer_service.get_profile(str(user.id))

    assert profile["user"]["email"] == user.email
    assert "hashed_password" not in profile["user"]
    assert len(profile["loans"]) == 2
    assert profile["stats"]["loan_total"] == 5000


@pytest.mark.asyncio
async def test_profile_update_keeps_balances(make_user):
    user = await make_user(savings_balance=900)

    result = await customer_service.update_profile(str(user.id), ProfileUpdate(address="12 Marina Road", gender="female"))

    assert result["user"]["address"] == "12 Marina Road"
    assert (await reload_user(user)).savings_balance == 900


def test_profile_of_another_user_is_forbidden():
    app.dependency_overrides[get_current_user] = lambda: {"id": "64b000000000000000000001", "email": "ada@example.com"}
    try:
        client = TestClient(app)
        resp = client.get("/profile/64b000000000000000000002")
        assert resp.status_code == 403

        resp = client.put("/profile/64b000000000000000000002", json={"phone": "0800"})
        assert resp.status_code == 403
    finally:
        app.dependency_overrides = {}


@pytest.mark.asyncio
async def test_update_admin_user(db):
    created = await _admin("clerk@example.com")
    await _admin("lead@example.com")

    updated = await auth_service.update_admin(created["id"], AdminUpdate(full_name="Clerk Two", role="super_admin"))
    assert updated["full_name"] == "Clerk Two"
    assert updated["role"] == "super_admin"

    with pytest.raises(HTTPException) as exc:
        await auth_service.update_admin(created["id"], AdminUpdate(email="lead@example.com"))
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_suspended_admin_cannot_log_in(db):
    created = await _admin("clerk@example.com")

    result = await auth_service.set_admin_active(created["id"], "suspend", "root@example.com")
    assert result["user"]["is_active"] is False

    with pytest.raises(HTTPException) as exc:
        await auth_service.login_admin("clerk@example.com", "admin-pass-1")
    assert exc.value.detail == "Account is deactivated"

    await auth_service.set_admin_active(created["id"], "reactivate", "root@example.com")
    token_data = await auth_service.login_admin("clerk@example.com", "admin-pass-1")
    assert token_data["access_token"]


@pytest.mark.asyncio
async def test_admin_cannot_remove_themselves(db):
    created = await _admin("root@example.com", role="super_admin")

    with pytest.raises(HTTPException):
        await auth_service.delete_admin(created["id"], "root@example.com")
    with pytest.raises(HTTPException):
        await auth_service.set_admin_active(created["id"], "suspend", "root@example.com")

    other = await _admin("clerk@example.com")
    await auth_service.delete_admin(other["id"], "root@example.com")
    assert await AdminUser.find_one({"email": "clerk@example.com"}) is None


def test_admin_user_changes_need_super_admin():
    app.dependency_overrides[get_current_admin] = lambda: {"email": "clerk@example.com", "role": "admin"}
    try:
        client = TestClient(app)
        resp = client.delete("/admin/users/64b000000000000000000002")
        assert resp.status_code == 403
    finally:
        app.dependency_overrides = {}
