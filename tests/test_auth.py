import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from starlette.requests import Request

from main import app
from fincare.core import create_access_token, create_admin_token, decode_token
from fincare.core.auth_dependencies import get_current_user, get_current_admin, get_super_admin
from fincare.schemas import UserCreate, AdminCreate
from fincare.services import auth_service as auth_module
from fincare.services.auth_service import auth_service
import fincare.services.loan_service as loan_module


def _signup(**overrides):
    data = dict(
        first_name="Ada",
        last_name="Lovelace",
        phone="08000000000",
        email="Ada@Example.com",
        password="correct-horse",
        confirm_password="correct-horse",
    )
    data.update(overrides)
    return UserCreate(**data)


def _request(cookie=None):
    headers = [(b"cookie", f"admin_session={cookie}".encode())] if cookie else []
    return Request({"type": "http", "headers": headers})


@pytest.mark.asyncio
async def test_register_and_login(db):
    created = await auth_service.register_user(_signup())
    assert created["email"] == "ada@example.com"
    assert "hashed_password" not in created

    token_data = await auth_service.login_user("ada@example.com", "correct-horse")
    payload = decode_token(token_data["access_token"])
    assert payload["sub"] == "ada@example.com"
    assert payload["type"] == "customer"
    assert payload["user_id"] == created["id"]


@pytest.mark.asyncio
async def test_register_rules(db):
    with pytest.raises(HTTPException) as exc:
        await auth_service.register_user(_signup(confirm_password="different"))
    assert exc.value.detail == "Passwords do not match"

    with pytest.raises(HTTPException) as exc:
        await auth_service.register_user(_signup(password="short", confirm_password="short"))
    assert exc.value.status_code == 400

    await auth_service.register_user(_signup())
    with pytest.raises(HTTPException) as exc:
        await auth_service.register_user(_signup(email="ada@example.com"))
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_login_with_wrong_password(db):
    await auth_service.register_user(_signup())

    with pytest.raises(HTTPException) as exc:
        await auth_service.login_user("ada@example.com", "wrong-password")
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_admin_login_carries_role(db):
    await auth_service.create_admin(AdminCreate(email="ops@example.com", full_name="Ops", password="admin-pass-1", role="super_admin"))

    token_data = await auth_service.login_admin("ops@example.com", "admin-pass-1")

    payload = decode_token(token_data["access_token"])
    assert payload["type"] == "admin"
    assert payload["role"] == "super_admin"


@pytest.mark.asyncio
async def test_current_user_rejects_missing_and_admin_tokens(monkeypatch):
    with pytest.raises(HTTPException) as exc:
        await get_current_user(None)
    assert exc.value.status_code == 401

    admin_token = create_admin_token({"sub": "ops@fincare.test", "role": "admin"})
    with pytest.raises(HTTPException) as exc:
        await get_current_user(admin_token)
    assert exc.value.status_code == 401

    async def fake_lookup(email):
        return {"id": "u1", "email": email}
    monkeypatch.setattr(auth_module.auth_service, "get_user_by_email", fake_lookup)
    user = await get_current_user(create_access_token({"sub": "ada@example.com", "type": "customer"}))
    assert user["email"] == "ada@example.com"


@pytest.mark.asyncio
async def test_admin_token_is_read_from_cookie(monkeypatch):
    async def fake_admin(email):
        return {"email": email, "role": "admin", "is_active": True}
    monkeypatch.setattr(auth_module.auth_service, "get_admin_by_email", fake_admin)

    token = create_admin_token({"sub": "ops@fincare.test", "role": "admin"})
    admin = await get_current_admin(_request(cookie=token), None)
    assert admin["email"] == "ops@fincare.test"

    with pytest.raises(HTTPException) as exc:
        await get_current_admin(_request(), None)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_admin_roles_are_enforced():
    customer_token = create_access_token({"sub": "ada@example.com", "type": "customer"})
    with pytest.raises(HTTPException) as exc:
        await get_current_admin(_request(), customer_token)
    assert exc.value.status_code == 401

    viewer_token = create_admin_token({"sub": "viewer@fincare.test", "role": "viewer"})
    with pytest.raises(HTTPException) as exc:
        await get_current_admin(_request(), viewer_token)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        await get_super_admin({"email": "ops@fincare.test", "role": "admin"})
    assert exc.value.status_code == 403


def test_protected_route_without_token():
    client = TestClient(app)
    resp = client.get("/loans")
    assert resp.status_code == 401
    assert resp.json()["error"]["status_code"] == 401


def test_validation_errors_are_400():
    app.dependency_overrides[get_current_user] = lambda: {"id": "64b000000000000000000001", "email": "ada@example.com"}
    try:
        client = TestClient(app)
        resp = client.post("/loans/processing-fee", json={})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"
    finally:
        app.dependency_overrides = {}


def test_loan_route_delegates_to_service(monkeypatch):
    async def fake_pay(loan_id, user_id):
        return {"message": "Processing fee paid successfully", "loan_id": loan_id, "status": "active"}

    monkeypatch.setattr(loan_module.loan_service, "pay_processing_fee", fake_pay)
    app.dependency_overrides[get_current_user] = lambda: {"id": "64b000000000000000000001", "email": "ada@example.com"}
    try:
        client = TestClient(app)
        resp = client.post("/loans/processing-fee", json={"loan_id": "64b000000000000000000002"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"
    finally:
        app.dependency_overrides = {}


def test_health_and_security_headers():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
