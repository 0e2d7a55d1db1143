from datetime import datetime

import pytest
from fastapi import HTTPException

from fincare.database.models import Loan, User, Saving, Transaction, Withdrawal, Investment
from fincare.services.analytics_service import analytics_service, percent_change, saver_period_range
from fincare.services.customer_service import customer_service
from tests.conftest import FakeAgg


def _queue(results):
    def fake_aggregate(pipeline):
        return FakeAgg(results.pop(0))
    return staticmethod(fake_aggregate)


def test_percent_change():
    assert percent_change(150, 100) == 50
    assert percent_change(50, 100) == -50
    assert percent_change(10, 0) == 100
    assert percent_change(0, 0) == 0


def test_saver_period_range_is_calendar_aligned():
    now = datetime(2025, 3, 13, 15, 30)  # a Thursday

    assert saver_period_range("day", now) == (datetime(2025, 3, 13), datetime(2025, 3, 14))
    assert saver_period_range("week", now) == (datetime(2025, 3, 9), datetime(2025, 3, 16))
    assert saver_period_range("month", now) == (datetime(2025, 3, 1), datetime(2025, 4, 1))
    assert saver_period_range("year", now) == (datetime(2025, 1, 1), datetime(2026, 1, 1))
    assert saver_period_range("all", now) is None


@pytest.mark.asyncio
async def test_signups_and_loans_fill_all_months(monkeypatch):
    results = [
        [{"_id": {"month": 1}, "count": 4}, {"_id": {"month": 3}, "count": 2}],
        [{"_id": {"month": 3}, "count": 5}],
    ]
    monkeypatch.setattr(User, "aggregate", _queue(results))
    monkeypatch.setattr(Loan, "aggregate", _queue(results))

    months = await analytics_service.signups_and_loans(2025)

    assert len(months) == 12
    assert months["January"] == {"total_users": 4, "total_loans": 0}
    assert months["March"] == {"total_users": 2, "total_loans": 5}
    assert months["December"] == {"total_users": 0, "total_loans": 0}


@pytest.mark.asyncio
async def test_loan_analytics_summary(monkeypatch):
    grouped = [
        {"_id": {"status": "approved", "month": 1, "year": 2025}, "count": 3, "total_principal": 30000,
         "total_interest": 3000, "total_processing_fees": 300, "pending_processing_fees": 100,
         "unpaid_fee_count": 1, "total_loan_amount": 33000, "avg_loan_amount": 10000, "avg_duration": 12},
        {"_id": {"status": "pending", "month": 1, "year": 2025}, "count": 1, "total_principal": 5000,
         "total_interest": 500, "total_processing_fees": 50, "pending_processing_fees": 50,
         "unpaid_fee_count": 1, "total_loan_amount": 5500, "avg_loan_amount": 5000, "avg_duration": 6},
    ]
    status_breakdown = [
        {"_id": "approved", "count": 3, "total_amount": 30000},
        {"_id": "rejected", "count": 1, "total_amount": 2000},
        {"_id": "pending", "count": 1, "total_amount": 5000},
    ]
    monthly = [{"_id": {"month": 1, "year": 2025}, "loan_count": 4}]
    monkeypatch.setattr(Loan, "aggregate", _queue([grouped, status_breakdown, monthly]))

    report = await analytics_service.loan_analytics("90d")

    summary = report["summary"]
    assert summary["total"] == 4
    assert summary["total_principal"] == 35000
    assert summary["pending_processing_fees"] == 150
    assert summary["approval_rate"] == 75
    assert summary["pending_count"] == 1
    assert report["metrics"] == {"interest_rate": 0.1, "processing_fee_rate": 0.01}


@pytest.mark.asyncio
async def test_finance_totals(monkeypatch):
    monkeypatch.setattr(Transaction, "aggregate", _queue([[{"_id": None, "total": 900}]]))
    monkeypatch.setattr(Withdrawal, "aggregate", _queue([
        [{"_id": None, "total": 400}],
        [{"_id": "pending", "count": 2, "total": 100}, {"_id": "completed", "count": 3, "total": 400}],
    ]))
    monkeypatch.setattr(User, "aggregate", _queue([[{"_id": None, "total": 12000}]]))
    monkeypatch.setattr(Investment, "aggregate", _queue([[]]))

    report = await analytics_service.finance(datetime(2025, 1, 1), datetime(2025, 1, 31))

    assert report == {
        "total_revenue": 900,
        "total_withdrawal": 400,
        "total_savings": 12000,
        "total_investment": 0,
        "pending_withdrawals": 2,
        "completed_withdrawals": 3,
    }


@pytest.mark.asyncio
async def test_top_savers_are_ranked_by_page(monkeypatch):
    savers = [
        {"_id": "a", "user_id": "a", "total_savings_amount": 700},
        {"_id": "b", "user_id": "b", "total_savings_amount": 300},
    ]
    monkeypatch.setattr(Saving, "aggregate", _queue([savers, [{"total": 12}]]))

    report = await analytics_service.top_savers("all", limit=2, page=3)

    assert [s["rank"] for s in report["top_savers"]] == [5, 6]
    assert report["pagination"]["total"] == 12
    assert report["pagination"]["total_pages"] == 6


def test_finance_route_requires_dates(monkeypatch):
    from fastapi.testclient import TestClient
    from main import app
    from fincare.core.auth_dependencies import get_current_admin

    app.dependency_overrides[get_current_admin] = lambda: {"email": "admin@fincare.test", "role": "admin"}
    try:
        client = TestClient(app)
        resp = client.get("/admin/analytics/finance?start_date=2025-01-01")
        assert resp.status_code == 400

        resp = client.get("/admin/analytics/signups-loans?year=abc")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid year parameter"
    finally:
        app.dependency_overrides = {}


@pytest.mark.asyncio
async def test_customer_listing_includes_stats(make_user):
    user = await make_user(first_name="Grace", savings_balance=100)
    await make_user(first_name="Linus")
    await Saving(user_id=user.id, reason="Goal", current_balance=250, status="verified").insert()

    result = await customer_service.list_customers(search="grace")

    assert result["pagination"]["total"] == 1
    customer = result["customers"][0]
    assert customer["email"] == user.email
    assert "hashed_password" not in customer
    assert customer["stats"]["savings_total"] == 250


@pytest.mark.asyncio
async def test_unknown_customer(db):
    with pytest.raises(HTTPException) as exc:
        await customer_service.get_customer("64b000000000000000000000")
    assert exc.value.status_code == 404
