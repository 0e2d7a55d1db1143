from typing import Dict, Any, List, Optional
from datetime import datetime, timedelta
import calendar
import logging

from fincare.database.models import Loan, Investment, User, Withdrawal, Auction, Transaction, Saving
from fincare.helpers.response_builder import convert_objectid, pagination_meta

logger = logging.getLogger(__name__)

# Used for loans stored without precomputed loan_details
LOAN_INTEREST_RATE = 0.1
LOAN_PROCESSING_FEE_RATE = 0.01

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

MONTH_NAMES = list(calendar.month_name)[1:]


def percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return 100 if current > 0 else 0
    return (current - previous) / previous * 100


def _first_total(result: List[Dict[str, Any]], key: str = "total") -> float:
    return result[0].get(key, 0) if result else 0


def saver_period_range(period: str, now: Optional[datetime] = None):
    # Calendar-aligned windows; "all" (or anything unknown) means no window
    now = now or datetime.utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "day":
        return today, today + timedelta(days=1)
    if period == "week":
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=7)
    if period == "month":
        start = today.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
        return start, end
    if period == "year":
        return today.replace(month=1, day=1), today.replace(year=today.year + 1, month=1, day=1)
    return None


def _positive_or(field: str, fallback) -> Dict[str, Any]:
    return {"$cond": [{"$gt": [field, 0]}, field, fallback]}


# Interest, fee and total per loan, falling back to the default pricing when loan_details is absent
INTEREST_EXPR = _positive_or(
    "$loan_details.interest_amount",
    {"$multiply": ["$loan_amount", LOAN_INTEREST_RATE, {"$divide": ["$duration", 12]}]},
)
FEE_EXPR = _positive_or(
    "$loan_details.processing_fee",
    {"$multiply": ["$loan_amount", LOAN_PROCESSING_FEE_RATE]},
)
TOTAL_EXPR = _positive_or(
    "$loan_details.total_loan_amount",
    {"$add": ["$loan_amount", {"$multiply": ["$loan_amount", LOAN_INTEREST_RATE, {"$divide": ["$duration", 12]}]}]},
)
FEE_UNPAID = {"$ne": ["$loan_details.processing_fee_paid", True]}

SAVING_AMOUNT_EXPR = _positive_or(
    "$amount",
    _positive_or("$current_balance", {"$ifNull": ["$target_amount", 0]}),
)


class AnalyticsService:
    """Read-only aggregations behind the admin dashboards."""

    async def dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        thirty_days_ago = now - timedelta(days=30)
        week_ago = now - timedelta(days=7)

        def loans_total(match):
            return [{"$match": match}, {"$group": {"_id": None, "total": {"$sum": "$loan_amount"}}}]

        def sum_of(field, match=None):
            pipeline = [{"$match": match}] if match else []
            pipeline.append({"$group": {"_id": None, "total": {"$sum": field}}})
            return pipeline

        try:
            total_loans = _first_total(await Loan.aggregate(loans_total({"status": "approved"})).to_list())
            total_investment = _first_total(await Investment.aggregate(sum_of("$amount")).to_list())
            total_savings = _first_total(await User.aggregate(sum_of("$savings_balance")).to_list())
            total_users = await User.find({}).count()

            pending_withdrawals = await Withdrawal.find({"status": "pending"}).count()
            active_auctions = await Auction.find({"status": "active"}).count()
            pending_memberships = await User.find({"membership_status": "pending"}).count()

            recent = await Transaction.find({"created_at": {"$gte": week_ago}}).sort("-created_at").limit(10).to_list()

            before = {"created_at": {"$lt": thirty_days_ago}}
            previous_loans = _first_total(await Loan.aggregate(loans_total({"status": "approved", **before})).to_list())
            previous_investment = _first_total(await Investment.aggregate(sum_of("$amount", before)).to_list())
            previous_savings = _first_total(await User.aggregate(sum_of("$savings_balance", before)).to_list())
            previous_users = await User.find(before).count()
        except Exception as e:
            logger.exception("Failed to build dashboard analytics: %s", e)
            raise

        return {
            "loans": {
                "total": total_loans,
                "change": percent_change(total_loans, previous_loans),
                "pending": pending_withdrawals,
            },
            "investment": {
                "total": total_investment,
                "change": percent_change(total_investment, previous_investment),
                "active": active_auctions,
            },
            "savings": {
                "total": total_savings,
                "change": percent_change(total_savings, previous_savings),
            },
            "users": {
                "total": total_users,
                "change": percent_change(total_users, previous_users),
                "pending": pending_memberships,
            },
            "recent_transactions": [
                {
                    "id": str(t.id),
                    "type": t.type,
                    "amount": t.amount,
                    "status": t.status,
                    "created_at": t.created_at,
                    "user_id": str(t.user_id),
                }
                for t in recent
            ],
            "timestamp": now.isoformat(),
        }

    async def loan_analytics(self, period: str = "30d", now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        days = PERIOD_DAYS.get(period, 30)
        match = {"$match": {"created_at": {"$gte": now - timedelta(days=days)}}}
        month_key = {"month": {"$month": "$created_at"}, "year": {"$year": "$created_at"}}

        loans_pipeline = [
            match,
            {"$group": {
                "_id": {"status": "$status", **month_key},
                "count": {"$sum": 1},
                "total_principal": {"$sum": "$loan_amount"},
                "total_interest": {"$sum": INTEREST_EXPR},
                "total_processing_fees": {"$sum": FEE_EXPR},
                "pending_processing_fees": {"$sum": {"$cond": [FEE_UNPAID, FEE_EXPR, 0]}},
                "unpaid_fee_count": {"$sum": {"$cond": [FEE_UNPAID, 1, 0]}},
                "total_loan_amount": {"$sum": TOTAL_EXPR},
                "avg_loan_amount": {"$avg": "$loan_amount"},
                "avg_duration": {"$avg": "$duration"},
            }},
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ]
        status_pipeline = [
            match,
            {"$group": {"_id": "$status", "count": {"$sum": 1}, "total_amount": {"$sum": "$loan_amount"}}},
        ]
        trend_pipeline = [
            match,
            {"$group": {
                "_id": month_key,
                "loan_count": {"$sum": 1},
                "total_principal": {"$sum": "$loan_amount"},
                "total_approved": {"$sum": {"$cond": [{"$eq": ["$status", "approved"]}, 1, 0]}},
                "total_pending": {"$sum": {"$cond": [{"$eq": ["$status", "pending"]}, 1, 0]}},
            }},
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ]

        try:
            grouped = await Loan.aggregate(loans_pipeline).to_list()
            status_breakdown = await Loan.aggregate(status_pipeline).to_list()
            monthly_trend = await Loan.aggregate(trend_pipeline).to_list()
        except Exception as e:
            logger.exception("Failed to build loan analytics: %s", e)
            raise

        def total(key):
            return sum(item.get(key, 0) or 0 for item in grouped)

        by_status = {item.get("_id"): item.get("count", 0) for item in status_breakdown}
        approved = by_status.get("approved", 0)
        rejected = by_status.get("rejected", 0)
        processed = approved + rejected

        summary = {
            "total": total("count"),
            "total_principal": total("total_principal"),
            "total_interest": total("total_interest"),
            "total_processing_fees": total("total_processing_fees"),
            "pending_processing_fees": total("pending_processing_fees"),
            "total_loan_amount": total("total_loan_amount"),
            "unpaid_fee_count": total("unpaid_fee_count"),
            "avg_loan_amount": total("avg_loan_amount") / len(grouped) if grouped else 0,
            "avg_duration": total("avg_duration") / len(grouped) if grouped else 0,
            "approval_rate": approved / processed * 100 if processed else 0,
            "pending_count": by_status.get("pending", 0),
        }

        return {
            "period": period,
            "loans": grouped,
            "status_breakdown": status_breakdown,
            "monthly_trend": monthly_trend,
            "summary": summary,
            "metrics": {
                "interest_rate": LOAN_INTEREST_RATE,
                "processing_fee_rate": LOAN_PROCESSING_FEE_RATE,
            },
        }

    async def finance(self, start_date: datetime, end_date: datetime) -> Dict[str, Any]:
        end_date = end_date.replace(hour=23, minute=59, second=59, microsecond=999999)
        in_range = {"created_at": {"$gte": start_date, "$lte": end_date}}

        try:
            revenue = await Transaction.aggregate([
                {"$match": {"type": "revenue", "status": "completed", **in_range}},
                {"$group": {"_id": None, "total": {"$sum": "$amount"}}},
            ]).to_list()
            withdrawn = await Withdrawal.aggregate([
                {"$match": {"status": {"$in": ["completed", "processing"]}, **in_range}},
                {"$group": {"_id": None, "total": {"$sum": "$amount"}}},
            ]).to_list()
            savings = await User.aggregate([
                {"$group": {"_id": None, "total": {"$sum": "$savings_balance"}}},
            ]).to_list()
            investment = await Investment.aggregate([
                {"$group": {"_id": None, "total": {"$sum": "$amount"}}},
            ]).to_list()
            withdrawal_stats = await Withdrawal.aggregate([
                {"$match": in_range},
                {"$group": {"_id": "$status", "count": {"$sum": 1}, "total": {"$sum": "$amount"}}},
            ]).to_list()
        except Exception as e:
            logger.exception("Failed to build finance analytics: %s", e)
            raise

        counts = {s.get("_id"): s.get("count", 0) for s in withdrawal_stats}
        return {
            "total_revenue": _first_total(revenue),
            "total_withdrawal": _first_total(withdrawn),
            "total_savings": _first_total(savings),
            "total_investment": _first_total(investment),
            "pending_withdrawals": counts.get("pending", 0),
            "completed_withdrawals": counts.get("completed", 0),
        }

    async def signups_and_loans(self, year: int) -> Dict[str, Dict[str, int]]:
        start = datetime(year, 1, 1)
        end = datetime(year, 12, 31, 23, 59, 59)

        def by_month():
            return [
                {"$match": {"created_at": {"$gte": start, "$lte": end}}},
                {"$group": {"_id": {"month": {"$month": "$created_at"}}, "count": {"$sum": 1}}},
                {"$sort": {"_id.month": 1}},
            ]

        try:
            signups = await User.aggregate(by_month()).to_list()
            applications = await Loan.aggregate(by_month()).to_list()
        except Exception as e:
            logger.exception("Failed to build signup analytics for %s: %s", year, e)
            raise

        months = {name: {"total_users": 0, "total_loans": 0} for name in MONTH_NAMES}
        for item in signups:
            month = item["_id"]["month"]
            if 1 <= month <= 12:
                months[MONTH_NAMES[month - 1]]["total_users"] = item.get("count", 0)
        for item in applications:
            month = item["_id"]["month"]
            if 1 <= month <= 12:
                months[MONTH_NAMES[month - 1]]["total_loans"] = item.get("count", 0)
        return months

    async def top_savers(self, period: str = "all", limit: int = 20, page: int = 1) -> Dict[str, Any]:
        match: Dict[str, Any] = {
            "status": "verified",
            "$or": [
                {"amount": {"$gt": 0}},
                {"current_balance": {"$gt": 0}},
                {"target_amount": {"$gt": 0}},
            ],
        }
        window = saver_period_range(period)
        if window:
            match["created_at"] = {"$gte": window[0], "$lt": window[1]}

        grouping = [
            {"$match": match},
            {"$group": {
                "_id": "$user_id",
                "total_savings_amount": {"$sum": SAVING_AMOUNT_EXPR},
                "savings_count": {"$sum": 1},
                "last_savings_date": {"$max": "$created_at"},
                "first_savings_date": {"$min": "$created_at"},
            }},
        ]
        skip = (page - 1) * limit
        ranking = grouping + [
            {"$sort": {"total_savings_amount": -1}},
            {"$skip": skip},
            {"$limit": limit},
            {"$lookup": {"from": "users", "localField": "_id", "foreignField": "_id", "as": "user"}},
            {"$unwind": {"path": "$user", "preserveNullAndEmptyArrays": True}},
            {"$project": {
                "user_id": "$_id",
                "total_savings_amount": 1,
                "savings_count": 1,
                "last_savings_date": 1,
                "first_savings_date": 1,
                "user.first_name": 1,
                "user.last_name": 1,
                "user.email": 1,
                "user.phone": 1,
                "user.savings_balance": 1,
                "user.total_savings": 1,
                "user.membership_status": 1,
            }},
        ]

        try:
            savers = await Saving.aggregate(ranking).to_list()
            counted = await Saving.aggregate(grouping + [{"$count": "total"}]).to_list()
        except Exception as e:
            logger.exception("Failed to rank top savers: %s", e)
            raise

        total = _first_total(counted)
        ranked = []
        for position, saver in enumerate(convert_objectid(savers), start=skip + 1):
            saver["rank"] = position
            ranked.append(saver)

        return {
            "period": period,
            "top_savers": ranked,
            "pagination": pagination_meta(total, page, limit),
        }


analytics_service = AnalyticsService()
