from fastapi import APIRouter, Query, Depends, HTTPException
from typing import Optional, Dict, Any
from datetime import datetime
import logging

from fincare.services.analytics_service import analytics_service
from fincare.core.auth_dependencies import get_current_admin

router = APIRouter(prefix="/admin", tags=["Admin Analytics"])

logger = logging.getLogger(__name__)


def _parse_date(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date (YYYY-MM-DD) to midnight of that day, or None."""
    if not s:
        return None
    try:
        return datetime.combine(datetime.fromisoformat(s).date(), datetime.min.time())
    except ValueError:
        return None


@router.get("/analytics")
async def dashboard(current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return await analytics_service.dashboard()
    except Exception as e:
        logger.error("Error building dashboard analytics: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch analytics")


@router.get("/analytics/loans")
async def loan_analytics(
    period: str = Query("30d", pattern="^(7d|30d|90d|1y)$"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await analytics_service.loan_analytics(period)
    except Exception as e:
        logger.error("Error building loan analytics: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch loan analytics")


@router.get("/analytics/finance")
async def finance_analytics(
    start_date: Optional[str] = Query(None, description="ISO start date, e.g. 2025-01-01"),
    end_date: Optional[str] = Query(None, description="ISO end date, e.g. 2025-01-31"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="start_date and end_date are required")
    sd = _parse_date(start_date)
    ed = _parse_date(end_date)
    if not sd or not ed:
        raise HTTPException(status_code=400, detail="Invalid start_date or end_date; use ISO format YYYY-MM-DD")

    try:
        return await analytics_service.finance(sd, ed)
    except Exception as e:
        logger.error("Error building finance analytics: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch finance analytics")


@router.get("/analytics/signups-loans")
async def signups_and_loans(
    year: Optional[str] = Query(None),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    if year is None:
        parsed_year = datetime.utcnow().year
    else:
        try:
            parsed_year = int(year)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid year parameter")
        if not 1 <= parsed_year <= 9999:
            raise HTTPException(status_code=400, detail="Invalid year parameter")

    try:
        return {"year": parsed_year, "months": await analytics_service.signups_and_loans(parsed_year)}
    except Exception as e:
        logger.error("Error building signup analytics: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch signup analytics")


@router.get("/analytics/top-savers")
async def top_savers(
    period: str = Query("all", pattern="^(day|week|month|year|all)$"),
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await analytics_service.top_savers(period, limit, page)
    except Exception as e:
        logger.error("Error ranking top savers: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch top savers")
