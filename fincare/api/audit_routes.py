from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional, Dict, Any
from datetime import datetime, timedelta
import logging

from fincare.services.audit_service import audit_service
from fincare.core.auth_dependencies import get_current_admin

router = APIRouter(prefix="/audits", tags=["Audits"])

logger = logging.getLogger(__name__)


def _day(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field} format, expected YYYY-MM-DD")


# Lists audit entries newest first; end_date includes the whole day
@router.get("")
async def list_audits(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    action: Optional[str] = Query(default=None),
    actor: Optional[str] = Query(default=None),
    acted: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None, pattern="^(successful|failed)$"),
    start_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    since = _day(start_date, "start_date")
    until = _day(end_date, "end_date")
    if since and until and since > until:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    try:
        return await audit_service.list_audits(
            page=page,
            limit=limit,
            action=action,
            actor=actor,
            acted=acted,
            status=status,
            since=since,
            before=until + timedelta(days=1) if until else None,
        )
    except Exception as e:
        logger.error("Error listing audits for %s: %s", current_admin.get("email"), e)
        raise HTTPException(status_code=500, detail="Failed to list audit logs")
