import logging
from typing import Optional, Dict, Any
from datetime import datetime

from fincare.database.models import AuditLog
from fincare.helpers.response_builder import serialize_documents, pagination_meta

logger = logging.getLogger(__name__)


class AuditService:
    """Writes and reads the audit trail of logins and back-office actions."""

    # Audit writes never block the request that triggered them
    async def record(self, action: str, actor: Optional[str] = None, acted: Optional[str] = None, status: str = "successful") -> None:
        try:
            await AuditLog(action=action, actor=actor, acted=acted, status=status).insert()
        except Exception:
            logger.exception("Failed to write %s audit log", action)

    async def list_audits(
        self,
        page: int = 1,
        limit: int = 50,
        action: Optional[str] = None,
        actor: Optional[str] = None,
        acted: Optional[str] = None,
        status: Optional[str] = None,
        since: Optional[datetime] = None,
        before: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        for key, value in (("action", action), ("actor", actor), ("acted", acted), ("status", status)):
            if value:
                query[key] = value

        window: Dict[str, datetime] = {}
        if since:
            window["$gte"] = since
        if before:
            window["$lt"] = before
        if window:
            query["timestamp"] = window

        total = await AuditLog.find(query).count()
        entries = await AuditLog.find(query).sort("-timestamp").skip((page - 1) * limit).limit(limit).to_list()

        return {
            "audits": serialize_documents(entries),
            "pagination": pagination_meta(total, page, limit),
        }


audit_service = AuditService()
