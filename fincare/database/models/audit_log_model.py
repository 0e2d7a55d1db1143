from beanie import Document
from pydantic import Field
from datetime import datetime
from typing import Literal, Optional


class AuditLog(Document):
    action: str = Field(..., description="What happened, e.g. 'login' or 'withdrawal_completed'")
    actor: Optional[str] = Field(None, description="Email of the customer or admin behind the action")
    acted: Optional[str] = Field(None, description="Id of the loan, bid, withdrawal or user acted upon")
    status: Literal["successful", "failed"] = "successful"
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "audit_logs"
        indexes = ["action", "actor", "timestamp"]
