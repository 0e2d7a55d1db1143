from beanie import Document, PydanticObjectId
from pydantic import Field
from typing import Optional
from datetime import datetime


class Withdrawal(Document):
    user_id: PydanticObjectId
    amount: float = Field(..., gt=0)
    account_name: str
    bank_name: str
    account_number: str
    routing_number: str = ""
    notes: str = ""
    status: str = Field(default="pending", description="pending, approved, processing, completed or rejected")
    admin_notes: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "withdrawals"
