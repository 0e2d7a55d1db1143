from beanie import Document, PydanticObjectId
from pydantic import Field
from typing import Optional
from datetime import datetime


class Transaction(Document):
    """Append-only record of money movement. Balances are never derived from it."""

    user_id: PydanticObjectId
    loan_id: Optional[PydanticObjectId] = None
    type: str = Field(..., description="processing_fee, loan_repayment, withdrawal, revenue, ...")
    amount: float
    description: str = ""
    status: str = Field(default="completed", description="pending, completed, failed or processing")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    class Settings:
        name = "transactions"
