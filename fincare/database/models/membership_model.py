from beanie import Document, PydanticObjectId
from pydantic import Field
from typing import Optional
from datetime import datetime


class MembershipPayment(Document):
    user_id: PydanticObjectId
    amount: float
    payment_proof: str
    payment_method: str = "bank_transfer"
    status: str = Field(default="pending", description="pending, approved or rejected")
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "membership_payments"
