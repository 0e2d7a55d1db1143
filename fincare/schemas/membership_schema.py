from pydantic import BaseModel, Field
from typing import Optional


class MembershipPaymentCreate(BaseModel):
    amount: float = Field(..., gt=0)
    payment_proof: str = Field(..., min_length=1)
    payment_method: str = "bank_transfer"


class MembershipReview(BaseModel):
    payment_id: str
    action: str = Field(..., pattern="^(approve|reject)$")
    admin_notes: Optional[str] = None
