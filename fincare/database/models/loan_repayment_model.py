from beanie import Document, PydanticObjectId
from pydantic import Field
from typing import Optional
from datetime import datetime


class LoanRepayment(Document):
    loan_id: PydanticObjectId = Field(..., description="Loan the repayment is made against")
    user_id: PydanticObjectId = Field(..., description="Borrower who submitted the repayment")
    amount: float = Field(..., gt=0)
    proof_reference: Optional[str] = Field(None, description="Reference to the uploaded proof of payment")
    status: str = Field(default="pending_review", description="pending_review, approved or rejected")
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "loan_repayments"
