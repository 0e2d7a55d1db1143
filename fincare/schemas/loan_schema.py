from pydantic import BaseModel, Field
from enum import Enum
from typing import List, Optional


class LoanStatusEnum(str, Enum):
    pending = "pending"
    approved = "approved"
    active = "active"
    payment_pending = "payment_pending"
    completed = "completed"
    liquidated = "liquidated"
    rejected = "rejected"


class RepaymentStatusEnum(str, Enum):
    pending_review = "pending_review"
    approved = "approved"
    rejected = "rejected"


class LoanAdminActionEnum(str, Enum):
    update_processing_fee = "update-processing-fee"
    liquidate = "liquidate"
    resend_email = "resend-email"


# Fields are optional here so a missing one surfaces as a single 400 from the service
class LoanCreate(BaseModel):
    loan_amount: Optional[float] = Field(None, gt=0)
    purpose: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, description="Duration in months")
    debit_from_savings: bool = False
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    guarantor_coverage: float = 0
    guarantor_profession: str = ""
    government_id: str = ""
    active_investments: List[str] = Field(default_factory=list)


class LoanUpdate(BaseModel):
    loan_amount: Optional[float] = Field(None, gt=0)
    purpose: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0)
    debit_from_savings: Optional[bool] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    guarantor_coverage: Optional[float] = None
    guarantor_profession: Optional[str] = None
    government_id: Optional[str] = None
    active_investments: Optional[List[str]] = None


class AdminLoanPatch(BaseModel):
    loan_id: str
    status: Optional[LoanStatusEnum] = None
    action: Optional[LoanAdminActionEnum] = None
    processing_fee_paid: Optional[bool] = None


class ProcessingFeeRequest(BaseModel):
    loan_id: str


class RepaymentConfirmRequest(BaseModel):
    repayment_id: str
    # Free string: unknown actions are answered with a 400 by the service
    action: str
