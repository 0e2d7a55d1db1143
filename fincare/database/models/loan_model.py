from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class BorrowerDetails(BaseModel):
    full_name: str = Field(..., description="Full name of the borrower")
    phone: str = Field(..., description="Contact number of the borrower")
    email: str = Field(..., description="Email of the borrower")
    gender: str = Field(..., description="Gender of the borrower")


class GuarantorDetails(BaseModel):
    coverage: float = Field(default=0, description="Amount the guarantor covers")
    profession: str = Field(default="", description="Profession of the guarantor")


class LoanDetails(BaseModel):
    principal_amount: float
    processing_fee: float
    interest_rate: float = Field(..., description="Annual rate as a fraction, e.g. 0.1")
    interest_amount: float
    total_loan_amount: float
    monthly_installment: float
    remaining_balance: float
    paid_amount: float = 0
    processing_fee_paid: bool = False


class LoanPayment(BaseModel):
    amount: float
    type: str = Field(default="repayment", description="repayment or liquidation")
    payment_date: datetime = Field(default_factory=datetime.utcnow)
    repayment_id: Optional[PydanticObjectId] = None
    status: str = "approved"
    description: Optional[str] = None


class Loan(Document):
    user_id: PydanticObjectId = Field(..., description="Owner of the loan")
    loan_amount: float = Field(..., description="Principal requested")
    purpose: str
    duration: int = Field(..., description="Duration in months")
    debit_from_savings: bool = False
    borrower_details: BorrowerDetails
    guarantor_details: GuarantorDetails = Field(default_factory=GuarantorDetails)
    government_id: str = ""
    active_investments: List[str] = Field(default_factory=list)
    status: str = Field(default="pending", description="pending, approved, active, payment_pending, completed, liquidated, rejected")
    loan_details: Optional[LoanDetails] = None
    payments: List[LoanPayment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "loans"
