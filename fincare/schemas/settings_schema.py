from pydantic import BaseModel, Field
from typing import Optional


class LoanSettingsUpdate(BaseModel):
    interest_rate: float
    processing_fee_rate: float = Field(default=1, ge=0)
    min_loan_amount: Optional[float] = Field(None, ge=0)
    max_loan_amount: Optional[float] = Field(None, ge=0)
    default_duration: Optional[int] = Field(None, gt=0)


class TransactionStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(pending|completed|failed|processing)$")
