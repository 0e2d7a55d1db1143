from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional


class WithdrawalStatusEnum(str, Enum):
    pending = "pending"
    approved = "approved"
    processing = "processing"
    completed = "completed"
    rejected = "rejected"


class WithdrawalCreate(BaseModel):
    amount: float
    account_name: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1)
    routing_number: str = ""
    notes: str = ""


class WithdrawalUpdate(BaseModel):
    amount: Optional[float] = None
    account_name: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    routing_number: Optional[str] = None
    notes: Optional[str] = None


class AdminWithdrawalUpdate(BaseModel):
    status: WithdrawalStatusEnum
    admin_notes: Optional[str] = None
