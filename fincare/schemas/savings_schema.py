from pydantic import BaseModel, Field
from typing import Optional


class AllocationIn(BaseModel):
    source: str = Field(default="savings", pattern="^(savings|investment)$")
    amount: float = Field(default=0, ge=0)
    investment_id: Optional[str] = None


class SavingCreate(BaseModel):
    target_amount: float = Field(..., gt=0)
    reason: str = Field(..., min_length=1)
    allocation: Optional[AllocationIn] = None
    withdraw_from_savings: bool = False
    liquidate_loans: bool = False


class SavingUpdate(BaseModel):
    target_amount: Optional[float] = Field(None, gt=0)
    reason: Optional[str] = None
    withdraw_from_savings: Optional[bool] = None
    liquidate_loans: Optional[bool] = None


class SavingVerifyRequest(BaseModel):
    saving_id: str
    proof_reference: str = Field(..., min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None


class AdminSavingCreate(BaseModel):
    user_id: str
    amount: float = Field(..., gt=0)
    reason: str = "Manual deposit"
    notes: Optional[str] = None


class AdminSavingPatch(BaseModel):
    saving_id: str
    action: str = Field(..., pattern="^(verify|reject|update_amount)$")
    amount: Optional[float] = None
    reason: Optional[str] = None
