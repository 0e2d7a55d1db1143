from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SavingAllocation(BaseModel):
    source: str = Field(..., description="savings or investment")
    amount: float = 0
    investment_id: Optional[PydanticObjectId] = None


class Saving(Document):
    user_id: PydanticObjectId
    amount: float = 0
    target_amount: float = 0
    current_balance: float = 0
    reason: str
    allocation: Optional[SavingAllocation] = None
    withdraw_from_savings: bool = False
    liquidate_loans: bool = False
    type: str = Field(default="goal", description="goal or manual_deposit")
    status: str = Field(default="active", description="active, pending_verification, verified or rejected")
    proof_reference: Optional[str] = None
    notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "savings"
