from beanie import Document, PydanticObjectId
from pydantic import Field
from typing import Optional
from datetime import datetime


class InvestmentPlan(Document):
    """An investment product published by the back office."""

    name: str
    unit_price: float = Field(..., gt=0)
    interest_rate: float
    type: str
    maturity_date: datetime
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "admin_investments"


class Investment(Document):
    """A customer's holding in an InvestmentPlan."""

    user_id: PydanticObjectId
    plan_id: PydanticObjectId
    amount: float
    units: float
    investment_name: str
    interest_rate: float
    investment_type: str
    current_value: float
    start_date: datetime = Field(default_factory=datetime.utcnow)
    maturity_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "investments"
