from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class InvestmentPlanCreate(BaseModel):
    name: str = Field(..., min_length=1)
    unit_price: float = Field(..., gt=0)
    interest_rate: float = Field(..., ge=0)
    type: str = Field(..., min_length=1)
    maturity_date: datetime
    image_url: Optional[str] = None


class InvestmentPlanUpdate(BaseModel):
    id: str
    name: Optional[str] = None
    unit_price: Optional[float] = Field(None, gt=0)
    interest_rate: Optional[float] = Field(None, ge=0)
    type: Optional[str] = None
    maturity_date: Optional[datetime] = None
    image_url: Optional[str] = None


class InvestmentCreate(BaseModel):
    plan_id: str
    amount: float = Field(..., gt=0)
    units: Optional[float] = Field(None, gt=0)


class InvestmentUpdate(BaseModel):
    amount: float = Field(..., gt=0)
