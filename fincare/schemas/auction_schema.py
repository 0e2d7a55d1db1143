from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional


class BidTypeEnum(str, Enum):
    absolute = "absolute"
    percentage = "percentage"


class AuctionStatusEnum(str, Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class AuctionCreate(BaseModel):
    investment_id: str
    auction_name: str = Field(..., min_length=1)
    description: str = ""
    reserve_price: float = Field(..., gt=0)
    duration: int = Field(..., gt=0, description="Duration in days")


class AuctionUpdate(BaseModel):
    auction_name: Optional[str] = None
    description: Optional[str] = None
    reserve_price: Optional[float] = Field(None, gt=0)
    status: Optional[AuctionStatusEnum] = None


class BidCreate(BaseModel):
    bid_type: BidTypeEnum
    amount: Optional[float] = None
    percentage: Optional[float] = None
