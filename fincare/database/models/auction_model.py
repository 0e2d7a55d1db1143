from beanie import Document, PydanticObjectId
from pydantic import Field
from typing import Optional
from datetime import datetime


class Auction(Document):
    user_id: PydanticObjectId = Field(..., description="Seller of the investment position")
    investment_id: PydanticObjectId
    investment_name: Optional[str] = None
    auction_name: str
    description: str = ""
    reserve_price: float
    current_bid: float = 0
    total_investment_value: float = Field(default=0, description="Base for percentage bids")
    duration: int = Field(..., description="Duration in days")
    status: str = Field(default="active", description="active, completed or cancelled")
    start_date: datetime = Field(default_factory=datetime.utcnow)
    end_date: datetime
    winning_bid_id: Optional[PydanticObjectId] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "auctions"


class Bid(Document):
    auction_id: PydanticObjectId
    user_id: PydanticObjectId
    amount: float
    bid_type: str = Field(default="absolute", description="absolute or percentage")
    percentage: Optional[float] = None
    status: str = Field(default="pending", description="pending, outbid, accepted or rejected")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "bids"
