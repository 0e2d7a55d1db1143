import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.database import connection
from fincare.database.models import Auction, Bid, Investment, User
from fincare.helpers.response_builder import serialize_document, serialize_documents, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.schemas import AuctionCreate, AuctionUpdate, BidCreate, BidTypeEnum
from fincare.services.balance_service import adjust_user_totals, get_user_document

logger = logging.getLogger(__name__)


class AuctionService:
    """Auctions of investment positions and the bids placed on them."""

    async def _get_auction(self, auction_id: str) -> Auction:
        auction = await Auction.find_one({"_id": parse_object_id(auction_id, "auction ID")})
        if not auction:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Auction not found")
        return auction

    async def _get_owned_auction(self, auction_id: str, user_id: str) -> Auction:
        auction = await Auction.find_one({
            "_id": parse_object_id(auction_id, "auction ID"),
            "user_id": parse_object_id(user_id, "user ID"),
        })
        if not auction:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Auction not found")
        return auction

    async def _leading_bid(self, auction: Auction) -> Optional[Bid]:
        bids = await Bid.find({"auction_id": auction.id, "status": "pending"}).sort("-amount").limit(1).to_list()
        return bids[0] if bids else None

    async def _release_leading_bid(self, auction: Auction, new_status: str) -> Optional[Bid]:
        leading = await self._leading_bid(auction)
        if leading:
            await adjust_user_totals(leading.user_id, savings_balance=leading.amount)
            leading.status = new_status
            leading.updated_at = datetime.utcnow()
            await leading.save()
            logger.info("Refunded %.2f to bidder %s on auction %s", leading.amount, leading.user_id, auction.id)
        return leading

    async def _bids_with_bidders(self, auction_id) -> list:
        bids = await Bid.find({"auction_id": auction_id}).sort([("amount", -1), ("created_at", -1)]).to_list()
        user_ids = list({b.user_id for b in bids})
        users = {u.id: u for u in await User.find({"_id": {"$in": user_ids}}).to_list()} if user_ids else {}
        result = []
        for b in bids:
            item = serialize_document(b)
            bidder = users.get(b.user_id)
            item["user"] = {
                "first_name": bidder.first_name,
                "last_name": bidder.last_name,
                "email": bidder.email,
            } if bidder else None
            result.append(item)
        return result

    async def list_user_auctions(self, user_id: str) -> Dict[str, Any]:
        auctions = await Auction.find({"user_id": parse_object_id(user_id, "user ID")}).sort("-created_at").to_list()
        return {"auctions": serialize_documents(auctions)}

    async def create_auction(self, data: AuctionCreate, user_id: str) -> Dict[str, Any]:
        owner_id = parse_object_id(user_id, "user ID")
        investment = await Investment.find_one({
            "_id": parse_object_id(data.investment_id, "investment ID"),
            "user_id": owner_id,
        })
        if not investment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investment not found")

        existing = await Auction.find_one({"investment_id": investment.id, "status": "active"})
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This investment is already in an active auction"
            )

        now = datetime.utcnow()
        auction = Auction(
            user_id=owner_id,
            investment_id=investment.id,
            investment_name=investment.investment_name,
            auction_name=data.auction_name,
            description=data.description,
            reserve_price=data.reserve_price,
            total_investment_value=investment.current_value,
            duration=data.duration,
            start_date=now,
            end_date=now + timedelta(days=data.duration),
        )
        await auction.insert()
        await adjust_user_totals(owner_id, total_auctions=1)

        logger.info("Auction %s created by %s for investment %s", auction.id, user_id, investment.id)
        return {"message": "Auction created successfully", "auction": serialize_document(auction)}

    async def get_user_auction(self, auction_id: str, user_id: str) -> Dict[str, Any]:
        auction = await self._get_owned_auction(auction_id, user_id)
        return {"auction": serialize_document(auction), "bids": await self._bids_with_bidders(auction.id)}

    async def update_user_auction(self, auction_id: str, data: AuctionUpdate, user_id: str) -> Dict[str, Any]:
        auction = await self._get_owned_auction(auction_id, user_id)
        if await Bid.find({"auction_id": auction.id}).count() > 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot modify auction with bids")

        changes = data.model_dump(exclude_unset=True, exclude={"status"})
        for field, value in changes.items():
            if value is not None:
                setattr(auction, field, value)
        auction.updated_at = datetime.utcnow()
        await auction.save()
        return {"message": "Auction updated successfully", "auction": serialize_document(auction)}

    async def delete_user_auction(self, auction_id: str, user_id: str) -> Dict[str, Any]:
        auction = await self._get_owned_auction(auction_id, user_id)
        if await Bid.find({"auction_id": auction.id}).count() > 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete auction with active bids")

        await auction.delete()
        await adjust_user_totals(auction.user_id, total_auctions=-1)
        return {"message": "Auction deleted successfully"}

    async def cancel_user_auction(self, auction_id: str, action: str, user_id: str) -> Dict[str, Any]:
        if action != "cancel":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Valid action is required (cancel)")
        auction = await self._get_owned_auction(auction_id, user_id)
        if auction.status != "active":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only active auctions can be cancelled")

        await self._release_leading_bid(auction, "rejected")
        await Bid.find({"auction_id": auction.id, "status": "pending"}).update(
            {"$set": {"status": "rejected", "updated_at": datetime.utcnow()}}
        )
        auction.status = "cancelled"
        auction.updated_at = datetime.utcnow()
        await auction.save()
        return {"message": "Auction cancelled successfully"}

    async def list_auction_bids(self, auction_id: str) -> Dict[str, Any]:
        auction = await self._get_auction(auction_id)
        return {
            "auction": {
                "id": str(auction.id),
                "auction_name": auction.auction_name,
                "reserve_price": auction.reserve_price,
                "current_bid": auction.current_bid,
                "status": auction.status,
                "end_date": auction.end_date,
            },
            "bids": await self._bids_with_bidders(auction.id),
        }

    async def place_bid(self, auction_id: str, data: BidCreate, user_id: str) -> Dict[str, Any]:
        """Place a bid, reserving its amount from the bidder's savings.

        The previous leading bid is refunded and marked outbid. The steps are
        separate writes with no rollback between them.
        """
        auction = await self._get_auction(auction_id)
        bidder_id = parse_object_id(user_id, "user ID")

        if auction.user_id == bidder_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot bid on your own auction")
        if auction.status != "active":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Auction is not active")
        if datetime.utcnow() > auction.end_date:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Auction has ended")

        if data.bid_type == BidTypeEnum.percentage:
            if not data.percentage or data.percentage <= 0 or data.percentage > 100:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Valid percentage between 1 and 100 is required for percentage bids"
                )
            if not auction.total_investment_value or auction.total_investment_value <= 0:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Auction does not have a valid total investment value for percentage bidding"
                )
            amount = data.percentage / 100 * auction.total_investment_value
        else:
            if not data.amount or data.amount <= 0:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Valid bid amount is required")
            amount = data.amount

        if amount < auction.reserve_price:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Bid must meet or exceed reserve price of {auction.reserve_price:,.2f}"
            )
        if amount <= auction.current_bid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Bid must be higher than current bid of {auction.current_bid:,.2f}"
            )

        bidder = await get_user_document(bidder_id)
        if bidder.savings_balance < amount:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient funds to place bid")

        await adjust_user_totals(bidder_id, savings_balance=-amount)
        first_bid = auction.current_bid == 0
        await self._release_leading_bid(auction, "outbid")

        bid = Bid(
            auction_id=auction.id,
            user_id=bidder_id,
            amount=amount,
            bid_type=data.bid_type.value,
            percentage=data.percentage if data.bid_type == BidTypeEnum.percentage else None,
        )
        await bid.insert()

        auction.current_bid = amount
        auction.updated_at = datetime.utcnow()
        await auction.save()

        if first_bid:
            logger.info("Auction %s received its first bid of %.2f", auction.id, amount)

        return {
            "message": "Bid placed successfully",
            "bid_id": str(bid.id),
            "amount": amount,
            "bid_type": bid.bid_type,
            "percentage": bid.percentage,
        }

    async def list_user_bids(self, user_id: str) -> Dict[str, Any]:
        bids = await Bid.find({"user_id": parse_object_id(user_id, "user ID")}).sort("-created_at").to_list()
        auction_ids = list({b.auction_id for b in bids})
        auctions = {a.id: a for a in await Auction.find({"_id": {"$in": auction_ids}}).to_list()} if auction_ids else {}

        data = []
        for b in bids:
            item = serialize_document(b)
            auction = auctions.get(b.auction_id)
            item["auction"] = {
                "auction_name": auction.auction_name,
                "status": auction.status,
                "current_bid": auction.current_bid,
                "end_date": auction.end_date,
            } if auction else None
            data.append(item)
        return {"bids": data}

    async def list_admin_auctions(
        self,
        page: int = 1,
        limit: int = 10,
        status_filter: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status_filter and status_filter != "all":
            query["status"] = status_filter
        if search:
            query["auction_name"] = {"$regex": re.escape(search), "$options": "i"}

        skip = (page - 1) * limit
        total = await Auction.find(query).count()
        auctions = await Auction.find(query).sort("-created_at").skip(skip).limit(limit).to_list()

        data = []
        for a in auctions:
            item = serialize_document(a)
            item["bid_count"] = await Bid.find({"auction_id": a.id}).count()
            data.append(item)
        return {"auctions": data, "pagination": pagination_meta(total, page, limit)}

    async def get_admin_auction(self, auction_id: str) -> Dict[str, Any]:
        return {"auction": serialize_document(await self._get_auction(auction_id))}

    async def update_admin_auction(self, auction_id: str, data: AuctionUpdate) -> Dict[str, Any]:
        auction = await self._get_auction(auction_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(auction, field, value.value if hasattr(value, "value") else value)
        auction.updated_at = datetime.utcnow()
        await auction.save()
        return {"message": "Auction updated successfully", "auction": serialize_document(auction)}

    async def delete_admin_auction(self, auction_id: str) -> Dict[str, Any]:
        auction = await self._get_auction(auction_id)
        if auction.status == "active":
            await self._release_leading_bid(auction, "rejected")
        await Bid.find({"auction_id": auction.id}).delete()
        await auction.delete()
        await adjust_user_totals(auction.user_id, total_auctions=-1)
        logger.info("Auction %s deleted by admin", auction_id)
        return {"message": "Auction deleted successfully"}

    async def accept_bid(self, bid_id: str) -> Dict[str, Any]:
        """Accept a bid and close its auction in one multi-document transaction.

        The bid becomes accepted, every other pending bid on the auction is
        rejected and the auction is completed with the winning bid recorded.
        Either all three writes commit or none do.
        """
        bid_oid = parse_object_id(bid_id, "bid ID")
        bid = await Bid.find_one({"_id": bid_oid})
        if not bid:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bid not found")
        if bid.status != "pending":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only the leading pending bid can be accepted")
        auction = await Auction.find_one({"_id": bid.auction_id})
        if not auction or auction.status != "active":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Auction is not active")

        now = datetime.utcnow()
        async with connection.transaction() as session:
            await Bid.find_one({"_id": bid_oid}, session=session).update(
                {"$set": {"status": "accepted", "updated_at": now}},
                session=session,
            )
            await Bid.find(
                {"auction_id": bid.auction_id, "_id": {"$ne": bid_oid}, "status": "pending"},
                session=session,
            ).update(
                {"$set": {"status": "rejected", "updated_at": now}},
                session=session,
            )
            await Auction.find_one({"_id": bid.auction_id}, session=session).update(
                {"$set": {"status": "completed", "winning_bid_id": bid_oid, "updated_at": now}},
                session=session,
            )

        logger.info("Bid %s accepted; auction %s completed", bid_id, bid.auction_id)
        return {"message": "Bid accepted successfully"}


auction_service = AuctionService()
