from fastapi import APIRouter, HTTPException, Depends
from fastapi import status
from typing import Dict, Any
import logging

from fincare.services.auction_service import auction_service
from fincare.schemas import AuctionCreate, AuctionUpdate, BidCreate
from fincare.core.auth_dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auctions"])


@router.get("/auctions", status_code=status.HTTP_200_OK)
async def list_auctions(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.list_user_auctions(current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing auctions: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch auctions")


# Puts one of the caller's investments up for auction
@router.post("/auctions", status_code=status.HTTP_201_CREATED)
async def create_auction(auction_data: AuctionCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.create_auction(auction_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating auction: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create auction")


@router.get("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def get_auction(auction_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.get_user_auction(auction_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch auction")


@router.put("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def update_auction(auction_id: str, auction_data: AuctionUpdate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.update_user_auction(auction_id, auction_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to update auction")


@router.delete("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def delete_auction(auction_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.delete_user_auction(auction_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete auction")


# Expected payload: { action: "cancel" }
@router.patch("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def cancel_auction(auction_id: str, payload: Dict[str, Any], current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.cancel_user_auction(auction_id, payload.get("action"), current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error cancelling auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to cancel auction")


@router.get("/auctions/{auction_id}/bids", status_code=status.HTTP_200_OK)
async def list_bids(auction_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.list_auction_bids(auction_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing bids for auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch bids")


# Places a bid; the amount is reserved from the bidder's savings
@router.post("/auctions/{auction_id}/bids", status_code=status.HTTP_201_CREATED)
async def place_bid(auction_id: str, bid_data: BidCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.place_bid(auction_id, bid_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error placing bid on auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to place bid")


@router.get("/bids", status_code=status.HTTP_200_OK)
async def list_my_bids(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await auction_service.list_user_bids(current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing bids: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch bids")
