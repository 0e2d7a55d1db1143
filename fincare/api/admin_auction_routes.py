from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any, Optional
import logging

from fincare.services.auction_service import auction_service
from fincare.services.audit_service import audit_service
from fincare.schemas import AuctionUpdate
from fincare.core.auth_dependencies import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Auctions"])


@router.get("/auctions", status_code=status.HTTP_200_OK)
async def list_auctions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await auction_service.list_admin_auctions(page, limit, status_filter, search)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing auctions: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch auctions")


@router.get("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def get_auction(auction_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return await auction_service.get_admin_auction(auction_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch auction")


@router.patch("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def update_auction(auction_id: str, auction_data: AuctionUpdate, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await auction_service.update_admin_auction(auction_id, auction_data)
        await audit_service.record("update_auction", actor=current_admin.get("email"), acted=auction_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to update auction")


@router.delete("/auctions/{auction_id}", status_code=status.HTTP_200_OK)
async def delete_auction(auction_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await auction_service.delete_admin_auction(auction_id)
        await audit_service.record("delete_auction", actor=current_admin.get("email"), acted=auction_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete auction")


@router.get("/auctions/{auction_id}/bids", status_code=status.HTTP_200_OK)
async def list_auction_bids(auction_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return await auction_service.list_auction_bids(auction_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing bids for auction %s: %s", auction_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch bids")


# Accepts a bid and completes its auction atomically
@router.put("/bids/{bid_id}/accept", status_code=status.HTTP_200_OK)
async def accept_bid(bid_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await auction_service.accept_bid(bid_id)
        await audit_service.record("accept_bid", actor=current_admin.get("email"), acted=bid_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error accepting bid %s: %s", bid_id, e)
        raise HTTPException(status_code=500, detail="Failed to accept bid")
