from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any
import logging

from fincare.services.membership_service import membership_service
from fincare.services.audit_service import audit_service
from fincare.schemas import MembershipPaymentCreate, MembershipReview
from fincare.core.auth_dependencies import get_current_user, get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Membership"])


@router.post("/membership/payment", status_code=status.HTTP_201_CREATED)
async def submit_membership_payment(payment: MembershipPaymentCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await membership_service.submit_payment(payment, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error submitting membership payment: %s", e)
        raise HTTPException(status_code=500, detail="Failed to submit membership payment")


@router.get("/membership/status", status_code=status.HTTP_200_OK)
async def membership_status(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await membership_service.get_status(current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching membership status: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch membership status")


@router.get("/admin/membership", status_code=status.HTTP_200_OK)
async def admin_list_payments(
    status_filter: str = Query(default="pending", alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await membership_service.list_payments(status_filter, page, limit)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing membership payments: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch membership payments")


@router.patch("/admin/membership", status_code=status.HTTP_200_OK)
async def admin_review_payment(review: MembershipReview, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await membership_service.review_payment(review, current_admin.get("email"))
        await audit_service.record(f"membership_{review.action}", actor=current_admin.get("email"), acted=review.payment_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error reviewing membership payment %s: %s", review.payment_id, e)
        raise HTTPException(status_code=500, detail="Failed to review membership payment")
