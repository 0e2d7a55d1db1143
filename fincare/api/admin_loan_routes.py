from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any, Optional
import logging

from fincare.services.loan_service import loan_service
from fincare.services.repayment_service import repayment_service
from fincare.services.audit_service import audit_service
from fincare.schemas import AdminLoanPatch, RepaymentConfirmRequest
from fincare.core.auth_dependencies import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/loans", tags=["Admin Loans"])


@router.get("", status_code=status.HTTP_200_OK)
async def list_loans(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    processing_fee_paid: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await loan_service.list_admin_loans(page, limit, status_filter, processing_fee_paid, search)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing loans: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch loans")


# Status changes plus the update-processing-fee, liquidate and resend-email actions
@router.patch("", status_code=status.HTTP_200_OK)
async def patch_loan(patch: AdminLoanPatch, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    action = patch.action.value if patch.action else f"loan_status_{patch.status.value if patch.status else 'none'}"
    try:
        result = await loan_service.admin_patch_loan(patch)
        await audit_service.record(action, actor=current_admin.get("email"), acted=patch.loan_id)
        return result
    except HTTPException:
        await audit_service.record(action, actor=current_admin.get("email"), acted=patch.loan_id, status="failed")
        raise
    except Exception as e:
        logger.error("Error updating loan %s: %s", patch.loan_id, e)
        raise HTTPException(status_code=500, detail="Failed to update loan")


@router.get("/repayments", status_code=status.HTTP_200_OK)
async def list_repayments(
    status_filter: str = Query(default="pending_review", alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await repayment_service.list_for_review(status_filter, page, limit)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing repayments: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch repayments")


@router.post("/repayments/confirm", status_code=status.HTTP_200_OK)
async def confirm_repayment(payload: RepaymentConfirmRequest, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await repayment_service.confirm_repayment(payload.repayment_id, payload.action, current_admin.get("email"))
        await audit_service.record(f"repayment_{payload.action}", actor=current_admin.get("email"), acted=payload.repayment_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error confirming repayment %s: %s", payload.repayment_id, e)
        raise HTTPException(status_code=500, detail="Failed to process repayment")
