from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any, Optional
import logging

from fincare.services.withdrawal_service import withdrawal_service
from fincare.services.audit_service import audit_service
from fincare.schemas import WithdrawalCreate, WithdrawalUpdate, AdminWithdrawalUpdate
from fincare.core.auth_dependencies import get_current_user, get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Withdrawals"])


@router.get("/withdrawals", status_code=status.HTTP_200_OK)
async def list_withdrawals(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    current_user: Dict = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        return await withdrawal_service.list_user_withdrawals(current_user["id"], page, limit, status_filter)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing withdrawals: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch withdrawals")


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def create_withdrawal(withdrawal_data: WithdrawalCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await withdrawal_service.create_withdrawal(withdrawal_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating withdrawal: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create withdrawal")


@router.get("/withdrawals/{withdrawal_id}", status_code=status.HTTP_200_OK)
async def get_withdrawal(withdrawal_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await withdrawal_service.get_withdrawal(withdrawal_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching withdrawal %s: %s", withdrawal_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch withdrawal")


@router.put("/withdrawals/{withdrawal_id}", status_code=status.HTTP_200_OK)
async def update_withdrawal(withdrawal_id: str, withdrawal_data: WithdrawalUpdate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await withdrawal_service.update_withdrawal(withdrawal_id, withdrawal_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating withdrawal %s: %s", withdrawal_id, e)
        raise HTTPException(status_code=500, detail="Failed to update withdrawal")


@router.delete("/withdrawals/{withdrawal_id}", status_code=status.HTTP_200_OK)
async def cancel_withdrawal(withdrawal_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await withdrawal_service.cancel_withdrawal(withdrawal_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error cancelling withdrawal %s: %s", withdrawal_id, e)
        raise HTTPException(status_code=500, detail="Failed to cancel withdrawal")


@router.get("/admin/withdrawals", status_code=status.HTTP_200_OK)
async def admin_list_withdrawals(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await withdrawal_service.list_admin_withdrawals(page, limit, status_filter)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing withdrawals: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch withdrawals")


@router.get("/admin/withdrawals/{withdrawal_id}", status_code=status.HTTP_200_OK)
async def admin_get_withdrawal(withdrawal_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return await withdrawal_service.get_admin_withdrawal(withdrawal_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching withdrawal %s: %s", withdrawal_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch withdrawal")


# Rejection refunds the reserved amount; completion records a transaction
@router.put("/admin/withdrawals/{withdrawal_id}", status_code=status.HTTP_200_OK)
async def admin_process_withdrawal(
    withdrawal_id: str,
    update: AdminWithdrawalUpdate,
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        result = await withdrawal_service.process_withdrawal(withdrawal_id, update, current_admin.get("email"))
        await audit_service.record(f"withdrawal_{update.status.value}", actor=current_admin.get("email"), acted=withdrawal_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error processing withdrawal %s: %s", withdrawal_id, e)
        raise HTTPException(status_code=500, detail="Failed to process withdrawal")
