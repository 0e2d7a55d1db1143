from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any, Optional
import logging

from fincare.services.settings_service import settings_service
from fincare.services.transaction_service import transaction_service
from fincare.services.audit_service import audit_service
from fincare.schemas import LoanSettingsUpdate, TransactionStatusUpdate
from fincare.core.auth_dependencies import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Settings"])


# Public: loan calculators on the client read the current pricing
@router.get("/settings", status_code=status.HTTP_200_OK)
async def public_settings() -> Dict[str, Any]:
    try:
        return {"loan_settings": await settings_service.get_loan_settings()}
    except Exception as e:
        logger.error("Error fetching loan settings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch settings")


@router.get("/admin/settings", status_code=status.HTTP_200_OK)
async def admin_get_settings(current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return {"loan_settings": await settings_service.get_loan_settings()}
    except Exception as e:
        logger.error("Error fetching loan settings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch settings")


@router.patch("/admin/settings", status_code=status.HTTP_200_OK)
async def admin_update_settings(update: LoanSettingsUpdate, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        loan_settings = await settings_service.update_loan_settings(update, current_admin.get("email"))
        await audit_service.record("update_loan_settings", actor=current_admin.get("email"))
        return {"message": "Settings updated successfully", "loan_settings": loan_settings}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating loan settings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update settings")


@router.get("/admin/settings/history", status_code=status.HTTP_200_OK)
async def admin_settings_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await settings_service.get_history(page, limit)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching settings history: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch settings history")


@router.get("/admin/transactions", status_code=status.HTTP_200_OK)
async def admin_list_transactions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    type_filter: Optional[str] = Query(default=None, alias="type"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await transaction_service.list_transactions(page, limit, status_filter, type_filter)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing transactions: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch transactions")


@router.patch("/admin/transactions/{transaction_id}", status_code=status.HTTP_200_OK)
async def admin_update_transaction(
    transaction_id: str,
    update: TransactionStatusUpdate,
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        transaction = await transaction_service.update_status(transaction_id, update.status)
        await audit_service.record(f"transaction_{update.status}", actor=current_admin.get("email"), acted=transaction_id)
        return {"message": "Transaction updated successfully", "transaction": transaction}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating transaction %s: %s", transaction_id, e)
        raise HTTPException(status_code=500, detail="Failed to update transaction")
