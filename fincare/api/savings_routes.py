from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any, Optional
import logging

from fincare.services.savings_service import savings_service
from fincare.services.audit_service import audit_service
from fincare.schemas import SavingCreate, SavingUpdate, SavingVerifyRequest, AdminSavingCreate, AdminSavingPatch
from fincare.core.auth_dependencies import get_current_user, get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Savings"])


@router.get("/savings", status_code=status.HTTP_200_OK)
async def list_savings(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await savings_service.list_user_savings(current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing savings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch savings")


@router.post("/savings", status_code=status.HTTP_201_CREATED)
async def create_saving(saving_data: SavingCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await savings_service.create_saving(saving_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating saving: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create saving")


# Attaches a proof of deposit and queues the saving for verification
@router.post("/savings/verify", status_code=status.HTTP_200_OK)
async def submit_verification(request: SavingVerifyRequest, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await savings_service.submit_verification(request, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error submitting saving %s for verification: %s", request.saving_id, e)
        raise HTTPException(status_code=500, detail="Failed to submit verification")


@router.get("/savings/{saving_id}", status_code=status.HTTP_200_OK)
async def get_saving(saving_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await savings_service.get_saving(saving_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching saving %s: %s", saving_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch saving")


@router.put("/savings/{saving_id}", status_code=status.HTTP_200_OK)
async def update_saving(saving_id: str, saving_data: SavingUpdate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await savings_service.update_saving(saving_id, saving_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating saving %s: %s", saving_id, e)
        raise HTTPException(status_code=500, detail="Failed to update saving")


@router.delete("/savings/{saving_id}", status_code=status.HTTP_200_OK)
async def delete_saving(saving_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await savings_service.delete_saving(saving_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting saving %s: %s", saving_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete saving")


@router.get("/admin/savings", status_code=status.HTTP_200_OK)
async def admin_list_savings(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user_id: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await savings_service.list_admin_savings(page, limit, user_id, status_filter)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing savings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch savings")


# Credits a verified deposit straight to the customer's balance
@router.post("/admin/savings", status_code=status.HTTP_201_CREATED)
async def admin_create_saving(deposit: AdminSavingCreate, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await savings_service.create_manual_deposit(deposit, current_admin.get("email"))
        await audit_service.record("manual_deposit", actor=current_admin.get("email"), acted=deposit.user_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating manual deposit: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create saving")


@router.patch("/admin/savings", status_code=status.HTTP_200_OK)
async def admin_review_saving(patch: AdminSavingPatch, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await savings_service.review_saving(patch, current_admin.get("email"))
        await audit_service.record(f"saving_{patch.action}", actor=current_admin.get("email"), acted=patch.saving_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error reviewing saving %s: %s", patch.saving_id, e)
        raise HTTPException(status_code=500, detail="Failed to update saving")
