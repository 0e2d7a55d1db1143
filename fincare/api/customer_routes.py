from fastapi import APIRouter, Query, Depends, HTTPException
from typing import Optional, Dict, Any
import logging

from fincare.schemas import CustomerUpdate, AccountAction
from fincare.services.customer_service import customer_service
from fincare.services.audit_service import audit_service
from fincare.core.auth_dependencies import get_current_admin

router = APIRouter(prefix="/admin/customers", tags=["Admin Customers"])

logger = logging.getLogger(__name__)


@router.get("")
async def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Membership status filter"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        return await customer_service.list_customers(page, limit, search, status)
    except Exception as e:
        logger.error("Error listing customers: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch customers")


@router.get("/{customer_id}")
async def get_customer(customer_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return await customer_service.get_customer(customer_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching customer %s: %s", customer_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch customer")


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        result = await customer_service.update_customer(customer_id, data)
        await audit_service.record("update_customer", actor=current_admin.get("email"), acted=customer_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating customer %s: %s", customer_id, e)
        raise HTTPException(status_code=500, detail="Failed to update customer")


@router.delete("/{customer_id}")
async def delete_customer(customer_id: str, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await customer_service.delete_customer(customer_id)
        await audit_service.record("delete_customer", actor=current_admin.get("email"), acted=customer_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting customer %s: %s", customer_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete customer")


@router.patch("/{customer_id}")
async def set_customer_status(
    customer_id: str,
    payload: AccountAction,
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        result = await customer_service.set_customer_status(customer_id, payload.action)
        await audit_service.record(f"{payload.action}_customer", actor=current_admin.get("email"), acted=customer_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error changing status of customer %s: %s", customer_id, e)
        raise HTTPException(status_code=500, detail="Failed to update customer")
