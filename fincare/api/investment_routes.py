from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any
import logging

from fincare.services.investment_service import investment_service
from fincare.services.audit_service import audit_service
from fincare.schemas import InvestmentPlanCreate, InvestmentPlanUpdate, InvestmentCreate, InvestmentUpdate
from fincare.core.auth_dependencies import get_current_user, get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Investments"])


# Plans on offer; customers browse these before buying
@router.get("/investments/plans", status_code=status.HTTP_200_OK)
async def list_available_plans(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await investment_service.list_plans()
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing investment plans: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch investment plans")


@router.get("/investments", status_code=status.HTTP_200_OK)
async def list_investments(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await investment_service.list_user_investments(current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing investments: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch investments")


@router.post("/investments", status_code=status.HTTP_201_CREATED)
async def create_investment(investment_data: InvestmentCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await investment_service.create_investment(investment_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating investment: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create investment")


@router.get("/investments/{investment_id}", status_code=status.HTTP_200_OK)
async def get_investment(investment_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await investment_service.get_investment(investment_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching investment %s: %s", investment_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch investment")


@router.put("/investments/{investment_id}", status_code=status.HTTP_200_OK)
async def update_investment(investment_id: str, investment_data: InvestmentUpdate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await investment_service.update_investment(investment_id, investment_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating investment %s: %s", investment_id, e)
        raise HTTPException(status_code=500, detail="Failed to update investment")


@router.delete("/investments/{investment_id}", status_code=status.HTTP_200_OK)
async def delete_investment(investment_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await investment_service.delete_investment(investment_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting investment %s: %s", investment_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete investment")


@router.get("/admin/investments", status_code=status.HTTP_200_OK)
async def admin_list_plans(current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        return await investment_service.list_plans()
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing investment plans: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch investments")


@router.post("/admin/investments", status_code=status.HTTP_201_CREATED)
async def admin_create_plan(plan: InvestmentPlanCreate, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await investment_service.create_plan(plan)
        await audit_service.record("create_investment_plan", actor=current_admin.get("email"), acted=plan.name)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating investment plan: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create investment")


@router.put("/admin/investments", status_code=status.HTTP_200_OK)
async def admin_update_plan(plan: InvestmentPlanUpdate, current_admin: Dict = Depends(get_current_admin)) -> Dict[str, Any]:
    try:
        result = await investment_service.update_plan(plan)
        await audit_service.record("update_investment_plan", actor=current_admin.get("email"), acted=plan.id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating investment plan %s: %s", plan.id, e)
        raise HTTPException(status_code=500, detail="Failed to update investment")


@router.delete("/admin/investments", status_code=status.HTTP_200_OK)
async def admin_delete_plan(
    plan_id: str = Query(..., alias="id"),
    current_admin: Dict = Depends(get_current_admin),
) -> Dict[str, Any]:
    try:
        result = await investment_service.delete_plan(plan_id)
        await audit_service.record("delete_investment_plan", actor=current_admin.get("email"), acted=plan_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting investment plan %s: %s", plan_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete investment")
