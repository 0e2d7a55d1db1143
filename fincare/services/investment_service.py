import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import HTTPException, status

from fincare.database.models import Investment, InvestmentPlan
from fincare.helpers.response_builder import serialize_document, serialize_documents
from fincare.helpers.validators import parse_object_id
from fincare.schemas import InvestmentPlanCreate, InvestmentPlanUpdate, InvestmentCreate, InvestmentUpdate
from fincare.services.balance_service import adjust_user_totals, get_user_document

logger = logging.getLogger(__name__)


class InvestmentService:
    """Investment plans published by admins and the holdings customers buy from savings."""

    async def list_plans(self) -> Dict[str, Any]:
        plans = await InvestmentPlan.find({}).sort("-created_at").to_list()
        return {"investments": serialize_documents(plans)}

    async def create_plan(self, data: InvestmentPlanCreate) -> Dict[str, Any]:
        plan = InvestmentPlan(**data.model_dump())
        await plan.insert()
        logger.info("Investment plan %s (%s) created", plan.id, plan.name)
        return {"message": "Investment created successfully", "investment": serialize_document(plan)}

    async def update_plan(self, data: InvestmentPlanUpdate) -> Dict[str, Any]:
        plan = await InvestmentPlan.find_one({"_id": parse_object_id(data.id, "investment ID")})
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investment not found")
        for field, value in data.model_dump(exclude_unset=True, exclude={"id"}).items():
            if value is not None:
                setattr(plan, field, value)
        plan.updated_at = datetime.utcnow()
        await plan.save()
        return {"message": "Investment updated successfully", "investment": serialize_document(plan)}

    async def delete_plan(self, plan_id: str) -> Dict[str, Any]:
        plan = await InvestmentPlan.find_one({"_id": parse_object_id(plan_id, "investment ID")})
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investment not found")
        await plan.delete()
        return {"message": "Investment deleted successfully"}

    async def _get_owned(self, investment_id: str, user_id: str) -> Investment:
        investment = await Investment.find_one({
            "_id": parse_object_id(investment_id, "investment ID"),
            "user_id": parse_object_id(user_id, "user ID"),
        })
        if not investment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investment not found")
        return investment

    async def list_user_investments(self, user_id: str) -> Dict[str, Any]:
        holdings = await Investment.find({"user_id": parse_object_id(user_id, "user ID")}).sort("-created_at").to_list()
        return {"investments": serialize_documents(holdings)}

    async def create_investment(self, data: InvestmentCreate, user_id: str) -> Dict[str, Any]:
        plan = await InvestmentPlan.find_one({"_id": parse_object_id(data.plan_id, "investment plan ID")})
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investment plan not found")

        user = await get_user_document(user_id)
        if user.savings_balance < data.amount:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient savings balance")

        investment = Investment(
            user_id=user.id,
            plan_id=plan.id,
            amount=data.amount,
            units=data.units or data.amount / plan.unit_price,
            investment_name=plan.name,
            interest_rate=plan.interest_rate,
            investment_type=plan.type,
            current_value=data.amount,
            maturity_date=plan.maturity_date,
        )
        await investment.insert()
        await adjust_user_totals(user.id, savings_balance=-data.amount, total_investment=data.amount)

        logger.info("User %s invested %.2f in plan %s", user_id, data.amount, plan.id)
        return {"message": "Investment created successfully", "investment_id": str(investment.id)}

    async def get_investment(self, investment_id: str, user_id: str) -> Dict[str, Any]:
        return {"investment": serialize_document(await self._get_owned(investment_id, user_id))}

    async def update_investment(self, investment_id: str, data: InvestmentUpdate, user_id: str) -> Dict[str, Any]:
        investment = await self._get_owned(investment_id, user_id)
        difference = data.amount - investment.amount

        if difference > 0:
            user = await get_user_document(user_id)
            if user.savings_balance < difference:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient savings balance")

        plan = await InvestmentPlan.find_one({"_id": investment.plan_id})
        if plan:
            investment.units = data.amount / plan.unit_price
        investment.amount = data.amount
        investment.current_value += difference
        investment.updated_at = datetime.utcnow()
        await investment.save()
        await adjust_user_totals(investment.user_id, savings_balance=-difference, total_investment=difference)

        return {"message": "Investment updated successfully", "investment": serialize_document(investment)}

    async def delete_investment(self, investment_id: str, user_id: str) -> Dict[str, Any]:
        investment = await self._get_owned(investment_id, user_id)
        await investment.delete()
        await adjust_user_totals(
            investment.user_id,
            savings_balance=investment.amount,
            total_investment=-investment.amount,
        )
        return {"message": "Investment deleted successfully"}


investment_service = InvestmentService()
