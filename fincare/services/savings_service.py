import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.database.models import Saving, SavingAllocation, Investment, User
from fincare.helpers.response_builder import serialize_document, serialize_documents, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.schemas import SavingCreate, SavingUpdate, SavingVerifyRequest, AdminSavingCreate, AdminSavingPatch
from fincare.services.balance_service import adjust_user_totals, get_user_document

logger = logging.getLogger(__name__)


def deposit_amount(saving: Saving) -> float:
    # First positive of the amount fields a saving may carry
    for value in (saving.amount, saving.current_balance, saving.target_amount):
        if value and value > 0:
            return value
    return 0


class SavingsService:
    async def _get_owned(self, saving_id: str, user_id: str) -> Saving:
        saving = await Saving.find_one({
            "_id": parse_object_id(saving_id, "saving ID"),
            "user_id": parse_object_id(user_id, "user ID"),
        })
        if not saving:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saving not found")
        return saving

    async def list_user_savings(self, user_id: str) -> Dict[str, Any]:
        savings = await Saving.find({"user_id": parse_object_id(user_id, "user ID")}).sort("-created_at").to_list()
        return {"savings": serialize_documents(savings)}

    async def create_saving(self, data: SavingCreate, user_id: str) -> Dict[str, Any]:
        user = await get_user_document(user_id)
        allocation = data.allocation
        allocated = allocation.amount if allocation else 0
        stored_allocation = None

        if allocation and allocated > 0:
            if allocation.source == "savings":
                if user.savings_balance < allocated:
                    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient savings balance")
            else:
                investment = None
                if allocation.investment_id:
                    investment = await Investment.find_one({
                        "_id": parse_object_id(allocation.investment_id, "investment ID"),
                        "user_id": user.id,
                    })
                if not investment or investment.current_value < allocated:
                    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient investment balance")

            stored_allocation = SavingAllocation(
                source=allocation.source,
                amount=allocated,
                investment_id=parse_object_id(allocation.investment_id, "investment ID") if allocation.investment_id else None,
            )
            if allocation.source == "savings":
                await adjust_user_totals(user.id, savings_balance=-allocated)

        saving = Saving(
            user_id=user.id,
            target_amount=data.target_amount,
            current_balance=allocated,
            reason=data.reason,
            allocation=stored_allocation,
            withdraw_from_savings=data.withdraw_from_savings,
            liquidate_loans=data.liquidate_loans,
        )
        await saving.insert()

        if allocated > 0:
            await adjust_user_totals(user.id, total_savings=allocated)

        logger.info("Saving goal %s created by %s with %.2f allocated", saving.id, user_id, allocated)
        return {"message": "Saving created successfully", "saving": serialize_document(saving)}

    async def get_saving(self, saving_id: str, user_id: str) -> Dict[str, Any]:
        return {"saving": serialize_document(await self._get_owned(saving_id, user_id))}

    async def update_saving(self, saving_id: str, data: SavingUpdate, user_id: str) -> Dict[str, Any]:
        saving = await self._get_owned(saving_id, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(saving, field, value)
        saving.updated_at = datetime.utcnow()
        await saving.save()
        return {"message": "Saving updated successfully", "saving": serialize_document(saving)}

    async def delete_saving(self, saving_id: str, user_id: str) -> Dict[str, Any]:
        saving = await self._get_owned(saving_id, user_id)
        if saving.allocation and saving.allocation.source == "savings" and saving.allocation.amount > 0:
            await adjust_user_totals(saving.user_id, savings_balance=saving.allocation.amount)
        if saving.current_balance:
            await adjust_user_totals(saving.user_id, total_savings=-saving.current_balance)
        await saving.delete()
        return {"message": "Saving deleted successfully"}

    async def submit_verification(self, data: SavingVerifyRequest, user_id: str) -> Dict[str, Any]:
        saving = await self._get_owned(data.saving_id, user_id)
        if saving.status == "verified":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Saving is already verified")

        saving.proof_reference = data.proof_reference
        if data.amount:
            saving.amount = data.amount
        if data.notes:
            saving.notes = data.notes
        saving.status = "pending_verification"
        saving.updated_at = datetime.utcnow()
        await saving.save()
        return {"message": "Proof submitted for verification", "status": saving.status}

    async def list_admin_savings(
        self,
        page: int = 1,
        limit: int = 10,
        user_id: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if user_id:
            query["user_id"] = parse_object_id(user_id, "user ID")
        if status_filter and status_filter != "all":
            query["status"] = status_filter

        skip = (page - 1) * limit
        total = await Saving.find(query).count()
        docs = await Saving.find(query).sort("-created_at").skip(skip).limit(limit).to_list()

        user_ids = list({s.user_id for s in docs})
        users = {u.id: u for u in await User.find({"_id": {"$in": user_ids}}).to_list()} if user_ids else {}
        data = []
        for s in docs:
            item = serialize_document(s)
            user = users.get(s.user_id)
            item["user"] = {
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
            } if user else None
            data.append(item)
        return {"savings": data, "pagination": pagination_meta(total, page, limit)}

    async def create_manual_deposit(self, data: AdminSavingCreate, admin_email: Optional[str] = None) -> Dict[str, Any]:
        user = await get_user_document(data.user_id)
        now = datetime.utcnow()
        saving = Saving(
            user_id=user.id,
            amount=data.amount,
            current_balance=data.amount,
            reason=data.reason or "Manual savings deposit",
            type="manual_deposit",
            status="verified",
            verified_at=now,
            verified_by=admin_email,
            notes=data.notes or "Admin manual deposit",
        )
        await saving.insert()
        await adjust_user_totals(user.id, savings_balance=data.amount, total_savings=data.amount)

        logger.info("Manual deposit of %.2f credited to %s by %s", data.amount, user.id, admin_email)
        return {"message": "Savings created successfully", "saving": serialize_document(saving)}

    async def review_saving(self, data: AdminSavingPatch, admin_email: Optional[str] = None) -> Dict[str, Any]:
        saving = await Saving.find_one({"_id": parse_object_id(data.saving_id, "saving ID")})
        if not saving:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saving record not found")

        now = datetime.utcnow()
        if data.action == "verify":
            if saving.status == "verified":
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Saving is already verified")
            amount = deposit_amount(saving)
            if amount <= 0:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid amount found in savings record")

            saving.status = "verified"
            saving.verified_at = now
            saving.verified_by = admin_email
            await adjust_user_totals(saving.user_id, savings_balance=amount, total_savings=amount)
            logger.info("Saving %s verified: %.2f credited to %s", saving.id, amount, saving.user_id)

        elif data.action == "reject":
            saving.status = "rejected"
            saving.rejected_at = now
            saving.rejected_by = admin_email
            saving.rejection_reason = data.reason or "No reason provided"

        else:
            if not data.amount or data.amount <= 0:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Valid amount is required")
            saving.amount = data.amount
            saving.current_balance = data.amount

        saving.updated_at = now
        await saving.save()
        return {"message": "Saving updated successfully", "saving": serialize_document(saving)}


savings_service = SavingsService()
