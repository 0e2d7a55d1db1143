import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.database.models import Withdrawal, User
from fincare.helpers.response_builder import serialize_document, serialize_documents, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.schemas import WithdrawalCreate, WithdrawalUpdate, AdminWithdrawalUpdate
from fincare.services.balance_service import adjust_user_totals, get_user_document
from fincare.services.transaction_service import transaction_service

logger = logging.getLogger(__name__)


class WithdrawalService:
    """Withdrawal requests. The amount is reserved from savings when the request is made."""

    async def _get_owned(self, withdrawal_id: str, user_id: str) -> Withdrawal:
        withdrawal = await Withdrawal.find_one({
            "_id": parse_object_id(withdrawal_id, "withdrawal ID"),
            "user_id": parse_object_id(user_id, "user ID"),
        })
        if not withdrawal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Withdrawal not found")
        return withdrawal

    async def _pending_total(self, user_id) -> float:
        pending = await Withdrawal.find({"user_id": user_id, "status": "pending"}).to_list()
        return sum(w.amount for w in pending)

    async def list_user_withdrawals(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        status_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"user_id": parse_object_id(user_id, "user ID")}
        if status_filter and status_filter != "all":
            query["status"] = status_filter

        skip = (page - 1) * limit
        total = await Withdrawal.find(query).count()
        docs = await Withdrawal.find(query).sort("-created_at").skip(skip).limit(limit).to_list()
        return {"withdrawals": serialize_documents(docs), "pagination": pagination_meta(total, page, limit)}

    async def create_withdrawal(self, data: WithdrawalCreate, user_id: str) -> Dict[str, Any]:
        if data.amount is None or data.amount <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount must be greater than zero")

        user = await get_user_document(user_id)
        if user.savings_balance < data.amount:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient savings balance")

        total_pending = await self._pending_total(user.id)
        if total_pending + data.amount > user.savings_balance:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Insufficient balance considering pending withdrawals"
            )

        withdrawal = Withdrawal(user_id=user.id, **data.model_dump())
        await withdrawal.insert()
        await adjust_user_totals(user.id, savings_balance=-data.amount)

        logger.info("Withdrawal %s of %.2f requested by %s", withdrawal.id, data.amount, user_id)
        return {"message": "Withdrawal request submitted successfully", "withdrawal": serialize_document(withdrawal)}

    async def get_withdrawal(self, withdrawal_id: str, user_id: str) -> Dict[str, Any]:
        return {"withdrawal": serialize_document(await self._get_owned(withdrawal_id, user_id))}

    async def update_withdrawal(self, withdrawal_id: str, data: WithdrawalUpdate, user_id: str) -> Dict[str, Any]:
        withdrawal = await self._get_owned(withdrawal_id, user_id)
        if withdrawal.status != "pending":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot update processed withdrawal")

        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        new_amount = changes.get("amount")
        if new_amount is not None:
            if new_amount <= 0:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount must be greater than zero")
            difference = new_amount - withdrawal.amount
            if difference > 0:
                user = await get_user_document(user_id)
                if user.savings_balance < difference:
                    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient savings balance")
            await adjust_user_totals(withdrawal.user_id, savings_balance=-difference)

        for field, value in changes.items():
            setattr(withdrawal, field, value)
        withdrawal.updated_at = datetime.utcnow()
        await withdrawal.save()
        return {"message": "Withdrawal updated successfully", "withdrawal": serialize_document(withdrawal)}

    async def cancel_withdrawal(self, withdrawal_id: str, user_id: str) -> Dict[str, Any]:
        withdrawal = await self._get_owned(withdrawal_id, user_id)
        if withdrawal.status != "pending":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete processed withdrawal")

        await withdrawal.delete()
        await adjust_user_totals(withdrawal.user_id, savings_balance=withdrawal.amount)
        return {"message": "Withdrawal cancelled successfully"}

    async def list_admin_withdrawals(
        self,
        page: int = 1,
        limit: int = 10,
        status_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status_filter and status_filter != "all":
            query["status"] = status_filter

        skip = (page - 1) * limit
        total = await Withdrawal.find(query).count()
        docs = await Withdrawal.find(query).sort("-created_at").skip(skip).limit(limit).to_list()

        user_ids = list({w.user_id for w in docs})
        users = {u.id: u for u in await User.find({"_id": {"$in": user_ids}}).to_list()} if user_ids else {}
        data = []
        for w in docs:
            item = serialize_document(w)
            user = users.get(w.user_id)
            item["user"] = {
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "savings_balance": user.savings_balance,
            } if user else None
            data.append(item)
        return {"withdrawals": data, "pagination": pagination_meta(total, page, limit)}

    async def get_admin_withdrawal(self, withdrawal_id: str) -> Dict[str, Any]:
        withdrawal = await Withdrawal.find_one({"_id": parse_object_id(withdrawal_id, "withdrawal ID")})
        if not withdrawal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Withdrawal not found")
        user = await User.find_one({"_id": withdrawal.user_id})
        result = serialize_document(withdrawal)
        result["user"] = {
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
            "phone": user.phone,
            "savings_balance": user.savings_balance,
        } if user else None
        return {"withdrawal": result}

    async def process_withdrawal(self, withdrawal_id: str, data: AdminWithdrawalUpdate, admin_email: Optional[str] = None) -> Dict[str, Any]:
        withdrawal = await Withdrawal.find_one({"_id": parse_object_id(withdrawal_id, "withdrawal ID")})
        if not withdrawal:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Withdrawal not found")

        new_status = data.status.value
        if new_status == "pending":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
        if withdrawal.status in ("rejected", "completed"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Withdrawal has already been processed")

        if new_status == "rejected":
            await adjust_user_totals(withdrawal.user_id, savings_balance=withdrawal.amount)
        elif new_status == "completed":
            await transaction_service.record(
                user_id=withdrawal.user_id,
                type="withdrawal",
                amount=withdrawal.amount,
                description=f"Withdrawal to {withdrawal.bank_name} ({withdrawal.account_number[-4:]})",
            )

        withdrawal.status = new_status
        withdrawal.admin_notes = data.admin_notes
        withdrawal.processed_at = datetime.utcnow()
        withdrawal.processed_by = admin_email
        withdrawal.updated_at = datetime.utcnow()
        await withdrawal.save()

        logger.info("Withdrawal %s marked %s by %s", withdrawal.id, new_status, admin_email)
        return {"message": f"Withdrawal {new_status} successfully", "withdrawal": serialize_document(withdrawal)}


withdrawal_service = WithdrawalService()
