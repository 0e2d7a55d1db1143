import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.database.models import User, Saving, Investment, Loan, Auction, Withdrawal
from fincare.helpers.response_builder import serialize_documents, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.schemas import ProfileUpdate, CustomerUpdate
from fincare.services.auth_service import public_user
from fincare.services.loan_service import APPROVED_FAMILY

logger = logging.getLogger(__name__)


class CustomerService:
    """Back-office customer directory."""

    async def _stats(self, user: User) -> Dict[str, Any]:
        savings = await Saving.find({"user_id": user.id}).to_list()
        investments = await Investment.find({"user_id": user.id}).to_list()
        loans = await Loan.find({"user_id": user.id}).to_list()
        auctions = await Auction.find({"user_id": user.id}).count()
        return {
            "savings_total": sum(s.current_balance or 0 for s in savings),
            "investment_total": sum(i.amount or 0 for i in investments),
            "loan_total": sum(l.loan_amount for l in loans if l.status in APPROVED_FAMILY),
            "auction_count": auctions,
            "savings_count": len(savings),
            "investment_count": len(investments),
            "loan_count": len(loans),
        }

    async def list_customers(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        membership_status: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [
                {"first_name": pattern},
                {"last_name": pattern},
                {"email": pattern},
                {"phone": pattern},
            ]
        if membership_status and membership_status != "all":
            query["membership_status"] = membership_status

        skip = (page - 1) * limit
        total = await User.find(query).count()
        users = await User.find(query).sort("-created_at").skip(skip).limit(limit).to_list()

        customers = []
        for user in users:
            item = public_user(user)
            item["stats"] = await self._stats(user)
            customers.append(item)
        return {"customers": customers, "pagination": pagination_meta(total, page, limit)}

    async def get_customer(self, user_id: str) -> Dict[str, Any]:
        user = await self._get_user(user_id)
        by_owner = {"user_id": user.id}
        return {
            "customer": public_user(user),
            "stats": await self._stats(user),
            "savings": serialize_documents(await Saving.find(by_owner).sort("-created_at").to_list()),
            "investments": serialize_documents(await Investment.find(by_owner).sort("-created_at").to_list()),
            "loans": serialize_documents(await Loan.find(by_owner).sort("-created_at").to_list()),
            "auctions": serialize_documents(await Auction.find(by_owner).sort("-created_at").to_list()),
            "withdrawals": serialize_documents(await Withdrawal.find(by_owner).sort("-created_at").to_list()),
        }

    async def _get_user(self, user_id: str, missing: str = "Customer not found") -> User:
        user = await User.find_one({"_id": parse_object_id(user_id, "customer ID")})
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=missing)
        return user

    async def _apply_changes(self, user: User, changes: Dict[str, Any]) -> User:
        email = changes.get("email")
        if email:
            email = email.lower()
            clash = await User.find_one({"email": email, "_id": {"$ne": user.id}})
            if clash:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already in use")
            changes["email"] = email

        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value.strip() if isinstance(value, str) else value)
        user.updated_at = datetime.utcnow()
        await user.save()
        return user

    async def update_customer(self, user_id: str, data: CustomerUpdate) -> Dict[str, Any]:
        user = await self._get_user(user_id)
        user = await self._apply_changes(user, data.model_dump(exclude_unset=True))
        return {"message": "Customer updated successfully", "customer": public_user(user)}

    async def delete_customer(self, user_id: str) -> Dict[str, Any]:
        user = await self._get_user(user_id)
        outstanding = await Loan.find({"user_id": user.id, "status": {"$in": list(APPROVED_FAMILY)}}).count()
        if outstanding:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete a customer with an outstanding loan"
            )

        await user.delete()
        logger.info("Customer %s (%s) deleted", user.id, user.email)
        return {"message": "Customer deleted successfully"}

    # Suspension is tracked on the membership status
    async def set_customer_status(self, user_id: str, action: str) -> Dict[str, Any]:
        user = await self._get_user(user_id)
        if action == "suspend":
            user.membership_status = "suspended"
        elif action == "reactivate":
            if user.membership_status != "suspended":
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer is not suspended")
            user.membership_status = "approved"
        else:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

        user.updated_at = datetime.utcnow()
        await user.save()
        past = "suspended" if action == "suspend" else "reactivated"
        return {"message": f"Customer {past} successfully", "customer": public_user(user)}

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = await self._get_user(user_id, "User not found")
        by_owner = {"user_id": user.id}
        return {
            "user": public_user(user),
            "stats": await self._stats(user),
            "savings": serialize_documents(await Saving.find(by_owner).sort("-created_at").to_list()),
            "investments": serialize_documents(await Investment.find(by_owner).sort("-created_at").to_list()),
            "loans": serialize_documents(await Loan.find(by_owner).sort("-created_at").to_list()),
            "auctions": serialize_documents(await Auction.find(by_owner).sort("-created_at").to_list()),
        }

    async def update_profile(self, user_id: str, data: ProfileUpdate) -> Dict[str, Any]:
        user = await self._get_user(user_id, "User not found")
        user = await self._apply_changes(user, data.model_dump(exclude_unset=True))
        return {"message": "Profile updated successfully", "user": public_user(user)}


customer_service = CustomerService()
