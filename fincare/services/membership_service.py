import logging
from datetime import datetime
from typing import Any, Dict, Optional

from beanie.operators import Set
from fastapi import HTTPException, status

from fincare.database.models import MembershipPayment, User
from fincare.helpers.response_builder import serialize_document, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.schemas import MembershipPaymentCreate, MembershipReview
from fincare.services.balance_service import get_user_document

logger = logging.getLogger(__name__)


class MembershipService:
    async def submit_payment(self, data: MembershipPaymentCreate, user_id: str) -> Dict[str, Any]:
        user = await get_user_document(user_id)
        if user.membership_status == "approved":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already a member")
        if user.membership_status == "pending":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Membership payment is already under review")
        if user.membership_status == "suspended":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Membership is suspended")

        payment = MembershipPayment(user_id=user.id, **data.model_dump())
        await payment.insert()

        now = datetime.utcnow()
        await User.find_one({"_id": user.id}).update(Set({
            "membership_status": "pending",
            "membership_application_date": now,
            "updated_at": now,
        }))

        logger.info("Membership payment %s submitted by %s", payment.id, user_id)
        return {"message": "Membership payment submitted for review", "payment": serialize_document(payment)}

    async def get_status(self, user_id: str) -> Dict[str, Any]:
        user = await get_user_document(user_id)
        latest = await MembershipPayment.find({"user_id": user.id}).sort("-created_at").limit(1).to_list()
        return {
            "membership": {
                "status": user.membership_status,
                "application_date": user.membership_application_date,
                "approval_date": user.membership_approval_date,
            },
            "latest_payment": serialize_document(latest[0]) if latest else None,
        }

    async def list_payments(self, status_filter: Optional[str] = "pending", page: int = 1, limit: int = 10) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status_filter and status_filter != "all":
            query["status"] = status_filter

        skip = (page - 1) * limit
        total = await MembershipPayment.find(query).count()
        docs = await MembershipPayment.find(query).sort("-created_at").skip(skip).limit(limit).to_list()

        user_ids = list({p.user_id for p in docs})
        users = {u.id: u for u in await User.find({"_id": {"$in": user_ids}}).to_list()} if user_ids else {}
        data = []
        for p in docs:
            item = serialize_document(p)
            user = users.get(p.user_id)
            item["user"] = {
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "membership_status": user.membership_status,
            } if user else None
            data.append(item)
        return {"payments": data, "pagination": pagination_meta(total, page, limit)}

    async def review_payment(self, data: MembershipReview, admin_email: Optional[str] = None) -> Dict[str, Any]:
        payment = await MembershipPayment.find_one({"_id": parse_object_id(data.payment_id, "payment ID")})
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership payment not found")
        if payment.status != "pending":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Membership payment has already been reviewed")

        now = datetime.utcnow()
        new_status = "approved" if data.action == "approve" else "rejected"
        payment.status = new_status
        payment.admin_notes = data.admin_notes
        payment.reviewed_at = now
        payment.reviewed_by = admin_email
        payment.updated_at = now
        await payment.save()

        user_changes = {"membership_status": new_status, "updated_at": now}
        if new_status == "approved":
            user_changes["membership_approval_date"] = now
        await User.find_one({"_id": payment.user_id}).update(Set(user_changes))

        logger.info("Membership payment %s %s by %s", payment.id, new_status, admin_email)
        return {"message": f"Membership {new_status}", "payment": serialize_document(payment)}


membership_service = MembershipService()
