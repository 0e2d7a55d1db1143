import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.database.models import Transaction, User
from fincare.helpers.response_builder import serialize_document, pagination_meta
from fincare.helpers.validators import parse_object_id

logger = logging.getLogger(__name__)

TRANSACTION_STATUSES = ("pending", "completed", "failed", "processing")


class TransactionService:
    """Append-only money movement log plus the admin views over it."""

    async def record(
        self,
        *,
        user_id,
        type: str,
        amount: float,
        description: str = "",
        loan_id=None,
        status: str = "completed",
    ) -> Transaction:
        txn = Transaction(
            user_id=parse_object_id(user_id, "user ID"),
            loan_id=parse_object_id(loan_id, "loan ID") if loan_id else None,
            type=type,
            amount=amount,
            description=description,
            status=status,
        )
        await txn.insert()
        logger.info("Recorded %s transaction of %.2f for user %s", type, amount, user_id)
        return txn

    async def list_transactions(
        self,
        page: int = 1,
        limit: int = 20,
        status_filter: Optional[str] = None,
        type_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status_filter and status_filter != "all":
            query["status"] = status_filter
        if type_filter and type_filter != "all":
            query["type"] = type_filter

        skip = (page - 1) * limit
        total = await Transaction.find(query).count()
        docs = await Transaction.find(query).sort("-created_at").skip(skip).limit(limit).to_list()

        user_ids = list({d.user_id for d in docs})
        users = await User.find({"_id": {"$in": user_ids}}).to_list() if user_ids else []
        names = {u.id: {"name": f"{u.first_name} {u.last_name}", "email": u.email} for u in users}

        data = []
        for d in docs:
            item = serialize_document(d)
            item["user"] = names.get(d.user_id)
            data.append(item)

        return {"transactions": data, "pagination": pagination_meta(total, page, limit)}

    async def update_status(self, transaction_id: str, new_status: str) -> Dict[str, Any]:
        if new_status not in TRANSACTION_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")

        txn = await Transaction.find_one({"_id": parse_object_id(transaction_id, "transaction ID")})
        if not txn:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

        txn.status = new_status
        txn.updated_at = datetime.utcnow()
        await txn.save()
        return serialize_document(txn)


transaction_service = TransactionService()
