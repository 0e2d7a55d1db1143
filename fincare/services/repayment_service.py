import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.database.models import Loan, LoanRepayment, LoanPayment, User
from fincare.helpers.response_builder import serialize_document, serialize_documents, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.services.loan_service import loan_service, apply_status_transition

logger = logging.getLogger(__name__)

# Annual rate assumed for loans stored before loan_details existed
FALLBACK_INTEREST_RATE = 0.10

REJECTION_REASON = "Proof of payment not valid"

REPAYABLE_STATUSES = ("active", "approved")


def loan_total_amount(loan: Loan) -> float:
    if loan.loan_details and loan.loan_details.total_loan_amount:
        return loan.loan_details.total_loan_amount
    principal = loan.loan_amount
    return principal + principal * FALLBACK_INTEREST_RATE * loan.duration / 12


class RepaymentService:
    async def submit_repayment(
        self,
        loan_id: str,
        amount: float,
        user_id: str,
        proof_reference: Optional[str] = None,
    ) -> Dict[str, Any]:
        if amount is None or amount <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Valid repayment amount is required")

        loan = await loan_service.get_owned_loan(loan_id, user_id)
        if loan.status not in REPAYABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Repayments can only be made on approved or active loans"
            )

        repayment = LoanRepayment(
            loan_id=loan.id,
            user_id=loan.user_id,
            amount=amount,
            proof_reference=proof_reference,
        )
        await repayment.insert()

        await apply_status_transition(loan, "payment_pending")
        await loan.save()

        logger.info("Repayment %s of %.2f submitted for loan %s", repayment.id, amount, loan.id)
        return {
            "message": "Repayment submitted for review",
            "repayment": serialize_document(repayment),
        }

    async def list_user_repayments(
        self,
        user_id: str,
        loan_id: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"user_id": parse_object_id(user_id, "user ID")}
        if loan_id:
            query["loan_id"] = parse_object_id(loan_id, "loan ID")
        if status_filter and status_filter != "all":
            query["status"] = status_filter
        repayments = await LoanRepayment.find(query).sort("-submitted_at").to_list()
        return {"repayments": serialize_documents(repayments)}

    async def list_for_review(self, status_filter: str = "pending_review", page: int = 1, limit: int = 10) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status_filter and status_filter != "all":
            query["status"] = status_filter

        skip = (page - 1) * limit
        total = await LoanRepayment.find(query).count()
        repayments = await LoanRepayment.find(query).sort("-submitted_at").skip(skip).limit(limit).to_list()

        loan_ids = list({r.loan_id for r in repayments})
        user_ids = list({r.user_id for r in repayments})
        loans = {l.id: l for l in await Loan.find({"_id": {"$in": loan_ids}}).to_list()} if loan_ids else {}
        users = {u.id: u for u in await User.find({"_id": {"$in": user_ids}}).to_list()} if user_ids else {}

        data = []
        for r in repayments:
            item = serialize_document(r)
            loan = loans.get(r.loan_id)
            user = users.get(r.user_id)
            item["loan"] = {
                "id": str(loan.id),
                "loan_amount": loan.loan_amount,
                "purpose": loan.purpose,
                "status": loan.status,
                "remaining_balance": loan.loan_details.remaining_balance if loan.loan_details else None,
            } if loan else None
            item["user"] = {
                "id": str(user.id),
                "name": f"{user.first_name} {user.last_name}",
                "email": user.email,
            } if user else None
            data.append(item)

        return {"repayments": data, "pagination": pagination_meta(total, page, limit)}

    async def confirm_repayment(self, repayment_id: str, action: str, admin_email: Optional[str] = None) -> Dict[str, Any]:
        """Approve or reject a submitted repayment.

        Approval marks the repayment first and then rewrites the loan balance.
        The two writes are independent: if the loan write fails the repayment
        stays approved with the balance unchanged.
        """
        if action not in ("approve", "reject"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

        repayment = await LoanRepayment.find_one({"_id": parse_object_id(repayment_id, "repayment ID")})
        if not repayment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Repayment not found")

        now = datetime.utcnow()
        if action == "reject":
            repayment.status = "rejected"
            repayment.rejected_at = now
            repayment.rejected_by = admin_email
            repayment.rejection_reason = REJECTION_REASON
            await repayment.save()
            logger.info("Repayment %s rejected by %s", repayment.id, admin_email)
            return {"message": "Repayment rejected", "repayment": serialize_document(repayment)}

        repayment.status = "approved"
        repayment.approved_at = now
        repayment.approved_by = admin_email
        await repayment.save()

        loan = await Loan.find_one({"_id": repayment.loan_id})
        if not loan:
            logger.error("Repayment %s approved but loan %s is missing", repayment.id, repayment.loan_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")

        total = loan_total_amount(loan)
        paid_before = loan.loan_details.paid_amount if loan.loan_details else 0
        new_paid = paid_before + repayment.amount
        remaining = max(0, total - new_paid)

        if loan.loan_details is None:
            details = await loan_service.terms_for(loan)
            details.total_loan_amount = total
            loan.loan_details = details
        loan.loan_details.paid_amount = new_paid
        loan.loan_details.remaining_balance = remaining
        loan.payments.append(LoanPayment(
            amount=repayment.amount,
            type="repayment",
            payment_date=now,
            repayment_id=repayment.id,
            status="approved",
        ))
        await apply_status_transition(loan, "completed" if remaining <= 0 else "active")
        await loan.save()

        logger.info(
            "Repayment %s approved by %s: loan %s paid=%.2f remaining=%.2f",
            repayment.id, admin_email, loan.id, new_paid, remaining,
        )
        return {
            "message": "Repayment approved",
            "repayment": serialize_document(repayment),
            "loan": {
                "id": str(loan.id),
                "status": loan.status,
                "paid_amount": new_paid,
                "remaining_balance": remaining,
                "total_loan_amount": total,
            },
        }


repayment_service = RepaymentService()
