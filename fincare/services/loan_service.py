import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from fincare.database.models import Loan, LoanDetails, LoanPayment, BorrowerDetails, GuarantorDetails
from fincare.helpers.response_builder import serialize_document, serialize_documents, pagination_meta
from fincare.helpers.validators import parse_object_id
from fincare.schemas import LoanCreate, LoanUpdate, AdminLoanPatch, LoanAdminActionEnum
from fincare.services.balance_service import adjust_user_totals
from fincare.services.settings_service import settings_service
from fincare.services.transaction_service import transaction_service

logger = logging.getLogger(__name__)

# A loan's principal is part of the owner's total_loans while its status is in this family
APPROVED_FAMILY = ("approved", "active", "payment_pending")

DEFAULT_PROCESSING_FEE_RATE = 0.01

_CURRENT = object()


def calculate_loan_terms(principal: float, duration: int, interest_rate: float, processing_fee_rate: float) -> LoanDetails:
    """Price a loan with simple annual interest.

    Rates are fractions (0.1 for 10%). The fee is charged on the principal and
    is not part of the repayable total.
    """
    processing_fee = principal * processing_fee_rate
    interest_amount = principal * interest_rate * duration / 12
    total_loan_amount = principal + interest_amount
    return LoanDetails(
        principal_amount=principal,
        processing_fee=round(processing_fee, 2),
        interest_rate=interest_rate,
        interest_amount=round(interest_amount, 2),
        total_loan_amount=round(total_loan_amount, 2),
        monthly_installment=round(total_loan_amount / duration, 2),
        remaining_balance=round(total_loan_amount, 2),
        paid_amount=0,
        processing_fee_paid=False,
    )


def total_loans_delta(old_status: Optional[str], new_status: str, principal: float) -> float:
    was_counted = old_status in APPROVED_FAMILY
    is_counted = new_status in APPROVED_FAMILY
    if is_counted and not was_counted:
        return principal
    if was_counted and not is_counted:
        return -principal
    return 0


async def apply_status_transition(loan: Loan, new_status: str, from_status=_CURRENT) -> float:
    """Set the loan status and keep the owner's total_loans in step with it.

    Every status write goes through here. The caller saves the loan. Pass
    from_status=None for a loan that has just been created.
    """
    previous = loan.status if from_status is _CURRENT else from_status
    delta = total_loans_delta(previous, new_status, loan.loan_amount)
    loan.status = new_status
    loan.updated_at = datetime.utcnow()
    if delta:
        await adjust_user_totals(loan.user_id, total_loans=delta)
    logger.info("Loan %s status %s -> %s (total_loans %+.2f)", loan.id, previous, new_status, delta)
    return delta


def send_loan_approval_notice(loan: Loan) -> None:
    # Outbound email is not wired up; the notice is logged for the back office
    details = loan.loan_details
    logger.info(
        "Loan approval notice for %s: amount=%.2f interest=%.2f fee=%.2f total=%.2f",
        loan.borrower_details.email,
        loan.loan_amount,
        details.interest_amount if details else 0,
        details.processing_fee if details else 0,
        details.total_loan_amount if details else 0,
    )


class LoanService:
    async def _pricing(self) -> Dict[str, float]:
        loan_settings = await settings_service.get_loan_settings()
        return {
            "interest_rate": loan_settings["interest_rate"] / 100,
            "processing_fee_rate": loan_settings["processing_fee_rate"] / 100,
        }

    async def terms_for(self, loan: Loan) -> LoanDetails:
        pricing = await self._pricing()
        return calculate_loan_terms(loan.loan_amount, loan.duration, **pricing)

    async def get_owned_loan(self, loan_id: str, user_id: str) -> Loan:
        loan = await Loan.find_one({
            "_id": parse_object_id(loan_id, "loan ID"),
            "user_id": parse_object_id(user_id, "user ID"),
        })
        if not loan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")
        return loan

    async def create_loan(self, data: LoanCreate, user_id: str) -> Dict[str, Any]:
        required = (data.loan_amount, data.purpose, data.duration, data.full_name, data.phone, data.email, data.gender)
        if not all(required):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Required fields are missing")

        pricing = await self._pricing()
        loan = Loan(
            user_id=parse_object_id(user_id, "user ID"),
            loan_amount=data.loan_amount,
            purpose=data.purpose,
            duration=data.duration,
            debit_from_savings=data.debit_from_savings,
            borrower_details=BorrowerDetails(
                full_name=data.full_name,
                phone=data.phone,
                email=data.email,
                gender=data.gender,
            ),
            guarantor_details=GuarantorDetails(
                coverage=data.guarantor_coverage or 0,
                profession=data.guarantor_profession or "",
            ),
            government_id=data.government_id or "",
            active_investments=data.active_investments or [],
            loan_details=calculate_loan_terms(data.loan_amount, data.duration, **pricing),
        )
        await loan.insert()
        await apply_status_transition(loan, loan.status, from_status=None)

        logger.info("Loan %s submitted by user %s for %.2f", loan.id, user_id, loan.loan_amount)
        return {"message": "Loan application submitted successfully", "loan_id": str(loan.id)}

    async def list_user_loans(self, user_id: str) -> List[Dict[str, Any]]:
        loans = await Loan.find({"user_id": parse_object_id(user_id, "user ID")}).sort("-created_at").to_list()
        return serialize_documents(loans)

    async def get_loan(self, loan_id: str, user_id: str) -> Dict[str, Any]:
        return serialize_document(await self.get_owned_loan(loan_id, user_id))

    async def update_loan(self, loan_id: str, data: LoanUpdate, user_id: str) -> Dict[str, Any]:
        loan = await self.get_owned_loan(loan_id, user_id)
        changes = data.model_dump(exclude_unset=True)
        old_amount = loan.loan_amount

        for field in ("loan_amount", "purpose", "duration", "debit_from_savings", "government_id", "active_investments"):
            if changes.get(field) is not None:
                setattr(loan, field, changes[field])
        for field in ("full_name", "phone", "email", "gender"):
            if changes.get(field) is not None:
                setattr(loan.borrower_details, field, changes[field])
        if changes.get("guarantor_coverage") is not None:
            loan.guarantor_details.coverage = changes["guarantor_coverage"]
        if changes.get("guarantor_profession") is not None:
            loan.guarantor_details.profession = changes["guarantor_profession"]

        if "loan_amount" in changes or "duration" in changes:
            pricing = await self._pricing()
            paid = loan.loan_details.paid_amount if loan.loan_details else 0
            fee_paid = loan.loan_details.processing_fee_paid if loan.loan_details else False
            details = calculate_loan_terms(loan.loan_amount, loan.duration, **pricing)
            details.paid_amount = paid
            details.remaining_balance = max(0, details.total_loan_amount - paid)
            details.processing_fee_paid = fee_paid
            loan.loan_details = details

        amount_difference = loan.loan_amount - old_amount
        if amount_difference and loan.status in APPROVED_FAMILY:
            await adjust_user_totals(loan.user_id, total_loans=amount_difference)

        loan.updated_at = datetime.utcnow()
        await loan.save()
        return {"message": "Loan updated successfully", "loan": serialize_document(loan)}

    async def delete_loan(self, loan_id: str, user_id: str) -> Dict[str, Any]:
        loan = await self.get_owned_loan(loan_id, user_id)
        if loan.status in APPROVED_FAMILY:
            await adjust_user_totals(loan.user_id, total_loans=-loan.loan_amount)
        await loan.delete()
        logger.info("Loan %s deleted by user %s", loan_id, user_id)
        return {"message": "Loan deleted successfully"}

    async def pay_processing_fee(self, loan_id: str, user_id: str) -> Dict[str, Any]:
        loan = await self.get_owned_loan(loan_id, user_id)

        if loan.status != "approved":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Loan must be approved before paying the processing fee"
            )
        if loan.loan_details and loan.loan_details.processing_fee_paid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Processing fee already paid"
            )

        if loan.loan_details is None:
            loan.loan_details = await self.terms_for(loan)
        loan.loan_details.processing_fee_paid = True
        await apply_status_transition(loan, "active")
        await loan.save()

        # Written after the loan update; a failure here leaves the loan active
        fee = loan.loan_details.processing_fee or loan.loan_amount * DEFAULT_PROCESSING_FEE_RATE
        await transaction_service.record(
            user_id=loan.user_id,
            loan_id=loan.id,
            type="processing_fee",
            amount=fee,
            description=f"Processing fee for loan {loan.id}",
        )

        return {
            "message": "Processing fee paid successfully",
            "loan_id": str(loan.id),
            "status": loan.status,
            "processing_fee": fee,
        }

    async def list_admin_loans(
        self,
        page: int = 1,
        limit: int = 10,
        status_filter: Optional[str] = None,
        processing_fee_paid: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status_filter and status_filter != "all":
            query["status"] = status_filter
        if processing_fee_paid is not None:
            query["loan_details.processing_fee_paid"] = processing_fee_paid
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [
                {"borrower_details.full_name": pattern},
                {"borrower_details.email": pattern},
                {"borrower_details.phone": pattern},
            ]

        skip = (page - 1) * limit
        total = await Loan.find(query).count()
        loans = await Loan.find(query).sort("-created_at").skip(skip).limit(limit).to_list()
        return {"loans": serialize_documents(loans), "pagination": pagination_meta(total, page, limit)}

    async def admin_patch_loan(self, patch: AdminLoanPatch) -> Dict[str, Any]:
        loan = await Loan.find_one({"_id": parse_object_id(patch.loan_id, "loan ID")})
        if not loan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")

        if patch.action == LoanAdminActionEnum.update_processing_fee:
            return await self._set_processing_fee_flag(loan, patch.processing_fee_paid)
        if patch.action == LoanAdminActionEnum.liquidate:
            return await self._liquidate(loan)
        if patch.action == LoanAdminActionEnum.resend_email:
            if loan.status != "approved":
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Can only resend emails for approved loans"
                )
            send_loan_approval_notice(loan)
            return {"message": "Email resent successfully"}

        if not patch.status:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Status is required for status updates"
            )

        new_status = patch.status.value
        was_approved = loan.status in APPROVED_FAMILY
        await apply_status_transition(loan, new_status)
        await loan.save()
        if new_status == "approved" and not was_approved:
            send_loan_approval_notice(loan)

        return {"message": "Loan status updated successfully", "loan": serialize_document(loan)}

    async def _set_processing_fee_flag(self, loan: Loan, paid: Optional[bool]) -> Dict[str, Any]:
        if not isinstance(paid, bool):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="processing_fee_paid must be a boolean"
            )
        if loan.loan_details is None:
            loan.loan_details = await self.terms_for(loan)
        loan.loan_details.processing_fee_paid = paid
        loan.updated_at = datetime.utcnow()
        await loan.save()
        return {"message": "Processing fee status updated successfully", "processing_fee_paid": paid}

    async def _liquidate(self, loan: Loan) -> Dict[str, Any]:
        if loan.status != "approved":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only approved loans can be liquidated"
            )
        if loan.loan_details is None:
            loan.loan_details = await self.terms_for(loan)

        half_credit = loan.loan_details.remaining_balance / 2
        loan.loan_details.paid_amount += half_credit
        loan.loan_details.remaining_balance = 0
        loan.payments.append(LoanPayment(
            amount=half_credit,
            type="liquidation",
            description="Admin-initiated mid-year liquidation (50% credit)",
        ))
        await apply_status_transition(loan, "liquidated")
        await loan.save()

        return {"message": "Loan liquidated successfully", "credit_amount": f"{half_credit:.2f}"}


loan_service = LoanService()
