from fastapi import APIRouter, HTTPException, Depends, Query, UploadFile, File, Form
from fastapi import status
from typing import Dict, Any, Optional
import logging

from fincare.services.loan_service import loan_service
from fincare.services.repayment_service import repayment_service
from fincare.schemas import LoanCreate, LoanUpdate, ProcessingFeeRequest
from fincare.core.auth_dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/loans", tags=["Loans"])


# Submits a loan application priced with the current loan settings
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_loan(loan_data: LoanCreate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await loan_service.create_loan(loan_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating loan: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create loan application")


@router.get("", status_code=status.HTTP_200_OK)
async def list_loans(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return {"loans": await loan_service.list_user_loans(current_user["id"])}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing loans for %s: %s", current_user.get("id"), e)
        raise HTTPException(status_code=500, detail="Failed to fetch loans")


# Pays the processing fee on an approved loan, which activates it
@router.post("/processing-fee", status_code=status.HTTP_200_OK)
async def pay_processing_fee(payload: ProcessingFeeRequest, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await loan_service.pay_processing_fee(payload.loan_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error paying processing fee for loan %s: %s", payload.loan_id, e)
        raise HTTPException(status_code=500, detail="Failed to process payment")


# Submits a repayment with an optional proof of payment for admin review
@router.post("/repayment", status_code=status.HTTP_201_CREATED)
async def submit_repayment(
    loan_id: str = Form(...),
    amount: float = Form(...),
    proof: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        proof_reference = proof.filename if proof else None
        return await repayment_service.submit_repayment(loan_id, amount, current_user["id"], proof_reference)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error submitting repayment for loan %s: %s", loan_id, e)
        raise HTTPException(status_code=500, detail="Failed to submit repayment")


@router.get("/repayment", status_code=status.HTTP_200_OK)
async def list_repayments(
    loan_id: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    current_user: Dict = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        return await repayment_service.list_user_repayments(current_user["id"], loan_id, status_filter)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error listing repayments: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch repayments")


@router.get("/{loan_id}", status_code=status.HTTP_200_OK)
async def get_loan(loan_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return {"loan": await loan_service.get_loan(loan_id, current_user["id"])}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching loan %s: %s", loan_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch loan")


@router.put("/{loan_id}", status_code=status.HTTP_200_OK)
async def update_loan(loan_id: str, loan_data: LoanUpdate, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await loan_service.update_loan(loan_id, loan_data, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating loan %s: %s", loan_id, e)
        raise HTTPException(status_code=500, detail="Failed to update loan")


@router.delete("/{loan_id}", status_code=status.HTTP_200_OK)
async def delete_loan(loan_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await loan_service.delete_loan(loan_id, current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting loan %s: %s", loan_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete loan")
