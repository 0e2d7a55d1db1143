"""Backfill loan_details on loans stored before pricing was precomputed.

Paid amounts recorded in the loan's payment history are carried over so the
remaining balance stays correct. Run with --dry-run to only count.
"""
import asyncio
import logging
import sys

from fincare.database.connection import init_db
from fincare.database.models import Loan
from fincare.services.loan_service import loan_service

logger = logging.getLogger(__name__)


async def backfill(dry_run: bool = False) -> int:
    loans = await Loan.find({"loan_details": None}).to_list()
    logger.info("%d loans without loan_details", len(loans))
    if dry_run:
        return len(loans)

    for loan in loans:
        details = await loan_service.terms_for(loan)
        paid = sum(p.amount for p in loan.payments if p.status == "approved")
        details.paid_amount = paid
        details.remaining_balance = max(0, details.total_loan_amount - paid)
        details.processing_fee_paid = loan.status in ("active", "payment_pending", "completed")
        loan.loan_details = details
        await loan.save()
        logger.info("Loan %s: total %.2f, remaining %.2f", loan.id, details.total_loan_amount, details.remaining_balance)
    return len(loans)


async def main(dry_run: bool) -> None:
    await init_db()
    count = await backfill(dry_run)
    logger.info("%s %d loans", "Would update" if dry_run else "Updated", count)


if __name__ == "__main__":
    asyncio.run(main("--dry-run" in sys.argv))
