import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from fincare.core import settings as app_settings
from fincare.database.models import LoanSettings, SettingsHistory, LOAN_SETTINGS_TYPE
from fincare.helpers.response_builder import serialize_documents, pagination_meta
from fincare.schemas import LoanSettingsUpdate

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = ("interest_rate", "processing_fee_rate", "min_loan_amount", "max_loan_amount", "default_duration")


def default_loan_settings() -> Dict[str, Any]:
    return {
        "interest_rate": app_settings.DEFAULT_INTEREST_RATE,
        "processing_fee_rate": app_settings.DEFAULT_PROCESSING_FEE_RATE,
        "min_loan_amount": app_settings.DEFAULT_MIN_LOAN_AMOUNT,
        "max_loan_amount": app_settings.DEFAULT_MAX_LOAN_AMOUNT,
        "default_duration": app_settings.DEFAULT_LOAN_DURATION,
    }


class SettingsService:
    async def _stored(self) -> Optional[LoanSettings]:
        return await LoanSettings.find_one({"type": LOAN_SETTINGS_TYPE})

    # Loan pricing in percent; falls back to configured defaults for unset values
    async def get_loan_settings(self) -> Dict[str, Any]:
        result = default_loan_settings()
        stored = await self._stored()
        if stored:
            for field in SETTINGS_FIELDS:
                value = getattr(stored, field)
                if value is not None:
                    result[field] = value
            result["updated_at"] = stored.updated_at
            result["updated_by"] = stored.updated_by
        return result

    async def update_loan_settings(self, data: LoanSettingsUpdate, updated_by: Optional[str] = None) -> Dict[str, Any]:
        if data.interest_rate is None or data.interest_rate <= 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Valid interest rate is required"
            )
        if (
            data.min_loan_amount is not None
            and data.max_loan_amount is not None
            and data.min_loan_amount > data.max_loan_amount
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Minimum loan amount cannot exceed maximum loan amount"
            )

        stored = await self._stored()
        previous = {f: getattr(stored, f) for f in SETTINGS_FIELDS} if stored else None
        new_values = data.model_dump()
        now = datetime.utcnow()

        if stored:
            for field, value in new_values.items():
                setattr(stored, field, value)
            stored.updated_by = updated_by
            stored.updated_at = now
            await stored.save()
        else:
            stored = LoanSettings(**new_values, updated_by=updated_by, created_at=now, updated_at=now)
            await stored.insert()

        await SettingsHistory(
            previous_settings=previous,
            new_settings=new_values,
            updated_by=updated_by,
            updated_at=now,
        ).insert()

        logger.info("Loan settings updated by %s: %s", updated_by, new_values)
        return await self.get_loan_settings()

    async def get_history(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        skip = (page - 1) * limit
        total = await SettingsHistory.find({}).count()
        docs = await SettingsHistory.find({}).sort("-updated_at").skip(skip).limit(limit).to_list()
        return {"history": serialize_documents(docs), "pagination": pagination_meta(total, page, limit)}


settings_service = SettingsService()
