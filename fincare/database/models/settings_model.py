from beanie import Document
from pydantic import Field
from typing import Optional, Dict, Any
from datetime import datetime

LOAN_SETTINGS_TYPE = "loan_settings"


class LoanSettings(Document):
    type: str = Field(default=LOAN_SETTINGS_TYPE)
    interest_rate: float = Field(..., description="Annual interest rate in percent")
    processing_fee_rate: float = Field(..., description="Processing fee in percent of principal")
    min_loan_amount: Optional[float] = None
    max_loan_amount: Optional[float] = None
    default_duration: Optional[int] = None
    updated_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "settings"


class SettingsHistory(Document):
    type: str = "loan_settings_update"
    previous_settings: Optional[Dict[str, Any]] = None
    new_settings: Dict[str, Any]
    updated_by: Optional[str] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "settings_history"
