from beanie import Document
from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional, List


class User(Document):
    email: EmailStr = Field(..., description="Email address of the customer")
    first_name: str = Field(..., description="First name of the customer")
    last_name: str = Field(..., description="Last name of the customer")
    other_name: str = Field(default="", description="Middle or other name")
    phone: str = Field(..., description="Phone number of the customer")
    hashed_password: str = Field(..., description="Hashed password for the customer account")
    is_active: bool = Field(default=True, description="Indicates if the account is active")
    address: Optional[str] = None
    gender: Optional[str] = None
    account_number: Optional[str] = Field(None, description="Payout bank account number")
    bank: Optional[str] = None

    # Running totals, mutated with $inc by the financial services
    savings_balance: float = Field(default=0, description="Liquid, withdrawable funds")
    total_savings: float = Field(default=0, description="Total ever credited to savings")
    total_investment: float = Field(default=0, description="Sum of held investment amounts")
    total_loans: float = Field(default=0, description="Sum of approved loan principals")
    total_auctions: int = Field(default=0, description="Number of auctions created")

    membership_status: str = Field(default="none", description="none, pending, approved, rejected or suspended")
    membership_application_date: Optional[datetime] = None
    membership_approval_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, description="Timestamp when the user was created")
    updated_at: Optional[datetime] = Field(None, description="Timestamp when the user was last updated")

    class Settings:
        name = "users"


class AdminUser(Document):
    email: EmailStr = Field(..., description="Email address of the admin")
    full_name: str = Field(..., description="Full name of the admin")
    hashed_password: str = Field(..., description="Hashed password for the admin account")
    role: str = Field(default="admin", description="admin or super_admin")
    permissions: List[str] = Field(default_factory=list)
    is_active: bool = Field(default=True, description="Deactivated admins cannot log in")
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    class Settings:
        name = "admin_users"
