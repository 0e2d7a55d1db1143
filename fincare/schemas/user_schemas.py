from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any


class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1, description="First name of the customer")
    last_name: str = Field(..., min_length=1, description="Last name of the customer")
    other_name: Optional[str] = Field(default="", description="Middle or other name")
    phone: str = Field(..., min_length=1, description="Phone number of the customer")
    email: EmailStr = Field(..., description="Email address of the customer")
    password: str = Field(..., description="Password for the account")
    confirm_password: str = Field(..., description="Must match password")


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str = Field(..., description="Unique identifier for the user")
    email: EmailStr = Field(..., description="Email address of the user")
    first_name: str
    last_name: str
    other_name: Optional[str] = ""
    phone: Optional[str] = None
    savings_balance: float = 0
    total_savings: float = 0
    total_investment: float = 0
    total_loans: float = 0
    total_auctions: int = 0
    membership_status: str = "none"
    message: Optional[str] = None


class Token(BaseModel):
    access_token: str = Field(..., description="Access token for the user")
    token_type: str = Field(default="bearer", description="Type of the token")


class LoginResponse(Token):
    user: Dict[str, Any]


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class AdminCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    password: str
    role: str = Field(default="admin", pattern="^(admin|super_admin)$")
    permissions: List[str] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    other_name: Optional[str] = None
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    gender: Optional[str] = None
    account_number: Optional[str] = None
    bank: Optional[str] = None


class CustomerUpdate(ProfileUpdate):
    email: Optional[EmailStr] = None


class AdminUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[str] = Field(None, pattern="^(admin|super_admin)$")
    permissions: Optional[List[str]] = None


class AccountAction(BaseModel):
    action: str = Field(..., pattern="^(suspend|reactivate)$")
