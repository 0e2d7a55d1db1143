from .user_schemas import (
    UserCreate,
    UserLogin,
    UserResponse,
    Token,
    LoginResponse,
    AdminLogin,
    AdminCreate,
    AdminUpdate,
    ProfileUpdate,
    CustomerUpdate,
    AccountAction,
)
from .loan_schema import (
    LoanStatusEnum,
    RepaymentStatusEnum,
    LoanAdminActionEnum,
    LoanCreate,
    LoanUpdate,
    AdminLoanPatch,
    ProcessingFeeRequest,
    RepaymentConfirmRequest,
)
from .auction_schema import BidTypeEnum, AuctionStatusEnum, AuctionCreate, AuctionUpdate, BidCreate
from .withdrawal_schema import WithdrawalStatusEnum, WithdrawalCreate, WithdrawalUpdate, AdminWithdrawalUpdate
from .savings_schema import AllocationIn, SavingCreate, SavingUpdate, SavingVerifyRequest, AdminSavingCreate, AdminSavingPatch
from .investment_schema import InvestmentPlanCreate, InvestmentPlanUpdate, InvestmentCreate, InvestmentUpdate
from .membership_schema import MembershipPaymentCreate, MembershipReview
from .settings_schema import LoanSettingsUpdate, TransactionStatusUpdate
