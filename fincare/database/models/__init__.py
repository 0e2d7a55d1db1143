from .user_model import User, AdminUser
from .loan_model import Loan, LoanDetails, LoanPayment, BorrowerDetails, GuarantorDetails
from .loan_repayment_model import LoanRepayment
from .transaction_model import Transaction
from .auction_model import Auction, Bid
from .withdrawal_model import Withdrawal
from .investment_model import InvestmentPlan, Investment
from .saving_model import Saving, SavingAllocation
from .membership_model import MembershipPayment
from .settings_model import LoanSettings, SettingsHistory, LOAN_SETTINGS_TYPE
from .audit_log_model import AuditLog

DOCUMENT_MODELS = [
    User,
    AdminUser,
    Loan,
    LoanRepayment,
    Transaction,
    Auction,
    Bid,
    Withdrawal,
    InvestmentPlan,
    Investment,
    Saving,
    MembershipPayment,
    LoanSettings,
    SettingsHistory,
    AuditLog,
]
