"""Domain models - pure Python dataclasses representing lending entities"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional


class UserType(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class LoanStatus(str, Enum):
    """Known loan statuses; the backend may send others"""

    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    OVERDUE = "overdue"
    PAID = "paid"
    REJECTED = "rejected"


@dataclass
class UserProfile:
    """Authenticated user as stored alongside the tokens"""

    user_id: str
    email: str
    full_name: str
    user_type: str  # "customer" or "admin"
    status: str
    phone: Optional[str] = None
    email_verified: Optional[bool] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the backend's camelCase keys, dropping unset optionals"""
        data = {
            "userId": self.user_id,
            "email": self.email,
            "fullName": self.full_name,
            "userType": self.user_type,
            "status": self.status,
            "phone": self.phone,
            "emailVerified": self.email_verified,
            "createdAt": self.created_at,
        }
        return {key: value for key, value in data.items() if value is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            user_id=str(data["userId"]),
            email=data["email"],
            full_name=data.get("fullName", ""),
            user_type=str(data.get("userType", UserType.CUSTOMER.value)),
            status=data.get("status", ""),
            phone=data.get("phone"),
            email_verified=data.get("emailVerified"),
            created_at=data.get("createdAt"),
        )


@dataclass
class Session:
    """Token pair plus the profile they were issued for"""

    access_token: str
    refresh_token: Optional[str]
    user: UserProfile


@dataclass
class Loan:
    """Loan record as read from the backend; every numeric field may be missing"""

    id: Optional[str] = None
    principal: Optional[float] = None
    rate: Optional[float] = None  # annual %
    term: Optional[int] = None  # months
    outstanding_balance: Optional[float] = None
    amount_due: Optional[float] = None
    payment_progress: Optional[float] = None  # 0-100
    status: str = LoanStatus.PENDING.value
    created_at: Optional[datetime] = None
    next_payment_date: Optional[datetime] = None
    loan_type_name: Optional[str] = None
    purpose: Optional[str] = None


@dataclass
class LoanType:
    """Loan product offered to eligible borrowers"""

    id: str
    name: str
    interest_rate: float
    min_amount: float = 0.0
    max_amount: float = 0.0
    min_duration: int = 1
    max_duration: int = 1
    is_active: bool = True
    description: Optional[str] = None


@dataclass
class KYCStatus:
    """Identity verification state for the current user"""

    is_verified: bool
    bvn: str = ""
    nin: str = ""
    full_name: str = ""
    email: str = ""
    phone_number: str = ""
    verification_date: Optional[str] = None


@dataclass
class CreditScore:
    """Credit score report from the backend"""

    score: float
    rating: str
    total_accounts: int = 0
    calculated_at: Optional[str] = None


@dataclass
class CreditEligibility:
    """KYC and credit score combined for one eligibility check"""

    bvn: str
    nin: str
    verified: bool
    credit_score: float
    rating: str


@dataclass
class AmortizationResult:
    """Full-precision repayment totals for a fixed-rate loan"""

    monthly_payment: float
    total_payment: float
    total_interest: float


@dataclass
class ScheduleEntry:
    """Single month in an amortization schedule"""

    period: int
    due_date: date
    payment: float
    interest: float
    principal: float
    remaining_balance: float
