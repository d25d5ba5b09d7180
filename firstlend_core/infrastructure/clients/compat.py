"""Field-compatibility mapping for loosely typed backend records

The backend is not consistent about field names (a loan type may carry
`interestRate` or `interest`, user types arrive as "Customer"). Every
record is normalized here, once, as it crosses the gateway boundary.
Each alias table maps a canonical field to the backend keys that may hold
it, in priority order.
"""

import math
from typing import Any, Dict, Mapping, Optional, Tuple
from firstlend_core.domain.models import CreditScore, KYCStatus, Loan, LoanType, UserProfile
from firstlend_core.utils.date_utils import parse_timestamp

FieldAliases = Mapping[str, Tuple[str, ...]]

USER_FIELDS: FieldAliases = {
    "user_id": ("userId", "id"),
    "email": ("email",),
    "full_name": ("fullName", "name"),
    "user_type": ("userType", "role"),
    "status": ("status",),
    "phone": ("phone", "phoneNumber"),
    "email_verified": ("emailVerified",),
    "created_at": ("createdAt",),
}

KYC_FIELDS: FieldAliases = {
    "is_verified": ("isVerified", "kycVerified", "verified"),
    "bvn": ("bvn",),
    "nin": ("nin",),
    "full_name": ("fullName",),
    "email": ("email",),
    "phone_number": ("phoneNumber", "phone"),
    "verification_date": ("verificationDate", "kycVerificationDate"),
}

CREDIT_SCORE_FIELDS: FieldAliases = {
    "score": ("score", "creditScore", "totalScore"),
    "rating": ("rating",),
    "total_accounts": ("totalAccounts",),
    "calculated_at": ("calculatedAt",),
}

LOAN_FIELDS: FieldAliases = {
    "id": ("id", "loanId"),
    "principal": ("principal", "amount"),
    "rate": ("rate", "interestRate", "loanTypeInterest"),
    "term": ("term", "duration"),
    "outstanding_balance": ("outstandingBalance",),
    "amount_due": ("amountDue",),
    "payment_progress": ("paymentProgress",),
    "status": ("status",),
    "created_at": ("createdAt",),
    "next_payment_date": ("nextPaymentDate",),
    "loan_type_name": ("loanTypeName",),
    "purpose": ("purpose",),
}

LOAN_TYPE_FIELDS: FieldAliases = {
    "id": ("id", "loanTypeId"),
    "name": ("name", "loanTypeName"),
    "description": ("description",),
    "interest_rate": ("interestRate", "interest", "rate"),
    "min_amount": ("minAmount",),
    "max_amount": ("maxAmount",),
    "min_duration": ("minDuration", "minTerm"),
    "max_duration": ("maxDuration", "maxTerm"),
    "is_active": ("isActive", "active"),
}


def normalize_fields(record: Mapping[str, Any], aliases: FieldAliases) -> Dict[str, Any]:
    """Pick the first non-null backend key for each canonical field; unknown fields map to None"""
    normalized = {}
    for field, keys in aliases.items():
        normalized[field] = next((record[key] for key in keys if record.get(key) is not None), None)
    return normalized


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def to_user_profile(record: Mapping[str, Any]) -> UserProfile:
    fields = normalize_fields(record, USER_FIELDS)
    return UserProfile(
        user_id=str(fields["user_id"] or ""),
        email=fields["email"] or "",
        full_name=fields["full_name"] or "",
        user_type=str(fields["user_type"] or "customer").lower(),
        status=str(fields["status"] or ""),
        phone=fields["phone"],
        email_verified=fields["email_verified"],
        created_at=fields["created_at"],
    )


def to_kyc_status(record: Mapping[str, Any]) -> KYCStatus:
    fields = normalize_fields(record, KYC_FIELDS)
    return KYCStatus(
        is_verified=fields["is_verified"] is True,
        bvn=fields["bvn"] or "",
        nin=fields["nin"] or "",
        full_name=fields["full_name"] or "",
        email=fields["email"] or "",
        phone_number=fields["phone_number"] or "",
        verification_date=fields["verification_date"],
    )


def to_credit_score(record: Mapping[str, Any]) -> Optional[CreditScore]:
    """None when the record carries no usable score"""
    fields = normalize_fields(record, CREDIT_SCORE_FIELDS)
    score = _to_float(fields["score"])
    if score is None:
        return None
    return CreditScore(
        score=score,
        rating=fields["rating"] or "",
        total_accounts=_to_int(fields["total_accounts"]) or 0,
        calculated_at=fields["calculated_at"],
    )


def to_loan(record: Mapping[str, Any]) -> Loan:
    fields = normalize_fields(record, LOAN_FIELDS)
    return Loan(
        id=str(fields["id"]) if fields["id"] is not None else None,
        principal=_to_float(fields["principal"]),
        rate=_to_float(fields["rate"]),
        term=_to_int(fields["term"]),
        outstanding_balance=_to_float(fields["outstanding_balance"]),
        amount_due=_to_float(fields["amount_due"]),
        payment_progress=_to_float(fields["payment_progress"]),
        status=str(fields["status"] or "").lower(),
        created_at=parse_timestamp(fields["created_at"]),
        next_payment_date=parse_timestamp(fields["next_payment_date"]),
        loan_type_name=fields["loan_type_name"],
        purpose=fields["purpose"],
    )


def to_loan_type(record: Mapping[str, Any]) -> LoanType:
    fields = normalize_fields(record, LOAN_TYPE_FIELDS)
    return LoanType(
        id=str(fields["id"] or ""),
        name=fields["name"] or "",
        description=fields["description"],
        interest_rate=_to_float(fields["interest_rate"]) or 0.0,
        min_amount=_to_float(fields["min_amount"]) or 0.0,
        max_amount=_to_float(fields["max_amount"]) or 0.0,
        min_duration=_to_int(fields["min_duration"]) or 1,
        max_duration=_to_int(fields["max_duration"]) or 1,
        is_active=fields["is_active"] is not False,
    )
