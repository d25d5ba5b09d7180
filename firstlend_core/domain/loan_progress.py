"""Payment progress and current amount owed, derived from a loan record"""

import math
from datetime import datetime
from firstlend_core.domain.models import Loan, LoanStatus
from firstlend_core.utils.date_utils import ensure_utc, utc_now

# Billing month approximation used to count installments that have fallen due
DAYS_PER_BILLING_MONTH = 30
SECONDS_PER_BILLING_MONTH = DAYS_PER_BILLING_MONTH * 24 * 60 * 60

AMOUNT_DUE_STATUSES = {LoanStatus.ACTIVE.value, LoanStatus.OVERDUE.value}


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_percent(value: float) -> int:
    # Clamp before rounding so infinities land on the bounds
    return _round_half_up(max(0.0, min(100.0, value)))


def calculate_loan_progress(loan: Loan) -> int:
    """
    Percent of the loan repaid, 0-100.

    Priority:
    1. Backend-provided payment_progress (clamped)
    2. (principal - outstanding_balance) / principal
    3. 0 when neither is usable
    """
    if _is_number(loan.payment_progress) and loan.payment_progress >= 0:
        return _clamp_percent(loan.payment_progress)

    if loan.principal and _is_number(loan.outstanding_balance):
        paid = loan.principal - loan.outstanding_balance
        if paid > 0:
            return _clamp_percent(paid / loan.principal * 100)

    return 0


def calculate_current_amount_due(loan: Loan, now: datetime | None = None) -> float:
    """
    Amount the borrower should have paid by now but hasn't.

    Only active and overdue loans owe anything. Installments fall due every
    DAYS_PER_BILLING_MONTH days from created_at, the first one immediately,
    capped at the loan term. Without created_at the monthly installment is returned.
    """
    if (loan.status or "").lower() not in AMOUNT_DUE_STATUSES:
        return 0

    total_amount = loan.amount_due or 0
    term = max(loan.term or 1, 1)
    monthly_installment = total_amount / term

    if loan.created_at is None:
        return monthly_installment

    now = ensure_utc(now) if now is not None else utc_now()
    elapsed_seconds = (now - ensure_utc(loan.created_at)).total_seconds()
    months_passed = math.floor(elapsed_seconds / SECONDS_PER_BILLING_MONTH)
    installments_due = min(months_passed + 1, term)

    total_should_be_paid = monthly_installment * installments_due
    outstanding = loan.outstanding_balance if _is_number(loan.outstanding_balance) else total_amount
    amount_paid = total_amount - outstanding

    return max(0, total_should_be_paid - amount_paid)
