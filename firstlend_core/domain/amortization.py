"""Fixed-rate reducing-balance loan math"""

from datetime import date
from typing import List
from firstlend_core.domain.models import AmortizationResult, ScheduleEntry
from firstlend_core.domain.exceptions import InvalidLoanTermsError
from firstlend_core.utils.date_utils import add_months


def monthly_rate(annual_rate_percent: float) -> float:
    return annual_rate_percent / 100 / 12


def validate_loan_terms(principal: float, annual_rate_percent: float, term_months: int) -> None:
    """
    Check inputs before handing them to the engine.

    Raises:
        InvalidLoanTermsError: principal <= 0, negative rate, or term not a whole number >= 1
    """
    if principal is None or principal <= 0:
        raise InvalidLoanTermsError(f"Principal must be positive, got {principal}")
    if annual_rate_percent is None or annual_rate_percent < 0:
        raise InvalidLoanTermsError(f"Interest rate cannot be negative, got {annual_rate_percent}")
    if isinstance(term_months, bool) or not isinstance(term_months, int) or term_months < 1:
        raise InvalidLoanTermsError(f"Term must be a whole number of months >= 1, got {term_months}")


def compute_amortization(principal: float, annual_rate_percent: float, term_months: int) -> AmortizationResult:
    """
    Monthly payment and totals for a fixed-rate loan.

    Standard reducing-balance formula:
        payment = P * r * (1 + r)^n / ((1 + r)^n - 1),  r = annual% / 100 / 12

    A zero rate is its own branch (payment = P / n) so the formula never divides 0 by 0.
    Values are returned at full precision; rounding for display is the caller's job.
    Inputs are assumed valid, see validate_loan_terms.

    Example:
        1,000,000 at 15% over 12 months -> monthly_payment ~= 90,258.3
    """
    r = monthly_rate(annual_rate_percent)

    if r > 0:
        growth = (1 + r) ** term_months
        monthly_payment = principal * r * growth / (growth - 1)
    else:
        monthly_payment = principal / term_months

    total_payment = monthly_payment * term_months

    return AmortizationResult(
        monthly_payment=monthly_payment,
        total_payment=total_payment,
        total_interest=total_payment - principal,
    )


def generate_amortization_schedule(
    principal: float,
    annual_rate_percent: float,
    term_months: int,
    start_date: date | None = None,
) -> List[ScheduleEntry]:
    """
    Break the loan into monthly rows of interest and principal.

    - One row per month, due one calendar month apart
    - First due date is one month after start_date (default: today)
    - Last row pays off whatever balance is left, so the schedule ends at exactly 0
    """
    if start_date is None:
        start_date = date.today()

    r = monthly_rate(annual_rate_percent)
    payment = compute_amortization(principal, annual_rate_percent, term_months).monthly_payment

    schedule = []
    balance = principal
    for period in range(1, term_months + 1):
        interest = balance * r

        if period == term_months:
            # Final row absorbs float drift
            principal_part = balance
            row_payment = balance + interest
        else:
            principal_part = payment - interest
            row_payment = payment

        balance -= principal_part
        schedule.append(
            ScheduleEntry(
                period=period,
                due_date=add_months(start_date, period),
                payment=row_payment,
                interest=interest,
                principal=principal_part,
                remaining_balance=0.0 if period == term_months else balance,
            )
        )

    return schedule
