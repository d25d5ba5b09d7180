"""Eligibility states and the pure transitions between them

Checking -> Unverified
Checking -> VerifiedPendingScore -> Eligible | InsufficientScore
"""

from dataclasses import dataclass
from typing import Optional, Union
from firstlend_core.domain.models import CreditEligibility, CreditScore, KYCStatus

DEFAULT_MIN_CREDIT_SCORE = 50.0


@dataclass(frozen=True)
class Checking:
    """KYC status is being fetched"""


@dataclass(frozen=True)
class Unverified:
    """KYC not verified (or could not be read); credit score is never fetched"""

    kyc: Optional[KYCStatus] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class VerifiedPendingScore:
    """KYC verified, credit score is being fetched"""

    kyc: KYCStatus


@dataclass(frozen=True)
class Eligible:
    """Score meets the threshold; loan products may be fetched and applied for"""

    eligibility: CreditEligibility
    threshold: float


@dataclass(frozen=True)
class InsufficientScore:
    """Score below threshold, or the score could not be read"""

    eligibility: Optional[CreditEligibility]
    threshold: float
    reason: Optional[str] = None


EligibilityState = Union[Checking, Unverified, VerifiedPendingScore, Eligible, InsufficientScore]
TERMINAL_STATES = (Unverified, Eligible, InsufficientScore)


def is_terminal(state: EligibilityState) -> bool:
    return isinstance(state, TERMINAL_STATES)


def evaluate_kyc(kyc: Optional[KYCStatus], reason: Optional[str] = None) -> Union[Unverified, VerifiedPendingScore]:
    """First stage: only a verified KYC record moves on to the score check"""
    if kyc is None or not kyc.is_verified:
        return Unverified(kyc=kyc, reason=reason or "KYC verification is not complete")
    return VerifiedPendingScore(kyc=kyc)


def evaluate_credit_score(
    state: VerifiedPendingScore,
    credit_score: Optional[CreditScore],
    threshold: float = DEFAULT_MIN_CREDIT_SCORE,
    reason: Optional[str] = None,
) -> Union[Eligible, InsufficientScore]:
    """Second stage: score >= threshold is eligible (boundary inclusive)"""
    if credit_score is None:
        return InsufficientScore(
            eligibility=None,
            threshold=threshold,
            reason=reason or "Credit score unavailable",
        )

    eligibility = CreditEligibility(
        bvn=state.kyc.bvn,
        nin=state.kyc.nin,
        verified=state.kyc.is_verified,
        credit_score=credit_score.score,
        rating=credit_score.rating,
    )

    if credit_score.score >= threshold:
        return Eligible(eligibility=eligibility, threshold=threshold)

    return InsufficientScore(
        eligibility=eligibility,
        threshold=threshold,
        reason=f"Credit score {credit_score.score:g} is below the minimum of {threshold:g}",
    )


def outcome_label(state: EligibilityState) -> str:
    """Snake-case name of a state, used for logs and metrics"""
    return {
        Checking: "checking",
        Unverified: "unverified",
        VerifiedPendingScore: "verified_pending_score",
        Eligible: "eligible",
        InsufficientScore: "insufficient_score",
    }[type(state)]
