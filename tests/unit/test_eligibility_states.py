"""Unit tests for eligibility state transitions"""

import pytest
from firstlend_core.domain.eligibility import (
    Checking,
    Eligible,
    InsufficientScore,
    Unverified,
    VerifiedPendingScore,
    evaluate_credit_score,
    evaluate_kyc,
    is_terminal,
    outcome_label,
)
from firstlend_core.domain.models import CreditScore, KYCStatus


@pytest.fixture
def verified_kyc() -> KYCStatus:
    return KYCStatus(is_verified=True, bvn="22212345678", nin="12345678901", full_name="Ada Obi")


def test_unverified_kyc_stops_the_gate():
    state = evaluate_kyc(KYCStatus(is_verified=False))

    assert isinstance(state, Unverified)
    assert is_terminal(state)


def test_missing_kyc_is_unverified_with_reason():
    state = evaluate_kyc(None, reason="Network error. Please try again.")

    assert isinstance(state, Unverified)
    assert state.kyc is None
    assert state.reason == "Network error. Please try again."


def test_verified_kyc_moves_to_score_check(verified_kyc):
    state = evaluate_kyc(verified_kyc)

    assert isinstance(state, VerifiedPendingScore)
    assert not is_terminal(state)


@pytest.mark.parametrize(
    "score, expected",
    [(49, InsufficientScore), (49.99, InsufficientScore), (50, Eligible), (50.0, Eligible), (88, Eligible), (0, InsufficientScore)],
)
def test_score_threshold_is_inclusive(verified_kyc, score, expected):
    state = evaluate_credit_score(VerifiedPendingScore(kyc=verified_kyc), CreditScore(score=score, rating="Fair"))
    assert isinstance(state, expected)


def test_eligible_carries_combined_eligibility(verified_kyc):
    state = evaluate_credit_score(VerifiedPendingScore(kyc=verified_kyc), CreditScore(score=72, rating="Good"))

    assert state.eligibility.bvn == "22212345678"
    assert state.eligibility.nin == "12345678901"
    assert state.eligibility.verified is True
    assert state.eligibility.credit_score == 72
    assert state.eligibility.rating == "Good"
    assert state.threshold == 50


def test_insufficient_score_explains_shortfall(verified_kyc):
    state = evaluate_credit_score(VerifiedPendingScore(kyc=verified_kyc), CreditScore(score=49, rating="Poor"))

    assert state.eligibility.credit_score == 49
    assert "below the minimum of 50" in state.reason


def test_missing_score_fails_closed(verified_kyc):
    state = evaluate_credit_score(VerifiedPendingScore(kyc=verified_kyc), None, reason="No credit history")

    assert isinstance(state, InsufficientScore)
    assert state.eligibility is None
    assert state.reason == "No credit history"


def test_custom_threshold(verified_kyc):
    pending = VerifiedPendingScore(kyc=verified_kyc)
    assert isinstance(evaluate_credit_score(pending, CreditScore(score=60, rating="Fair"), threshold=65), InsufficientScore)
    assert isinstance(evaluate_credit_score(pending, CreditScore(score=65, rating="Fair"), threshold=65), Eligible)


def test_outcome_labels_cover_every_state(verified_kyc):
    assert outcome_label(Checking()) == "checking"
    assert outcome_label(Unverified()) == "unverified"
    assert outcome_label(VerifiedPendingScore(kyc=verified_kyc)) == "verified_pending_score"
    assert outcome_label(InsufficientScore(eligibility=None, threshold=50)) == "insufficient_score"
    assert not is_terminal(Checking())
