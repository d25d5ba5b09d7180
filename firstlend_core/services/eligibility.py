"""Two-stage eligibility gate: KYC verification, then credit score threshold"""

import logging
import time
from typing import List, Optional
from firstlend_core.config import settings
from firstlend_core.domain.eligibility import (
    Checking,
    Eligible,
    EligibilityState,
    InsufficientScore,
    VerifiedPendingScore,
    evaluate_credit_score,
    evaluate_kyc,
    outcome_label,
)
from firstlend_core.domain.models import CreditScore, KYCStatus
from firstlend_core.infrastructure.clients.kyc import KYCClient
from firstlend_core.infrastructure.clients.loans import LoanClient
from firstlend_core.infrastructure.clients.schemas import ApiResponse, not_eligible
from firstlend_core.infrastructure.observability.logging import log_eligibility
from firstlend_core.infrastructure.observability.metrics import record_eligibility


class EligibilityGate:
    """Decides whether loan products may be fetched and applied for"""

    def __init__(self, kyc_client: KYCClient, loan_client: LoanClient, threshold: float | None = None):
        self.kyc_client = kyc_client
        self.loan_client = loan_client
        self.threshold = settings.min_credit_score if threshold is None else threshold
        self.state: EligibilityState = Checking()
        self.history: List[EligibilityState] = []

    @property
    def is_eligible(self) -> bool:
        return isinstance(self.state, Eligible)

    async def check(self) -> EligibilityState:
        """
        Run the gate from the start.

        Flow:
        1. Checking: fetch KYC status
        2. Not verified (or unreadable) -> Unverified, stop
        3. Verified -> fetch credit score
        4. score >= threshold -> Eligible, else InsufficientScore

        Steps are strictly sequential; each read happens once per run.
        """
        start_time = time.time()
        self.history = []
        self._transition(Checking())

        kyc_response = await self.kyc_client.get_kyc_status()
        if kyc_response.success:
            kyc = kyc_response.data if isinstance(kyc_response.data, KYCStatus) else None
            state = evaluate_kyc(kyc)
        else:
            state = evaluate_kyc(None, reason=kyc_response.message)
        self._transition(state)

        if isinstance(state, VerifiedPendingScore):
            score_response = await self.kyc_client.get_credit_score()
            if score_response.success:
                score = score_response.data if isinstance(score_response.data, CreditScore) else None
                state = evaluate_credit_score(state, score, self.threshold)
            else:
                state = evaluate_credit_score(state, None, self.threshold, reason=score_response.message)
            self._transition(state)

        outcome = outcome_label(state)
        record_eligibility(outcome)
        log_eligibility(outcome, self._score_of(state), self.threshold, (time.time() - start_time) * 1000)
        return state

    async def get_loan_types(self, page: int = 1, page_size: Optional[int] = None) -> ApiResponse:
        """Loan catalog, only once the borrower is Eligible"""
        if not self.is_eligible:
            return not_eligible(self._denial_message())
        return await self.loan_client.get_loan_types(page=page, page_size=page_size)

    async def apply_loan(self, **application) -> ApiResponse:
        """Submit an application (see LoanClient.apply_loan), only once the borrower is Eligible"""
        if not self.is_eligible:
            return not_eligible(self._denial_message())
        return await self.loan_client.apply_loan(**application)

    def _transition(self, state: EligibilityState) -> None:
        logging.debug(f"Eligibility state -> {outcome_label(state)}")
        self.state = state
        self.history.append(state)

    def _denial_message(self) -> str:
        reason = getattr(self.state, "reason", None)
        if isinstance(self.state, Checking):
            reason = "Eligibility has not been checked yet"
        return reason or "Not eligible for a loan"

    @staticmethod
    def _score_of(state: EligibilityState) -> Optional[float]:
        if isinstance(state, (Eligible, InsufficientScore)) and state.eligibility is not None:
            return state.eligibility.credit_score
        return None
