"""Client factory - the surface UI code talks to"""

from datetime import date, datetime
from typing import Callable, List, Optional
import httpx

from firstlend_core.config import Settings, settings as default_settings
from firstlend_core.domain.amortization import compute_amortization, generate_amortization_schedule
from firstlend_core.domain.eligibility import EligibilityState
from firstlend_core.domain.loan_progress import calculate_current_amount_due, calculate_loan_progress
from firstlend_core.domain.models import AmortizationResult, Loan, ScheduleEntry, Session, UserType
from firstlend_core.infrastructure.clients.auth import AuthClient
from firstlend_core.infrastructure.clients.gateway import SessionGateway
from firstlend_core.infrastructure.clients.kyc import KYCClient
from firstlend_core.infrastructure.clients.loans import LoanClient
from firstlend_core.infrastructure.clients.payments import PaymentClient
from firstlend_core.infrastructure.clients.schemas import ApiResponse
from firstlend_core.infrastructure.database.credential_store import CredentialStore, SessionListener
from firstlend_core.infrastructure.observability.logging import setup_logging
from firstlend_core.services.eligibility import EligibilityGate


class LendingClient:
    """Session, loan math and eligibility for one borrower or staff member"""

    def __init__(
        self,
        store: CredentialStore,
        gateway: SessionGateway,
        min_credit_score: float | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.auth = AuthClient(gateway)
        self.kyc = KYCClient(gateway)
        self.loans = LoanClient(gateway)
        self.payments = PaymentClient(gateway)
        self.eligibility = EligibilityGate(self.kyc, self.loans, threshold=min_credit_score)

    # Session

    @property
    def session(self) -> Optional[Session]:
        return self.store.load()

    def is_authenticated(self) -> bool:
        return self.store.is_authenticated()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    async def login(self, email_or_username: str, password: str, user_type: str = UserType.CUSTOMER.value) -> ApiResponse:
        return await self.auth.login(email_or_username, password, user_type)

    async def logout(self) -> ApiResponse:
        return await self.auth.logout()

    async def get_current_user(self) -> ApiResponse:
        return await self.auth.get_current_user()

    async def refresh_user(self) -> ApiResponse:
        return await self.auth.refresh_user()

    async def register(self, full_name: str, email: str, phone: str, password: str, address: Optional[str] = None) -> ApiResponse:
        return await self.auth.register(full_name, email, phone, password, address=address)

    async def forgot_password(self, email: str) -> ApiResponse:
        return await self.auth.forgot_password(email)

    async def reset_password(self, token: str, new_password: str) -> ApiResponse:
        return await self.auth.reset_password(token, new_password)

    async def change_password(self, current_password: str, new_password: str) -> ApiResponse:
        return await self.auth.change_password(current_password, new_password)

    async def update_profile(self, **fields) -> ApiResponse:
        return await self.auth.update_profile(**fields)

    # Loan math

    @staticmethod
    def compute_amortization(principal: float, annual_rate_percent: float, term_months: int) -> AmortizationResult:
        return compute_amortization(principal, annual_rate_percent, term_months)

    @staticmethod
    def amortization_schedule(
        principal: float,
        annual_rate_percent: float,
        term_months: int,
        start_date: date | None = None,
    ) -> List[ScheduleEntry]:
        return generate_amortization_schedule(principal, annual_rate_percent, term_months, start_date=start_date)

    @staticmethod
    def calculate_loan_progress(loan: Loan) -> int:
        return calculate_loan_progress(loan)

    @staticmethod
    def calculate_current_amount_due(loan: Loan, now: datetime | None = None) -> float:
        return calculate_current_amount_due(loan, now=now)

    # Eligibility

    async def check_eligibility(self) -> EligibilityState:
        return await self.eligibility.check()

    def close(self) -> None:
        self.store.close()


def create_client(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    store: CredentialStore | None = None,
    configure_logging: bool = False,
) -> LendingClient:
    """Wire store, gateway and endpoint clients from settings"""
    settings = settings or default_settings
    if configure_logging:
        setup_logging(settings.log_level)

    store = store or CredentialStore(settings.credential_store_url)
    gateway = SessionGateway(
        store,
        base_url=settings.api_base_url,
        timeout=settings.http_timeout_seconds,
        transport=transport,
        coalesce_refresh=settings.coalesce_refresh,
    )
    return LendingClient(store, gateway, min_credit_score=settings.min_credit_score)
