"""Loan repayment endpoints"""

from typing import Optional
from firstlend_core.infrastructure.clients.gateway import SessionGateway
from firstlend_core.infrastructure.clients.schemas import ApiResponse


class PaymentClient:
    """Client for payment initialization, verification and history"""

    def __init__(self, gateway: SessionGateway):
        self.gateway = gateway

    async def initialize_payment(
        self,
        loan_id: str,
        amount: float,
        callback_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> ApiResponse:
        """Start a payment; data carries the provider's authorization URL and reference"""
        payload = {"loanId": loan_id, "amount": amount}
        if callback_url:
            payload["callbackUrl"] = callback_url
        if cancel_url:
            payload["cancelUrl"] = cancel_url
        return await self.gateway.request("POST", "/payments/initialize", json=payload, requires_auth=True)

    async def verify_payment(self, reference: str) -> ApiResponse:
        return await self.gateway.request("GET", f"/payments/verify/{reference}", requires_auth=True)

    async def get_payment_history(
        self,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        loan_id: Optional[str] = None,
    ) -> ApiResponse:
        return await self.gateway.request(
            "GET",
            "/payment-history",
            params={"page": page, "pageSize": page_size, "loanId": loan_id},
            requires_auth=True,
        )
