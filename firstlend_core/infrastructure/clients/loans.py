"""Loan product and loan record endpoints"""

from typing import Optional
from firstlend_core.config import settings
from firstlend_core.infrastructure.clients.compat import to_loan, to_loan_type
from firstlend_core.infrastructure.clients.gateway import SessionGateway
from firstlend_core.infrastructure.clients.schemas import ApiResponse


class LoanClient:
    """Client for /loantype and /loan endpoints"""

    def __init__(self, gateway: SessionGateway):
        self.gateway = gateway

    async def get_loan_types(self, page: int = 1, page_size: Optional[int] = None) -> ApiResponse:
        """Data is a list of LoanType on success"""
        response = await self.gateway.request(
            "GET",
            "/loantype",
            params={"page": page, "pageSize": page_size or settings.loan_types_page_size},
            requires_auth=True,
        )
        if response.success and isinstance(response.data, list):
            return response.with_data([to_loan_type(item) for item in response.data if isinstance(item, dict)])
        return response

    async def apply_loan(
        self,
        loan_type_name: str,
        principal: float,
        term: int,
        employment_status: str,
        monthly_income: float,
        purpose: str,
        rate: Optional[float] = None,
    ) -> ApiResponse:
        """Submit a loan application; data is the created Loan on success"""
        payload = {
            "loanTypeName": loan_type_name,
            "principal": principal,
            "term": term,
            "employmentStatus": employment_status,
            "monthlyIncome": monthly_income,
            "purpose": purpose,
        }
        if rate is not None:
            payload["rate"] = rate

        response = await self.gateway.request("POST", "/loan", json=payload, requires_auth=True)
        if response.success and isinstance(response.data, dict):
            return response.with_data(to_loan(response.data))
        return response

    async def get_my_loans(self, page: int = 1, page_size: Optional[int] = None) -> ApiResponse:
        """Data is a list of Loan on success"""
        response = await self.gateway.request(
            "GET",
            "/Loan/my-loans",
            params={"page": page, "pageSize": page_size or settings.my_loans_page_size},
            requires_auth=True,
        )
        if response.success and isinstance(response.data, list):
            return response.with_data([to_loan(item) for item in response.data if isinstance(item, dict)])
        return response

    async def get_loan_details(self, loan_id: str) -> ApiResponse:
        response = await self.gateway.request("GET", f"/loan/{loan_id}", requires_auth=True)
        if response.success and isinstance(response.data, dict):
            return response.with_data(to_loan(response.data))
        return response
