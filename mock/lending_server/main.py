"""Mock lending backend for local development and end-to-end tests

Run with: uvicorn mock.lending_server.main:app --port 5128
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from firstlend_core.infrastructure.observability.logging import setup_logging


class LoginRequest(BaseModel):
    emailOrUsername: str
    password: str
    userType: str = "customer"


class RefreshRequest(BaseModel):
    refreshToken: str = ""


class LoanApplication(BaseModel):
    loanTypeName: str
    principal: float
    term: int
    employmentStatus: str
    monthlyIncome: float
    purpose: str
    rate: Optional[float] = None


@dataclass
class MockBackendState:
    """In-memory backend data; tests poke at it directly"""

    kyc_verified: bool = True
    credit_score: Optional[float] = 72.0
    users: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    access_tokens: Dict[str, str] = field(default_factory=dict)  # token -> email
    refresh_tokens: Dict[str, str] = field(default_factory=dict)
    revoked: Set[str] = field(default_factory=set)
    loans: List[Dict[str, Any]] = field(default_factory=list)
    calls: Dict[str, int] = field(default_factory=dict)

    def issue_tokens(self, email: str) -> Dict[str, str]:
        access, refresh = secrets.token_urlsafe(24), secrets.token_urlsafe(24)
        self.access_tokens[access] = email
        self.refresh_tokens[refresh] = email
        return {"token": access, "refreshToken": refresh}

    def expire_access_tokens(self) -> None:
        """Simulate every access token reaching its expiry"""
        self.access_tokens.clear()

    def count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1


LOAN_TYPES = [
    # Mixed field names on purpose: the real backend is not consistent either
    {"id": "lt-personal", "name": "Personal Loan", "interestRate": 15.0, "minAmount": 50_000,
     "maxAmount": 2_000_000, "minDuration": 3, "maxDuration": 36, "isActive": True},
    {"id": "lt-sme", "name": "SME Business Loan", "interest": 12.5, "minAmount": 500_000,
     "maxAmount": 10_000_000, "minDuration": 6, "maxDuration": 60, "isActive": True},
]


def _envelope(data: Any = None, message: str = "Success") -> Dict[str, Any]:
    return {"success": True, "message": message, "data": data, "code": None, "errors": None}


def create_mock_app(kyc_verified: bool = True, credit_score: Optional[float] = 72.0) -> FastAPI:
    """Create a mock backend with one customer: ada@example.com / correct-horse"""
    app = FastAPI(title="Mock Lending Backend", version="1.0.0")
    state = MockBackendState(kyc_verified=kyc_verified, credit_score=credit_score)
    state.users["ada@example.com"] = {
        "password": "correct-horse",
        "profile": {
            "userId": "u-1001",
            "email": "ada@example.com",
            "fullName": "Ada Obi",
            "userType": "Customer",
            "status": "Active",
        },
    }
    state.loans.append({
        "id": "ln-1", "loanTypeName": "Personal Loan", "status": "Active", "principal": 100_000,
        "rate": 15.0, "term": 12, "outstandingBalance": 40_000, "amountDue": 108_310,
        "createdAt": (datetime.now(timezone.utc) - timedelta(days=45)).isoformat(),
    })
    app.state.backend = state

    @app.exception_handler(HTTPException)
    async def envelope_errors(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail), "code": "UNAUTHORIZED" if exc.status_code == 401 else None},
        )

    def current_email(request: Request) -> str:
        header = request.headers.get("Authorization", "")
        token = header.removeprefix("Bearer ").strip()
        if not token or token in state.revoked or token not in state.access_tokens:
            raise HTTPException(status_code=401, detail="Token expired or invalid")
        return state.access_tokens[token]

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/auth/login")
    def login(body: LoginRequest):
        state.count("login")
        user = state.users.get(body.emailOrUsername)
        if not user or user["password"] != body.password:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return _envelope({**state.issue_tokens(body.emailOrUsername), "user": user["profile"]}, "Login successful")

    @app.post("/api/auth/refresh-token")
    def refresh_token(body: RefreshRequest):
        state.count("refresh")
        email = state.refresh_tokens.pop(body.refreshToken, None)
        if email is None:
            raise HTTPException(status_code=401, detail="Refresh token invalid")
        return _envelope(state.issue_tokens(email), "Token refreshed")

    @app.post("/api/auth/logout")
    def logout(request: Request):
        current_email(request)
        state.revoked.add(request.headers["Authorization"].removeprefix("Bearer ").strip())
        return _envelope(None, "Logged out")

    @app.get("/api/auth/me")
    def me(request: Request):
        state.count("me")
        email = current_email(request)
        profile = dict(state.users[email]["profile"])
        profile.update({"phoneNumber": "+2348000000000", "kycVerified": state.kyc_verified})
        return _envelope(profile)

    @app.get("/api/kyc/status")
    def kyc_status(request: Request):
        state.count("kyc_status")
        email = current_email(request)
        return _envelope({
            "isVerified": state.kyc_verified,
            "bvn": "22212345678",
            "nin": "12345678901",
            "fullName": state.users[email]["profile"]["fullName"],
            "email": email,
            "phoneNumber": "+2348000000000",
        })

    @app.get("/api/credit-score")
    def credit_score_report(request: Request):
        state.count("credit_score")
        current_email(request)
        if state.credit_score is None:
            return JSONResponse(status_code=404, content={"success": False, "message": "No credit history"})
        rating = "Good" if state.credit_score >= 70 else "Fair" if state.credit_score >= 50 else "Poor"
        return _envelope({"score": state.credit_score, "rating": rating, "totalAccounts": 3})

    @app.get("/api/loantype")
    def loan_types(request: Request, page: int = 1, pageSize: int = 50):
        state.count("loan_types")
        current_email(request)
        start = (page - 1) * pageSize
        return _envelope(LOAN_TYPES[start:start + pageSize])

    @app.get("/api/Loan/my-loans")
    def my_loans(request: Request, page: int = 1, pageSize: int = 10):
        current_email(request)
        start = (page - 1) * pageSize
        return _envelope(state.loans[start:start + pageSize])

    @app.post("/api/loan")
    def apply_loan(body: LoanApplication, request: Request):
        state.count("apply_loan")
        current_email(request)
        loan = {
            "id": f"ln-{len(state.loans) + 1}",
            "loanTypeName": body.loanTypeName,
            "status": "Pending",
            "principal": body.principal,
            "rate": body.rate,
            "term": body.term,
            "outstandingBalance": body.principal,
            "amountDue": 0,
            "purpose": body.purpose,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        state.loans.append(loan)
        return _envelope(loan, "Loan application submitted")

    return app


setup_logging()
app = create_mock_app()
