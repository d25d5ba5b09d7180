"""Authentication endpoints and the session lifecycle built on them"""

import logging
from typing import Optional
from firstlend_core.domain.models import Session, UserType
from firstlend_core.infrastructure.clients.compat import to_user_profile
from firstlend_core.infrastructure.clients.gateway import SessionGateway
from firstlend_core.infrastructure.clients.schemas import ApiResponse
from firstlend_core.infrastructure.observability.logging import log_auth_event


class AuthClient:
    """Client for /auth/* endpoints; keeps the credential store in step with the backend"""

    def __init__(self, gateway: SessionGateway):
        self.gateway = gateway
        self.store = gateway.store

    async def login(self, email_or_username: str, password: str, user_type: str = UserType.CUSTOMER.value) -> ApiResponse:
        """
        Authenticate and persist the new session.

        Returns:
            ApiResponse whose data is the stored Session on success
        """
        response = await self.gateway.request(
            "POST",
            "/auth/login",
            json={"emailOrUsername": email_or_username, "password": password, "userType": user_type},
        )

        data = response.data if isinstance(response.data, dict) else None
        access_token = (data or {}).get("token") or (data or {}).get("accessToken")

        if not (response.success and access_token and isinstance(data.get("user"), dict)):
            log_auth_event("login", False, code=response.code)
            if response.success:
                return ApiResponse(
                    success=False,
                    message="Login response did not include a session",
                    code="INVALID_RESPONSE",
                    status_code=response.status_code,
                )
            return response

        session = Session(
            access_token=access_token,
            refresh_token=data.get("refreshToken"),
            user=to_user_profile(data["user"]),
        )
        self.store.save(session)
        log_auth_event("login", True, user_id=session.user.user_id)
        return response.with_data(session)

    async def logout(self) -> ApiResponse:
        """Tell the backend, then clear local credentials whatever it answered"""
        user = self.store.get_user()
        try:
            response = await self.gateway.request("POST", "/auth/logout", requires_auth=True)
        finally:
            self.store.clear()
        log_auth_event("logout", response.success, user_id=user.user_id if user else None, code=response.code)
        return response

    async def get_current_user(self) -> ApiResponse:
        response = await self.gateway.request("GET", "/auth/me", requires_auth=True)
        if response.success and isinstance(response.data, dict):
            return response.with_data(to_user_profile(response.data))
        return response

    async def refresh_user(self) -> ApiResponse:
        """Re-read /auth/me and update the stored profile"""
        if not self.store.is_authenticated():
            return ApiResponse(success=False, message="Not authenticated", code="NOT_AUTHENTICATED")

        response = await self.get_current_user()
        if response.success and response.data is not None:
            self.store.update_user(response.data)
        else:
            logging.warning(f"Could not refresh user data: {response.message}")
        return response

    async def register(
        self,
        full_name: str,
        email: str,
        phone: str,
        password: str,
        address: Optional[str] = None,
    ) -> ApiResponse:
        payload = {"fullName": full_name, "email": email, "phone": phone, "password": password}
        if address:
            payload["address"] = address
        return await self.gateway.request("POST", "/auth/register", json=payload)

    async def forgot_password(self, email: str) -> ApiResponse:
        return await self.gateway.request("POST", "/auth/forgot-password", json={"email": email})

    async def reset_password(self, token: str, new_password: str) -> ApiResponse:
        return await self.gateway.request(
            "POST", "/auth/reset-password", json={"token": token, "newPassword": new_password}
        )

    async def change_password(self, current_password: str, new_password: str) -> ApiResponse:
        return await self.gateway.request(
            "POST",
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
            requires_auth=True,
        )

    async def update_profile(
        self,
        *,
        full_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        address: Optional[str] = None,
        bvn: Optional[str] = None,
        nin: Optional[str] = None,
    ) -> ApiResponse:
        """Send only the fields that were given"""
        payload = {
            "fullName": full_name,
            "phoneNumber": phone_number,
            "address": address,
            "bvn": bvn,
            "nin": nin,
        }
        payload = {key: value for key, value in payload.items() if value is not None}

        response = await self.gateway.request("PUT", "/auth/update-profile", json=payload, requires_auth=True)
        if response.success and isinstance(response.data, dict):
            return response.with_data(to_user_profile(response.data))
        return response
