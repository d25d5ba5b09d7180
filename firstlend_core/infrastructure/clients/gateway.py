"""Session gateway - every backend call goes through here

Attaches the bearer token, turns transport failures into structured
results, and owns the 401 -> refresh -> retry-once protocol.
"""

import asyncio
import logging
import time
import uuid
import httpx
from typing import Any, Dict, List, Optional, Tuple
from firstlend_core.config import settings
from firstlend_core.infrastructure.clients.schemas import ApiResponse, FieldError, INVALID_RESPONSE, network_error
from firstlend_core.infrastructure.database.credential_store import CredentialStore
from firstlend_core.infrastructure.observability.logging import log_auth_event
from firstlend_core.infrastructure.observability.metrics import (
    gateway_failure_counter,
    gateway_request_histogram,
    record_refresh,
)

REFRESH_PATH = "/auth/refresh-token"


class SessionGateway:
    """HTTP client for the lending backend with bearer auth and token refresh"""

    def __init__(
        self,
        store: CredentialStore,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        coalesce_refresh: bool | None = None,
    ):
        self.store = store
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport
        self.coalesce_refresh = settings.coalesce_refresh if coalesce_refresh is None else coalesce_refresh
        self._refresh_task: Optional[asyncio.Task] = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = False,
    ) -> ApiResponse:
        """
        Send a request and return the backend envelope.

        Bodies are JSON (json=) or multipart form (data= and files=). File
        contents must be bytes so the body can be sent a second time.

        Retry strategy for requires_auth calls:
        - 401 on a token that has since been replaced -> resend once with the current token
        - 401 otherwise -> refresh the token pair once
        - refresh ok -> resend the original request exactly once, return that result
        - refresh failed -> store cleared, original 401 returned

        Never raises; unexpected errors come back as NETWORK_ERROR results.
        """
        body = {"json": json, "data": data, "files": files, "params": params}
        try:
            response, sent_token = await self._send(method, path, requires_auth=requires_auth, **body)
            if not (requires_auth and response.status_code == 401):
                return response

            current_token = self.store.get_access_token()
            renewed_elsewhere = sent_token is not None and current_token is not None and current_token != sent_token

            if not renewed_elsewhere and not await self.refresh_session():
                return response

            retried, _ = await self._send(method, path, requires_auth=requires_auth, **body)
            return retried

        except Exception as e:
            logging.exception(f"Unexpected gateway error on {method} {path}: {e}")
            gateway_failure_counter.labels(kind="network").inc()
            return network_error()

    async def refresh_session(self) -> bool:
        """Refresh the token pair; concurrent callers share one in-flight refresh when coalescing"""
        if not self.coalesce_refresh:
            return await self._refresh()

        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.ensure_future(self._refresh())
        return await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> bool:
        refresh_token = self.store.get_refresh_token()
        code = None

        if not refresh_token:
            success = False
            code = "NO_REFRESH_TOKEN"
        else:
            result, _ = await self._send("POST", REFRESH_PATH, json={"refreshToken": refresh_token})
            data = result.data if isinstance(result.data, dict) else {}
            access_token = data.get("token") or data.get("accessToken")
            success = result.success and bool(access_token)
            code = result.code

            if success:
                self.store.update_tokens(access_token, data.get("refreshToken") or refresh_token)

        if not success:
            # Fail closed: never keep operating on a token we could not renew
            self.store.clear()

        record_refresh(success)
        log_auth_event("refresh", success, code=code)
        return success

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = False,
    ) -> Tuple[ApiResponse, Optional[str]]:
        """Single round-trip; also returns the access token that was attached"""
        request_id = str(uuid.uuid4())
        headers = {"X-Request-ID": request_id}
        if files is None and data is None:
            # Multipart bodies get their boundary header from httpx
            headers["Content-Type"] = "application/json"

        token = None
        if requires_auth:
            token = self.store.get_access_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        if params:
            params = {key: value for key, value in params.items() if value is not None}

        start_time = time.time()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=json,
                    data=data,
                    files=files,
                    params=params or None,
                    headers=headers,
                )
            except httpx.TimeoutException:
                logging.error(f"Backend timeout after {self.timeout}s: {method} {path}", extra={"request_id": request_id})
                gateway_failure_counter.labels(kind="network").inc()
                return network_error(), token
            except httpx.RequestError as e:
                logging.error(f"Backend unreachable: {method} {path}: {e}", extra={"request_id": request_id})
                gateway_failure_counter.labels(kind="network").inc()
                return network_error(), token

        gateway_request_histogram.labels(method=method, status=response.status_code).observe(time.time() - start_time)

        result = self._parse(response, request_id)
        if not result.success:
            gateway_failure_counter.labels(kind=result.error_kind.value).inc()
            logging.warning(
                f"Backend call failed: {method} {path} -> {response.status_code}",
                extra={"request_id": request_id, "code": result.code},
            )
        return result, token

    @staticmethod
    def _parse(response: httpx.Response, request_id: str) -> ApiResponse:
        """Map an HTTP response onto the {success, message, data, code, errors} envelope"""
        ok = response.is_success
        status = response.status_code

        if not response.content:
            body: Any = {}
        else:
            try:
                body = response.json()
            except ValueError:
                logging.error(
                    f"Invalid JSON from backend (status {status})",
                    extra={"request_id": request_id},
                )
                return ApiResponse(
                    success=False,
                    message=f"Server error (Status {status}): Invalid response format",
                    code=INVALID_RESPONSE,
                    status_code=status,
                )

        envelope = body if isinstance(body, dict) else {}
        # Some endpoints wrap the payload in {"data": ...}, others return it bare
        is_wrapped = "data" in envelope

        if is_wrapped:
            data = envelope["data"]
        else:
            data = body if ok and body != {} else None

        return ApiResponse(
            success=ok,
            message=envelope.get("message") or ("Success" if ok else "Error"),
            data=data,
            code=envelope.get("code"),
            errors=_parse_field_errors(envelope.get("errors")),
            status_code=status,
        )


def _parse_field_errors(raw: Any) -> Optional[List[FieldError]]:
    """Accept both [{field, message}] and {field: [messages]} shapes"""
    if not raw:
        return None
    if isinstance(raw, dict):
        return [
            FieldError(field=str(field), message="; ".join(map(str, messages)) if isinstance(messages, list) else str(messages))
            for field, messages in raw.items()
        ]
    if isinstance(raw, list):
        return [
            FieldError(field=str(item.get("field", "")), message=str(item.get("message", "")))
            for item in raw
            if isinstance(item, dict)
        ]
    return None
