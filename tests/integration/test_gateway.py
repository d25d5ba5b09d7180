"""Integration tests for the session gateway against a mocked transport"""

import asyncio
import httpx
import pytest
from firstlend_core.infrastructure.clients.schemas import ErrorKind, INVALID_RESPONSE, NETWORK_ERROR


PROTECTED = "/Loan/my-loans"


def refreshing_backend(respond, body_of, calls, refresh_status=200, retry_status=200, refresh_delay=0.0):
    """Backend that rejects access-1, accepts access-2 and refreshes to access-2"""

    async def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        calls.append((path, request.headers.get("Authorization"), body_of(request)))

        if path.endswith("/auth/refresh-token"):
            if refresh_delay:
                await asyncio.sleep(refresh_delay)
            if refresh_status != 200:
                return respond(message="Refresh token invalid", status_code=refresh_status)
            return respond({"token": "access-2", "refreshToken": "refresh-2"})

        if request.headers.get("Authorization") == "Bearer access-2":
            if retry_status != 200:
                return respond(message="Still unauthorized", status_code=retry_status)
            return respond([{"id": "ln-1"}], message="Loans retrieved")

        return respond(message="Token expired", status_code=401)

    return handler


async def test_attaches_bearer_token_only_when_required(make_gateway, logged_in_store, respond):
    seen = []

    def handler(request):
        seen.append(request.headers.get("Authorization"))
        return respond({"ok": True})

    gateway = make_gateway(handler)
    await gateway.request("GET", "/auth/me", requires_auth=True)
    await gateway.request("POST", "/auth/forgot-password", json={"email": "ada@example.com"})

    assert seen == ["Bearer access-1", None]


async def test_sends_request_id_and_json_content_type(make_gateway, respond):
    seen = []

    def handler(request):
        seen.append(request)
        return respond()

    await make_gateway(handler).request("POST", "/auth/register", json={"email": "x@y.z"})

    assert seen[0].headers["Content-Type"] == "application/json"
    assert seen[0].headers["X-Request-ID"]
    assert str(seen[0].url) == "http://lending.test/api/auth/register"


async def test_drops_empty_query_params(make_gateway, respond):
    seen = []

    def handler(request):
        seen.append(request.url)
        return respond([])

    await make_gateway(handler).request("GET", "/payment-history", params={"page": 2, "pageSize": None, "loanId": None})

    assert dict(seen[0].params) == {"page": "2"}


async def test_unwraps_data_envelope(make_gateway, respond):
    gateway = make_gateway(lambda request: respond({"token": "t"}, message="Login successful", code="OK"))
    result = await gateway.request("POST", "/auth/login", json={})

    assert result.success is True
    assert result.message == "Login successful"
    assert result.data == {"token": "t"}
    assert result.code == "OK"
    assert result.status_code == 200
    assert result.error_kind is None


async def test_bare_payload_becomes_data(make_gateway):
    gateway = make_gateway(lambda request: httpx.Response(200, json=[{"id": "lt-1"}]))
    result = await gateway.request("GET", "/loantype")

    assert result.success is True
    assert result.message == "Success"
    assert result.data == [{"id": "lt-1"}]


async def test_empty_success_body(make_gateway):
    result = await make_gateway(lambda request: httpx.Response(204)).request("POST", "/auth/logout")

    assert result.success is True
    assert result.data is None


async def test_refresh_then_single_retry(make_gateway, logged_in_store, respond, body_of):
    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls))

    result = await gateway.request("GET", PROTECTED, requires_auth=True)

    assert result.success is True
    assert result.message == "Loans retrieved"
    assert result.data == [{"id": "ln-1"}]

    paths = [path for path, _, _ in calls]
    assert paths == ["/api/Loan/my-loans", "/api/auth/refresh-token", "/api/Loan/my-loans"]
    assert calls[1][1] is None
    assert calls[1][2] == {"refreshToken": "refresh-1"}
    assert calls[2][1] == "Bearer access-2"

    assert logged_in_store.get_access_token() == "access-2"
    assert logged_in_store.get_refresh_token() == "refresh-2"
    assert logged_in_store.get_user().email == "ada@example.com"


async def test_retry_happens_at_most_once(make_gateway, logged_in_store, respond, body_of):
    """A 401 on the retried call comes back as-is; no second refresh"""
    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls, retry_status=401))

    result = await gateway.request("GET", PROTECTED, requires_auth=True)

    assert result.success is False
    assert result.status_code == 401
    assert result.message == "Still unauthorized"
    assert [path for path, _, _ in calls].count("/api/auth/refresh-token") == 1
    assert len(calls) == 3


async def test_failed_refresh_forces_logout(make_gateway, logged_in_store, respond, body_of):
    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls, refresh_status=401))

    result = await gateway.request("GET", PROTECTED, requires_auth=True)

    assert result.status_code == 401
    assert result.message == "Token expired"
    assert result.error_kind == ErrorKind.AUTH
    assert logged_in_store.is_authenticated() is False
    assert logged_in_store.load() is None
    assert len(calls) == 2


async def test_refresh_server_error_also_forces_logout(make_gateway, logged_in_store, respond, body_of):
    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls, refresh_status=500))

    result = await gateway.request("GET", PROTECTED, requires_auth=True)

    assert result.status_code == 401
    assert logged_in_store.is_authenticated() is False


async def test_no_refresh_token_forces_logout_without_calling_backend(make_gateway, logged_in_store, respond, body_of):
    with logged_in_store.engine.begin() as conn:
        conn.exec_driver_sql("DELETE FROM credential_entry WHERE \"key\" = 'refreshToken'")

    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls))
    result = await gateway.request("GET", PROTECTED, requires_auth=True)

    assert result.status_code == 401
    assert [path for path, _, _ in calls] == ["/api/Loan/my-loans"]
    assert logged_in_store.is_authenticated() is False


async def test_unauthenticated_401_is_not_refreshed(make_gateway, logged_in_store, respond):
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return respond(message="Invalid credentials", status_code=401)

    result = await make_gateway(handler).request("POST", "/auth/login", json={})

    assert result.status_code == 401
    assert calls == ["/api/auth/login"]
    assert logged_in_store.is_authenticated() is True


async def test_forbidden_is_auth_error_without_refresh(make_gateway, logged_in_store, respond):
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return respond(message="Admins only", status_code=403)

    result = await make_gateway(handler).request("GET", "/admin/users", requires_auth=True)

    assert result.error_kind == ErrorKind.AUTH
    assert len(calls) == 1
    assert logged_in_store.is_authenticated() is True


async def test_concurrent_401s_share_one_refresh(make_gateway, logged_in_store, respond, body_of):
    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls, refresh_delay=0.05))

    results = await asyncio.gather(
        gateway.request("GET", PROTECTED, requires_auth=True),
        gateway.request("GET", PROTECTED, requires_auth=True),
    )

    assert all(result.success for result in results)
    assert [path for path, _, _ in calls].count("/api/auth/refresh-token") == 1


async def test_without_coalescing_each_401_refreshes(make_gateway, logged_in_store, respond, body_of):
    calls = []
    gateway = make_gateway(refreshing_backend(respond, body_of, calls, refresh_delay=0.05), coalesce_refresh=False)

    results = await asyncio.gather(
        gateway.request("GET", PROTECTED, requires_auth=True),
        gateway.request("GET", PROTECTED, requires_auth=True),
    )

    assert all(result.success for result in results)
    assert [path for path, _, _ in calls].count("/api/auth/refresh-token") == 2


async def test_connection_error_is_network_error(make_gateway):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await make_gateway(handler).request("GET", "/auth/me", requires_auth=True)

    assert result.success is False
    assert result.code == NETWORK_ERROR
    assert result.status_code is None
    assert result.error_kind == ErrorKind.NETWORK


async def test_timeout_is_network_error(make_gateway):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await make_gateway(handler).request("GET", "/kyc/status", requires_auth=True)

    assert result.code == NETWORK_ERROR


async def test_unexpected_exception_never_escapes(make_gateway):
    def handler(request):
        raise RuntimeError("boom")

    result = await make_gateway(handler).request("GET", "/credit-score", requires_auth=True)

    assert result.success is False
    assert result.code == NETWORK_ERROR


async def test_invalid_json_body(make_gateway):
    gateway = make_gateway(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))
    result = await gateway.request("GET", "/loantype")

    assert result.success is False
    assert result.code == INVALID_RESPONSE
    assert "Status 502" in result.message
    assert result.error_kind == ErrorKind.SERVER


async def test_validation_errors_list_shape(make_gateway, respond):
    errors = [{"field": "email", "message": "Email is required"}]
    gateway = make_gateway(lambda request: respond(message="Validation failed", status_code=400, errors=errors))

    result = await gateway.request("POST", "/auth/register", json={})

    assert result.error_kind == ErrorKind.VALIDATION
    assert result.errors[0].field == "email"
    assert result.errors[0].message == "Email is required"


async def test_validation_errors_dict_shape(make_gateway):
    body = {"title": "One or more validation errors occurred.", "errors": {"Password": ["Too short", "Needs a digit"]}}
    gateway = make_gateway(lambda request: httpx.Response(400, json=body))

    result = await gateway.request("POST", "/auth/register", json={})

    assert result.error_kind == ErrorKind.VALIDATION
    assert result.message == "Error"
    assert result.errors[0].field == "Password"
    assert result.errors[0].message == "Too short; Needs a digit"


async def test_server_error(make_gateway, respond):
    gateway = make_gateway(lambda request: respond(message="Database unavailable", status_code=503))
    result = await gateway.request("GET", "/loantype", requires_auth=True)

    assert result.error_kind == ErrorKind.SERVER
    assert result.message == "Database unavailable"
    assert result.data is None


async def test_late_401_reuses_already_renewed_token(make_gateway, logged_in_store, respond, body_of):
    """A 401 arriving after another call finished refreshing resends with the new token"""
    refresh_bodies = []
    stale_calls = []

    async def handler(request):
        if request.url.path.endswith("/auth/refresh-token"):
            refresh_bodies.append(body_of(request))
            return respond({"token": "access-2", "refreshToken": "refresh-2"})
        if request.headers.get("Authorization") == "Bearer access-2":
            return respond([{"id": "ln-1"}])
        stale_calls.append(request)
        if len(stale_calls) == 2:
            await asyncio.sleep(0.1)
        return respond(message="Token expired", status_code=401)

    gateway = make_gateway(handler)
    results = await asyncio.gather(
        gateway.request("GET", PROTECTED, requires_auth=True),
        gateway.request("GET", PROTECTED, requires_auth=True),
    )

    assert all(result.success for result in results)
    assert refresh_bodies == [{"refreshToken": "refresh-1"}]
    assert logged_in_store.get_refresh_token() == "refresh-2"


async def test_multipart_body_skips_json_content_type(make_gateway, logged_in_store, respond):
    seen = []

    def handler(request):
        seen.append(request)
        return respond()

    await make_gateway(handler).request(
        "POST", "/kyc/documents/upload", data={"DocumentType": "Passport"},
        files={"File": ("passport.png", b"png-bytes", "image/png")}, requires_auth=True,
    )

    assert seen[0].headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert b'name="DocumentType"' in seen[0].content
    assert b"png-bytes" in seen[0].content
