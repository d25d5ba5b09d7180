"""Pytest fixtures for testing"""

import json
import pytest
import httpx
from typing import Callable, Generator
from firstlend_core.config import Settings
from firstlend_core.client import LendingClient, create_client
from firstlend_core.domain.models import Session, UserProfile
from firstlend_core.infrastructure.clients.gateway import SessionGateway
from firstlend_core.infrastructure.database.credential_store import CredentialStore
from mock.lending_server.main import create_mock_app


TEST_BASE_URL = "http://lending.test/api"


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite so durability across store instances can be checked"""
    return f"sqlite:///{tmp_path / 'credentials.db'}"


@pytest.fixture
def store(database_url: str) -> Generator[CredentialStore, None, None]:
    """Empty credential store"""
    credential_store = CredentialStore(database_url)
    try:
        yield credential_store
    finally:
        credential_store.close()


@pytest.fixture
def sample_session() -> Session:
    """Session as issued to a customer at login"""
    return Session(
        access_token="access-1",
        refresh_token="refresh-1",
        user=UserProfile(
            user_id="u-1001",
            email="ada@example.com",
            full_name="Ada Obi",
            user_type="customer",
            status="Active",
        ),
    )


@pytest.fixture
def logged_in_store(store: CredentialStore, sample_session: Session) -> CredentialStore:
    store.save(sample_session)
    return store


@pytest.fixture
def make_gateway(store: CredentialStore) -> Callable[..., SessionGateway]:
    """Build a gateway whose backend is a handler function (sync or async)"""

    def _make(handler, coalesce_refresh: bool = True) -> SessionGateway:
        return SessionGateway(
            store,
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(handler),
            coalesce_refresh=coalesce_refresh,
        )

    return _make


def envelope(data=None, message: str = "Success", status_code: int = 200, **extra) -> httpx.Response:
    """Backend-style JSON response"""
    body = {"success": 200 <= status_code < 300, "message": message, "data": data, **extra}
    return httpx.Response(status_code, json=body)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content) if request.content else {}


@pytest.fixture
def backend():
    """In-process mock lending backend (verified KYC, score 72)"""
    return create_mock_app()


@pytest.fixture
def lending_client(backend, database_url: str) -> Generator[LendingClient, None, None]:
    """Full client talking to the mock backend through ASGI"""
    settings = Settings(
        api_base_url="http://testserver/api",
        credential_store_url=database_url,
    )
    client = create_client(settings, transport=httpx.ASGITransport(app=backend))
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def respond() -> Callable[..., httpx.Response]:
    return envelope


@pytest.fixture
def body_of() -> Callable[[httpx.Request], dict]:
    return request_json
