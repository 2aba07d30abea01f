"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Iterator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from notescafe.api.deps import create_access_token, get_document_store, get_http_client
from notescafe.db import InMemoryDocumentStore
from notescafe.main import app
from notescafe.repositories import ProfileRepository
from notescafe.services import AuthSession, FirebaseIdentityProvider

from fakes import IDENTITY_TOOLKIT_URL, TEST_PHONE, TEST_UID, FakeIdentityToolkit


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def identity_toolkit() -> FakeIdentityToolkit:
    return FakeIdentityToolkit()


@pytest.fixture
async def http_client(identity_toolkit: FakeIdentityToolkit) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(identity_toolkit)) as http:
        yield http


@pytest.fixture
def provider(http_client: httpx.AsyncClient) -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider(api_key="test-api-key", client=http_client, base_url=IDENTITY_TOOLKIT_URL)


@pytest.fixture
def profiles(store: InMemoryDocumentStore) -> ProfileRepository:
    return ProfileRepository(store)


@pytest.fixture
def auth_session(provider: FirebaseIdentityProvider, profiles: ProfileRepository) -> Iterator[AuthSession]:
    session = AuthSession(provider, profiles, token_provider=lambda: "recaptcha-token")
    yield session
    session.close()


@pytest.fixture
async def client(
    store: InMemoryDocumentStore,
    http_client: httpx.AsyncClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_http_client] = lambda: http_client
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Bearer header for a signed-in user."""
    return {"Authorization": f"Bearer {create_access_token(TEST_UID, TEST_PHONE)}"}
