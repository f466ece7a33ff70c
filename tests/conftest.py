"""Global test configuration and fixtures for BillToSheet API."""

import os

# Settings are read at import time, so the environment has to be ready first
os.environ.setdefault("ENVIRONMENT", "TEST")
os.environ.setdefault("DATABASE_URL", "sqlite:///./billtosheet-test.db")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-key-for-testing-only")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")
# Extraction always goes through the fake extractor
os.environ["OPENAI_API_KEY"] = ""

from collections.abc import AsyncGenerator
from typing import Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy_utils import create_database, database_exists, drop_database

from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt

from src.api.core.constants import ANONYMOUS_ID_COOKIE, JWT_ALGORITHM
from src.database.models import Base, User
from src.modules.conversion.infrastructure.openai_client import get_invoice_extractor
from src.utils.settings.auth import AuthSettings

from tests.factories import (
    ConversionFactory,
    CreditTransactionFactory,
    UserFactory,
)
from tests.utils.fakes import FakeInvoiceExtractor

BASE_URL = "http://test-billtosheet-api"


@pytest.fixture
def user_factory():
    return UserFactory


@pytest.fixture
def conversion_factory():
    return ConversionFactory


@pytest.fixture
def credit_transaction_factory():
    return CreditTransactionFactory


@pytest.fixture
def test_database_uri(tmp_path):
    """A fresh SQLite database file per test."""
    sync_dsn = f"sqlite:///{tmp_path / 'billtosheet.db'}"

    if database_exists(sync_dsn):
        drop_database(sync_dsn)
    create_database(sync_dsn)

    yield sync_dsn.replace("sqlite://", "sqlite+aiosqlite://", 1)

    if database_exists(sync_dsn):
        drop_database(sync_dsn)


@pytest_asyncio.fixture
async def async_engine(test_database_uri):
    """Create async engine for the test database with all tables."""
    engine = create_async_engine(test_database_uri, echo=False)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield engine
    # Ensure all connections are properly closed
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=async_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting data; services commit through it."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_extractor() -> FakeInvoiceExtractor:
    return FakeInvoiceExtractor()


@pytest_asyncio.fixture
async def app(session_factory, fake_extractor):
    """Create FastAPI application with lifespan manager for testing."""
    from src.main import app

    app.dependency_overrides[get_invoice_extractor] = lambda: fake_extractor

    async with LifespanManager(app):
        # The lifespan installs the production factory; point it at the test DB
        app.state.session_factory = session_factory
        yield app

    app.dependency_overrides.clear()


# Test Data Fixtures
@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession, user_factory) -> User:
    """A registered user holding the signup credit."""
    return await user_factory.create_async(db_session, credits_balance=1)


# JWT Token Fixtures
@pytest.fixture()
def jwt_token_factory() -> Callable[..., str]:
    """Factory for creating identity-provider JWTs."""
    auth_settings = AuthSettings()

    def create_token(auth_user_id: str, email: str | None = None) -> str:
        payload = {
            "sub": auth_user_id,
            "email": email,
            "role": "authenticated",
            "aud": auth_settings.AUTH_JWT_AUDIENCE,
        }
        return jwt.encode(
            payload, auth_settings.AUTH_JWT_SECRET, algorithm=JWT_ALGORITHM
        )

    return create_token


@pytest.fixture
def user_token(test_user: User, jwt_token_factory) -> str:
    return jwt_token_factory(test_user.auth_user_id, test_user.email)


# HTTP Client Fixtures
@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client without credentials; keeps cookies between requests."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as ac:
        yield ac


@pytest_asyncio.fixture
async def authorized_client(
    app: FastAPI, user_token: str
) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client with JWT authorization headers."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url=BASE_URL,
        headers={"Authorization": f"Bearer {user_token}"},
    ) as ac:
        yield ac


@pytest.fixture
def client_factory(app: FastAPI, jwt_token_factory):
    """Build clients for other identities: a user, an anonymous cookie, or nobody."""

    def create_client(
        user: User | None = None,
        anonymous_id: str | None = None,
    ) -> AsyncClient:
        headers = {}
        if user is not None:
            token = jwt_token_factory(user.auth_user_id, user.email)
            headers["Authorization"] = f"Bearer {token}"
        cookies = {ANONYMOUS_ID_COOKIE: anonymous_id} if anonymous_id else None
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url=BASE_URL,
            headers=headers,
            cookies=cookies,
        )

    return create_client
