"""Shared test fixtures for the tenant settings service."""

import os

# Set test secrets before any app imports trigger Settings() validation.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-for-unit-tests-0123456789")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-for-unit-tests")

import base64  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import fakeredis.aioredis  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.core.encryption import EncryptionService  # noqa: E402
from app.core.kv_store import KeyValueStore  # noqa: E402
from app.core.results import OpResult  # noqa: E402
from app.core.runtime_config import RuntimeConfig  # noqa: E402
from app.core.settings_cache import SettingsCache  # noqa: E402
from app.core.settings_workflow import SettingsWorkflow  # noqa: E402
from app.main import app  # noqa: E402
from app.rate_limit import limiter  # noqa: E402
from app.realtime.broadcaster import LiveUpdateBroadcaster  # noqa: E402
from app.realtime.registry import InMemoryConnectionRegistry  # noqa: E402
from app.services.audit_service import SettingsAuditService  # noqa: E402
from tests.helpers.fakes import FakeSettingsStore  # noqa: E402
from tests.helpers.token_factory import auth_headers  # noqa: E402

SUPER_ADMIN_ID = "user-super-admin"
ADMIN_ID = "user-tenant-admin"
AGENT_ID = "user-agent"
TENANT_ID = "tenant-1"  # white-label enabled
PLAIN_TENANT_ID = "tenant-2"  # white-label disabled

# ---------------------------------------------------------------------------
# Fake Redis (drop-in async replacement)
# ---------------------------------------------------------------------------


def _make_fake_redis():
    """Create a fakeredis instance that behaves like redis.asyncio.Redis."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client."""
    client = _make_fake_redis()
    yield client
    await client.aclose()


# ---------------------------------------------------------------------------
# Mock DB session
# ---------------------------------------------------------------------------


def _make_mock_session():
    """Create a mock async DB session.

    Supports ``async with factory() as session`` as used by the settings
    store, the audit service and the readiness probe (``SELECT 1``).
    """
    session = AsyncMock()
    session.add = MagicMock()
    result_mock = MagicMock()
    result_mock.scalar.return_value = 1
    result_mock.scalar_one_or_none.return_value = None
    result_mock.scalars.return_value.all.return_value = []
    result_mock.rowcount = 0
    session.execute.return_value = result_mock
    session.close = AsyncMock()
    return session


def _make_mock_session_factory():
    """Return a callable that mimics ``async_sessionmaker().__call__()``."""
    mock_session = _make_mock_session()
    factory = MagicMock()
    ctx = AsyncMock()
    ctx.__aenter__.return_value = mock_session
    factory.return_value = ctx
    return factory, mock_session


@pytest.fixture()
def mock_db():
    """``(session_factory, session)`` pair backed by mocks."""
    return _make_mock_session_factory()


# ---------------------------------------------------------------------------
# Settings components
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def encryption() -> EncryptionService:
    """Key derivation is deliberately slow, so derive once per run."""
    return EncryptionService("test-encryption-key-for-unit-tests", "test-salt")


@pytest.fixture()
def settings_store() -> FakeSettingsStore:
    return FakeSettingsStore(tenants={TENANT_ID: True, PLAIN_TENANT_ID: False})


@pytest.fixture()
def kv_store(redis_client) -> KeyValueStore:
    return KeyValueStore(redis_client, prefix="test:")


@pytest.fixture()
def settings_cache(kv_store) -> SettingsCache:
    return SettingsCache(kv_store, ttl=3600)


@pytest.fixture()
def audit():
    """Audit service double; ``log`` succeeds and records its calls."""
    service = AsyncMock(spec=SettingsAuditService)
    service.log.return_value = OpResult.success()
    return service


@pytest.fixture()
def registry() -> InMemoryConnectionRegistry:
    return InMemoryConnectionRegistry()


@pytest.fixture()
def broadcaster(registry) -> LiveUpdateBroadcaster:
    return LiveUpdateBroadcaster(registry)


@pytest.fixture()
def runtime() -> RuntimeConfig:
    return RuntimeConfig()


@pytest.fixture()
def workflow(settings_cache, audit, broadcaster) -> SettingsWorkflow:
    return SettingsWorkflow(settings_cache, audit, broadcaster)


# ---------------------------------------------------------------------------
# External providers (PayPal, Razorpay, SendGrid, Mailgun) over MockTransport
# ---------------------------------------------------------------------------


def provider_handler(request: httpx.Request) -> httpx.Response:
    """Accept any credentials except the literal ``bad`` (as user, password or token)."""
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme == "Basic":
        credentials = base64.b64decode(credentials).decode()
    if "bad" in credentials.split(":"):
        return httpx.Response(401, json={"error": {"message": "Invalid credentials"}})
    if request.url.path.endswith("/oauth2/token"):
        return httpx.Response(200, json={"access_token": "A21AA-token", "expires_in": 32400})
    return httpx.Response(200, json={"items": []})


@pytest_asyncio.fixture()
async def provider_http() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(provider_handler)) as http:
        yield http


# ---------------------------------------------------------------------------
# HTTP client fixture (FastAPI app with mocked infra)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def client(
    mock_db, redis_client, settings_store, encryption, provider_http
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the FastAPI app.

    Infrastructure (DB, Redis, providers) is faked so tests run without
    devstack. Settings documents live in an in-memory store; the audit
    service writes to the mock session.
    """
    session_factory, _ = mock_db
    cache = SettingsCache(KeyValueStore(redis_client, prefix="test:"))
    broadcaster = LiveUpdateBroadcaster(InMemoryConnectionRegistry())
    audit_service = SettingsAuditService(session_factory)

    app.state.engine = MagicMock()
    app.state.session_factory = session_factory
    app.state.redis = redis_client
    app.state.encryption = encryption
    app.state.settings_store = settings_store
    app.state.settings_cache = cache
    app.state.broadcaster = broadcaster
    app.state.runtime_config = RuntimeConfig()
    app.state.http_client = provider_http
    app.state.audit_service = audit_service
    app.state.workflow = SettingsWorkflow(cache, audit_service, broadcaster)
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Auth helpers — generate JWT tokens directly (no login endpoint needed)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def super_admin_client(client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client pre-authenticated as a platform super admin."""
    client.headers.update(auth_headers(SUPER_ADMIN_ID, "super_admin"))
    yield client
    client.headers.pop("Authorization", None)


@pytest_asyncio.fixture()
async def admin_client(client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client pre-authenticated as the admin of the white-label tenant."""
    client.headers.update(auth_headers(ADMIN_ID, "admin", TENANT_ID))
    yield client
    client.headers.pop("Authorization", None)


@pytest_asyncio.fixture()
async def plain_admin_client(client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client pre-authenticated as the admin of a tenant without white-label."""
    client.headers.update(auth_headers(ADMIN_ID, "admin", PLAIN_TENANT_ID))
    yield client
    client.headers.pop("Authorization", None)


@pytest_asyncio.fixture()
async def agent_client(client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client pre-authenticated as an agent of the white-label tenant."""
    client.headers.update(auth_headers(AGENT_ID, "agent", TENANT_ID))
    yield client
    client.headers.pop("Authorization", None)
