"""Unit tests for auth/dependencies.py — JWT validation, RBAC and tenant resolution."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import fakeredis.aioredis
import pytest
from fastapi import HTTPException
from jose import jwt

from app.auth.token_revocation import revoke_token
from app.config import get_settings
from tests.helpers.token_factory import create_access_token, create_refresh_token


def _fake_request(redis=None, host: str | None = "203.0.113.7", user_agent: str = "pytest"):
    """Return a minimal Request-like object; without Redis the deny-list is skipped."""
    return SimpleNamespace(
        app=SimpleNamespace(state=SimpleNamespace(redis=redis)),
        client=SimpleNamespace(host=host) if host else None,
        headers={"user-agent": user_agent},
    )


def _token_user(role: str = "admin", tenant_id: str | None = "tenant-1"):
    from app.schemas.auth import TokenUser

    return TokenUser(
        id="user-1", username="testuser", role=role, email="t@t.com", tenant_id=tenant_id
    )


class TestTokenUser:
    """Tests for the TokenUser Pydantic model."""

    def test_valid_token_user(self):
        user = _token_user("agent", "tenant-9")
        assert user.id == "user-1"
        assert user.role == "agent"
        assert user.tenant_id == "tenant-9"

    def test_optional_claims_default(self):
        from app.schemas.auth import TokenUser

        user = TokenUser(id="user-123", role="super_admin")
        assert user.username == ""
        assert user.email == ""
        assert user.tenant_id is None

    def test_unknown_role_rejected(self):
        from pydantic import ValidationError

        from app.schemas.auth import TokenUser

        with pytest.raises(ValidationError):
            TokenUser(id="user-123", role="analyst")  # type: ignore[arg-type]

    def test_missing_required_fields_raises(self):
        from pydantic import ValidationError

        from app.schemas.auth import TokenUser

        with pytest.raises(ValidationError):
            TokenUser(id="user-123")  # type: ignore[call-arg]


class TestGetCurrentUser:
    """Tests for the stateless get_current_user dependency."""

    @pytest.fixture
    def settings(self):
        return get_settings()

    async def test_valid_access_token_returns_token_user(self):
        from app.auth.dependencies import get_current_user

        token = create_access_token(
            "user-abc", "admin", username="admin", email="a@test.com", tenant_id="tenant-1"
        )
        user = await get_current_user(_fake_request(), token)

        assert user.id == "user-abc"
        assert user.role == "admin"
        assert user.email == "a@test.com"
        assert user.tenant_id == "tenant-1"

    async def test_expired_token_raises_401(self, settings):
        from app.auth.dependencies import get_current_user

        payload = {
            "sub": "user-expired",
            "role": "admin",
            "type": "access",
            "exp": datetime.now(UTC) - timedelta(hours=1),
        }
        token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

        with pytest.raises(HTTPException) as exc:
            await get_current_user(_fake_request(), token)
        assert exc.value.status_code == 401

    async def test_refresh_token_rejected_as_access(self):
        """A refresh token must not be accepted by get_current_user."""
        from app.auth.dependencies import get_current_user

        token = create_refresh_token("user-r", "admin")

        with pytest.raises(HTTPException) as exc:
            await get_current_user(_fake_request(), token)
        assert exc.value.status_code == 401

    async def test_tampered_token_raises_401(self):
        from app.auth.dependencies import get_current_user

        token = create_access_token("user-x", "admin")
        tampered = token[:-5] + "XXXXX"

        with pytest.raises(HTTPException) as exc:
            await get_current_user(_fake_request(), tampered)
        assert exc.value.status_code == 401

    async def test_token_missing_sub_raises_401(self, settings):
        from app.auth.dependencies import get_current_user

        payload = {
            "role": "admin",
            "type": "access",
            "exp": datetime.now(UTC) + timedelta(hours=1),
        }
        token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

        with pytest.raises(HTTPException) as exc:
            await get_current_user(_fake_request(), token)
        assert exc.value.status_code == 401

    async def test_token_with_unknown_role_raises_401(self):
        from app.auth.dependencies import get_current_user

        token = create_access_token("user-z", "analyst")

        with pytest.raises(HTTPException) as exc:
            await get_current_user(_fake_request(), token)
        assert exc.value.status_code == 401

    async def test_revoked_token_raises_401(self):
        from app.auth.dependencies import get_current_user

        redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
        token = create_access_token("user-rev", "admin", jti="jti-123")
        await revoke_token(redis, "jti-123", expires_in_seconds=60)

        with pytest.raises(HTTPException) as exc:
            await get_current_user(_fake_request(redis), token)
        assert exc.value.status_code == 401
        assert exc.value.detail == "Token has been revoked"
        await redis.aclose()


class TestAuthenticateToken:
    """Tests for the non-raising variant used by the WebSocket handshake."""

    async def test_valid_token(self):
        from app.auth.dependencies import authenticate_token

        token = create_access_token("user-ws", "agent", tenant_id="tenant-1")
        user = await authenticate_token(token, None)
        assert user is not None
        assert user.id == "user-ws"
        assert user.tenant_id == "tenant-1"

    async def test_garbage_token_returns_none(self):
        from app.auth.dependencies import authenticate_token

        assert await authenticate_token("not.a.valid.jwt", None) is None

    async def test_refresh_token_returns_none(self):
        from app.auth.dependencies import authenticate_token

        assert await authenticate_token(create_refresh_token("user-r", "agent"), None) is None

    async def test_revoked_token_returns_none(self):
        from app.auth.dependencies import authenticate_token

        redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
        await revoke_token(redis, "jti-ws", expires_in_seconds=60)
        token = create_access_token("user-ws", "agent", jti="jti-ws")

        assert await authenticate_token(token, redis) is None
        await redis.aclose()


class TestRequireRole:
    """Tests for the require_role dependency factory."""

    async def test_matching_role_passes(self):
        from app.auth.dependencies import require_role

        checker = require_role("admin", "super_admin")
        result = await checker(_token_user("admin"))
        assert result.id == "user-1"

    async def test_non_matching_role_raises_403(self):
        from app.auth.dependencies import require_role

        checker = require_role("super_admin")

        with pytest.raises(HTTPException) as exc:
            await checker(_token_user("agent"))
        assert exc.value.status_code == 403

    def test_unknown_role_name_rejected_at_definition(self):
        from app.auth.dependencies import require_role

        with pytest.raises(ValueError):
            require_role("analyst")


class TestGetTenantId:
    """Tenant resolution for tenant-scoped endpoints."""

    async def test_admin_uses_own_tenant(self):
        from app.auth.dependencies import get_tenant_id

        assert await get_tenant_id(_token_user("admin", "tenant-1"), None) == "tenant-1"

    async def test_admin_may_name_own_tenant(self):
        from app.auth.dependencies import get_tenant_id

        assert await get_tenant_id(_token_user("admin", "tenant-1"), "tenant-1") == "tenant-1"

    async def test_admin_cannot_target_another_tenant(self):
        from app.auth.dependencies import get_tenant_id

        with pytest.raises(HTTPException) as exc:
            await get_tenant_id(_token_user("admin", "tenant-1"), "tenant-2")
        assert exc.value.status_code == 403

    async def test_super_admin_targets_any_tenant(self):
        from app.auth.dependencies import get_tenant_id

        assert await get_tenant_id(_token_user("super_admin", None), "tenant-2") == "tenant-2"

    async def test_super_admin_without_tenant_raises_400(self):
        from app.auth.dependencies import get_tenant_id

        with pytest.raises(HTTPException) as exc:
            await get_tenant_id(_token_user("super_admin", None), None)
        assert exc.value.status_code == 400


class TestChangeContext:
    def test_context_carries_actor_and_origin(self):
        from app.auth.dependencies import get_change_context

        context = get_change_context(_fake_request(), _token_user("admin", "tenant-1"))
        assert context.user_id == "user-1"
        assert context.tenant_id == "tenant-1"
        assert context.ip_address == "203.0.113.7"
        assert context.user_agent == "pytest"

    def test_context_without_client(self):
        from app.auth.dependencies import get_change_context

        context = get_change_context(_fake_request(host=None), _token_user())
        assert context.ip_address is None
