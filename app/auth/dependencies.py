"""FastAPI dependencies for authentication, RBAC and tenant resolution."""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from redis.asyncio import Redis

from app.auth.security import decode_token
from app.auth.token_revocation import is_token_revoked
from app.core.settings_workflow import ChangeContext
from app.models.user import UserRole
from app.schemas.auth import TokenUser

# Token issuance (login/refresh) is owned by the CRM core API.
# The tokenUrl below is used only for Swagger UI's "Authorize" dialog.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _user_from_claims(payload: dict[str, Any]) -> TokenUser | None:
    user_id: str | None = payload.get("sub")
    if user_id is None or payload.get("type") != "access":
        return None
    return TokenUser(
        id=user_id,
        username=payload.get("username", ""),
        role=payload.get("role", ""),
        email=payload.get("email", ""),
        tenant_id=payload.get("tenant_id"),
    )


async def authenticate_token(token: str, redis: Redis | None) -> TokenUser | None:
    """Resolve *token* to a user, or ``None`` when it is invalid, expired or revoked.

    Used where an ``HTTPException`` cannot be raised (WebSocket handshakes).
    """
    try:
        payload = decode_token(token)
        user = _user_from_claims(payload)
    except (JWTError, ValueError):
        return None
    jti: str | None = payload.get("jti")
    if user is not None and jti and redis is not None and await is_token_revoked(redis, jti):
        return None
    return user


async def get_current_user(
    request: Request,
    token: Annotated[str, Depends(oauth2_scheme)],
) -> TokenUser:
    """Decode JWT, check deny-list, and return user from token claims."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        user = _user_from_claims(payload)
    except (JWTError, ValueError) as exc:
        raise credentials_exception from exc
    if user is None:
        raise credentials_exception

    # Check Redis-backed deny-list for revoked tokens
    jti: str | None = payload.get("jti")
    if jti:
        redis = getattr(request.app.state, "redis", None)
        if redis and await is_token_revoked(redis, jti):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has been revoked",
                headers={"WWW-Authenticate": "Bearer"},
            )

    return user


# Convenience type alias
CurrentUser = Annotated[TokenUser, Depends(get_current_user)]


def require_role(*allowed_roles: str | UserRole):
    """Dependency factory that enforces role-based access.

    Usage:
        @router.put("/branding", dependencies=[Depends(require_role("admin"))])
    """
    allowed = {UserRole(r) if isinstance(r, str) else r for r in allowed_roles}

    async def _check_role(current_user: CurrentUser) -> TokenUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _check_role


TenantAdmin = Annotated[TokenUser, Depends(require_role(UserRole.admin, UserRole.super_admin))]


async def get_tenant_id(
    current_user: TenantAdmin,
    tenant_id: Annotated[str | None, Query(description="Target tenant (super admins only)")] = None,
) -> str:
    """Tenant the request acts on.

    Tenant admins always act on their own tenant. Super admins may pick any
    tenant with ``?tenant_id=``.
    """
    if current_user.role == UserRole.super_admin and tenant_id:
        return tenant_id
    if tenant_id and tenant_id != current_user.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot manage another tenant's settings",
        )
    if not current_user.tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No tenant selected",
        )
    return current_user.tenant_id


TenantId = Annotated[str, Depends(get_tenant_id)]


def get_change_context(request: Request, current_user: CurrentUser) -> ChangeContext:
    """Actor and origin of a settings change, for the audit trail."""
    return ChangeContext(
        user_id=current_user.id,
        tenant_id=current_user.tenant_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


Context = Annotated[ChangeContext, Depends(get_change_context)]
