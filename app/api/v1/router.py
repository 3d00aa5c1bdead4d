"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1 import audit, health, platform_settings, tenant_settings, user_settings

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(platform_settings.router, prefix="/platform", tags=["Platform Settings"])
api_router.include_router(tenant_settings.router, prefix="/tenant", tags=["Tenant Settings"])
api_router.include_router(user_settings.router, prefix="/me", tags=["My Settings"])
api_router.include_router(audit.router, prefix="/audit", tags=["Audit"])
