"""Endpoints for the authenticated user's own settings."""

from typing import Any

from fastapi import APIRouter

from app.api.v1.errors import settings_errors
from app.auth.dependencies import Context, CurrentUser
from app.providers import AvailabilitySvc, PreferencesSvc
from app.schemas.me import AvailabilityUpdate, PreferencesUpdate, StatusUpdate

router = APIRouter()


@router.get("/availability")
async def get_availability(current_user: CurrentUser, service: AvailabilitySvc) -> dict[str, Any]:
    return await service.get_public_settings(current_user.id)


@router.put("/availability")
async def update_availability(
    body: AvailabilityUpdate,
    current_user: CurrentUser,
    service: AvailabilitySvc,
    context: Context,
) -> dict[str, Any]:
    with settings_errors():
        return await service.update_settings(body.to_update(), current_user.id, context)


@router.put("/availability/status")
async def update_status(
    body: StatusUpdate,
    current_user: CurrentUser,
    service: AvailabilitySvc,
    context: Context,
) -> dict[str, Any]:
    """Change presence status; other sessions of the user are notified live."""
    with settings_errors():
        return await service.update_status(current_user.id, body.status, context)


@router.get("/preferences")
async def get_preferences(current_user: CurrentUser, service: PreferencesSvc) -> dict[str, Any]:
    return await service.get_public_settings(current_user.id)


@router.put("/preferences")
async def update_preferences(
    body: PreferencesUpdate,
    current_user: CurrentUser,
    service: PreferencesSvc,
    context: Context,
) -> dict[str, Any]:
    with settings_errors():
        return await service.update_settings(body.to_update(), current_user.id, context)
