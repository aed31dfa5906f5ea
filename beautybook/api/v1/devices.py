"""Device push token endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from beautybook.api.deps import CurrentUser, get_device_token_service
from beautybook.schemas.notification import DeviceTokenCreate, DeviceTokenResponse
from beautybook.services.device_token_service import DeviceTokenService

router = APIRouter()

Devices = Annotated[DeviceTokenService, Depends(get_device_token_service)]


@router.post("/", response_model=DeviceTokenResponse, status_code=status.HTTP_201_CREATED)
async def register_device(
    data: DeviceTokenCreate,
    current_user: CurrentUser,
    devices: Devices,
):
    """Register a push token for the current user's device."""
    return await devices.register(
        current_user.id,
        data.token,
        data.platform,
        device_id=data.device_id,
        app_version=data.app_version,
    )


@router.delete("/{token}", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_device(
    token: str,
    current_user: CurrentUser,
    devices: Devices,
) -> None:
    """Remove a push token (e.g. on logout)."""
    await devices.unregister(current_user.id, token)
