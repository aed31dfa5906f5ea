"""Device token registration and cleanup."""

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from beautybook.config import settings
from beautybook.core.exceptions import NotFoundError, ValidationError
from beautybook.models.user import DeviceToken
from beautybook.stores.base import DeviceTokenStore

logger = logging.getLogger(__name__)

PLATFORMS = ("ios", "android", "web")


class DeviceTokenService:
    """Manages the push tokens a user's devices register."""

    def __init__(self, store: DeviceTokenStore) -> None:
        self.store = store

    async def register(
        self,
        user_id: UUID,
        token: str,
        platform: str,
        device_id: str | None = None,
        app_version: str | None = None,
    ) -> DeviceToken:
        """Register or refresh a token.

        A token seen before is reactivated and moved to this user.

        Raises:
            ValidationError: On an empty token or unknown platform
        """
        token = token.strip()
        if not token:
            raise ValidationError("Device token must not be empty")
        if platform not in PLATFORMS:
            raise ValidationError(f"Platform must be one of: {', '.join(PLATFORMS)}")

        device = await self.store.register(user_id, token, platform, device_id, app_version)
        logger.info(f"Registered {platform} device token for user {user_id}")
        return device

    async def unregister(self, user_id: UUID, token: str) -> None:
        """Remove a token owned by the user.

        Raises:
            NotFoundError: If the user has no such token
        """
        if not await self.store.remove(user_id, token):
            raise NotFoundError("Device token")
        logger.info(f"Removed device token for user {user_id}")

    async def cleanup_stale(
        self, inactive_days: int | None = None, delete_days: int | None = None
    ) -> dict[str, int]:
        """Retire tokens in two phases.

        Tokens unused for ``inactive_days`` stop receiving pushes; tokens
        unused for ``delete_days`` are removed outright.

        Returns:
            dict: ``deactivated`` and ``deleted`` counts
        """
        inactive_days = inactive_days or settings.device_token_inactive_days
        delete_days = delete_days or settings.device_token_delete_days
        if delete_days < inactive_days:
            raise ValidationError("Delete threshold must not be shorter than the deactivation threshold")

        now = datetime.now(UTC)
        delete_cutoff = now - timedelta(days=delete_days)
        inactive_cutoff = now - timedelta(days=inactive_days)

        # Delete first so a deleted token is not also counted as deactivated
        deleted = await self.store.delete_stale(delete_cutoff)
        deactivated = await self.store.deactivate_stale(inactive_cutoff)
        logger.info(
            f"Device token cleanup: deactivated {deactivated} unused since {inactive_cutoff.isoformat()}, "
            f"deleted {deleted} unused since {delete_cutoff.isoformat()}"
        )
        return {"deactivated": deactivated, "deleted": deleted}
