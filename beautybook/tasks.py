"""Celery background tasks."""

import asyncio
import logging

from celery import shared_task

from beautybook.database import close_db
from beautybook.services.device_token_service import DeviceTokenService
from beautybook.stores.sql import SqlDeviceTokenStore

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


@shared_task(bind=True, max_retries=3)
def cleanup_stale_device_tokens(self, inactive_days: int | None = None, delete_days: int | None = None):
    """Deactivate device tokens unused for ``device_token_inactive_days``
    and delete those unused for ``device_token_delete_days``."""
    try:
        counts = run_async(_cleanup_stale_device_tokens(inactive_days, delete_days))
    except Exception as exc:
        logger.error(f"Stale device token cleanup failed: {exc}")
        raise self.retry(exc=exc, countdown=300)
    return {"status": "success", **counts}


async def _cleanup_stale_device_tokens(inactive_days: int | None, delete_days: int | None) -> dict[str, int]:
    try:
        return await DeviceTokenService(SqlDeviceTokenStore()).cleanup_stale(inactive_days, delete_days)
    finally:
        # Each task run gets a fresh event loop; pooled connections can't outlive it
        await close_db()
