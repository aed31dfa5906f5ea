"""Push notification transports.

Like the payment adapters, transports only talk to the provider. Deciding
who gets notified, and cleaning up dead tokens, is the notification
service's job.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from beautybook.config import settings

logger = logging.getLogger(__name__)

# Expo accepts at most 100 messages per request
EXPO_BATCH_SIZE = 100


@dataclass
class PushPayload:
    """Content of a single push notification."""

    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class SendResult:
    """Outcome of sending one payload to many devices."""

    success_count: int = 0
    failure_count: int = 0
    invalid_tokens: list[str] = field(default_factory=list)


class PushTransport(ABC):
    """Abstract base class for push providers."""

    @abstractmethod
    async def send(self, tokens: list[str], payload: PushPayload) -> SendResult:
        """Send a payload to every token. Must not raise on provider errors."""

    async def close(self) -> None:
        """Release any held connections."""


class NullPushTransport(PushTransport):
    """Drops every push. Used when push notifications are disabled."""

    async def send(self, tokens: list[str], payload: PushPayload) -> SendResult:
        logger.debug(f"Push disabled, dropping '{payload.title}' for {len(tokens)} device(s)")
        return SendResult()


class ExpoPushTransport(PushTransport):
    """Expo push API client."""

    def __init__(
        self,
        url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url or settings.expo_push_url
        self.access_token = access_token if access_token is not None else settings.expo_access_token
        self.timeout = timeout or settings.push_timeout_seconds
        self._http_client = client

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazy-load HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def send(self, tokens: list[str], payload: PushPayload) -> SendResult:
        result = SendResult()
        for start in range(0, len(tokens), EXPO_BATCH_SIZE):
            batch = tokens[start : start + EXPO_BATCH_SIZE]
            await self._send_batch(batch, payload, result)

        logger.info(
            f"Push '{payload.title}': {result.success_count} sent, "
            f"{result.failure_count} failed, {len(result.invalid_tokens)} invalid"
        )
        return result

    async def _send_batch(self, batch: list[str], payload: PushPayload, result: SendResult) -> None:
        messages = [
            {
                "to": token,
                "title": payload.title,
                "body": payload.body,
                "data": payload.data,
                "sound": "default",
                "priority": "high",
            }
            for token in batch
        ]

        try:
            response = await self.http_client.post(self.url, json=messages, headers=self._headers())
            response.raise_for_status()
            tickets = response.json().get("data", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Expo push request failed for {len(batch)} device(s): {e}")
            result.failure_count += len(batch)
            return

        # Tickets come back in message order
        for token, ticket in zip(batch, tickets):
            if ticket.get("status") == "ok":
                result.success_count += 1
                continue

            result.failure_count += 1
            error = (ticket.get("details") or {}).get("error")
            if error == "DeviceNotRegistered":
                result.invalid_tokens.append(token)
            else:
                logger.warning(f"Expo push ticket error ({error}): {ticket.get('message')}")

        # Missing tickets count as failures
        if len(tickets) < len(batch):
            result.failure_count += len(batch) - len(tickets)


def build_push_transport() -> PushTransport:
    """Pick the transport for the current settings."""
    if settings.enable_push_notifications:
        return ExpoPushTransport()
    return NullPushTransport()
