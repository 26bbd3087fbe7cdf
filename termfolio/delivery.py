from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, cast

import httpx
import redis

from termfolio.config import TerminalSettings
from termfolio.errors import DeliveryFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EmailSubmission:
    name: str
    email: str
    body: str

    def as_payload(self) -> dict[str, str]:
        return {"name": self.name.strip(), "email": self.email.strip(), "body": self.body.strip()}


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    success: bool
    message: str | None = None
    id: str | None = None
    error: str | None = None


class Delivery(Protocol):
    async def deliver(self, submission: EmailSubmission) -> DeliveryResult:  # pragma: no cover
        ...


def _parse_contact_response(resp: httpx.Response) -> DeliveryResult:
    try:
        data: Any = resp.json()
    except ValueError:
        data = None

    if not isinstance(data, dict):
        if resp.is_success:
            return DeliveryResult(success=True)
        return DeliveryResult(success=False, error=resp.text.strip() or None)

    if resp.is_success and data.get("success", True):
        msg = data.get("message")
        mid = data.get("id")
        return DeliveryResult(
            success=True,
            message=str(msg) if msg else None,
            id=str(mid) if mid else None,
        )

    err = data.get("error") or data.get("message")
    return DeliveryResult(success=False, error=str(err) if err else None)


@dataclass(slots=True)
class HttpContactDelivery:
    """POSTs `{name, email, body}` as JSON to a contact endpoint.

    The endpoint answers `{success, message?, id?}` or `{error}`.
    """

    endpoint: str
    timeout_s: float = 10.0
    # Injected in tests (httpx.MockTransport).
    transport: httpx.AsyncBaseTransport | None = None

    async def deliver(self, submission: EmailSubmission) -> DeliveryResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                resp = await client.post(self.endpoint, json=submission.as_payload())
        except httpx.HTTPError as e:
            logger.warning("Contact delivery to %s failed: %s", self.endpoint, e)
            raise DeliveryFailure(f"Failed to send email: {e}") from e

        result = _parse_contact_response(resp)
        if not result.success:
            logger.warning("Contact endpoint rejected message (status=%s): %s", resp.status_code, result.error)
        return result


@dataclass(slots=True)
class RedisOutboxDelivery:
    """Appends the message to a Redis stream; a separate worker sends it."""

    r: redis.Redis
    stream_key: str = "contact:outbox"

    async def deliver(self, submission: EmailSubmission) -> DeliveryResult:
        fields = {**submission.as_payload(), "ts": datetime.now(tz=UTC).isoformat()}
        try:
            stream_id = self.r.xadd(self.stream_key, fields)
        except redis.RedisError as e:
            logger.warning("Outbox append to %s failed: %s", self.stream_key, e)
            raise DeliveryFailure(f"Failed to queue email: {e}") from e
        return DeliveryResult(success=True, message="Message queued for delivery.", id=cast(str, stream_id))


@dataclass(frozen=True, slots=True)
class DisabledDelivery:
    reason: str = "Email delivery is not configured."

    async def deliver(self, submission: EmailSubmission) -> DeliveryResult:
        return DeliveryResult(success=False, error=self.reason)


def create_delivery(settings: TerminalSettings) -> Delivery:
    if settings.delivery == "http":
        if not settings.contact_url:
            raise RuntimeError("Set TERMFOLIO_CONTACT_URL to use the http delivery backend")
        return HttpContactDelivery(endpoint=settings.contact_url, timeout_s=settings.delivery_timeout_s)

    if settings.delivery == "redis":
        from termfolio.infra.redis_client import create_redis

        return RedisOutboxDelivery(r=create_redis(), stream_key=settings.outbox_stream)

    return DisabledDelivery()
