from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

DeliveryBackend = Literal["http", "redis", "disabled"]

DEFAULT_EXIT_DELAY_MS = 500


@dataclass(frozen=True, slots=True)
class TerminalSettings:
    # Base for mode hrefs like "/terminal"; None means https://<site_name>.
    base_url: str | None = None
    contact_url: str | None = None
    delivery: DeliveryBackend = "disabled"
    delivery_timeout_s: float = 10.0
    exit_delay_ms: int = DEFAULT_EXIT_DELAY_MS
    outbox_stream: str = "contact:outbox"

    def base_url_for(self, site_name: str) -> str:
        return (self.base_url or f"https://{site_name}").rstrip("/")


def _delivery_from_env(contact_url: str | None) -> DeliveryBackend:
    raw = os.environ.get("TERMFOLIO_DELIVERY", "").strip().lower()
    if not raw:
        return "http" if contact_url else "disabled"
    if raw not in {"http", "redis", "disabled"}:
        raise RuntimeError(f"TERMFOLIO_DELIVERY must be one of http, redis, disabled (got {raw!r})")
    return raw  # type: ignore[return-value]


def settings_from_env() -> TerminalSettings:
    contact_url = os.environ.get("TERMFOLIO_CONTACT_URL") or None
    return TerminalSettings(
        base_url=os.environ.get("TERMFOLIO_BASE_URL") or None,
        contact_url=contact_url,
        delivery=_delivery_from_env(contact_url),
        delivery_timeout_s=float(os.environ.get("TERMFOLIO_DELIVERY_TIMEOUT_S", "10")),
        exit_delay_ms=int(os.environ.get("TERMFOLIO_EXIT_DELAY_MS", str(DEFAULT_EXIT_DELAY_MS))),
        outbox_stream=os.environ.get("TERMFOLIO_OUTBOX_STREAM", "contact:outbox"),
    )
