"""Webhook notifier - posts high-severity audit events to an external endpoint."""

from __future__ import annotations

import logging

import httpx

from pinguard.models.events import AuditEvent

log = logging.getLogger(__name__)


class WebhookNotifier:
    """Best-effort webhook delivery of audit events.

    Posts `{"action", "status", "details"}` JSON. Delivery errors are logged
    and swallowed here so the emitter never sees them.
    """

    def __init__(
        self,
        webhook_url: str,
        channel: str = "",
        timeout: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._channel = channel
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _payload(self, event: AuditEvent) -> dict:
        payload = {
            "action": event.action,
            "status": event.status.value,
            "details": dict(event.details),
        }
        if self._channel:
            payload["channel"] = self._channel
        return payload

    async def notify(self, event: AuditEvent) -> None:
        try:
            resp = await self._client.post(self._webhook_url, json=self._payload(event))
            resp.raise_for_status()
            log.debug("Webhook notified for %s", event.action)
        except (httpx.HTTPError, TypeError, ValueError) as exc:
            log.warning("Webhook notification for %s failed: %s", event.action, exc)

    async def close(self) -> None:
        await self._client.aclose()
