"""AuditNotifier protocol - best-effort forwarding of high-severity events."""

from __future__ import annotations

from typing import Protocol

from pinguard.models.events import AuditEvent


class AuditNotifier(Protocol):
    """Forwards an audit event to an external channel (e.g. a webhook)."""

    async def notify(self, event: AuditEvent) -> None:
        ...

    async def close(self) -> None:
        ...
