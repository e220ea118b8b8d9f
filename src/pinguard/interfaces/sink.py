"""AuditSink protocol - append-only destination for audit events."""

from __future__ import annotations

from typing import Protocol

from pinguard.models.events import AuditEvent


class AuditSink(Protocol):
    """Stores audit events. Events are never updated once written."""

    async def write(self, event: AuditEvent) -> None:
        """Append one event."""
        ...
