"""In-process audit sink."""

from __future__ import annotations

from pinguard.models.events import AuditEvent, AuditStatus


class MemoryAuditSink:
    """Keeps audit events in a list, in the order they were written."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def write(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> list[str]:
        return [e.action for e in self.events]

    def failures(self) -> list[AuditEvent]:
        return [e for e in self.events if e.status is AuditStatus.FAILURE]

    def successes(self) -> list[AuditEvent]:
        return [e for e in self.events if e.status is AuditStatus.SUCCESS]

    def clear(self) -> None:
        self.events.clear()
