"""Audit emitter - records every gateway attempt to a sink."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pinguard.interfaces.notifier import AuditNotifier
from pinguard.interfaces.sink import AuditSink
from pinguard.models.events import AuditEvent, AuditStatus, Severity

log = logging.getLogger(__name__)


class AuditEmitter:
    """Writes one AuditEvent per call to `record`.

    High-severity events are additionally forwarded to the notifier as a
    fire-and-forget task. Neither sink nor notifier failures ever reach the
    caller.
    """

    def __init__(
        self,
        sink: AuditSink,
        notifier: AuditNotifier | None = None,
        notify_severity: Severity = Severity.HIGH,
    ) -> None:
        self._sink = sink
        self._notifier = notifier
        self._notify_severity = notify_severity
        self._pending: set[asyncio.Task] = set()

    @property
    def sink(self) -> AuditSink:
        return self._sink

    async def record(
        self,
        action: str,
        status: AuditStatus,
        details: dict[str, Any] | None = None,
        severity: Severity = Severity.LOW,
    ) -> AuditEvent:
        """Append one event and, for high severities, notify."""
        event = AuditEvent(
            action=action,
            status=status,
            details=details or {},
            severity=severity,
        )

        level = logging.INFO if status is AuditStatus.SUCCESS else logging.WARNING
        log.log(level, "Audit %s %s %s", event.action, event.status.value, dict(event.details))

        try:
            await self._sink.write(event)
        except Exception as exc:
            log.error("Failed to write audit event %s: %s", event.action, exc)

        if self._notifier is not None and severity.rank >= self._notify_severity.rank:
            self._schedule_notification(event)

        return event

    def _schedule_notification(self, event: AuditEvent) -> None:
        task = asyncio.ensure_future(self._notify(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, event: AuditEvent) -> None:
        assert self._notifier is not None
        try:
            await self._notifier.notify(event)
        except Exception as exc:
            log.error("Failed to send notification for %s: %s", event.action, exc)

    async def drain(self) -> None:
        """Wait for in-flight notifications to settle."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._notifier is not None:
            await self._notifier.close()
