"""Protocol interfaces for pinguard components."""

from pinguard.interfaces.gateway import PinningService
from pinguard.interfaces.notifier import AuditNotifier
from pinguard.interfaces.sink import AuditSink

__all__ = [
    "PinningService",
    "AuditNotifier",
    "AuditSink",
]
