"""Audit trail: emitter and notification channels."""

from pinguard.audit.emitter import AuditEmitter
from pinguard.audit.notifier import WebhookNotifier

__all__ = ["AuditEmitter", "WebhookNotifier"]
