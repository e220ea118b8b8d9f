"""Data models for pinguard."""

from pinguard.models.config import AuditConfig, GatewayConfig
from pinguard.models.events import AuditAction, AuditEvent, AuditStatus, Severity
from pinguard.models.records import (
    PinContent,
    PinListResult,
    PinListRow,
    PinMetadata,
    PinOptions,
    PinRequest,
    PinResult,
)

__all__ = [
    "AuditConfig", "GatewayConfig",
    "AuditAction", "AuditEvent", "AuditStatus", "Severity",
    "PinContent", "PinListResult", "PinListRow", "PinMetadata", "PinOptions",
    "PinRequest", "PinResult",
]
