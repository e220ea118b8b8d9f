"""Audit event model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class AuditAction(str, Enum):
    """Base actions. Attempt-level variants append a suffix (see below)."""

    PIN_JSON = "PIN_JSON"
    PIN_FILE = "PIN_FILE"
    LIST = "LIST"
    UNPIN = "UNPIN"
    TEST_CONNECTION = "TEST_CONNECTION"

    def retry(self) -> str:
        return f"{self.value}_RETRY"

    def rate_limit(self) -> str:
        return f"{self.value}_RATE_LIMIT"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class Severity(str, Enum):
    """Audit severity. HIGH events are forwarded to the notifier."""

    LOW = "low"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return 0 if self is Severity.LOW else 1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class AuditEvent:
    """One recorded attempt. Immutable once created."""

    action: str
    status: AuditStatus
    details: Mapping[str, Any] = field(default_factory=dict)
    severity: Severity = Severity.LOW
    timestamp: str = field(default_factory=_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "status": self.status.value,
            "details": dict(self.details),
            "severity": self.severity.value,
            "timestamp": self.timestamp,
        }
