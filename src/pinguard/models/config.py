"""Configuration models for the gateway."""

from __future__ import annotations

from dataclasses import dataclass, field

from pinguard.models.events import Severity

MAX_CONTENT_SIZE = 100 * 1024 * 1024  # 100 MiB
MAX_RETRIES = 3
BASE_DELAY_MS = 1000
REQUEST_TIMEOUT = 30  # seconds


@dataclass
class AuditConfig:
    """Audit sink and notification settings."""

    db_path: str = "~/.pinguard/audit.db"
    webhook_url: str = ""
    webhook_channel: str = ""
    notify_severity: Severity = Severity.HIGH
    notify_timeout: int = 10  # seconds


@dataclass
class GatewayConfig:
    """Complete gateway configuration."""

    # Provider
    base_url: str = "https://api.pinata.cloud"
    api_key: str = ""
    api_secret: str = ""
    jwt: str = ""  # loaded from env var PINGUARD_JWT

    # Resilience
    request_timeout: int = REQUEST_TIMEOUT
    max_retries: int = MAX_RETRIES
    base_delay_ms: int = BASE_DELAY_MS
    max_retry_after: int = 60  # seconds, cap on provider Retry-After

    # Validation
    max_content_size: int = MAX_CONTENT_SIZE

    # Logging
    log_level: str = "info"

    # Audit
    audit: AuditConfig = field(default_factory=AuditConfig)

    def missing_credentials(self) -> list[str]:
        """Names of credential fields that are not set."""
        return [
            name for name in ("api_key", "api_secret", "jwt")
            if not getattr(self, name)
        ]
