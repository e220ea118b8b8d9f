"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from pinguard.models.config import AuditConfig, GatewayConfig
from pinguard.models.events import Severity


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "PINGUARD_",
) -> GatewayConfig:
    """Load gateway configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (PINGUARD_API_KEY, PINGUARD_JWT, etc.)
        2. TOML config file
        3. Defaults from GatewayConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = GatewayConfig()

    # ── Provider section ───────────────────────────────────
    provider = raw.get("provider", {})
    if v := provider.get("base_url"):
        cfg.base_url = str(v)
    if v := provider.get("api_key"):
        cfg.api_key = str(v)
    if v := provider.get("api_secret"):
        cfg.api_secret = str(v)
    if v := provider.get("jwt"):
        cfg.jwt = str(v)
    if v := provider.get("request_timeout"):
        cfg.request_timeout = int(v)

    # ── Retry section ──────────────────────────────────────
    retry = raw.get("retry", {})
    if v := retry.get("max_retries"):
        cfg.max_retries = int(v)
    if v := retry.get("base_delay_ms"):
        cfg.base_delay_ms = int(v)
    if v := retry.get("max_retry_after"):
        cfg.max_retry_after = int(v)

    # ── Limits section ─────────────────────────────────────
    limits = raw.get("limits", {})
    if v := limits.get("max_content_size"):
        cfg.max_content_size = int(v)

    # ── Logging ────────────────────────────────────────────
    if v := raw.get("logging", {}).get("level"):
        cfg.log_level = str(v)

    # ── Audit section ──────────────────────────────────────
    audit_raw = raw.get("audit", {})
    cfg.audit = AuditConfig(
        db_path=str(audit_raw.get("db_path", AuditConfig.db_path)),
        webhook_url=str(audit_raw.get("webhook_url", "")),
        webhook_channel=str(audit_raw.get("webhook_channel", "")),
        notify_severity=Severity(audit_raw.get("notify_severity", Severity.HIGH.value)),
        notify_timeout=int(audit_raw.get("notify_timeout", AuditConfig.notify_timeout)),
    )

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get(f"{env_prefix}API_KEY"):
        cfg.api_key = key
    if secret := os.environ.get(f"{env_prefix}API_SECRET"):
        cfg.api_secret = secret
    if jwt := os.environ.get(f"{env_prefix}JWT"):
        cfg.jwt = jwt
    if url := os.environ.get(f"{env_prefix}BASE_URL"):
        cfg.base_url = url
    if hook := os.environ.get(f"{env_prefix}WEBHOOK_URL"):
        cfg.audit.webhook_url = hook
    if db := os.environ.get(f"{env_prefix}AUDIT_DB"):
        cfg.audit.db_path = db

    # Expand ~ in paths
    if cfg.audit.db_path and cfg.audit.db_path != ":memory:":
        cfg.audit.db_path = str(Path(cfg.audit.db_path).expanduser())

    return cfg
