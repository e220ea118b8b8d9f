"""Pinning gateway - wires validation, backoff, rate limiting and audit together."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

import httpx

from pinguard.audit.emitter import AuditEmitter
from pinguard.audit.notifier import WebhookNotifier
from pinguard.errors import InvalidContentError
from pinguard.interfaces.sink import AuditSink
from pinguard.models.config import GatewayConfig
from pinguard.models.events import AuditAction, AuditStatus, Severity
from pinguard.models.records import (
    PinContent,
    PinListResult,
    PinMetadata,
    PinOptions,
    PinRequest,
    PinResult,
)
from pinguard.pinata.client import PinataClient, PinataCredentials
from pinguard.pinata.responses import decode_pin_list, decode_pin_result
from pinguard.policy.validator import ContentValidator
from pinguard.resilience.backoff import BackoffController, SleepFn
from pinguard.resilience.ratelimit import RateLimitCoordinator
from pinguard.storage.memory import MemoryAuditSink
from pinguard.storage.sqlite import SQLiteAuditSink

log = logging.getLogger(__name__)

DEFAULT_JSON_NAME = "Untitled"
DEFAULT_FILE_NAME = "file"


def _describe_pin(result: PinResult) -> dict[str, Any]:
    return {"ipfs_hash": result.content_id, "size": result.size}


class PinningGateway:
    """Resilient front door to the pinning provider.

    Each operation validates its input, runs the provider call under the
    backoff controller, and leaves an audit event for every attempt. No
    state is shared between calls except the read-only client.
    """

    def __init__(
        self,
        client: PinataClient,
        emitter: AuditEmitter,
        validator: ContentValidator | None = None,
        backoff: BackoffController | None = None,
    ) -> None:
        self._client = client
        self._emitter = emitter
        self._validator = validator or ContentValidator()
        self._backoff = backoff or BackoffController(emitter)
        self._closers: list[Callable[[], Awaitable[None]]] = []

    @property
    def emitter(self) -> AuditEmitter:
        return self._emitter

    async def _reject(
        self, action: AuditAction, exc: InvalidContentError, details: dict[str, Any],
    ) -> None:
        log.warning("%s rejected: %s", action.value, exc)
        await self._emitter.record(
            action.value,
            AuditStatus.FAILURE,
            {**details, "stage": "validation", "reason": exc.reason, "error": str(exc)},
            Severity.HIGH,
        )

    # ── Pin JSON ───────────────────────────────────────────

    async def pin_json(
        self,
        content: PinContent,
        metadata: PinMetadata | None = None,
        options: PinOptions | None = None,
    ) -> PinResult:
        """Validate and pin a JSON document (dict or list)."""
        action = AuditAction.PIN_JSON
        req = PinRequest(content=content, metadata=metadata, options=options)
        pinata_metadata = req.provider_metadata(default_name=DEFAULT_JSON_NAME)
        details: dict[str, Any] = {"metadata": pinata_metadata}

        try:
            self._validator.validate_options(options)
            details["content_size"] = self._validator.validate_json(content)
        except InvalidContentError as exc:
            await self._reject(action, exc, details)
            raise

        body = {
            "pinataContent": req.content,
            "pinataMetadata": pinata_metadata,
            "pinataOptions": req.provider_options(),
        }

        async def _attempt() -> PinResult:
            resp = await self._client.request(
                action, "POST", "/pinning/pinJSONToIPFS", json=body,
            )
            return decode_pin_result(resp)

        result = await self._backoff.run(action, _attempt, details, describe=_describe_pin)
        log.info("Pinned JSON as %s (%d bytes)", result.content_id, result.size)
        return result

    # ── Pin file ───────────────────────────────────────────

    async def pin_file(
        self,
        data: bytes | None,
        metadata: PinMetadata | None = None,
        options: PinOptions | None = None,
    ) -> PinResult:
        """Validate and pin a binary payload. Empty payloads are allowed."""
        action = AuditAction.PIN_FILE
        req = PinRequest(content=data, metadata=metadata, options=options)
        details: dict[str, Any] = {"metadata": req.provider_metadata()}

        try:
            self._validator.validate_options(options)
            details["file_size"] = self._validator.validate_file(data)
        except InvalidContentError as exc:
            await self._reject(action, exc, details)
            raise

        filename = (metadata.name if metadata and metadata.name else DEFAULT_FILE_NAME)
        files = {"file": (filename, bytes(req.content), "application/octet-stream")}
        form: dict[str, str] = {"pinataOptions": json.dumps(req.provider_options())}
        if metadata is not None:
            form["pinataMetadata"] = json.dumps(req.provider_metadata())

        async def _attempt() -> PinResult:
            resp = await self._client.request(
                action, "POST", "/pinning/pinFileToIPFS", files=files, data=form,
            )
            return decode_pin_result(resp)

        result = await self._backoff.run(action, _attempt, details, describe=_describe_pin)
        log.info("Pinned file %s as %s (%d bytes)", filename, result.content_id, result.size)
        return result

    # ── List / unpin ───────────────────────────────────────

    async def list_pins(self) -> PinListResult:
        """Fetch the provider's pin list."""
        action = AuditAction.LIST

        async def _attempt() -> PinListResult:
            resp = await self._client.request(action, "GET", "/pinning/pinList")
            return decode_pin_list(resp)

        return await self._backoff.run(
            action,
            _attempt,
            describe=lambda r: {"count": r.count, "rows": len(r.rows)},
        )

    async def unpin(self, cid: str) -> None:
        """Remove a pin. Malformed CIDs never reach the provider."""
        action = AuditAction.UNPIN
        details = {"hash": str(cid)[:64]}

        try:
            self._validator.validate_hash(cid)
        except InvalidContentError as exc:
            await self._reject(action, exc, details)
            raise

        async def _attempt() -> None:
            await self._client.request(action, "DELETE", f"/pinning/unpin/{cid}")

        await self._backoff.run(action, _attempt, details)
        log.info("Unpinned %s", cid)

    # ── Connectivity ───────────────────────────────────────

    async def test_connection(self) -> bool:
        """Probe provider authentication. Returns False on any failure."""
        action = AuditAction.TEST_CONNECTION

        async def _attempt() -> bool:
            await self._client.request(action, "GET", "/data/testAuthentication")
            return True

        try:
            return await self._backoff.run(action, _attempt)
        except Exception as exc:
            log.warning("Connection test failed: %s", exc)
            return False

    # ── Lifecycle ──────────────────────────────────────────

    def on_close(self, closer: Callable[[], Awaitable[None]]) -> None:
        """Register a coroutine function to run after the gateway closes."""
        self._closers.append(closer)

    async def close(self) -> None:
        await self._emitter.aclose()
        await self._client.close()
        for closer in self._closers:
            await closer()

    async def __aenter__(self) -> PinningGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def open_gateway(
    cfg: GatewayConfig,
    sink: AuditSink | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFn | None = None,
) -> PinningGateway:
    """Build a PinningGateway from configuration.

    Without an explicit sink, audit events go to the SQLite database at
    `cfg.audit.db_path` (or memory when the path is empty).
    """
    owned_sink: SQLiteAuditSink | None = None
    if sink is None:
        if cfg.audit.db_path:
            owned_sink = SQLiteAuditSink(str(Path(cfg.audit.db_path).expanduser()))
            await owned_sink.initialize()
            sink = owned_sink
        else:
            sink = MemoryAuditSink()

    notifier = None
    if cfg.audit.webhook_url:
        notifier = WebhookNotifier(
            cfg.audit.webhook_url,
            channel=cfg.audit.webhook_channel,
            timeout=cfg.audit.notify_timeout,
        )

    emitter = AuditEmitter(sink, notifier, cfg.audit.notify_severity)
    sleep_kw = {"sleep": sleep} if sleep is not None else {}

    rate_limiter = RateLimitCoordinator(
        emitter, max_retry_after=cfg.max_retry_after, **sleep_kw,
    )
    client = PinataClient(
        PinataCredentials(cfg.api_key, cfg.api_secret, cfg.jwt),
        rate_limiter,
        base_url=cfg.base_url,
        timeout=cfg.request_timeout,
        transport=transport,
    )
    backoff = BackoffController(
        emitter,
        max_retries=cfg.max_retries,
        base_delay_ms=cfg.base_delay_ms,
        **sleep_kw,
    )
    gateway = PinningGateway(
        client, emitter, ContentValidator(cfg.max_content_size), backoff,
    )
    if owned_sink is not None:
        gateway.on_close(owned_sink.close)
    return gateway
