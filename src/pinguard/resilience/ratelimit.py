"""Rate-limit coordinator - honors provider 429 responses with one resubmission."""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable

import httpx

from pinguard.audit.emitter import AuditEmitter
from pinguard.models.events import AuditAction, AuditStatus, Severity

log = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 1.0  # seconds, when the provider sends no usable header

SendFn = Callable[[httpx.Request], Awaitable[httpx.Response]]
SleepFn = Callable[[float], Awaitable[None]]


def parse_retry_after(
    value: str | None,
    default: float = DEFAULT_RETRY_AFTER,
    now: datetime | None = None,
) -> float:
    """Parse a Retry-After header (delta-seconds or HTTP-date) into seconds."""
    if not value:
        return default
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            return default
        if when is None:
            return default
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - (now or datetime.now(timezone.utc))).total_seconds()
    if not math.isfinite(seconds):
        return default
    return max(seconds, 0.0)


class RateLimitCoordinator:
    """Response-side hook for the provider client.

    On HTTP 429 it waits the provider-declared duration and resubmits the
    identical request exactly once. The resubmission is not part of the
    backoff controller's retry budget; a second 429 is handed back to the
    caller unchanged.
    """

    def __init__(
        self,
        emitter: AuditEmitter,
        max_retry_after: float = 60,
        default_retry_after: float = DEFAULT_RETRY_AFTER,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._emitter = emitter
        self._max_retry_after = max_retry_after
        self._default_retry_after = default_retry_after
        self._sleep = sleep

    def wait_time(self, response: httpx.Response) -> float:
        wait = parse_retry_after(
            response.headers.get("retry-after"), self._default_retry_after,
        )
        return min(wait, self._max_retry_after)

    async def on_response(
        self,
        action: AuditAction,
        request: httpx.Request,
        response: httpx.Response,
        send: SendFn,
    ) -> httpx.Response:
        if response.status_code != 429:
            return response

        wait = self.wait_time(response)
        log.warning(
            "Rate limited on %s %s, waiting %.1fs before resubmitting",
            request.method, request.url.path, wait,
        )
        await self._emitter.record(
            action.rate_limit(),
            AuditStatus.FAILURE,
            {
                "retry_after": wait,
                "endpoint": request.url.path,
                "method": request.method,
            },
            Severity.HIGH,
        )
        await response.aclose()
        await self._sleep(wait)
        return await send(request)
