"""Backoff controller - bounded retries with exponential delay and per-attempt audit."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from pinguard.audit.emitter import AuditEmitter
from pinguard.errors import ErrorKind, ExhaustedRetriesError, GatewayError, ProviderError
from pinguard.models.config import BASE_DELAY_MS, MAX_RETRIES
from pinguard.models.events import AuditAction, AuditStatus, Severity

log = logging.getLogger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class RetryContext:
    """Per-call retry state. Never shared between calls."""

    attempt: int = 0
    last_error: BaseException | None = None


def classify(exc: BaseException) -> ErrorKind:
    """Read the retry classification of an exception.

    GatewayErrors carry their own tag. Raw httpx transport errors (which the
    client normally translates) are retryable; anything else is terminal.
    """
    if isinstance(exc, GatewayError):
        return exc.kind
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return ErrorKind.RETRYABLE
    return ErrorKind.TERMINAL


def _error_details(exc: BaseException, kind: ErrorKind) -> dict[str, Any]:
    details: dict[str, Any] = {
        "error": str(exc),
        "error_type": type(exc).__name__,
        "error_kind": kind.value,
    }
    if isinstance(exc, ProviderError):
        details["status_code"] = exc.status_code
    return details


class BackoffController:
    """Runs an operation with up to `max_retries` attempts.

    Delay before attempt n (n >= 2) is base_delay_ms * 2**(n-2). Exactly one
    audit event is recorded per attempt, before the controller moves on.
    """

    def __init__(
        self,
        emitter: AuditEmitter,
        max_retries: int = MAX_RETRIES,
        base_delay_ms: int = BASE_DELAY_MS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._emitter = emitter
        self._max_retries = max_retries
        self._base_delay_ms = base_delay_ms
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before `attempt` (0 for the first attempt)."""
        if attempt < 2:
            return 0.0
        return self._base_delay_ms * (2 ** (attempt - 2)) / 1000

    async def run(
        self,
        action: AuditAction,
        operation: Callable[[], Awaitable[T]],
        details: dict[str, Any] | None = None,
        describe: Callable[[T], dict[str, Any]] | None = None,
    ) -> T:
        """Run `operation` until it succeeds, fails terminally, or runs out of attempts."""
        ctx = RetryContext()
        base = dict(details or {})

        while ctx.attempt < self._max_retries:
            ctx.attempt += 1
            if ctx.attempt > 1:
                delay = self.delay_for(ctx.attempt)
                log.info(
                    "%s: retrying in %.1fs (attempt %d/%d)",
                    action.value, delay, ctx.attempt, self._max_retries,
                )
                await self._sleep(delay)

            start = time.monotonic()
            try:
                result = await operation()
            except Exception as exc:
                ctx.last_error = exc
                kind = classify(exc)
                attempt_details = {
                    **base,
                    "attempt": ctx.attempt,
                    "duration_ms": int((time.monotonic() - start) * 1000),
                    **_error_details(exc, kind),
                }

                if kind is ErrorKind.TERMINAL:
                    log.error("%s failed (terminal): %s", action.value, exc)
                    await self._emitter.record(
                        action.value, AuditStatus.FAILURE, attempt_details, Severity.HIGH,
                    )
                    raise

                if ctx.attempt < self._max_retries:
                    log.warning(
                        "%s failed (attempt %d/%d): %s",
                        action.value, ctx.attempt, self._max_retries, exc,
                    )
                    await self._emitter.record(
                        action.retry(), AuditStatus.FAILURE, attempt_details, Severity.LOW,
                    )
                    continue

                log.error(
                    "%s failed after %d attempts: %s", action.value, ctx.attempt, exc,
                )
                await self._emitter.record(
                    action.value,
                    AuditStatus.FAILURE,
                    {**attempt_details, "exhausted": True},
                    Severity.HIGH,
                )
                raise ExhaustedRetriesError(exc, ctx.attempt) from exc

            success_details = {
                **base,
                "attempt": ctx.attempt,
                "duration_ms": int((time.monotonic() - start) * 1000),
            }
            if describe is not None:
                success_details.update(describe(result))
            await self._emitter.record(action.value, AuditStatus.SUCCESS, success_details)
            return result

        # Unreachable: the loop either returns or raises on its last attempt.
        raise ExhaustedRetriesError(
            ctx.last_error or RuntimeError("no attempts made"), ctx.attempt,
        )
