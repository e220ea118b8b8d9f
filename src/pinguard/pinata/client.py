"""Pinata HTTP client - credentials, base URL and transport for every provider call."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from pinguard.errors import NetworkError, ProviderError, RateLimitedError
from pinguard.models.config import REQUEST_TIMEOUT
from pinguard.models.events import AuditAction
from pinguard.pinata.responses import provider_message
from pinguard.resilience.ratelimit import RateLimitCoordinator, parse_retry_after

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.pinata.cloud"
USER_AGENT = "pinguard/1.0.0"


@dataclass(frozen=True)
class PinataCredentials:
    """Provider credentials. Read-only after construction."""

    api_key: str
    api_secret: str
    jwt: str

    def __repr__(self) -> str:
        return "PinataCredentials(api_key=***, api_secret=***, jwt=***)"


class PinataClient:
    """Thin wrapper over an httpx.AsyncClient for the Pinata API.

    Headers and the per-request timeout are fixed at construction. Every
    response passes through the rate-limit coordinator before error
    translation, so one call can cost at most two HTTP requests.
    """

    def __init__(
        self,
        credentials: PinataCredentials,
        rate_limiter: RateLimitCoordinator,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._rate_limiter = rate_limiter
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "pinata_api_key": credentials.api_key,
                "pinata_secret_api_key": credentials.api_secret,
                "Authorization": f"Bearer {credentials.jwt}",
                "User-Agent": USER_AGENT,
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(
        self, action: AuditAction, method: str, path: str, **kwargs: Any,
    ) -> httpx.Response:
        """Send one logical request and translate failures into GatewayErrors."""
        request = self._http.build_request(method, path, **kwargs)
        # Buffer the body so a rate-limit resubmission sends identical bytes
        await request.aread()

        log.debug("%s %s", method, path)
        response = await self._send(request)
        response = await self._rate_limiter.on_response(
            action, request, response, self._send,
        )

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("retry-after"))
            raise RateLimitedError(
                retry_after,
                provider_message(response) or "rate limited",
                {"endpoint": path, "method": method},
            )
        if response.status_code >= 400:
            raise ProviderError(
                response.status_code,
                provider_message(response),
                {"endpoint": path, "method": method},
            )
        return response

    async def _send(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self._http.send(request)
        except httpx.TimeoutException as exc:
            raise NetworkError(
                f"timeout on {request.method} {request.url.path}: {exc!r}", timeout=True,
            ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                f"connection failure on {request.method} {request.url.path}: {exc!r}",
            ) from exc

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> PinataClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
