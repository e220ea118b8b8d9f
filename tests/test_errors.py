"""Error taxonomy and gateway URL helpers."""

from __future__ import annotations

import pytest

from pinguard.errors import (
    ErrorKind,
    ExhaustedRetriesError,
    GatewayError,
    InvalidContentError,
    NetworkError,
    ProviderError,
    RateLimitedError,
)
from pinguard.pinata.client import PinataCredentials
from pinguard.pinata.urls import DEFAULT_GATEWAY, extract_cid, gateway_url
from tests.factories import CID_V0, CID_V1


def test_all_errors_are_gateway_errors():
    errors = [
        InvalidContentError(InvalidContentError.INVALID_JSON, "bad"),
        ProviderError(400, "bad"),
        RateLimitedError(1.0),
        NetworkError("down"),
        ExhaustedRetriesError(NetworkError("down"), 3),
    ]
    assert all(isinstance(e, GatewayError) for e in errors)


def test_invalid_content_code_is_reason():
    exc = InvalidContentError(InvalidContentError.SIZE_LIMIT_EXCEEDED, "too big", {"size": 9})
    assert exc.code == "SIZE_LIMIT_EXCEEDED"
    assert exc.details == {"size": 9}
    assert not exc.retryable


def test_provider_error_message_and_kind():
    exc = ProviderError(502, "bad gateway")
    assert str(exc) == "provider HTTP 502: bad gateway"
    assert exc.provider_message == "bad gateway"
    assert exc.retryable

    forced = ProviderError(200, "malformed", kind=ErrorKind.TERMINAL)
    assert forced.kind is ErrorKind.TERMINAL


def test_rate_limited_error():
    exc = RateLimitedError(2.5)
    assert exc.status_code == 429
    assert exc.retry_after == 2.5
    assert exc.retryable
    assert exc.code == "RATE_LIMITED"


def test_network_error_timeout_flag():
    assert NetworkError("slow", timeout=True).timeout
    assert NetworkError("refused").retryable


def test_exhausted_keeps_last_error():
    last = ProviderError(503, "unavailable")
    exc = ExhaustedRetriesError(last, 3)
    assert exc.last_error is last
    assert exc.attempts == 3
    assert "after 3 attempts" in str(exc)


def test_credentials_repr_masks_secrets():
    creds = PinataCredentials("key-123", "secret-456", "jwt-789")
    text = repr(creds)
    assert "key-123" not in text
    assert "secret-456" not in text
    assert "jwt-789" not in text


# ── Gateway URLs ──────────────────────────────────────────────────


def test_gateway_url_default():
    assert gateway_url(CID_V0) == f"{DEFAULT_GATEWAY}/ipfs/{CID_V0}"


def test_gateway_url_custom_strips_slash():
    assert gateway_url(CID_V1, "https://ipfs.example.test/") == (
        f"https://ipfs.example.test/ipfs/{CID_V1}"
    )


@pytest.mark.parametrize("url,expected", [
    (f"https://gateway.pinata.cloud/ipfs/{CID_V0}", CID_V0),
    (f"https://ipfs.example.test/ipfs/{CID_V1}/index.html", CID_V1),
    ("https://example.test/not-ipfs", None),
    ("", None),
])
def test_extract_cid(url, expected):
    assert extract_cid(url) == expected
