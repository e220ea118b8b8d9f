"""Shared fixtures for pinguard tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from pinguard.audit.emitter import AuditEmitter
from pinguard.gateway import open_gateway
from pinguard.models.config import AuditConfig, GatewayConfig
from pinguard.pinata.urls import DEFAULT_GATEWAY
from pinguard.storage.memory import MemoryAuditSink
from pinguard.storage.sqlite import SQLiteAuditSink

from tests.mocks import RecordingSleep, StubProvider

TEST_API_KEY = "test-api-key"
TEST_API_SECRET = "test-api-secret"
TEST_JWT = "eyJhbGciOiJIUzI1NiJ9.test.signature"
TEST_BASE_URL = "https://api.pinata.test"


def pytest_configure(config):
    """Add provider info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Provider"] = TEST_BASE_URL
    meta["Max retries"] = str(GatewayConfig.max_retries)


def pytest_html_results_summary(prefix, summary, postfix):
    """Show the provider endpoints the suite was pinned against."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Pinning provider</strong><br/>"
        f"API: {TEST_BASE_URL}<br/>"
        f'Gateway: <a href="{DEFAULT_GATEWAY}" target="_blank">{DEFAULT_GATEWAY}</a>'
        "</div>"
    )


def make_test_config(**overrides) -> GatewayConfig:
    """Build a GatewayConfig suitable for testing."""
    defaults = dict(
        base_url=TEST_BASE_URL,
        api_key=TEST_API_KEY,
        api_secret=TEST_API_SECRET,
        jwt=TEST_JWT,
        request_timeout=5,
        audit=AuditConfig(db_path=""),
    )
    defaults.update(overrides)
    return GatewayConfig(**defaults)


@pytest.fixture
def test_config():
    """Default GatewayConfig for tests."""
    return make_test_config()


@pytest.fixture
def sink():
    return MemoryAuditSink()


@pytest.fixture
async def sqlite_sink():
    """Initialized in-memory SQLiteAuditSink."""
    s = SQLiteAuditSink(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def emitter(sink):
    return AuditEmitter(sink)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
async def gateway(test_config, sink, provider, sleeper):
    """PinningGateway wired to the stub provider, with recorded sleeps."""
    gw = await open_gateway(
        test_config, sink=sink, transport=provider.transport, sleep=sleeper,
    )
    yield gw
    await gw.close()
