"""Command-line interface."""

from __future__ import annotations

import asyncio

import pytest
from click.testing import CliRunner

from pinguard.cli import cli
from pinguard.models.events import AuditEvent, AuditStatus, Severity
from pinguard.storage.sqlite import SQLiteAuditSink

ENV_VARS = (
    "PINGUARD_API_KEY",
    "PINGUARD_API_SECRET",
    "PINGUARD_JWT",
    "PINGUARD_BASE_URL",
    "PINGUARD_WEBHOOK_URL",
)


@pytest.fixture
def audit_db(tmp_path, monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "audit.db"
    monkeypatch.setenv("PINGUARD_AUDIT_DB", str(path))
    return path


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("PINGUARD_API_KEY", "k")
    monkeypatch.setenv("PINGUARD_API_SECRET", "s")
    monkeypatch.setenv("PINGUARD_JWT", "j")


@pytest.fixture
def runner():
    return CliRunner()


def test_status_masks_credentials(runner, audit_db, credentials):
    result = runner.invoke(cli, ["status"])

    assert result.exit_code == 0
    assert "https://api.pinata.cloud" in result.output
    assert "***configured***" in result.output
    assert str(audit_db) in result.output


def test_status_without_credentials(runner, audit_db):
    result = runner.invoke(cli, ["status"])

    assert result.exit_code == 0
    assert "(not set)" in result.output


@pytest.mark.parametrize("args", [
    ["test"],
    ["list"],
    ["unpin", "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"],
])
def test_commands_require_credentials(runner, audit_db, args):
    result = runner.invoke(cli, args)

    assert result.exit_code == 1
    assert "missing credentials" in result.output


def test_unpin_rejects_malformed_cid(runner, audit_db, credentials):
    result = runner.invoke(cli, ["unpin", "tooshort"])

    assert result.exit_code == 1
    assert "Invalid IPFS hash format" in result.output


def test_pin_json_rejects_invalid_file(runner, audit_db, credentials, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    result = runner.invoke(cli, ["pin-json", str(path)])

    assert result.exit_code == 1
    assert "not valid JSON" in result.output


def test_pin_json_rejects_scalar_document(runner, audit_db, credentials, tmp_path):
    path = tmp_path / "scalar.json"
    path.write_text('"just a string"')

    result = runner.invoke(cli, ["pin-json", str(path)])

    assert result.exit_code == 1
    assert "must be an object or array" in result.output


def test_audit_shows_recent_events(runner, audit_db):
    async def _seed():
        sink = SQLiteAuditSink(str(audit_db))
        await sink.initialize()
        await sink.write(AuditEvent("PIN_JSON_RETRY", AuditStatus.FAILURE, {"attempt": 1}))
        await sink.write(
            AuditEvent("PIN_JSON", AuditStatus.SUCCESS, {"ipfs_hash": "QmABC123"}),
        )
        await sink.write(AuditEvent("UNPIN", AuditStatus.FAILURE, {}, Severity.HIGH))
        await sink.close()

    asyncio.run(_seed())

    result = runner.invoke(cli, ["audit"])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 3
    assert "UNPIN" in lines[0]
    assert "QmABC123" in lines[1]

    filtered = runner.invoke(cli, ["audit", "--action", "PIN_JSON", "--limit", "1"])
    assert filtered.exit_code == 0
    assert filtered.output.strip().splitlines() == [
        line for line in lines if "PIN_JSON" in line and "QmABC123" in line
    ]


def test_audit_empty(runner, audit_db):
    result = runner.invoke(cli, ["audit"])

    assert result.exit_code == 0
    assert "No audit events recorded." in result.output
