"""Provider response schemas, decoded and checked at the network boundary."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from pinguard.errors import ErrorKind, ProviderError
from pinguard.models.records import PinListResult, PinListRow, PinResult
from pinguard.policy.validator import CONTENT_ID_PATTERN


def _malformed(status_code: int, reason: str) -> ProviderError:
    return ProviderError(
        status_code, f"malformed provider response: {reason}", kind=ErrorKind.TERMINAL,
    )


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise _malformed(response.status_code, "body is not JSON") from exc


def _size(value: Any, status_code: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise _malformed(status_code, f"{field} must be a non-negative integer")
    return value


def _is_iso8601(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def decode_pin_result(response: httpx.Response) -> PinResult:
    """Decode `{IpfsHash, PinSize, Timestamp}` into a PinResult."""
    status = response.status_code
    data = _json_body(response)
    if not isinstance(data, dict):
        raise _malformed(status, "expected an object")

    content_id = data.get("IpfsHash")
    if not isinstance(content_id, str) or not CONTENT_ID_PATTERN.fullmatch(content_id):
        raise _malformed(status, f"invalid IpfsHash {content_id!r}")

    size = _size(data.get("PinSize"), status, "PinSize")

    timestamp = data.get("Timestamp")
    if not isinstance(timestamp, str) or not _is_iso8601(timestamp):
        raise _malformed(status, f"invalid Timestamp {timestamp!r}")

    return PinResult(content_id=content_id, size=size, timestamp=timestamp)


def decode_pin_list(response: httpx.Response) -> PinListResult:
    """Decode `{count, rows[]}` into a PinListResult."""
    status = response.status_code
    data = _json_body(response)
    if not isinstance(data, dict):
        raise _malformed(status, "expected an object")

    raw_rows = data.get("rows") or []
    if not isinstance(raw_rows, list):
        raise _malformed(status, "rows must be a list")

    rows = []
    for raw in raw_rows:
        if not isinstance(raw, dict):
            raise _malformed(status, "row must be an object")
        content_id = raw.get("ipfs_pin_hash")
        if not isinstance(content_id, str) or not CONTENT_ID_PATTERN.fullmatch(content_id):
            raise _malformed(status, f"invalid ipfs_pin_hash {content_id!r}")
        date_pinned = raw.get("date_pinned")
        if date_pinned is not None and (
            not isinstance(date_pinned, str) or not _is_iso8601(date_pinned)
        ):
            raise _malformed(status, f"invalid date_pinned {date_pinned!r}")
        metadata = raw.get("metadata") or {}
        rows.append(PinListRow(
            content_id=content_id,
            size=_size(raw.get("size", 0), status, "size"),
            date_pinned=date_pinned,
            metadata=metadata if isinstance(metadata, dict) else {},
        ))

    count = data.get("count", len(rows))
    return PinListResult(count=_size(count, status, "count"), rows=rows)


def provider_message(response: httpx.Response) -> str:
    """Best human-readable error message from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            reason = error.get("reason", "")
            details = error.get("details", "")
            return f"{reason}: {details}" if reason and details else str(reason or details)
        if isinstance(error, str):
            return error
        if isinstance(data.get("message"), str):
            return data["message"]
    return response.text[:200]
