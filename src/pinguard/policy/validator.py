"""Content validator - rejects malformed or oversized content before any network call."""

from __future__ import annotations

import json
import logging
import re

from pinguard.errors import InvalidContentError
from pinguard.models.config import MAX_CONTENT_SIZE
from pinguard.models.records import PinOptions

log = logging.getLogger(__name__)

# CIDv0: base58btc multihash, always "Qm" + 44 chars
CIDV0_PATTERN = re.compile(r"Qm[1-9A-HJ-NP-Za-km-z]{44}")
# CIDv1: multibase "b" (base32, lowercase, no padding)
CIDV1_PATTERN = re.compile(r"b[a-z2-7]{58,}")
# Character class the provider uses for any content identifier it returns
CONTENT_ID_PATTERN = re.compile(r"[A-Za-z0-9]+")


def is_valid_cid(value: str) -> bool:
    """Full CID check: character class and length."""
    return bool(CIDV0_PATTERN.fullmatch(value) or CIDV1_PATTERN.fullmatch(value))


class ContentValidator:
    """Validates pin payloads against provider limits.

    Checks:
    1. JSON content is a dict or list and serializes cleanly
    2. File payloads are raw bytes (empty payloads are allowed)
    3. Serialized size <= max_content_size
    4. CIDs passed to unpin are well-formed before they reach a URL path
    """

    def __init__(self, max_content_size: int = MAX_CONTENT_SIZE) -> None:
        self._max_content_size = max_content_size

    @property
    def max_content_size(self) -> int:
        return self._max_content_size

    def validate_json(self, content: object) -> int:
        """Validate JSON content and return its serialized size in bytes."""
        if isinstance(content, bool) or not isinstance(content, (dict, list)):
            raise InvalidContentError(
                InvalidContentError.INVALID_JSON,
                "Invalid JSON data: must be an object or array",
                {"type": type(content).__name__},
            )

        try:
            serialized = json.dumps(
                content, separators=(",", ":"), ensure_ascii=False, allow_nan=False,
            )
        except ValueError as exc:
            if "Circular reference" in str(exc):
                raise InvalidContentError(
                    InvalidContentError.CIRCULAR_REFERENCE,
                    "Invalid JSON: contains circular references",
                ) from exc
            # NaN and +/-Infinity have no JSON representation
            raise InvalidContentError(
                InvalidContentError.INVALID_JSON,
                f"Invalid JSON: {exc}",
            ) from exc
        except (TypeError, RecursionError) as exc:
            raise InvalidContentError(
                InvalidContentError.INVALID_JSON,
                f"Invalid JSON: {exc}",
            ) from exc

        size = len(serialized.encode("utf-8"))
        self._check_size(size, "JSON data")
        return size

    def validate_file(self, data: object) -> int:
        """Validate a binary payload and return its size in bytes."""
        if data is None or not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidContentError(
                InvalidContentError.INVALID_FILE,
                "Invalid file: must be raw bytes",
                {"type": type(data).__name__},
            )
        size = memoryview(data).nbytes
        self._check_size(size, "File")
        return size

    def validate_hash(self, cid: object) -> str:
        """Validate a CID before it is interpolated into a URL path."""
        if not isinstance(cid, str) or not is_valid_cid(cid):
            log.warning("Rejected malformed CID %r", str(cid)[:64])
            raise InvalidContentError(
                InvalidContentError.INVALID_HASH,
                "Invalid IPFS hash format",
                {"hash": str(cid)[:64]},
            )
        return cid

    def validate_options(self, options: PinOptions | None) -> None:
        if options is None:
            return
        if options.cid_version is not None and options.cid_version not in (0, 1):
            raise InvalidContentError(
                InvalidContentError.INVALID_OPTIONS,
                f"Invalid cid_version: {options.cid_version} (expected 0 or 1)",
                {"cid_version": options.cid_version},
            )

    def _check_size(self, size: int, what: str) -> None:
        if size > self._max_content_size:
            raise InvalidContentError(
                InvalidContentError.SIZE_LIMIT_EXCEEDED,
                f"{what} exceeds maximum size limit "
                f"({size} > {self._max_content_size} bytes)",
                {"size": size, "max_size": self._max_content_size},
            )
