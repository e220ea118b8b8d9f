"""Gateway URL helpers."""

from __future__ import annotations

import re

DEFAULT_GATEWAY = "https://gateway.pinata.cloud"

_IPFS_PATH = re.compile(r"/ipfs/([A-Za-z0-9]+)")


def gateway_url(cid: str, gateway: str = DEFAULT_GATEWAY) -> str:
    """Public URL for a CID on an HTTP gateway."""
    return f"{gateway.rstrip('/')}/ipfs/{cid}"


def extract_cid(url: str) -> str | None:
    """Pull the CID out of a gateway URL, or None if there is no /ipfs/ path."""
    match = _IPFS_PATH.search(url)
    return match.group(1) if match else None
