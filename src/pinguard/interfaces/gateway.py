"""PinningService protocol - the public contract of the pinning gateway."""

from __future__ import annotations

from typing import Protocol

from pinguard.models.records import (
    PinContent,
    PinListResult,
    PinMetadata,
    PinOptions,
    PinResult,
)


class PinningService(Protocol):
    """Pins, lists and unpins content on a remote pinning provider."""

    async def pin_json(
        self,
        content: PinContent,
        metadata: PinMetadata | None = None,
        options: PinOptions | None = None,
    ) -> PinResult:
        """Validate and pin a JSON document."""
        ...

    async def pin_file(
        self,
        data: bytes | None,
        metadata: PinMetadata | None = None,
        options: PinOptions | None = None,
    ) -> PinResult:
        """Validate and pin a binary payload."""
        ...

    async def list_pins(self) -> PinListResult:
        ...

    async def unpin(self, cid: str) -> None:
        """Remove a pin. The CID is format-checked first."""
        ...

    async def test_connection(self) -> bool:
        """Probe provider authentication. Never raises."""
        ...
