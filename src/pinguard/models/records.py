"""Request and result types exchanged with gateway callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

PinContent = Union[dict, list, bytes, bytearray, memoryview]


@dataclass
class PinMetadata:
    """Provider-side metadata attached to a pin."""

    name: str | None = None
    keyvalues: dict[str, str] | None = None

    def to_provider(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.keyvalues:
            data["keyvalues"] = dict(self.keyvalues)
        return data


@dataclass
class PinOptions:
    """Provider-side pin options."""

    cid_version: int | None = None  # 0 or 1
    wrap_with_directory: bool | None = None

    def to_provider(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.cid_version is not None:
            data["cidVersion"] = self.cid_version
        if self.wrap_with_directory is not None:
            data["wrapWithDirectory"] = self.wrap_with_directory
        return data


@dataclass
class PinRequest:
    """A single pin call. Lives only for the duration of that call."""

    content: PinContent | None
    metadata: PinMetadata | None = None
    options: PinOptions | None = None

    def provider_metadata(self, default_name: str | None = None) -> dict[str, Any]:
        data = self.metadata.to_provider() if self.metadata else {}
        if default_name is not None and "name" not in data:
            data["name"] = default_name
        return data

    def provider_options(self) -> dict[str, Any]:
        return self.options.to_provider() if self.options else {}


@dataclass(frozen=True)
class PinResult:
    """Result of a successful pin, decoded from the provider response."""

    content_id: str
    size: int
    timestamp: str  # ISO 8601


@dataclass(frozen=True)
class PinListRow:
    """One pinned item as reported by the provider's pin list."""

    content_id: str
    size: int
    date_pinned: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PinListResult:
    """The provider's pin list."""

    count: int
    rows: list[PinListRow] = field(default_factory=list)
