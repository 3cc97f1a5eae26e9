from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from src.domain.errors import InvalidAsset, InvalidOption


@dataclass(frozen=True)
class ImageAsset:
    """Immutable image payload. The id is derived from the content, never from a path."""

    data: bytes = field(repr=False)
    mime_type: str
    id: str = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.data, (bytes, bytearray)) or len(self.data) == 0:
            raise InvalidAsset("Image payload is empty")
        if not isinstance(self.mime_type, str) or not self.mime_type.lower().startswith("image/"):
            raise InvalidAsset(f"Unsupported MIME type: {self.mime_type!r}")
        object.__setattr__(self, "data", bytes(self.data))
        object.__setattr__(self, "mime_type", self.mime_type.lower())
        digest = hashlib.sha256()
        digest.update(self.mime_type.encode("ascii", errors="replace"))
        digest.update(b"\0")
        digest.update(self.data)
        object.__setattr__(self, "id", digest.hexdigest())

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Hotspot:
    x: int
    y: int

    def __post_init__(self) -> None:
        for name in ("x", "y"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidOption(f"Hotspot {name} must be an integer, got {value!r}")
            if value < 0:
                raise InvalidOption(f"Hotspot {name} must be non-negative, got {value}")
