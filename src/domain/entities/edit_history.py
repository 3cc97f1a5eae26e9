from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from src.domain.entities.image import ImageAsset


@dataclass(frozen=True)
class HistoryEntry:
    sequence: int  # monotonically increasing, never reused within one history
    asset: ImageAsset
    created_at: datetime
    operation_type: str | None = None  # kind of operation that produced this version; None for uploads
