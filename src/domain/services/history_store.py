from __future__ import annotations

import logging
from datetime import UTC, datetime

from src.domain.entities.edit_history import HistoryEntry
from src.domain.entities.image import ImageAsset
from src.domain.errors import (
    AtNewestVersion,
    AtOldestVersion,
    EmptyHistory,
    InvalidAsset,
    InvalidOption,
)
from src.domain.services.display_resources import DisplayHandle, DisplayResourcePool

logger = logging.getLogger(__name__)


class HistoryStore:
    """Linear, cursor-addressed sequence of image versions.

    Invariants:
    - `0 <= cursor < len(self)` whenever the history is non-empty, `cursor == -1` otherwise.
    - Pushing while the cursor is not at the tip discards every entry after the cursor.
    - Every entry holds one reference in the display pool; dropping an entry drops it.

    `revision` changes on every mutation and lets callers detect that the
    history moved while they were waiting on something.
    """

    def __init__(self, pool: DisplayResourcePool | None = None) -> None:
        self.pool = pool or DisplayResourcePool()
        self._entries: list[HistoryEntry] = []
        self._cursor = -1
        self._next_sequence = 1
        self._revision = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def current(self) -> ImageAsset:
        return self.current_entry().asset

    def current_entry(self) -> HistoryEntry:
        if not self._entries:
            raise EmptyHistory()
        return self._entries[self._cursor]

    def original(self) -> ImageAsset:
        if not self._entries:
            raise EmptyHistory()
        return self._entries[0].asset

    def push(self, asset: ImageAsset, operation_type: str | None = None) -> HistoryEntry:
        if not isinstance(asset, ImageAsset):
            raise InvalidAsset("Cannot push an empty or invalid image asset")
        dropped = self._entries[self._cursor + 1 :]
        del self._entries[self._cursor + 1 :]
        for entry in dropped:
            self.pool.release(entry.asset)
        if dropped:
            logger.debug("Discarded %d redo entries on push", len(dropped))

        entry = self._append(asset, operation_type)
        self._cursor = len(self._entries) - 1
        self._revision += 1
        return entry

    def undo(self) -> ImageAsset:
        if not self._entries:
            raise EmptyHistory()
        if self._cursor == 0:
            raise AtOldestVersion()
        self._cursor -= 1
        self._revision += 1
        return self._entries[self._cursor].asset

    def redo(self) -> ImageAsset:
        if not self._entries:
            raise EmptyHistory()
        if self._cursor >= len(self._entries) - 1:
            raise AtNewestVersion()
        self._cursor += 1
        self._revision += 1
        return self._entries[self._cursor].asset

    def jump(self, index: int) -> ImageAsset:
        """Move the cursor to an existing entry; nothing is truncated."""
        if not self._entries:
            raise EmptyHistory()
        if not 0 <= index < len(self._entries):
            raise InvalidOption(f"History index {index} out of range (0..{len(self._entries) - 1})")
        if index != self._cursor:
            self._cursor = index
            self._revision += 1
        return self._entries[index].asset

    def reset(self, asset: ImageAsset) -> HistoryEntry:
        if not isinstance(asset, ImageAsset):
            raise InvalidAsset("Cannot reset history with an empty or invalid image asset")
        # Take the new reference first so an asset shared with the old history stays alive
        entry = self._append_detached(asset, operation_type=None)
        self._drop_all()
        self._entries = [entry]
        self._cursor = 0
        self._revision += 1
        return entry

    def clear(self) -> None:
        self._drop_all()
        self._revision += 1

    def display(self) -> DisplayHandle:
        return self.pool.materialize(self.current())

    def _append(self, asset: ImageAsset, operation_type: str | None) -> HistoryEntry:
        entry = self._append_detached(asset, operation_type)
        self._entries.append(entry)
        return entry

    def _append_detached(self, asset: ImageAsset, operation_type: str | None) -> HistoryEntry:
        entry = HistoryEntry(
            sequence=self._next_sequence,
            asset=asset,
            created_at=datetime.now(UTC),
            operation_type=operation_type,
        )
        self._next_sequence += 1
        self.pool.acquire(asset)
        return entry

    def _drop_all(self) -> None:
        dropped, self._entries = self._entries, []
        self._cursor = -1
        for entry in dropped:
            self.pool.release(entry.asset)
