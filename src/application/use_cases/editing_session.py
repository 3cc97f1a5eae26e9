from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.application.use_cases.generate_image import GenerateImageUseCase
from src.application.use_cases.run_operation import OperationOrchestrator, OperationReport
from src.domain.entities.image import Hotspot, ImageAsset
from src.domain.entities.operation import OperationKind, make_operation, parse_enum
from src.domain.errors import AtNewestVersion, AtOldestVersion, EmptyHistory
from src.domain.services.display_resources import DisplayResourcePool
from src.domain.services.history_store import HistoryStore

logger = logging.getLogger(__name__)

# Kinds whose primary image is the current version of the history
_EDITS_CURRENT = {OperationKind.EDIT, OperationKind.FILTER, OperationKind.ADJUST, OperationKind.ANALYZE}


@dataclass(frozen=True)
class HistoryMove:
    changed: bool
    asset: ImageAsset | None = None
    message: str | None = None


@dataclass
class EditingSession:
    """All mutable editing state for one user session: a history and its orchestrator.

    Passed explicitly to whoever needs it; there is no shared global editing state.
    """

    history: HistoryStore
    orchestrator: OperationOrchestrator
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_used: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def start(
        cls,
        generator: GenerateImageUseCase,
        base: ImageAsset | None = None,
        *,
        pool: DisplayResourcePool | None = None,
    ) -> "EditingSession":
        history = HistoryStore(pool)
        if base is not None:
            history.reset(base)
        session = cls(history=history, orchestrator=OperationOrchestrator(history, generator))
        logger.info("Started editing session %s (base image: %s)", session.id, base is not None)
        return session

    def undo(self) -> HistoryMove:
        try:
            return HistoryMove(changed=True, asset=self.history.undo())
        except (AtOldestVersion, EmptyHistory) as exc:
            return HistoryMove(changed=False, message=str(exc))

    def redo(self) -> HistoryMove:
        try:
            return HistoryMove(changed=True, asset=self.history.redo())
        except (AtNewestVersion, EmptyHistory) as exc:
            return HistoryMove(changed=False, message=str(exc))

    def revert_to_original(self) -> HistoryMove:
        try:
            original = self.history.original()
            if self.history.cursor == 0:
                return HistoryMove(changed=False, asset=original, message=str(AtOldestVersion()))
            self.history.jump(0)
            return HistoryMove(changed=True, asset=original)
        except EmptyHistory as exc:
            return HistoryMove(changed=False, message=str(exc))

    def reset(self, asset: ImageAsset) -> None:
        self.history.reset(asset)

    async def apply(
        self,
        kind: str | OperationKind,
        prompt: str | None,
        *,
        x: int | None = None,
        y: int | None = None,
        references: list[ImageAsset] | tuple[ImageAsset, ...] = (),
        style: Any = None,
        aspect_ratio: Any = None,
        quality: Any = None,
        supersede: bool = False,
    ) -> OperationReport:
        """Run an operation against the current version of this session's image."""
        op = parse_enum(OperationKind, kind, None)
        image = None
        if op in _EDITS_CURRENT and not self.history.is_empty:
            image = self.history.current()
        hotspot = Hotspot(x=x, y=y) if x is not None or y is not None else None
        request = make_operation(
            kind,
            prompt=prompt,
            image=image,
            hotspot=hotspot,
            references=references,
            style=style,
            aspect_ratio=aspect_ratio,
            quality=quality,
        )
        return await self.orchestrator.run(request, supersede=supersede)

    def close(self) -> None:
        self.history.clear()
        logger.info("Closed editing session %s", self.id)
