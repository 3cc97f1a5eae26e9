from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.application.dtos.analysis_dto import AnalysisResult
from src.application.use_cases.editing_session import EditingSession
from src.domain.entities.edit_history import HistoryEntry


class HistoryItem(BaseModel):
    """One version in an editing session's history."""
    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(..., description="Position in the history, 0 is the original")
    sequence: int = Field(..., description="Monotonic sequence number of the version")
    asset_id: str = Field(..., alias="assetId", description="Content-derived identifier of the image")
    mime_type: str = Field(..., alias="mimeType", examples=["image/png"])
    size: int = Field(..., description="Size of the image in bytes")
    operation: str | None = Field(None, description="Operation that produced this version, null for uploads")
    is_current: bool = Field(..., alias="isCurrent")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_entry(cls, index: int, entry: HistoryEntry, cursor: int) -> "HistoryItem":
        return cls(
            index=index,
            sequence=entry.sequence,
            asset_id=entry.asset.id,
            mime_type=entry.asset.mime_type,
            size=entry.asset.size,
            operation=entry.operation_type,
            is_current=index == cursor,
            created_at=entry.created_at,
        )


class ListHistoryResponse(BaseModel):
    history: list[HistoryItem] = Field(..., description="Versions, oldest first")


class SessionState(BaseModel):
    """Snapshot of an editing session."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Session identifier")
    cursor: int = Field(..., description="Index of the current version, -1 when empty")
    length: int = Field(..., description="Number of versions")
    can_undo: bool = Field(..., alias="canUndo")
    can_redo: bool = Field(..., alias="canRedo")
    phase: str = Field(..., description="idle, sending, succeeded or failed")
    image_url: str | None = Field(None, alias="imageUrl", description="Current version as a data URI")

    @classmethod
    def from_session(cls, session: EditingSession) -> "SessionState":
        history = session.history
        return cls(
            id=session.id,
            cursor=history.cursor,
            length=len(history),
            can_undo=history.can_undo,
            can_redo=history.can_redo,
            phase=session.orchestrator.phase.value,
            image_url=None if history.is_empty else history.display().url,
        )


class HistoryMoveResponse(BaseModel):
    changed: bool = Field(..., description="False when the move was a no-op at a history boundary")
    message: str | None = Field(None, description="Why nothing changed")
    session: SessionState


class OperationRequestBody(BaseModel):
    """Operation to run against the session's current version."""
    model_config = ConfigDict(populate_by_name=True)

    kind: str = Field(
        ...,
        description="edit, filter, adjust, text-to-image, reference, optimize-prompt or analyze",
        examples=["edit"],
    )
    prompt: str | None = Field(None, description="Free-text instruction")
    x: int | None = Field(None, description="Hotspot x (edit only)")
    y: int | None = Field(None, description="Hotspot y (edit only)")
    style: str | None = Field(None)
    aspect_ratio: str | None = Field(None, alias="aspectRatio")
    quality: str | None = Field(None)
    references: list[str] = Field(default_factory=list, description="Reference images as data URIs")
    supersede: bool = Field(False, description="Abandon an in-flight operation instead of failing")


class OperationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(True)
    applied: bool = Field(..., description="Whether a new version was pushed")
    stale: bool = Field(False, description="The result arrived after the history moved and was discarded")
    text: str | None = Field(None, description="Text result of optimize-prompt")
    analysis: AnalysisResult | None = Field(None)
    session: SessionState
