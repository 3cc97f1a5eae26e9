from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status

from src.application.dtos.common_dto import ErrorResponse
from src.application.dtos.history_dto import (
    HistoryItem,
    HistoryMoveResponse,
    ListHistoryResponse,
    OperationRequestBody,
    OperationResponse,
    SessionState,
)
from src.application.use_cases.editing_session import EditingSession, HistoryMove
from src.application.use_cases.generate_image import GenerateImageUseCase
from src.domain.services.data_uri import DataUriCodec
from src.infrastructure.api.dependencies import get_generator, get_session_repo, get_settings
from src.infrastructure.api.errors import ApiError
from src.infrastructure.api.routes.proxy_routes import read_upload
from src.infrastructure.config import Settings
from src.infrastructure.memory.session_repository import SessionRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sessions",
    tags=["Editing Sessions"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Invalid operation, option or image"},
        404: {"model": ErrorResponse, "description": "Not Found - Session does not exist or has expired"},
        409: {"model": ErrorResponse, "description": "Conflict - An image operation is already in progress"},
        502: {"model": ErrorResponse, "description": "The model blocked the request or returned no usable result"},
    },
)


def _get_session(session_id: str, sessions: SessionRepository) -> EditingSession:
    session = sessions.get(session_id)
    if session is None:
        raise ApiError(404, "Session not found")
    return session


def _move_response(session: EditingSession, move: HistoryMove) -> HistoryMoveResponse:
    return HistoryMoveResponse(
        changed=move.changed,
        message=move.message,
        session=SessionState.from_session(session),
    )


@router.post(
    "",
    response_model=SessionState,
    status_code=status.HTTP_201_CREATED,
    summary="Start Editing Session",
    description="""
    Start a new in-memory editing session.

    The optional `image` upload becomes the original version. Without it the session
    starts empty and its first version comes from text-to-image or reference generation.
    Sessions are not persisted. They disappear when the server restarts, and after
    `SESSION_IDLE_MINUTES` without a request (404 afterwards).
    """,
)
async def create_session(
    image: UploadFile | None = File(None, description="Base image"),
    settings: Settings = Depends(get_settings),
    generator: GenerateImageUseCase = Depends(get_generator),
    sessions: SessionRepository = Depends(get_session_repo),
):
    base = await read_upload(image, settings) if image is not None else None
    session = sessions.add(EditingSession.start(generator, base))
    return SessionState.from_session(session)


@router.get(
    "/{session_id}",
    response_model=SessionState,
    summary="Get Session State",
)
def get_session(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    return SessionState.from_session(_get_session(session_id, sessions))


@router.get(
    "/{session_id}/history",
    response_model=ListHistoryResponse,
    summary="List Versions",
    description="All versions of the session, oldest first, with the current one flagged.",
)
def list_history(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    history = _get_session(session_id, sessions).history
    return ListHistoryResponse(
        history=[HistoryItem.from_entry(i, e, history.cursor) for i, e in enumerate(history.entries)]
    )


@router.post(
    "/{session_id}/undo",
    response_model=HistoryMoveResponse,
    summary="Undo",
    description="Step back one version. At the oldest version nothing changes and `changed` is false.",
)
def undo(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    session = _get_session(session_id, sessions)
    return _move_response(session, session.undo())


@router.post(
    "/{session_id}/redo",
    response_model=HistoryMoveResponse,
    summary="Redo",
    description="Step forward one version. At the newest version nothing changes and `changed` is false.",
)
def redo(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    session = _get_session(session_id, sessions)
    return _move_response(session, session.redo())


@router.post(
    "/{session_id}/revert",
    response_model=HistoryMoveResponse,
    summary="Revert to Original",
    description="Move to the original version. Later versions stay available through redo.",
)
def revert(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    session = _get_session(session_id, sessions)
    return _move_response(session, session.revert_to_original())


@router.post(
    "/{session_id}/reset",
    response_model=SessionState,
    summary="Replace Base Image",
    description="Discard every version and start over from the uploaded image.",
)
async def reset(
    session_id: str,
    image: UploadFile | None = File(None, description="New base image"),
    settings: Settings = Depends(get_settings),
    sessions: SessionRepository = Depends(get_session_repo),
):
    session = _get_session(session_id, sessions)
    session.reset(await read_upload(image, settings))
    return SessionState.from_session(session)


@router.post(
    "/{session_id}/operations",
    response_model=OperationResponse,
    summary="Run Operation",
    description="""
    Run an AI operation against the current version.

    - `edit`, `filter`, `adjust` and `analyze` use the current version as input
    - `text-to-image` and `reference` generate a new image (`references` are data URIs)
    - `optimize-prompt` and `analyze` return text / structured analysis and never add a version

    A successful image result becomes the new current version, discarding any redo versions.
    While an image operation is running, another one fails with 409 unless `supersede` is true.
    """,
)
async def run_operation(
    session_id: str,
    body: OperationRequestBody,
    sessions: SessionRepository = Depends(get_session_repo),
):
    session = _get_session(session_id, sessions)
    references = [DataUriCodec.decode(uri) for uri in body.references]
    report = await session.apply(
        body.kind,
        body.prompt,
        x=body.x,
        y=body.y,
        references=references,
        style=body.style,
        aspect_ratio=body.aspect_ratio,
        quality=body.quality,
        supersede=body.supersede,
    )
    report.raise_for_outcome()
    return OperationResponse(
        applied=report.applied,
        stale=report.stale,
        text=report.text if report.analysis is None else None,
        analysis=report.analysis,
        session=SessionState.from_session(session),
    )


@router.delete(
    "/{session_id}",
    summary="Close Session",
    description="Release every version held by the session and forget it.",
)
def delete_session(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    if not sessions.delete(session_id):
        raise ApiError(404, "Session not found")
    return {"ok": True}
