from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.application.dtos.common_dto import ErrorResponse
from src.domain.errors import (
    InvalidAsset,
    InvalidOption,
    MalformedResult,
    OperationFailed,
    OperationInProgress,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error rendered as `{error, details?, reason?}` instead of FastAPI's `{detail}`."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.body = ErrorResponse(error=error, details=details, reason=reason)

    @classmethod
    def from_failure(cls, status_code: int, error: str, exc: OperationFailed) -> "ApiError":
        return cls(status_code, error, details=exc.outcome.message, reason=exc.reason)


def _render(exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.body.model_dump(exclude_none=True))


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.body.details)
        return _render(exc)

    @app.exception_handler(InvalidOption)
    @app.exception_handler(InvalidAsset)
    async def bad_input_handler(request: Request, exc: ValueError) -> JSONResponse:
        return _render(ApiError(400, str(exc)))

    @app.exception_handler(OperationInProgress)
    async def in_progress_handler(request: Request, exc: OperationInProgress) -> JSONResponse:
        return _render(ApiError(409, str(exc), reason="OperationInProgress"))

    @app.exception_handler(OperationFailed)
    async def failed_handler(request: Request, exc: OperationFailed) -> JSONResponse:
        logger.warning("%s %s: %s", request.method, request.url.path, exc.outcome.message)
        return _render(ApiError.from_failure(502, "Image operation failed", exc))

    @app.exception_handler(MalformedResult)
    async def malformed_handler(request: Request, exc: MalformedResult) -> JSONResponse:
        logger.warning("Unparsable model result: %s", exc)
        return _render(ApiError(502, "Model returned a malformed result", details=str(exc), reason="MalformedResult"))
