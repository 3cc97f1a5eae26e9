from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.application.use_cases.generate_image import GenerateImageUseCase, ImageModelTransport
from src.infrastructure.ai.gemini_transport import GeminiTransport
from src.infrastructure.config import Settings
from src.infrastructure.memory.session_repository import SessionRepository


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _gemini_transport() -> GeminiTransport:
    return GeminiTransport(get_settings())


def get_transport() -> ImageModelTransport:
    return _gemini_transport()


def get_generator(
    transport: Annotated[ImageModelTransport, Depends(get_transport)],
) -> GenerateImageUseCase:
    return GenerateImageUseCase(transport=transport)


def get_session_repo() -> SessionRepository:
    minutes = get_settings().session_idle_minutes
    return SessionRepository(idle_timeout=timedelta(minutes=minutes) if minutes > 0 else None)
