from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_ANALYSIS_MODEL = "gemini-2.5-pro"
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_SESSION_IDLE_MINUTES = 60


def _split(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


@dataclass(slots=True)
class Settings:
    gemini_api_key: str | None = None
    gemini_base_url: str | None = None
    image_model: str = DEFAULT_IMAGE_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    env: str = "development"
    cors_origins: list[str] = field(default_factory=list)
    log_level: str = "INFO"
    port: int = 5192
    session_idle_minutes: int = DEFAULT_SESSION_IDLE_MINUTES

    @classmethod
    def from_env(cls) -> "Settings":
        # Server secrets live in .env.server; real environment variables win
        load_dotenv(".env.server", override=False)
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_base_url=os.getenv("GEMINI_BASE_URL") or None,
            image_model=os.getenv("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            text_model=os.getenv("GEMINI_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            analysis_model=os.getenv("GEMINI_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))),
            env=os.getenv("ENV", "development"),
            cors_origins=_split(os.getenv("CORS_ORIGINS")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "5192")),
            session_idle_minutes=int(os.getenv("SESSION_IDLE_MINUTES", str(DEFAULT_SESSION_IDLE_MINUTES))),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
