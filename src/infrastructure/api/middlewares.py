from __future__ import annotations

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from src.infrastructure.config import Settings


def add_default_middlewares(app: FastAPI, settings: Settings) -> None:
    # CORS configuration
    # In development, allow the local frontend dev servers
    # In production, only the configured origins
    if settings.env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:5173",  # Vite default
            "http://localhost:5192",
            "http://localhost:5193",
            "http://localhost:5194",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:5192",
        ] + settings.cors_origins
    else:
        allowed_origins = settings.cors_origins or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allowed_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
