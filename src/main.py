from __future__ import annotations

from fastapi import FastAPI

from src.application.dtos.common_dto import RootResponse
from src.infrastructure.api.dependencies import get_settings
from src.infrastructure.api.errors import add_exception_handlers
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.proxy_routes import router as proxy_router
from src.infrastructure.api.routes.session_routes import router as session_router
from src.infrastructure.config import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Pixshop Backend",
        version="0.1.0",
        description="""
        ## Pixshop Backend API

        FastAPI backend for AI-assisted photo editing. Images are sent together with a
        natural-language instruction to a generative image model (Gemini) and the returned
        image becomes a new version.

        ### Features
        - **Localized edits**: retouch the area around a clicked point
        - **Filters and adjustments**: stylize or globally adjust the whole image
        - **Generation**: text-to-image and reference-based generation
        - **Prompt tools**: prompt optimization and structured image analysis
        - **Editing sessions**: in-memory version history with undo, redo and revert

        ### Error Responses
        - **400 Bad Request**: Missing fields, unsupported options or non-image uploads
        - **409 Conflict**: An image operation is already running for the session
        - **413 Payload Too Large**: Upload exceeds the configured limit
        - **500 / 502**: The model blocked the request, stopped early, returned no image,
          returned a malformed result, or could not be reached
        """,
        license_info={
            "name": "Apache 2.0",
            "url": "https://www.apache.org/licenses/LICENSE-2.0",
        },
    )
    add_default_middlewares(app, settings)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Pixshop API",
        response_description="API information including status and version",
    )
    def root():
        """Get API root information."""
        return RootResponse(status="ok", service="pixshop-backend", version=app.version)

    app.include_router(proxy_router)
    app.include_router(session_router)
    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("src.main:app", host="0.0.0.0", port=get_settings().port)
