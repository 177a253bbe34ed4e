"""
FastAPI Application Entry Point.

Creates and configures the FastAPI application for the spot-ms service:
logging, CORS for the web front-end, and the spot routes.

Usage:
    # Run with uvicorn
    uvicorn spot_ms.main:app --host 0.0.0.0 --port 8000

    # Or use the module directly
    python -m uvicorn spot_ms.main:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from spot_ms import __version__
from spot_ms.api.dependencies import get_settings
from spot_ms.api.routes import router
from spot_ms.core.logging import configure_logging, get_logger, info, warn

_LOG = get_logger("spot-ms.main")


def _invalid_body(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    warn(_LOG, "invalid_body", path=request.url.path, errors=len(exc.errors()))
    return PlainTextResponse("Invalid request body", status_code=400)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function:
        1. Configures structured logging (SPOT_MS_LOG_LEVEL, settings.yaml)
        2. Loads and validates settings (fails fast on bad configuration)
        3. Adds CORS for the configured origins
        4. Registers the spot routes

    Returns:
        FastAPI: Configured application instance.
    """
    configure_logging()

    config = get_settings().get_service_config()

    app = FastAPI(title="spot-ms", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-Id", "X-Spot-Seconds", "X-Voice-Truncated"],
    )
    app.add_exception_handler(RequestValidationError, _invalid_body)
    app.include_router(router)

    info(_LOG, "app_created", version=__version__, bgm_path=config.assets.bgm_path,
         max_total_seconds=config.timeline.max_total_seconds)
    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
