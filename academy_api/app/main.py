"""
Main entrypoint for the Martial Arts Academy API.

This module assembles the FastAPI application: logging, CORS, the
authentication gate, the error handlers and the versioned route table.
``create_app`` builds the app, which is then instantiated at module
import time as ``app``, e.g.::

    uvicorn academy_api.app.main:app --reload
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.error_handlers import register_error_handlers
from .api.middleware import register_auth_gate
from .api.v1.endpoints.health import health_check
from .api.v1.router import API_PREFIX, public_routes, router as v1_router
from .core.config import settings
from .core.db import init_db
from .core.logging_config import setup_logging


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

    app.include_router(v1_router, prefix=API_PREFIX)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["health"], name="health")

    register_error_handlers(app)
    register_auth_gate(app, [("GET", "/health"), *public_routes()])
    # Added last so it wraps the auth gate and answers CORS preflights itself.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
        max_age=86400,
    )

    @app.on_event("startup")
    async def startup_event() -> None:
        # Creates the database file if needed and applies pending migrations.
        init_db()

    return app


app = create_app()
