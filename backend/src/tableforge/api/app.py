"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tableforge.api.endpoints import create_tables_router, table_error_response
from tableforge.api.services import TableServices
from tableforge.auth import AuthMiddleware, JWTService
from tableforge.config import Settings
from tableforge.errors import TableError

logger = logging.getLogger(__name__)


def _base_path() -> Path:
    # Paths are relative to the repository root, also when started from /backend
    cwd = Path.cwd()
    return cwd.parent if cwd.name == "backend" else cwd


def create_app(
    services: TableServices | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create the table API.

    Args:
        services: Pre-wired services (e.g. code-defined tables). When None,
                  they are built on startup from settings: YAML tables from
                  ``tables_path`` over the configured database.
        settings: Settings (defaults to Settings.from_env())
    """
    settings = settings or Settings.from_env(_base_path())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize on startup."""
        if getattr(app.state, "services", None) is None:
            app.state.services = TableServices.from_settings(settings)
            logger.info(
                "Table API started with %d table(s)", len(app.state.services.registry)
            )
        yield

    app = FastAPI(title="TableForge API", lifespan=lifespan)
    app.state.services = services

    # CORS for frontend dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Auth can be disabled via environment variable for testing
    if not settings.disable_auth:
        app.add_middleware(AuthMiddleware, jwt_service=JWTService(settings.secret_key))

    @app.exception_handler(TableError)
    async def handle_table_error(request: Request, exc: TableError) -> JSONResponse:
        return table_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Missing required parameters"},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(create_tables_router(lambda: app.state.services))
    return app


app = create_app()
