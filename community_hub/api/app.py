"""FastAPI application configuration module."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from ..config.environment import IS_PRODUCTION_ENVIRONMENT  # Environment must be imported first
from ..config.cors import CORS_CONFIG
from ..errors import EngineError, Forbidden, NotFound, StoreError, TaskFull, ValidationError
from ..utils.logging_config import setup_logging
from .. import __version__
from .dependencies import get_database
from .routes import attendance, events, health, tasks

# Set up logging
setup_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = (
    (ValidationError, 400),
    (Forbidden, 403),
    (NotFound, 404),
    (TaskFull, 409),
    (StoreError, 503),
)

def status_code_for(exc: EngineError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500

async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Turn engine errors into JSON responses with a message."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"message": str(exc), "error": type(exc).__name__},
    )

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    database = app.dependency_overrides.get(get_database, get_database)()
    try:
        database.ensure_tables_exist()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    yield
    # Shutdown
    database.dispose()

def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Community Hub API",
        description="Events, volunteer tasks and attendance for a community organisation",
        version=__version__,
        docs_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/docs',
        redoc_url=None if IS_PRODUCTION_ENVIRONMENT else '/api/redoc',
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(CORSMiddleware, **CORS_CONFIG)

    app.add_exception_handler(EngineError, engine_error_handler)

    # Include health check router without prefix
    app.include_router(health.router)

    # Static /events/... paths must be registered before /events/{event_id}
    app.include_router(attendance.router, prefix="/api")
    app.include_router(events.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")

    return app

# Create the application instance
app = create_application()
