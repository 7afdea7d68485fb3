"""
FastAPI application for Baby Tracker.

This is the main entry point for the HTTP API, providing:
- Family setup, lookup and invitations
- PIN, administrator and setup-token authentication
- Activity logs, babies, medicines and the timeline
- Settings, push notifications and email configuration
- Server-rendered family pages
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from baby_tracker import __version__
from baby_tracker.api import (
    activity_routes,
    auth_routes,
    email_routes,
    family_routes,
    notify_routes,
    page_routes,
    settings_routes,
    setup_routes,
)
from baby_tracker.api.middleware import RequestLoggingMiddleware
from baby_tracker.auth import AuthError
from baby_tracker.config import get_settings
from baby_tracker.database import check_connection, init_db
from baby_tracker.services import ActivityError, SetupError, SlugGenerationError

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Route application logs to stderr at the configured level."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging()
    logger.info("Starting Baby Tracker")
    if get_settings().is_development:
        # Production databases are managed with `alembic upgrade head`
        init_db()
    logger.info("Baby Tracker started")

    yield

    # Shutdown
    logger.info("Shutting down Baby Tracker")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Baby Tracker API",
    description="""
# Baby Tracker API

Multi-family tracking of feeds, diapers, sleep, medicine and measurements.

## Response Format

Every API route answers with an envelope:
- `success` - Whether the request succeeded
- `data` - Payload on success
- `error` - Human-readable message on failure

## Error Handling

- **400** - Invalid request (including body validation)
- **401** - Authentication required or failed
- **403** - No access to this family or action
- **404** - Resource not found
- **409** - Conflict (slug taken, invitation already used)
- **410** - Invitation expired
- **429** - Locked out after repeated failed logins
- **500** - Server error

`GET /api/family/by-slug/{slug}` answers 200 with `success: false` for an
unknown slug.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)

# Include routers (pages last: their /{slug} routes match almost anything)
app.include_router(family_routes.router)
app.include_router(setup_routes.router)
app.include_router(auth_routes.router)
app.include_router(auth_routes.caretaker_router)
app.include_router(activity_routes.feed_router)
app.include_router(activity_routes.note_router)
for log_router in activity_routes.log_routers:
    app.include_router(log_router)
app.include_router(activity_routes.router)
app.include_router(settings_routes.router)
app.include_router(notify_routes.router)
app.include_router(email_routes.router)


# =============================================================================
# Exception Handlers
# =============================================================================


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with consistent format."""
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Report body and query validation failures as 400 with the first problem."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(SetupError)
async def setup_exception_handler(request, exc: SetupError):
    if exc.status_code >= 500:
        logger.error(f"Setup failed: {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(AuthError)
async def auth_exception_handler(request, exc: AuthError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(ActivityError)
async def activity_exception_handler(request, exc: ActivityError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(SlugGenerationError)
async def slug_exception_handler(request, exc: SlugGenerationError):
    logger.error(f"Slug generation failed: {exc}")
    return _error(500, "Failed to generate unique slug")


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    req_id = getattr(request.state, "request_id", "-")
    logger.error(f"[{req_id}] Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error(500, "An unexpected error occurred")


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get("/health", summary="Health check", tags=["System"])
def health_check():
    """
    Check API health status.

    Returns:
        Health status including database connectivity
    """
    database_connected = check_connection()
    return {
        "status": "healthy" if database_connected else "unhealthy",
        "version": __version__,
        "databaseConnected": database_connected,
    }


app.include_router(page_routes.router)


def run_server(host: str = None, port: int = None, reload: bool = None):
    """Run the API server with Uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "baby_tracker.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
