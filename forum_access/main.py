"""
Forum access service application.

Run with ``uvicorn forum_access.main:app``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import structlog

from forum_access.api.v1.router import api_router
from forum_access.core.cache import cache
from forum_access.core.config import settings
from forum_access.core.database import close_database, init_database
from forum_access.core.exceptions import AccessControlError, ForbiddenError, LockedOutError, UnauthenticatedError
from forum_access.core.logging import setup_logging
from forum_access.middleware.security import SecurityHeadersMiddleware

setup_logging()
logger = structlog.get_logger()

SERVICE_VERSION = "1.0.0"
DOCS_ENABLED = settings.ENVIRONMENT == "development"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Forum access service starting", version=SERVICE_VERSION, environment=settings.ENVIRONMENT)
    await init_database()
    yield
    await cache.close()
    await close_database()
    logger.info("Forum access service stopped")


app = FastAPI(
    title="Forum Access API",
    description="Role permissions and monthly key verification for the forum",
    version=SERVICE_VERSION,
    docs_url="/docs" if DOCS_ENABLED else None,
    redoc_url="/redoc" if DOCS_ENABLED else None,
    lifespan=lifespan,
)

# Added first so it wraps the security middleware and answers preflights
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
    max_age=600,
)
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(AccessControlError)
async def access_control_error_handler(request: Request, exc: AccessControlError):
    """Render domain errors as ``{"error": code, "message": ..., **details}``"""
    headers = {}
    if isinstance(exc, UnauthenticatedError):
        headers["WWW-Authenticate"] = "Bearer"
    elif isinstance(exc, LockedOutError):
        headers["Retry-After"] = str(exc.retry_after_seconds)
    elif isinstance(exc, ForbiddenError):
        # The response stays generic; the missing tokens only go to the log
        logger.info("Request forbidden", path=request.url.path, missing=exc.missing)

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers or None)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error", path=request.url.path, method=request.method, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "DATABASE_UNAVAILABLE", "message": "Service temporarily unavailable, please retry"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception", path=request.url.path, method=request.method, error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
    )


@app.get("/")
async def root():
    return {
        "service": "forum-access",
        "version": SERVICE_VERSION,
        "docs": "/docs" if DOCS_ENABLED else "disabled",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "forum_access.main:app",
        host="0.0.0.0",
        port=8000,
        reload=DOCS_ENABLED,
        log_level=settings.LOG_LEVEL.lower(),
    )
