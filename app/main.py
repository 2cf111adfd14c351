"""
Main FastAPI application for ThisDay.
"""

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import (
    ThisDayAppException, ValidationError, EntryNotFoundError, MediaNotFoundError,
    FileTooLargeError, InvalidRangeError, MediaProviderError, TokenVerificationError,
)
from app.core.logging_config import setup_logging, log_info, log_warning, log_error
from app.core.http_client import close_http_client
from app.middleware.request_logging import request_id_ctx, RequestLoggingMiddleware

# -----------------------------------------------------------------------------
# Startup / Shutdown
# -----------------------------------------------------------------------------
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run migrations on startup and release pooled HTTP connections on shutdown."""
    log_info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")
    try:
        init_db()
    except Exception as exc:
        log_error(exc)
        raise
    log_info(
        "Startup complete",
        timezone=settings.local_timezone,
        push_down_ranking=settings.recall_push_down,
        immich=settings.immich_base_url or "not configured",
    )
    yield
    log_info(f"Shutting down {settings.app_name}")
    try:
        await close_http_client()
    except Exception as exc:
        log_warning(f"Failed to close HTTP client: {exc}")


# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Daily photo journal with on-this-day recall",
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# Middleware Configuration
# -----------------------------------------------------------------------------
if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or [],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "Range"],
        expose_headers=["Content-Range", "Accept-Ranges", "Content-Length", "x-request-id"],
        max_age=3600,
    )
    log_info(f"CORS enabled for origins: {settings.cors_origins}")

app.add_middleware(RequestLoggingMiddleware)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.perf_counter() - started:.4f}"
    return response

# -----------------------------------------------------------------------------
# Exception Handlers
# -----------------------------------------------------------------------------
def _error_response(status_code: int, error: str, message: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "request_id": request_id_ctx.get()},
    )


def _public_message(exc: Exception, status_code: int, fallback: str) -> str:
    """Hide internal error details from production clients."""
    if settings.environment == "production" and status_code >= 500:
        return fallback
    return str(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": err.get("loc"), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    log_warning(
        "Request validation failed",
        path=request.url.path,
        method=request.method,
        errors=errors,
    )
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "validation_error", errors)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    log_error(exc)
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "validation_error", str(exc))


def status_code_for(exc: ThisDayAppException) -> int:
    """HTTP status for an application exception."""
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (EntryNotFoundError, MediaNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, TokenVerificationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, FileTooLargeError):
        return status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    if isinstance(exc, InvalidRangeError):
        return status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE
    if isinstance(exc, MediaProviderError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(ThisDayAppException)
async def thisday_app_exception_handler(request: Request, exc: ThisDayAppException):
    status_code = status_code_for(exc)
    if status_code >= 500:
        log_error(exc)
    else:
        log_warning(f"{type(exc).__name__}: {exc}", path=request.url.path)
    message = _public_message(exc, status_code, "An unexpected internal error occurred.")
    return _error_response(status_code, type(exc).__name__, message)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log_error(exc)
    message = _public_message(exc, 500, "An unexpected error occurred. Please try again later.")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_server_error", message)

# -----------------------------------------------------------------------------
# API Routers
# -----------------------------------------------------------------------------
app.include_router(api_router, prefix=settings.api_v1_prefix)


# -----------------------------------------------------------------------------
# Entry Point
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.app_port,
        reload=settings.debug,
    )
