# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import os
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from core import (
    configure_logging,
    generate_correlation_id,
    get_correlation_id,
    get_scheduler_status,
    init_sentry,
    resolve_correlation_id,
    set_correlation_id,
    setup_scheduler,
    shutdown_scheduler,
)
from helpers.rate_limiter import limiter
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    BusinessRuleException,
    ConflictException,
    DomainException,
    FileTooLargeException,
    NotFoundException,
    PermissionDeniedException,
    StorageException,
    ValidationException,
)
from repositories.database import Base, engine
from routers import activities_router, notifications_router, uploads_router
from services.storage import create_storage_backend

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru (no log file under tests)
_environment = os.getenv("ENVIRONMENT", "development")
configure_logging(_environment, log_dir=None if _environment == "test" else "logs")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Optionally create tables when `AUTO_CREATE_DB` is enabled (development).
    - Start the expired notification cleanup scheduler (not under tests).
    """
    if settings.AUTO_CREATE_DB:
        logger.info(
            "AUTO_CREATE_DB enabled; creating database tables via SQLAlchemy create_all()"
        )
        Base.metadata.create_all(bind=engine)
    else:
        logger.info("AUTO_CREATE_DB disabled; skipping automatic create_all()")

    if settings.ENVIRONMENT != "test":
        setup_scheduler()

    try:
        yield
    finally:
        if settings.ENVIRONMENT != "test":
            shutdown_scheduler()


app = FastAPI(title="Osyris Family Portal API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

# Storage backend is chosen once per process
app.state.storage = create_storage_backend(settings)
logger.info(f"File storage backend: {app.state.storage.backend_name}")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with correlation ID tracking."""
        correlation_id = resolve_correlation_id(request.headers.get("X-Correlation-ID"))
        set_correlation_id(correlation_id)

        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and log timing information."""
        start_time = time.perf_counter()

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# Middleware runs in reverse order of registration
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# In development, allow all origins for mobile/network testing
cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True if settings.ENVIRONMENT != "development" else False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID", "Content-Disposition"],
)

# Serve locally stored uploads; Supabase serves its own public URLs
if app.state.storage.backend_name == "local":
    uploads_dir = Path(settings.UPLOAD_DIR)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")


def _error_response(
    status_code: int, exc: DomainException, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "correlation_id": exc.correlation_id},
        headers=headers,
    )


def _tag_exception(exc: DomainException) -> None:
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # repr() keeps braces in the message away from loguru's formatter
    logger.exception(
        f"Unhandled exception: {exc!r}",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "correlation_id": correlation_id,
        },
    )


# Centralized exception handlers
@app.exception_handler(NotFoundException)
async def not_found_exception_handler(
    request: Request, exc: NotFoundException
) -> JSONResponse:
    """Handle not found exceptions with Sentry integration."""
    _tag_exception(exc)
    logger.warning(
        f"Not found: {exc.message!r}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(FileTooLargeException)
async def file_too_large_exception_handler(
    request: Request, exc: FileTooLargeException
) -> JSONResponse:
    """Reject oversized uploads with 413."""
    _tag_exception(exc)
    logger.warning(
        f"Upload too large: {exc.size} bytes",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_413_CONTENT_TOO_LARGE, exc)


@app.exception_handler(ValidationException)
async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    """Handle validation exceptions with Sentry integration."""
    _tag_exception(exc)
    logger.warning(
        f"Validation error: {exc.message!r}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(PermissionDeniedException)
async def permission_denied_exception_handler(
    request: Request, exc: PermissionDeniedException
) -> JSONResponse:
    """Handle permission denied exceptions with Sentry integration."""
    _tag_exception(exc)
    logger.warning(
        f"Permission denied: {exc.message!r}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(AuthenticationException)
async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
) -> JSONResponse:
    """Handle authentication exceptions with Sentry integration."""
    _tag_exception(exc)
    logger.warning(
        f"Authentication failed: {exc.message!r}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(
        status.HTTP_401_UNAUTHORIZED, exc, headers={"WWW-Authenticate": "Bearer"}
    )


@app.exception_handler(BusinessRuleException)
async def business_rule_exception_handler(
    request: Request, exc: BusinessRuleException
) -> JSONResponse:
    """Handle business rule exceptions (e.g. a fan-out with no recipients)."""
    _tag_exception(exc)
    logger.warning(
        f"Business rule violation: {exc.message!r}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_422_UNPROCESSABLE_CONTENT, exc)


@app.exception_handler(ConflictException)
async def conflict_exception_handler(
    request: Request, exc: ConflictException
) -> JSONResponse:
    """Handle conflict exceptions with Sentry integration."""
    _tag_exception(exc)
    logger.warning(
        f"Conflict: {exc.message!r}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(StorageException)
async def storage_exception_handler(
    request: Request, exc: StorageException
) -> JSONResponse:
    """Storage provider failures are reported as a bad gateway."""
    _tag_exception(exc)
    sentry_sdk.capture_exception(exc)
    logger.error(
        f"Storage failure: {exc.message!r}",
        correlation_id=exc.correlation_id,
        path=str(request.url.path),
    )
    return _error_response(status.HTTP_502_BAD_GATEWAY, exc)


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle generic domain exceptions with Sentry integration."""
    _tag_exception(exc)
    sentry_sdk.capture_exception(exc)
    logger.warning(
        f"Domain exception: {exc.message!r}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": exc.message,
            "type": exc.__class__.__name__,
            "correlation_id": exc.correlation_id,
        },
    )


app.include_router(notifications_router.router, prefix="/api")
app.include_router(uploads_router.router, prefix="/api")
app.include_router(activities_router.router, prefix="/api")


@app.get("/")
def root() -> dict:
    """Root endpoint."""
    return {"message": "Osyris Family Portal API"}


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": app.state.storage.backend_name,
        "scheduler": get_scheduler_status(),
    }
