"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pydantic
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_admin import __version__
from catalog_admin.api.v1 import audit, auth, health, products, upload, users
from catalog_admin.config import settings
from catalog_admin.database import Database
from catalog_admin.exceptions import CatalogError, ErrorKind
from catalog_admin.middleware.logging import LoggingMiddleware, setup_logging
from catalog_admin.middleware.metrics import MetricsMiddleware
from catalog_admin.middleware.security_headers import SecurityHeadersMiddleware
from catalog_admin.schemas.error import STATUS_BY_KIND, ErrorCode, details_from_pydantic

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the connection pool on startup and release it on shutdown."""
    logger.info("application_starting", env=settings.app_env, version=__version__)
    app.state.db = Database.from_settings(settings)
    yield
    logger.info("application_shutting_down")
    await app.state.db.dispose()


app = FastAPI(
    title="Catalog Admin API",
    description="Role-gated admin backend for products, users and an audit trail",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Prometheus scrape endpoint
app.mount("/metrics", make_asgi_app())


def envelope(status_code: int, message: str, errors: list | None = None, headers: dict | None = None) -> JSONResponse:
    """Error response in the standard envelope."""
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """
    Map domain errors to HTTP responses by their kind.

    Persistence failures keep their message but drop the underlying cause in production.
    """
    status_code = STATUS_BY_KIND[exc.kind]
    errors = exc.errors

    if exc.kind == ErrorKind.PERSISTENCE:
        logger.error(
            "persistence_error",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            error_message=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
        if exc.__cause__ is not None and not settings.is_production:
            errors = [{"code": ErrorCode.DATABASE_ERROR, "message": str(exc.__cause__)}]
    else:
        logger.info(
            "request_rejected",
            path=request.url.path,
            method=request.method,
            kind=exc.kind.value,
            error_message=exc.message,
        )

    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHENTICATED else None
    return envelope(status_code, exc.message, errors, headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, paths and query strings are answered with 400."""
    details = details_from_pydantic(exc.errors())

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(details),
    )
    return envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", details)


@app.exception_handler(pydantic.ValidationError)
async def model_validation_exception_handler(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Cross-field checks run while building filter objects (e.g. startDate after endDate)."""
    details = details_from_pydantic(exc.errors())

    logger.warning("validation_error", path=request.url.path, method=request.method, error_count=len(details))
    return envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", details)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database errors that escaped a service. Detail is hidden in production."""
    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    errors = None if settings.is_production else [{"code": ErrorCode.DATABASE_ERROR, "message": str(exc)}]
    return envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "A database error occurred", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors in the standard envelope."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return envelope(exc.status_code, f"Route {request.url.path} not found")
    return envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the stack trace; the client only sees the message in debug mode.
    """
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
    )

    message = str(exc) if settings.debug else "Internal server error"
    return envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message,
        [{"code": ErrorCode.INTERNAL_ERROR, "message": message}],
    )


app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(audit.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(upload.router, prefix="/api")
