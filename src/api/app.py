"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.dependencies import cleanup_dependencies
from src.api.middleware.timeout import TimeoutMiddleware
from src.api.rate_limit import limiter
from src.api.routes import cleaning, health, ratings, stats, toilets
from src.config.settings import get_settings
from src.errors import TrackerError
from src.observability.logging import bind_context, clear_context
from src.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)

API_PREFIX = "/api"

# HTTP status for each error kind
ERROR_STATUS_CODES: dict[str, int] = {
    "validation": 422,
    "not_found": 404,
    "conflict": 409,
    "forbidden": 403,
    "invalid_state": 409,
}

_HTTP_ERROR_TYPES: dict[int, str] = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation",
    429: "rate_limited",
}


def _error_response(status_code: int, message: str, error_type: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error_type": error_type},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Restroom tracker API starting up")

    settings = get_settings()
    if settings.tracing_enabled:
        from src.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )

    yield

    logger.info("Restroom tracker API shutting down")
    await cleanup_dependencies()

    if settings.tracing_enabled:
        from src.observability.tracing import flush_traces

        flush_traces()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "toilets", "description": "Toilet listing and derived status"},
        {"name": "ratings", "description": "Rating submission, history and problem catalog"},
        {"name": "cleaning", "description": "Cleaning task lifecycle"},
        {"name": "stats", "description": "Admin statistics"},
    ]

    app = FastAPI(
        title="Restroom Tracker API",
        description="""
API for tracking restroom cleanliness in a facility.

## Workflow

- Visitors rate toilets (1-5) and report problems
- Cleaners claim a toilet, begin cleaning and complete it
- A completed cleaning resolves the problems reported before it

## Authentication

Cleaning and admin endpoints require `Authorization: Bearer <token>` plus
`X-User-ID`, `X-User-Name` and `X-User-Role` headers.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # Add CORS middleware (origins from CORS_ORIGINS env var, comma-separated)
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request timeout middleware (must be added before logging middleware
    # so timeout wraps the entire request lifecycle)
    if settings.request_timeout_seconds > 0:
        app.add_middleware(
            TimeoutMiddleware,
            timeout_seconds=settings.request_timeout_seconds,
        )

    # Request logging, correlation ID, metrics and tracing middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        from src.observability.tracing import get_tracer, is_tracing_enabled, request_span

        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        bind_context(request_id=request_id)

        start_time = time.perf_counter()

        try:
            if is_tracing_enabled():
                with request_span(
                    get_tracer("restroom-tracker.api"),
                    f"{request.method} {request.url.path}",
                    {
                        "http.method": request.method,
                        "http.url": str(request.url),
                        "http.route": request.url.path,
                        "http.request_id": request_id,
                    },
                    request.headers,
                ) as span:
                    response = await call_next(request)
                    duration = time.perf_counter() - start_time
                    span.set_attribute("http.status_code", response.status_code)
                    span.set_attribute("http.duration_ms", round(duration * 1000, 2))
            else:
                response = await call_next(request)
                duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id
            get_metrics().record_request(request.method, response.status_code, duration)

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    # Rate limiting (opt-in via RATE_LIMIT_ENABLED=true)
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.info("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
        return _error_response(429, f"Rate limit exceeded: {exc.detail}", "rate_limited")

    @app.exception_handler(TrackerError)
    async def tracker_error_handler(request: Request, exc: TrackerError):
        status_code = ERROR_STATUS_CODES.get(exc.kind, 400)
        logger.info(
            "Request rejected",
            path=request.url.path,
            status_code=status_code,
            error_type=exc.kind,
            message=exc.message,
        )
        return _error_response(status_code, exc.message, exc.kind)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error_response(422, _validation_message(exc), "validation")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error_type = _HTTP_ERROR_TYPES.get(
            exc.status_code, "internal" if exc.status_code >= 500 else "error"
        )
        return _error_response(
            exc.status_code,
            str(exc.detail),
            error_type,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error_response(500, "Internal server error", "internal")

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(toilets.router, prefix=API_PREFIX, tags=["toilets"])
    app.include_router(ratings.router, prefix=API_PREFIX, tags=["ratings"])
    app.include_router(cleaning.router, prefix=API_PREFIX, tags=["cleaning"])
    app.include_router(stats.router, prefix=API_PREFIX, tags=["stats"])

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Restroom Tracker API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
