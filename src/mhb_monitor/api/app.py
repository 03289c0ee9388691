"""FastAPI application factory."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)

from ..core.config import Settings, get_settings
from ..core.exceptions import MonitorError
from ..core.logging import get_logger, log_request_end, log_request_start, setup_logging
from ..services.self_healing import SelfHealingSystem
from .routes import router, self_healing_router

# Prometheus metrics
REQUEST_COUNT = Counter(
    "mhb_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "mhb_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.1, 0.5, 1, 2, 5),
)


def _report_error(request: Request, message: str) -> None:
    system: SelfHealingSystem | None = getattr(
        request.app.state, "self_healing", None
    )
    if system is not None:
        system.report_error(message)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger = get_logger(__name__)

    # Startup
    logger.info(
        "Starting monitoring service", version=settings.version, debug=settings.debug
    )

    # Set startup time for health checks
    app.state.start_time = time.time()

    app.state.self_healing = None
    if settings.self_healing_enabled:
        system = SelfHealingSystem(settings, get_logger("mhb_monitor.self_healing"))
        system.initialize()
        app.state.self_healing = system

    yield

    # Shutdown
    logger.info("Shutting down monitoring service")
    if app.state.self_healing is not None:
        await app.state.self_healing.shutdown()
        app.state.self_healing = None


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    # Set up logging
    setup_logging(settings)
    logger = get_logger(__name__)

    # Create FastAPI app
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="API server hosting the self-healing health monitor",
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.self_healing = None

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _record_request(
        request: Request, request_id: str, status_code: int, start_time: float
    ) -> None:
        # Calculate duration
        duration = time.perf_counter() - start_time
        duration_ms = duration * 1000

        # Log request end
        log_request_end(logger, request_id, status_code, duration_ms)

        # Feed the self-healing monitor
        system: SelfHealingSystem | None = request.app.state.self_healing
        if system is not None:
            system.record_metric(request.url.path, duration_ms, status_code)

        # Update metrics
        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status_code=status_code,
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method, endpoint=request.url.path
        ).observe(duration)

    # Add request logging middleware
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
        """Middleware for request logging and metrics."""
        start_time = time.perf_counter()
        request_id = request.headers.get("X-Request-ID", "unknown")

        # Log request start
        log_request_start(logger, request_id, str(request.url.path), request.method)

        # Process request; unhandled errors are answered with a 500 by the
        # outer server error middleware
        try:
            response: Response = await call_next(request)
        except Exception:
            _record_request(request, request_id, 500, start_time)
            raise

        _record_request(request, request_id, response.status_code, start_time)
        return response

    # Add exception handlers
    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors."""
        logger.warning(
            "Request validation error",
            errors=exc.errors(),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=422,
            content={
                "code": "validation_error",
                "message": f"Validation failed: {len(exc.errors())} error(s)",
                "type": "RequestValidationError",
            },
        )

    @app.exception_handler(MonitorError)
    async def monitor_error_handler(
        request: Request, exc: MonitorError
    ) -> JSONResponse:
        """Handle monitoring service errors."""
        logger.error(
            "Monitor error",
            error=exc.message,
            details=exc.details,
            path=request.url.path,
        )
        _report_error(request, exc.message)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Monitor Error",
                "message": exc.message,
                "details": exc.details,
                "type": "monitor_error",
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        _report_error(request, str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": (
                    str(exc) if settings.debug else "An unexpected error occurred"
                ),
                "path": request.url.path,
                "type": "internal_error",
            },
        )

    # Add metrics endpoint
    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Include API routes
    app.include_router(router)
    app.include_router(self_healing_router, prefix=settings.api_prefix)

    logger.info(
        "FastAPI application created",
        title=settings.app_name,
        version=settings.version,
        docs_url=app.docs_url,
    )

    return app
