"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from watersense.api.dependencies import cleanup_dependencies
from watersense.api.routes import calibration, deliveries, health, ingest, sms_receive, subscribers
from watersense.config.settings import get_settings
from watersense.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        "WaterSense API starting up",
        environment=settings.environment,
        sms_disabled=settings.sms_disabled,
    )

    yield

    logger.info("WaterSense API shutting down")
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "ingest", "description": "Sensor reading ingestion"},
        {"name": "sms", "description": "SMS delivery queue for the gateway device"},
        {"name": "subscribers", "description": "Alert subscriptions"},
        {"name": "calibration", "description": "Per-sensor calibration"},
    ]

    app = FastAPI(
        title="WaterSense API",
        description="""
Flood early-warning backend: ingests water-level readings, classifies them
into alert tiers and queues SMS deliveries for active subscribers.

## Authentication

Device endpoints require the shared `X-API-KEY` header.
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
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        bind_context(request_id=request_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id

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

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(ingest.router, tags=["ingest"])
    app.include_router(deliveries.router, tags=["sms"])
    app.include_router(sms_receive.router, tags=["sms"])
    app.include_router(subscribers.router, tags=["subscribers"])
    app.include_router(calibration.router, tags=["calibration"])

    return app
