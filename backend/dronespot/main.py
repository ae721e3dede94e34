"""
DroneSpot Backend: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers, routers and the
       static front end; uvicorn serves the module-level `app`
       (uvicorn dronespot.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → CORS                │
    │                                                          │
    │  Routes:                                                 │
    │   POST /api/analyze-image   POST /api/geocode            │
    │   POST /api/waypoint        GET  /api/maps-api-key       │
    │   GET  /api/911-calls       GET  /api/test   GET /health │
    │                                                          │
    │  Exception handlers:                                     │
    │   Validation/Geocoding→400  Config/Extraction→500        │
    │   Upstream→503              anything else→500            │
    │                                                          │
    │  Static front end mounted at / (when static_dir exists)  │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from dronespot import __version__
from dronespot.config import settings
from dronespot.exceptions import (
    ConfigurationError,
    DroneSpotError,
    ExtractionError,
    FileStorageError,
    GeocodingError,
    NormalizationError,
    UpstreamServiceError,
    ValidationError,
)
from dronespot.middleware.logging import RequestLoggingMiddleware
from dronespot.middleware.request_id import RequestIDMiddleware, request_id_var
from dronespot.routes import analyze, geocode, health, maps, waypoint

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application (called once at startup).

    Format: 2024-01-15T12:00:00 [INFO] dronespot.access: POST /api/geocode 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every outbound request at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("DroneSpot Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: affected endpoints answer with configuration errors
        logger.error("Configuration error: %s", str(e))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", upload_dir.resolve())
    logger.info("Vision provider: %s", settings.vision_provider)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("DroneSpot Backend shutting down.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the ErrorResponse format.

    Handler hierarchy:
        ValidationError         → 400 validation_error
        GeocodingError          → 400 geocoding_failed
        ConfigurationError      → 500 configuration_error
        ExtractionError         → 500 analysis_failed
        NormalizationError      → 500 normalization_failed
        FileStorageError        → 500 server_error
        UpstreamServiceError    → 503 upstream_unavailable
        DroneSpotError (base)   → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    Stack traces and internal context are logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(GeocodingError)
    async def handle_geocoding_error(request: Request, exc: GeocodingError):
        return _error_response(400, "geocoding_failed", exc.message, {"status": exc.status})

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] Configuration error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "configuration_error", exc.message, exc.context)

    @app.exception_handler(ExtractionError)
    async def handle_extraction_error(request: Request, exc: ExtractionError):
        # MalformedPayloadError lands here too; the log keeps the distinction
        logger.error(
            "[%s] %s: %s | Context: %s",
            request_id_var.get(""),
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(500, "analysis_failed", "Failed to analyze image", {"reason": exc.message})

    @app.exception_handler(NormalizationError)
    async def handle_normalization_error(request: Request, exc: NormalizationError):
        logger.error("[%s] Normalization error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "normalization_failed", exc.message)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream_error(request: Request, exc: UpstreamServiceError):
        logger.error(
            "[%s] Upstream error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(503, "upstream_unavailable", exc.message, {"service": exc.service})

    @app.exception_handler(DroneSpotError)
    async def handle_app_error(request: Request, exc: DroneSpotError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DroneSpot API",
        description=(
            "Map backend: address geocoding, photo-based location guessing with a "
            "vision model, and simulated drone waypoints."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition:
    # RequestID → Logging → CORS → routes
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(analyze.router)
    app.include_router(geocode.router)
    app.include_router(waypoint.router)
    app.include_router(maps.router)
    app.include_router(health.router)

    # Mounted last so API routes take precedence over static paths
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Serving front end from %s", static_dir.resolve())

    return app


app = create_app()
