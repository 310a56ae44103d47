"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from study_cafe_seating import __version__
from study_cafe_seating.api import api_router
from study_cafe_seating.config import settings
from study_cafe_seating.database import close_database, init_database
from study_cafe_seating.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from study_cafe_seating.schemas.common import HealthStatus
from study_cafe_seating.utils.logging_config import setup_logging

# Set up logging
setup_logging(
    log_level="DEBUG" if settings.debug else settings.log_level,
    log_file=settings.log_file,
    enable_json_logging=settings.enable_json_logging or settings.environment == "production",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting study cafe seating service")
    await init_database()
    yield
    logger.info("Shutting down study cafe seating service")
    await close_database()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Build the application.

    Tests pass ``use_lifespan=False`` and wire their own database.
    """
    application = FastAPI(
        title="Study Cafe Seating API",
        description="""
    ## Study Cafe Seating

    Seat reservation engine for shared study rooms.

    * **Seat map**: derived status of every seat, polled by clients
    * **Reservations**: 120-minute claims that lapse on their own
    * **Fixed seats**: staff-granted, date-ranged seats that override reservations
    * **Center settings**: per-center feature toggle, notice and entry password

    ### Authentication

    Send a platform-issued JWT as `Authorization: Bearer <token>`. The `sub`
    claim is the actor id; a `role` of staff, teacher, principal or admin
    grants staff capability.
    """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "seats", "description": "Seat map and seat inventory"},
            {"name": "reservations", "description": "Ad-hoc seat reservations"},
            {"name": "fixed-seats", "description": "Staff-managed fixed seat assignments"},
            {"name": "settings", "description": "Per-center study cafe settings"},
            {"name": "health", "description": "System health endpoints"},
        ],
        lifespan=lifespan if use_lifespan else None,
    )

    # Order matters: the last middleware added runs first
    application.add_middleware(ErrorHandlerMiddleware, debug=settings.debug)
    if settings.enable_request_logging:
        application.add_middleware(LoggingMiddleware)

    if settings.debug:
        # Credentials cannot be combined with wildcard origins
        cors_origins = ["*"]
        cors_allow_credentials = False
    else:
        cors_origins = settings.cors_origins
        cors_allow_credentials = settings.cors_allow_credentials

    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=settings.cors_expose_headers
    )

    application.include_router(api_router)

    @application.get("/", tags=["health"])
    async def root():
        """Basic information about the API."""
        return {
            "message": "Study Cafe Seating API",
            "version": __version__,
            "docs_url": "/docs",
            "status": "operational"
        }

    @application.get("/health", response_model=HealthStatus, tags=["health"])
    async def health_check():
        """Liveness check for uptime monitoring."""
        return HealthStatus(
            status="healthy",
            service="study-cafe-seating",
            version=__version__,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return application


app = create_app()
