"""
FastAPI Application Entry Point

QR Menu Ordering Platform - multi-tenant restaurant ordering.
Supports both Mock services (development) and Real gateways (production).

Endpoints:
    - /api/orders: Place, track and manage orders
    - /api/qr: QR code management and scan counting
    - /api/menu: Menu catalog, public menu and menu upload
    - /api/staff, /api/inventory: Restaurant administration
    - /api/push: Web push subscriptions
    - /api/printer: Thermal bill printing
    - /api/analytics: Dashboard statistics
    - /ws: Realtime notifications
    - /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from qrmenu.api import api_router
from qrmenu.core.config import Settings, get_settings, setup_logging
from qrmenu.core.exceptions import AppError
from qrmenu.database import init_db
from qrmenu.schemas import HealthResponse
from qrmenu.services.container import ServiceContainer

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if getattr(app.state, "services", None) is None:
        app.state.services = ServiceContainer.build(settings)
    services: ServiceContainer = app.state.services

    # Initialize database
    await init_db(services.engine)
    logger.info("✅ Database initialized")

    # Log service configuration
    logger.info(f"✅ SMS Service: {services.sms.provider_name}")
    logger.info(f"✅ Push Service: {services.push.provider_name}")
    logger.info(f"✅ Printer Service: {services.printer.provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await services.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error_body(settings: Settings, message: str, error: object = None) -> dict:
    body = {"success": False, "message": message}
    if error is not None and (settings.debug or not settings.is_production):
        body["error"] = error
    return body


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(app.state.settings, exc.message, exc.detail),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body(app.state.settings, "Validation failed", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=_error_body(app.state.settings, "Internal server error", str(exc)),
        )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    services: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application. Tests pass a pre-built container; otherwise
    the lifespan builds one from settings.
    """
    settings = settings or (services.settings if services else get_settings())

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Multi-tenant QR menu ordering: customers scan a table QR code and order, "
            "owners follow orders live. Mock gateways in development, real ones in production."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.services = services

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    # =========================================================================
    # ROOT & HEALTH ENDPOINTS
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root with navigation links."""
        return {
            "message": f"🍽️ Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="System Health Check",
    )
    async def health_check(request: Request) -> HealthResponse:
        """Verify all system components are operational."""
        container: ServiceContainer = request.app.state.services

        # Check database
        db_status = "healthy"
        try:
            async with container.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"unhealthy: {str(e)}"
            logger.error(f"Database health check failed: {e}")

        sms_status = "healthy" if await container.sms.health_check() else "unhealthy"
        push_status = "healthy" if await container.push.health_check() else "unhealthy"

        overall = "operational" if db_status == "healthy" else "degraded"

        return HealthResponse(
            status=overall,
            database=db_status,
            sms_service=sms_status,
            push_service=push_status,
            realtime_connections=container.directory.connection_count,
            timestamp=datetime.now(),
        )

    return app


def run() -> None:
    """Console entry point: ``qrmenu``."""
    import uvicorn

    settings = get_settings()
    setup_logging()
    uvicorn.run(
        "qrmenu.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()
