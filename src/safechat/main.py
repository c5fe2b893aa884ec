"""
SafeChat FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (startup/shutdown)
- CORS configuration
- Error handling middleware
- Router registration
- Prometheus metrics endpoint

This is the production entry point for the SafeChat safety service.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safechat import __version__
from safechat.config import get_settings
from safechat.config.logging_config import configure_logging, get_logger
from safechat.infrastructure.database import SqlAlchemyChatStore, get_db_manager
from safechat.infrastructure.metrics import metrics_router, update_system_info
from safechat.infrastructure.monitoring import init_sentry
from safechat.infrastructure.notifications import EmailAlertDispatcher
from safechat.services.safety.escalation_orchestrator import build_escalation_orchestrator
from safechat.services.safety.helpline_registry import HelplineRegistry
from safechat.api import dependencies
from safechat.api.v1.router import api_router
from safechat.api.middleware.error_handler import ErrorHandlerMiddleware

# Initialize settings and logging
settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of all services.
    """
    logger.info(
        "Starting SafeChat application",
        env=settings.env,
        version=__version__,
    )

    init_sentry(
        dsn=settings.sentry.dsn,
        environment=settings.env,
        release=f"safechat@{__version__}",
        traces_sample_rate=settings.sentry.traces_sample_rate,
    )
    update_system_info(settings.env, __version__)

    db = get_db_manager()
    try:
        await db.initialize()
        if settings.env == "development" or settings.database.async_url.startswith("sqlite"):
            # Production schemas are managed by Alembic
            await db.create_all()
        logger.info("Database connection initialized")

        chat_store = SqlAlchemyChatStore(db)
        registry = HelplineRegistry(config_path=settings.safety.helplines_config_path)
        dispatcher = EmailAlertDispatcher(settings.smtp, app_name=settings.app_name)
        if not dispatcher.is_configured:
            logger.warning("SMTP not configured, teacher alert emails will not be sent")

        orchestrator = build_escalation_orchestrator(
            settings,
            store=chat_store,
            dispatcher=dispatcher,
            registry=registry,
        )
        dependencies.configure(orchestrator, chat_store, registry)
        logger.info("Escalation orchestrator initialized")

        yield

    finally:
        logger.info("Shutting down SafeChat application")
        dependencies.reset()
        await db.close()
        logger.info("SafeChat application shutdown complete")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="SafeChat API",
        description="Student safety-concern detection and escalation - Backend API",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(ErrorHandlerMiddleware)

    app.include_router(
        api_router,
        prefix=f"/api/{settings.api_version}",
    )
    app.include_router(metrics_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "SafeChat API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "safechat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
