"""Main FastAPI application (webhook receiver and admin API)"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from trackbridge import __version__
from trackbridge.api import sync, webhook
from trackbridge.config import Settings
from trackbridge.scheduler import SyncScheduler
from trackbridge.security import BasicAuthMiddleware
from trackbridge.services.event_dispatcher import EventDispatcher
from trackbridge.services.reconciler import ReconciliationEngine

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def create_app(
    settings: Settings,
    engine: ReconciliationEngine,
    scheduler: Optional[SyncScheduler] = None,
) -> FastAPI:
    """Build the application around an already wired engine"""
    if scheduler is None and settings.sync_schedule_enabled:
        scheduler = SyncScheduler(engine, settings.sync_interval_minutes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        # Startup
        logger.info("Starting GitHub -> YouTrack sync service")
        logger.info(f"Webhook endpoint: {settings.webhook_path}")
        if scheduler is not None:
            scheduler.start()
        yield
        # Shutdown
        logger.info("Stopping GitHub -> YouTrack sync service")
        if scheduler is not None:
            scheduler.stop()

    app = FastAPI(
        title="TrackBridge",
        description="Synchronize GitHub issues into YouTrack",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.dispatcher = EventDispatcher(engine, engine.store, settings.webhook_secret)

    # Optional built-in auth for the admin API. The webhook carries its own signature.
    if settings.auth_enabled:
        if not settings.auth_username or not settings.auth_password:
            raise RuntimeError("AUTH_ENABLED=true requires AUTH_USERNAME and AUTH_PASSWORD to be set")
        app.add_middleware(
            BasicAuthMiddleware,
            username=settings.auth_username,
            password=settings.auth_password,
            allow_paths={"/health", settings.webhook_path},
        )

    app.include_router(webhook.build_router(settings.webhook_path))
    app.include_router(sync.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "TrackBridge"}

    return app


if __name__ == "__main__":
    from trackbridge.cli import main

    raise SystemExit(main(["webhook"]))
