"""Taskedin Leave: FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from taskedin.common.exceptions import register_exception_handlers
from taskedin.common.rate_limit import limiter
from taskedin.config import settings
from taskedin.database import engine
from taskedin.leave.router import router as leave_router
from taskedin.notifications.queue import NotificationQueue, NotificationWorker
from taskedin.notifications.service import deliver_notification

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    # Startup
    worker = NotificationWorker(app.state.notification_queue, deliver_notification)
    worker.start()
    app.state.notification_worker = worker
    logger.info("Taskedin Leave started (%s)", settings.ENVIRONMENT)
    yield
    # Shutdown
    await worker.stop()
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Taskedin Leave",
        description="Leave request lifecycle and balance reservation engine",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Outbound notifications; the worker is attached in lifespan
    app.state.notification_queue = NotificationQueue(
        maxsize=settings.NOTIFICATION_QUEUE_MAXSIZE,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])

    return app


app = create_app()
