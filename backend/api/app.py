"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging_config import configure_logging
from .config import get_settings
from .dependencies import get_container
from .errors import register_exception_handlers
from .routes import auth, billing, health, pages, telegram, usage, users

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    configure_logging()
    settings = get_settings()
    logger.info(f"Starting Clixen API on {settings.host}:{settings.port}")
    yield
    # Shutdown
    await get_container().aclose()
    logger.info("Shutting down Clixen API")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Clixen API",
        description="Telegram-first automation backend: accounts, trials, quotas and n8n workflows",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(usage.router, prefix="/api/usage", tags=["usage"])
    app.include_router(telegram.router, prefix="/api/telegram", tags=["telegram"])
    app.include_router(billing.router, prefix="/api/billing", tags=["billing"])
    app.include_router(billing.stripe_router, prefix="/api/stripe", tags=["billing"])
    app.include_router(pages.router, tags=["pages"])

    return app


# Application instance for uvicorn
app = create_app()
