"""
EduVoice AI FastAPI Application Entry Point.

Run with: uvicorn eduvoice.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eduvoice.api.routes import auth, conversations, materials, mindmaps, quizzes, users, voice
from eduvoice.auth import build_auth_strategy
from eduvoice.config import Settings, get_settings
from eduvoice.errors import register_exception_handlers
from eduvoice.services import GatewayClient, VoiceClient
from eduvoice.storage import Storage, build_storage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
    gateway: GatewayClient | None = None,
    voice_client: VoiceClient | None = None,
) -> FastAPI:
    """
    Build the application.

    Storage, gateway and auth strategy are created once here and hung off
    app.state; pass storage, gateway or voice_client to substitute them (tests do).
    """
    settings = settings or get_settings()
    configure_logging(settings)

    storage = storage or build_storage(settings)
    gateway = gateway or GatewayClient(settings)
    voice_client = voice_client or VoiceClient(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager for startup/shutdown."""
        logger.info(
            "Starting %s (%s, storage=%s, auth=%s)",
            settings.app_name,
            settings.environment,
            settings.resolved_storage_backend,
            settings.auth_mode,
        )
        yield
        await gateway.aclose()
        await voice_client.aclose()
        await storage.close()

    app = FastAPI(
        title=settings.app_name,
        description="Voice and visual study assistant API",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.gateway = gateway
    app.state.voice = voice_client
    app.state.auth = build_auth_strategy(settings, storage)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # Include routers
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(materials.router, prefix="/api")
    app.include_router(conversations.router, prefix="/api")
    app.include_router(mindmaps.router, prefix="/api")
    app.include_router(quizzes.router, prefix="/api")
    app.include_router(quizzes.attempts_router, prefix="/api")
    app.include_router(voice.router, prefix="/api")

    @app.get("/health")
    @app.get("/api/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()
