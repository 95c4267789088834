"""FastAPI web application for the Court Table debate engine."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import AppConfig, get_default_config
from debate_engine.broadcaster import EventBroadcaster
from debate_engine.core import DebateEngine
from debate_engine.database import DatabaseManager
from models.manager import ModelManager
from web.endpoints.agents import router as agents_router
from web.endpoints.discussions import router as discussions_router
from web.endpoints.discussions import ws_router as discussions_ws_router
from web.endpoints.system import router as system_router

logger: logging.Logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None, model_manager: ModelManager | None = None
) -> FastAPI:
    """Build the application. The engine and its collaborators live on ``app.state``."""
    config = config or get_default_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifespan - startup and shutdown."""
        store = DatabaseManager(config.database.path)
        manager = model_manager or ModelManager()
        broadcaster = EventBroadcaster()
        engine = DebateEngine(store, manager, broadcaster, defaults=config.debate)

        app.state.config = config
        app.state.store = store
        app.state.broadcaster = broadcaster
        app.state.engine = engine
        logger.info(f"Debate engine ready (database: {config.database.path})")

        yield

        await engine.shutdown()
        broadcaster.close()
        await manager.aclose()
        logger.info("Debate engine stopped")

    app: FastAPI = FastAPI(
        title="Court Table Debate Engine",
        description="Orchestrates multi-agent debates between language model endpoints",
        version="1.0.0",
        lifespan=lifespan,
    )

    allowed_origins = config.server.allowed_origins
    if allowed_origins:
        logger.info(f"Setting CORS allowed origins: {allowed_origins}")

        # Production: Use specific origins
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        logger.info("No ALLOWED_ORIGINS set, using development CORS settings")

        # Development: Allow any localhost/127.0.0.1
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(system_router)
    app.include_router(agents_router)
    app.include_router(discussions_router)
    app.include_router(discussions_ws_router)

    return app
