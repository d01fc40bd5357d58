import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from budget_tracker.api.errors import register_exception_handlers
from budget_tracker.api.v1.api import api_router
from budget_tracker.core.config import Settings, settings
from budget_tracker.core.logging import configure_logging
from budget_tracker.persistence import build_adapter
from budget_tracker.services.store import EntityStore

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None, store: Optional[EntityStore] = None) -> FastAPI:
    """
    Build the application.

    The store is created and loaded on startup unless one is passed in, and
    its pending writes are flushed on shutdown.
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.LOG_LEVEL)
        entity_store = store
        if entity_store is None:
            entity_store = EntityStore(build_adapter(config), config)
            entity_store.load()
        logger.info("Budget tracker started with %s storage", config.STORAGE_BACKEND)
        app.state.store = entity_store
        try:
            yield
        finally:
            entity_store.close()
            engine = getattr(entity_store.adapter, "engine", None)
            if engine is not None:
                from budget_tracker.db.session import dispose_engine

                dispose_engine(engine)
            logger.info("Budget tracker stopped")

    app = FastAPI(
        title=config.PROJECT_NAME,
        version=config.VERSION,
        openapi_url=f"{config.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify actual origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=config.API_V1_STR)
    return app


app = create_app()
