from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from freshcrawl.config import Settings, get_settings
from freshcrawl.db.kv_store import KVStore
from freshcrawl.services.freshness_service import FreshnessCache

# Routers
from freshcrawl.api.routers.freshness import router as freshness_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the freshness service.

    The store is opened once at startup and shared by every request; a store
    that cannot be opened aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or get_settings()
        store = KVStore.open(cfg.db_path)
        app.state.settings = cfg
        app.state.freshness_cache = FreshnessCache(store, weight=cfg.default_weight)
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="freshcrawl dispatcher", version="0.1", lifespan=lifespan)
    app.include_router(freshness_router)
    return app


app = create_app()
