import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coachnotes.config import get_settings
from coachnotes.database import engine

settings = get_settings()
logging.getLogger("coachnotes").setLevel(settings.LOG_LEVEL.upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown events."""
    # Startup: create tables and the search_vector trigger if missing
    from coachnotes import models  # noqa: F401 - Import models to register them with Base
    from coachnotes.database import Base
    from coachnotes.search.indexer import install_search_triggers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await install_search_triggers(conn)

    yield
    # Shutdown: dispose the async engine connection pool
    await engine.dispose()


app = FastAPI(
    title="Coach Notes Search",
    description="Access-scoped full-text search over private coach notes",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Router includes ---
from coachnotes.api.search import router as search_router  # noqa: E402

app.include_router(search_router, prefix="/api")


@app.get("/api/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns a simple status response to verify the API is running.
    """
    return {"status": "ok"}
