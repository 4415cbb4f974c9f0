"""
AppSchmiede FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend import db
from backend.config import settings
from backend.routes import generate as generate_routes
from backend.routes import pages as pages_routes
from backend.routes import stripe as stripe_routes
from backend.services.billing import BillingService
from backend.services.llm_provider import LLMProvider
from engine.kernel.assembly import MemoryStorage, PageAssembly, PageStorage
from engine.kernel.postgres_storage import PostgresStorage

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Initialize database pool (only when DATABASE_URL is set)
    - Wire page storage, the LLM provider and billing
    - Close database pool on shutdown
    """
    # Startup
    storage: PageStorage
    if settings.DATABASE_URL:
        storage = PostgresStorage(await db.init_pool())
        logger.info("Database pool initialized")
    else:
        storage = MemoryStorage()
        logger.warning("DATABASE_URL not set, pages are kept in memory")

    app.state.assembly = PageAssembly(storage)
    app.state.llm_provider = LLMProvider()
    app.state.billing = BillingService()

    yield

    # Shutdown
    await db.close_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="AppSchmiede",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)

# Register routes
app.include_router(generate_routes.router)
app.include_router(pages_routes.router)
app.include_router(stripe_routes.router)


@app.get("/health")
async def health():
    """Health check endpoint for uptime monitoring."""
    return {"status": "ok"}
