"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging — one basicConfig call driven by LOG_LEVEL
  2. Lifespan manager — handles startup/shutdown (DB table creation, cleanup)
  3. CORS middleware — allows frontend origins to make cross-origin requests
  4. Exception handlers — maps domain errors to {"error": ...} responses
  5. Router registration — mounts all API endpoint groups under /v1

Running locally:
    uvicorn taskmanager.main:app --reload --port 8000

The --reload flag watches for file changes and restarts automatically,
which is ideal for development but should not be used in production.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import make_url

from taskmanager.config import settings
from taskmanager.database import engine, Base
from taskmanager.exceptions import register_exception_handlers
from taskmanager.routers import admin, auth, organizations, tasks, users

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates all database tables if they don't exist.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    _ensure_sqlite_directory(settings.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    # --- Shutdown ---
    await engine.dispose()


configure_logging()

# Create the FastAPI application instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Task management API with API-key authentication and role-based access control",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

prefix = settings.API_V1_PREFIX

app.include_router(auth.router, prefix=prefix, tags=["Authentication"])
app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
app.include_router(tasks.router, prefix=f"{prefix}/tasks", tags=["Tasks"])
app.include_router(
    organizations.router, prefix=f"{prefix}/organizations", tags=["Organizations"]
)
app.include_router(admin.router, prefix=f"{prefix}/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get(f"{prefix}/healthz", tags=["Health"])
async def health_check():
    """Liveness probe. Does not touch the database or require credentials."""
    return {"status": "ok", "version": settings.APP_VERSION}
