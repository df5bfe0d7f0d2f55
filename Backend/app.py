"""
Alliance Portal — FastAPI Application Entry Point.

Provides the guild management backend with:
  - Member roster, ranks and self-service profiles
  - Events, thresholds and participation tracking
  - Hall of Fame leaderboard (cached)
  - Bulk CSV member registration with batch rollback
  - Server-side identity, blob storage and mail relay
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from limiter import limiter
from sqlalchemy import text

from config import Config
from database import create_indexes, create_tables, engine
from errors import PortalError, portal_error_handler
from identity import auth_events
from auth_routes import router as auth_router
from event_routes import router as event_router
from import_routes import router as import_router
from mail_routes import router as mail_router
from player_routes import router as player_router
from profile_routes import router as profile_router
from routes import router as hof_router

# ── Logging ──────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-7s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)


def _log_auth_event(event, session):
    logger.info("Auth state changed: %s (%s)", event, session.email if session else "-")


# ── App Lifecycle ────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(application: FastAPI):
    """Startup / shutdown lifecycle handler."""
    # Startup
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✓ Database connected successfully")
    except Exception as e:
        logger.error("✗ Database connection failed: %s", e)

    create_tables()
    create_indexes()
    subscription = auth_events.subscribe(_log_auth_event)

    yield  # ← app is running

    # Shutdown
    subscription.unsubscribe()
    engine.dispose()
    logger.info("Database connections closed")


# ── New Relic (Monitoring) ───────────────────────────────────────
try:
    import newrelic.agent
    newrelic.agent.initialize(Config.NEW_RELIC_CONFIG)
    logger.info("✓ New Relic agent initialized")
except Exception:
    logger.warning("⚠ New Relic agent skipped (ensure %s exists and dependency installed)", Config.NEW_RELIC_CONFIG)

# ── FastAPI App ──────────────────────────────────────────────────

app = FastAPI(
    title="Alliance Portal API",
    description="Guild roster, events, Hall of Fame and bulk member registration",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(PortalError, portal_error_handler)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(player_router)
app.include_router(event_router)
app.include_router(hof_router)
app.include_router(import_router)
app.include_router(mail_router)

os.makedirs(Config.STORAGE_ROOT, exist_ok=True)
app.mount("/storage", StaticFiles(directory=Config.STORAGE_ROOT), name="storage")


# ── Health Check ─────────────────────────────────────────────────

@app.get("/health", tags=["Health"])
def health_check():
    """Simple liveness probe."""
    return {"status": "ok", "service": "alliance-portal"}


if __name__ == "__main__":
    import uvicorn
    # Run the app with auto-reload enabled
    uvicorn.run("app:app", host="127.0.0.1", port=8000, reload=True)
