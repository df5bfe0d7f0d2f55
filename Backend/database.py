"""
Database engine, session factory and the per-request session dependency.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from config import Config
from models import Base

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


engine = create_engine(Config.DATABASE_URL, **_engine_options(Config.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_players_batch_id    ON players (batch_id)",
    "CREATE INDEX IF NOT EXISTS idx_players_rank_id     ON players (rank_id)",
    "CREATE INDEX IF NOT EXISTS idx_ep_event_id         ON event_players (event_id)",
    "CREATE INDEX IF NOT EXISTS idx_ep_player_id        ON event_players (player_id)",
    "CREATE INDEX IF NOT EXISTS idx_ep_battle_rating    ON event_players (battle_rating DESC)",
    "CREATE INDEX IF NOT EXISTS idx_events_event_date   ON events (event_date DESC)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_account_id ON auth_sessions (account_id)",
]


def create_tables(bind=None):
    """Create all tables if they don't already exist."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("✓ Database tables ensured")


def create_indexes(bind=None):
    """Create performance indexes (idempotent — uses IF NOT EXISTS)."""
    with (bind or engine).connect() as conn:
        for stmt in INDEXES:
            conn.execute(text(stmt))
        conn.commit()
    logger.info("✓ Database indexes ensured")


def get_db():
    """Yield a session from the session factory and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
