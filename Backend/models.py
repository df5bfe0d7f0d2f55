"""
SQLAlchemy ORM models for the Alliance Portal.
Tables: auth_accounts, auth_sessions, ranks, players, event_thresholds,
events, event_players, achievements, hall_of_fame, import_batches
"""

import uuid

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, func
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


# ── Identity ─────────────────────────────────────────────────────

class AuthAccount(Base):
    """An identity-provider account; joined to a Player by email."""

    __tablename__ = "auth_accounts"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    email_confirmed = Column(Boolean, nullable=False, default=False)
    user_metadata = Column(JSON, nullable=False, default=dict)
    reset_token = Column(String(64), nullable=True, index=True)
    reset_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    sessions = relationship("AuthSession", back_populates="account", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<AuthAccount(id={self.id}, email='{self.email}')>"


class AuthSession(Base):
    """A signed-in session, addressed by its opaque bearer token."""

    __tablename__ = "auth_sessions"

    token = Column(String(64), primary_key=True)
    account_id = Column(String(36), ForeignKey("auth_accounts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    expires_at = Column(DateTime, nullable=False)

    account = relationship("AuthAccount", back_populates="sessions")


# ── Roster ───────────────────────────────────────────────────────

class Rank(Base):
    """A named tier with a minimum-might threshold."""

    __tablename__ = "ranks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    min_might = Column(Integer, nullable=False, default=0)

    players = relationship("Player", back_populates="rank")

    def __repr__(self):
        return f"<Rank(id={self.id}, name='{self.name}', min_might={self.min_might})>"


class Player(Base):
    """An alliance member's profile."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    auth_id = Column(String(36), nullable=True)
    full_name = Column(String(255), nullable=True)
    player_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    country = Column(String(100), nullable=True)
    igg_id = Column(String(64), nullable=True)
    discord_id = Column(String(64), nullable=True)
    troop_type = Column(String(50), nullable=True)
    troop_specialist = Column(String(50), nullable=True)
    hero_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    has_farm = Column(Boolean, nullable=False, default=False)
    might = Column(Integer, nullable=False, default=0)
    rank_id = Column(Integer, ForeignKey("ranks.id", ondelete="SET NULL"), nullable=True)
    role = Column(String(20), nullable=False, default="member")
    profile_image_url = Column(String(1024), nullable=True)
    batch_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    rank = relationship("Rank", back_populates="players")
    event_entries = relationship("EventPlayer", back_populates="player", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self):
        return f"<Player(id={self.id}, email='{self.email}', role='{self.role}')>"


# ── Events ───────────────────────────────────────────────────────

class EventThreshold(Base):
    """Qualifying criteria for a recurring event."""

    __tablename__ = "event_thresholds"

    id = Column(Integer, primary_key=True, index=True)
    event_name = Column(String(255), unique=True, nullable=False)
    min_participation = Column(Integer, nullable=True)
    min_score = Column(Integer, nullable=True)
    season = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    events = relationship("Event", back_populates="threshold")


class Event(Base):
    """One occurrence of an event."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    event_date = Column(Date, nullable=True)
    event_threshold_id = Column(Integer, ForeignKey("event_thresholds.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    threshold = relationship("EventThreshold", back_populates="events")
    participants = relationship("EventPlayer", back_populates="event", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Event(id={self.id}, name='{self.name}', event_date={self.event_date})>"


class EventPlayer(Base):
    """One player's participation in one event."""

    __tablename__ = "event_players"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    participation_choice = Column(Boolean, nullable=False, default=False)
    battle_rating = Column(Integer, nullable=True)
    kills = Column(Integer, nullable=True)
    deaths = Column(Integer, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    event = relationship("Event", back_populates="participants")
    player = relationship("Player", back_populates="event_entries")

    def __repr__(self):
        return f"<EventPlayer(event_id={self.event_id}, player_id={self.player_id}, battle_rating={self.battle_rating})>"


# ── Hall of Fame ─────────────────────────────────────────────────

class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    date_awarded = Column(Date, nullable=True)


class HallOfFame(Base):
    __tablename__ = "hall_of_fame"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    inducted_year = Column(Integer, nullable=True)


# ── Bulk import ──────────────────────────────────────────────────

class ImportBatch(Base):
    """Progress and outcome of one bulk CSV import run."""

    __tablename__ = "import_batches"

    id = Column(String(36), primary_key=True, default=_uuid)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    total = Column(Integer, nullable=False, default=0)
    processed = Column(Integer, nullable=False, default=0)
    success_count = Column(Integer, nullable=False, default=0)
    failures = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="running")

    @property
    def progress(self) -> int:
        if not self.total:
            return 100
        return round(self.processed * 100 / self.total)

    def __repr__(self):
        return f"<ImportBatch(id={self.id}, status='{self.status}', success={self.success_count})>"
