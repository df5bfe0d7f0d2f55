"""
Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str


# ── Auth ─────────────────────────────────────────────────────────

class SignupRequest(BaseModel):
    """Self-service sign-up form."""

    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)
    country: Optional[str] = None
    discord_id: Optional[str] = None
    troop_type: Optional[str] = None
    hero_name: Optional[str] = None
    igg_id: Optional[str] = None
    bio: Optional[str] = None
    farm_account: bool = False
    troop_specialist: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Optional[str] = None
    redirect: str


class SessionResponse(BaseModel):
    account_id: str
    email: str
    expires_at: datetime
    role: Optional[str] = None
    full_name: Optional[str] = None


class PasswordChange(BaseModel):
    new_password: str
    confirm: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordReset(BaseModel):
    token: str
    new_password: str


# ── Roster ───────────────────────────────────────────────────────

class RankCreate(BaseModel):
    name: str = Field(..., min_length=1)
    min_might: int = Field(default=0, ge=0)


class RankOut(ORMModel):
    id: int
    name: str
    min_might: int


class PlayerFields(BaseModel):
    """Profile fields shared by admin edits and self-service edits."""

    full_name: Optional[str] = None
    player_name: Optional[str] = None
    country: Optional[str] = None
    igg_id: Optional[str] = None
    discord_id: Optional[str] = None
    troop_type: Optional[str] = None
    troop_specialist: Optional[str] = None
    hero_name: Optional[str] = None
    bio: Optional[str] = None
    has_farm: Optional[bool] = None
    might: Optional[int] = Field(default=None, ge=0)


class PlayerCreate(PlayerFields):
    email: str = Field(..., min_length=3)
    rank_id: Optional[int] = None
    role: Literal["admin", "member"] = "member"


class PlayerUpdate(PlayerFields):
    email: Optional[str] = None
    rank_id: Optional[int] = None
    role: Optional[Literal["admin", "member"]] = None


class ProfileUpdate(PlayerFields):
    """Self-service edit; rank, role, email and batch tag stay admin-managed."""


class RankAssignment(BaseModel):
    rank_id: Optional[int] = None


class PlayerOut(ORMModel):
    id: int
    email: str
    full_name: Optional[str] = None
    player_name: Optional[str] = None
    country: Optional[str] = None
    igg_id: Optional[str] = None
    discord_id: Optional[str] = None
    troop_type: Optional[str] = None
    troop_specialist: Optional[str] = None
    hero_name: Optional[str] = None
    bio: Optional[str] = None
    has_farm: bool = False
    might: int = 0
    rank_id: Optional[int] = None
    role: str
    profile_image_url: Optional[str] = None
    batch_id: Optional[str] = None
    created_at: Optional[datetime] = None


class PlayerPage(BaseModel):
    items: list[PlayerOut]
    page: int
    per_page: int
    total: int
    total_pages: int


# ── Events ───────────────────────────────────────────────────────

class ThresholdOut(ORMModel):
    id: int
    event_name: str
    min_participation: Optional[int] = None
    min_score: Optional[int] = None
    season: Optional[str] = None
    description: Optional[str] = None


class EventForm(BaseModel):
    """Event plus the threshold it is measured against."""

    event_name: str = Field(..., min_length=1)
    event_date: Optional[date] = None
    min_participation: Optional[int] = Field(default=None, ge=0)
    min_score: Optional[int] = Field(default=None, ge=0)
    season: Optional[str] = None
    description: Optional[str] = None


class EventOut(ORMModel):
    id: int
    name: str
    event_date: Optional[date] = None
    event_threshold_id: Optional[int] = None
    threshold: Optional[ThresholdOut] = None


class EventPage(BaseModel):
    items: list[EventOut]
    page: int
    per_page: int
    total: int
    total_pages: int


class EventPlayerForm(BaseModel):
    event_id: Optional[int] = None
    player_id: Optional[int] = None
    participation_choice: bool = False
    battle_rating: Optional[int] = Field(default=None, ge=0)
    kills: Optional[int] = Field(default=None, ge=0)
    deaths: Optional[int] = Field(default=None, ge=0)


class PlayerSummary(ORMModel):
    full_name: Optional[str] = None
    igg_id: Optional[str] = None
    might: int = 0
    rank_id: Optional[int] = None
    troop_specialist: Optional[str] = None


class EventSummary(ORMModel):
    name: str
    event_date: Optional[date] = None


class EventPlayerOut(ORMModel):
    id: int
    event_id: int
    player_id: int
    participation_choice: bool
    battle_rating: Optional[int] = None
    kills: Optional[int] = None
    deaths: Optional[int] = None
    created_at: Optional[datetime] = None
    player: Optional[PlayerSummary] = None
    event: Optional[EventSummary] = None


class EventPlayerPage(BaseModel):
    items: list[EventPlayerOut]
    page: int
    per_page: int
    total: int
    total_pages: int


# ── Hall of Fame ─────────────────────────────────────────────────

class LeaderboardEntry(BaseModel):
    """A single entry in the leaderboard response."""

    rank: int
    player_id: int
    full_name: Optional[str] = None
    role: Optional[str] = None
    troop_type: Optional[str] = None
    battle_rating: Optional[int] = None
    kills: Optional[int] = None
    deaths: Optional[int] = None


class LeaderboardResponse(BaseModel):
    """Response containing the top players list."""

    leaderboard: list[LeaderboardEntry]
    updated_at: datetime


class AchievementOut(ORMModel):
    id: int
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None
    player_id: Optional[int] = None
    date_awarded: Optional[date] = None


class HallOfFameOut(ORMModel):
    id: int
    full_name: str
    title: Optional[str] = None
    avatar_url: Optional[str] = None
    inducted_year: Optional[int] = None


# ── Bulk import ──────────────────────────────────────────────────

class ImportFailure(BaseModel):
    email: str
    error: str


class ImportReportResponse(BaseModel):
    batch_id: str
    total: int
    success: int
    failed: int
    skipped: int
    progress: int
    failures: list[ImportFailure]


class BatchStatusResponse(BaseModel):
    batch_id: str
    status: str
    total: int
    processed: int
    success: int
    failed: int
    progress: int
    failures: list[ImportFailure]
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class DeleteCountResponse(BaseModel):
    batch_id: str
    deleted: int


# ── Mail relay ───────────────────────────────────────────────────

class SendEmailRequest(BaseModel):
    to: str = Field(..., min_length=3)
    subject: str
    body: str
