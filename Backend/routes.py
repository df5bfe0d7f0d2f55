"""
Hall of Fame routes with a cached leaderboard.

Endpoints:
  GET /api/hof/leaderboard   — Top 20 participation records by battle rating
  GET /api/hof/achievements  — Awarded achievements
  GET /api/hof/members       — Hall of Fame legends
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, joinedload

from cache import LEADERBOARD_KEY, cache_get, cache_set
from database import get_db
from limiter import limiter
from models import Achievement, EventPlayer, HallOfFame
from schemas import AchievementOut, HallOfFameOut, LeaderboardEntry, LeaderboardResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/hof", tags=["Hall of Fame"])

LEADERBOARD_SIZE = 20


@router.get("/leaderboard", response_model=LeaderboardResponse)
@limiter.limit("60/minute")
def get_leaderboard(request: Request, db: Session = Depends(get_db)):
    """Return the top 20 records, sorted by battle_rating descending."""

    # Try cache first
    cached = cache_get(LEADERBOARD_KEY)
    if cached:
        return LeaderboardResponse(**cached)

    rows = (
        db.query(EventPlayer)
        .options(joinedload(EventPlayer.player))
        .filter(EventPlayer.battle_rating.isnot(None))
        .order_by(EventPlayer.battle_rating.desc(), EventPlayer.id.asc())
        .limit(LEADERBOARD_SIZE)
        .all()
    )

    entries = [
        LeaderboardEntry(
            rank=idx + 1,
            player_id=r.player_id,
            full_name=r.player.full_name if r.player else None,
            role=r.player.role if r.player else None,
            troop_type=r.player.troop_type if r.player else None,
            battle_rating=r.battle_rating,
            kills=r.kills,
            deaths=r.deaths,
        )
        for idx, r in enumerate(rows)
    ]

    response = LeaderboardResponse(
        leaderboard=entries,
        updated_at=datetime.now(timezone.utc),
    )

    cache_set(LEADERBOARD_KEY, response.model_dump())

    return response


@router.get("/achievements", response_model=list[AchievementOut])
def get_achievements(db: Session = Depends(get_db)):
    return db.query(Achievement).order_by(Achievement.date_awarded.desc(), Achievement.id.asc()).all()


@router.get("/members", response_model=list[HallOfFameOut])
def get_members(db: Session = Depends(get_db)):
    return db.query(HallOfFame).order_by(HallOfFame.inducted_year.desc(), HallOfFame.id.asc()).all()
