"""
Roster routes: players and ranks.

Endpoints:
  GET    /api/players             — Filtered, sorted, paginated roster
  GET    /api/players/{id}        — One player
  POST   /api/players             — Add a player (admin)
  PUT    /api/players/{id}        — Edit a player (admin)
  PATCH  /api/players/{id}/rank   — Set or clear a player's rank (admin)
  DELETE /api/players/{id}        — Remove a player (admin)
  GET    /api/ranks               — Ranks, lowest threshold first
  POST   /api/ranks               — Add a rank (admin)
  DELETE /api/ranks/{id}          — Remove a rank (admin)
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cache import LEADERBOARD_KEY, cache_invalidate
from database import get_db
from deps import current_session, get_identity, require_admin
from identity import IdentityService
from listing import filter_rows, paginate, sort_rows
from models import Player, Rank
from ranks import classify_rank, fetch_ranks
from schemas import (
    PlayerCreate,
    PlayerOut,
    PlayerPage,
    PlayerUpdate,
    RankAssignment,
    RankCreate,
    RankOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Roster"])


def _get_player(db: Session, player_id: int) -> Player:
    player = db.get(Player, player_id)
    if player is None:
        raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
    return player


def _check_rank(db: Session, rank_id: Optional[int]):
    if rank_id is not None and db.get(Rank, rank_id) is None:
        raise HTTPException(status_code=400, detail=f"Rank {rank_id} does not exist")


def _commit(db: Session, action: str):
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("%s rejected: %s", action, exc.orig)
        raise HTTPException(status_code=409, detail=f"Error {action}: a player with this email already exists")


# ── Players ──────────────────────────────────────────────────────

@router.get("/api/players", response_model=PlayerPage)
def list_players(
    search: str = "",
    troop: str = "all",
    farm: Literal["all", "yes", "no"] = "all",
    rank: Optional[int] = None,
    sort: Optional[str] = None,
    order: Literal["asc", "desc"] = "asc",
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _session=Depends(current_session),
):
    """Roster view; newest players first unless a sort field is chosen."""
    players = db.query(Player).order_by(Player.created_at.desc(), Player.id.desc()).all()
    rows = [PlayerOut.model_validate(p).model_dump() for p in players]

    equals = {"troop_type": troop, "rank_id": rank}
    if farm != "all":
        equals["has_farm"] = farm == "yes"

    rows = filter_rows(rows, search, ("full_name", "email"), equals)
    rows = sort_rows(rows, sort, order)
    return paginate(rows, page, per_page)


@router.get("/api/players/{player_id}", response_model=PlayerOut)
def get_player(player_id: int, db: Session = Depends(get_db), _session=Depends(current_session)):
    return _get_player(db, player_id)


@router.post("/api/players", response_model=PlayerOut, status_code=201)
def create_player(payload: PlayerCreate, db: Session = Depends(get_db), admin: Player = Depends(require_admin)):
    """Add a player; with no rank chosen the rank follows the player's might."""
    _check_rank(db, payload.rank_id)
    data = payload.model_dump(exclude_none=True)
    data["email"] = payload.email.strip().lower()
    if payload.rank_id is None:
        data["rank_id"] = classify_rank(payload.might, fetch_ranks(db))

    player = Player(**data)
    db.add(player)
    _commit(db, "adding player")
    db.refresh(player)
    logger.info("Player %s added by %s", player.email, admin.email)
    return player


@router.put("/api/players/{player_id}", response_model=PlayerOut)
def update_player(
    player_id: int,
    payload: PlayerUpdate,
    db: Session = Depends(get_db),
    admin: Player = Depends(require_admin),
):
    player = _get_player(db, player_id)
    data = payload.model_dump(exclude_unset=True)
    if "rank_id" in data:
        _check_rank(db, data["rank_id"])
    if data.get("email"):
        data["email"] = data["email"].strip().lower()
    elif "email" in data:
        del data["email"]

    for name, value in data.items():
        setattr(player, name, value)
    _commit(db, "updating player")
    db.refresh(player)
    logger.info("Player %s updated by %s", player.email, admin.email)
    return player


@router.patch("/api/players/{player_id}/rank", response_model=PlayerOut)
def assign_rank(
    player_id: int,
    payload: RankAssignment,
    db: Session = Depends(get_db),
    _admin: Player = Depends(require_admin),
):
    player = _get_player(db, player_id)
    _check_rank(db, payload.rank_id)
    player.rank_id = payload.rank_id
    db.commit()
    db.refresh(player)
    return player


@router.delete("/api/players/{player_id}", status_code=204)
def delete_player(
    player_id: int,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity),
    admin: Player = Depends(require_admin),
):
    """Remove the player, their participation records and their login."""
    player = _get_player(db, player_id)
    if player.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own profile.")
    email, auth_id = player.email, player.auth_id
    db.delete(player)
    db.commit()
    if auth_id:
        identity.admin_delete_user(auth_id)
    cache_invalidate(LEADERBOARD_KEY)
    logger.info("Player %s deleted by %s", email, admin.email)


# ── Ranks ────────────────────────────────────────────────────────

@router.get("/api/ranks", response_model=list[RankOut])
def list_ranks(db: Session = Depends(get_db)):
    return fetch_ranks(db)


@router.post("/api/ranks", response_model=RankOut, status_code=201)
def create_rank(payload: RankCreate, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    rank = Rank(name=payload.name.strip(), min_might=payload.min_might)
    db.add(rank)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Rank '{payload.name}' already exists")
    db.refresh(rank)
    return rank


@router.delete("/api/ranks/{rank_id}", status_code=204)
def delete_rank(rank_id: int, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    rank = db.get(Rank, rank_id)
    if rank is None:
        raise HTTPException(status_code=404, detail=f"Rank {rank_id} not found")
    db.query(Player).filter(Player.rank_id == rank_id).update({Player.rank_id: None})
    db.delete(rank)
    db.commit()
