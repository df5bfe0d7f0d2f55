"""
Event, threshold and participation routes.

Endpoints:
  GET    /api/event-thresholds      — Thresholds by event name
  GET    /api/events                — Events with their thresholds
  POST   /api/events                — Create event (+ threshold upsert) (admin)
  PUT    /api/events/{id}           — Edit event (+ threshold upsert) (admin)
  DELETE /api/events/{id}           — Remove event (admin)
  GET    /api/event-players         — Participation records
  POST   /api/event-players         — Record participation (admin)
  PUT    /api/event-players/{id}    — Edit participation (admin)
  DELETE /api/event-players/{id}    — Remove participation (admin)
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from cache import LEADERBOARD_KEY, cache_invalidate
from database import get_db
from deps import current_session, require_admin
from listing import filter_rows, paginate, sort_rows
from models import Event, EventPlayer, EventThreshold, Player
from schemas import (
    EventForm,
    EventOut,
    EventPage,
    EventPlayerForm,
    EventPlayerOut,
    EventPlayerPage,
    ThresholdOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Events"])


def _upsert_threshold(db: Session, form: EventForm) -> EventThreshold:
    threshold = db.query(EventThreshold).filter(EventThreshold.event_name == form.event_name).first()
    if threshold is None:
        threshold = EventThreshold(event_name=form.event_name)
        db.add(threshold)
    threshold.min_participation = form.min_participation
    threshold.min_score = form.min_score
    threshold.season = form.season
    threshold.description = form.description
    db.flush()
    return threshold


def _get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return event


def _save_event(db: Session, event: Event, form: EventForm) -> Event:
    try:
        threshold = _upsert_threshold(db, form)
        event.name = form.event_name
        event.event_date = form.event_date
        event.event_threshold_id = threshold.id
        db.add(event)
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.error("saving event '%s' failed: %s", form.event_name, exc)
        raise HTTPException(status_code=500, detail="Error saving event")
    db.refresh(event)
    return event


# ── Thresholds / events ──────────────────────────────────────────

@router.get("/api/event-thresholds", response_model=list[ThresholdOut])
def list_thresholds(db: Session = Depends(get_db)):
    return db.query(EventThreshold).order_by(EventThreshold.event_name.asc()).all()


@router.get("/api/events", response_model=EventPage)
def list_events(
    search: str = "",
    season: str = "",
    event_name: str = "",
    sort: str = "event_date",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Events; free-text search matches name or season, the named filters narrow further."""
    events = db.query(Event).options(joinedload(Event.threshold)).all()
    rows = [EventOut.model_validate(e).model_dump() for e in events]

    rows = filter_rows(rows, search, ("threshold.event_name", "name", "threshold.season"))
    if event_name:
        rows = filter_rows(rows, event_name, ("threshold.event_name", "name"))
    if season:
        rows = filter_rows(rows, season, ("threshold.season",))

    rows = sort_rows(rows, sort, order)
    return paginate(rows, page, per_page)


@router.post("/api/events", response_model=EventOut, status_code=201)
def create_event(form: EventForm, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    return _save_event(db, Event(), form)


@router.put("/api/events/{event_id}", response_model=EventOut)
def update_event(
    event_id: int,
    form: EventForm,
    db: Session = Depends(get_db),
    _admin: Player = Depends(require_admin),
):
    return _save_event(db, _get_event(db, event_id), form)


@router.delete("/api/events/{event_id}", status_code=204)
def delete_event(event_id: int, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    db.delete(_get_event(db, event_id))
    db.commit()
    cache_invalidate(LEADERBOARD_KEY)


# ── Participation ────────────────────────────────────────────────

def _get_entry(db: Session, entry_id: int) -> EventPlayer:
    entry = db.get(EventPlayer, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Participation record {entry_id} not found")
    return entry


def _apply_entry(db: Session, entry: EventPlayer, form: EventPlayerForm) -> EventPlayer:
    if not form.event_id or not form.player_id:
        raise HTTPException(status_code=400, detail="Please select event and player.")
    if db.get(Event, form.event_id) is None:
        raise HTTPException(status_code=400, detail=f"Event {form.event_id} does not exist")
    if db.get(Player, form.player_id) is None:
        raise HTTPException(status_code=400, detail=f"Player {form.player_id} does not exist")

    for name, value in form.model_dump().items():
        setattr(entry, name, value)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    cache_invalidate(LEADERBOARD_KEY)
    return entry


@router.get("/api/event-players", response_model=EventPlayerPage)
def list_event_players(
    search: str = "",
    participation: Literal["all", "yes", "no"] = "all",
    event_id: Optional[int] = None,
    player_id: Optional[int] = None,
    sort: str = "created_at",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    db: Session = Depends(get_db),
    _session=Depends(current_session),
):
    entries = (
        db.query(EventPlayer)
        .options(joinedload(EventPlayer.player), joinedload(EventPlayer.event))
        .order_by(EventPlayer.id.asc())
        .all()
    )
    rows = [EventPlayerOut.model_validate(e).model_dump() for e in entries]

    equals = {"event_id": event_id, "player_id": player_id}
    if participation != "all":
        equals["participation_choice"] = participation == "yes"

    rows = filter_rows(rows, search, ("player.full_name", "event.name"), equals)
    rows = sort_rows(rows, sort, order)
    return paginate(rows, page, per_page)


@router.post("/api/event-players", response_model=EventPlayerOut, status_code=201)
def create_event_player(
    form: EventPlayerForm,
    db: Session = Depends(get_db),
    _admin: Player = Depends(require_admin),
):
    return _apply_entry(db, EventPlayer(), form)


@router.put("/api/event-players/{entry_id}", response_model=EventPlayerOut)
def update_event_player(
    entry_id: int,
    form: EventPlayerForm,
    db: Session = Depends(get_db),
    _admin: Player = Depends(require_admin),
):
    return _apply_entry(db, _get_entry(db, entry_id), form)


@router.delete("/api/event-players/{entry_id}", status_code=204)
def delete_event_player(entry_id: int, db: Session = Depends(get_db), _admin: Player = Depends(require_admin)):
    db.delete(_get_entry(db, entry_id))
    db.commit()
    cache_invalidate(LEADERBOARD_KEY)
