"""
Self-service profile routes for the signed-in member.

Endpoints:
  GET  /api/profile         — The caller's profile
  PUT  /api/profile         — Create or update the caller's profile
  POST /api/profile/avatar  — Upload a profile image
"""

import logging
import time

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from database import get_db
from deps import current_session, player_for_email
from identity import SessionInfo
from models import Player
from schemas import PlayerOut, ProfileUpdate
from storage import LocalBlobStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["Profile"])

AVATAR_BUCKET = "profile-images"
MAX_AVATAR_BYTES = 5 * 1024 * 1024


def _upsert_profile(db: Session, session: SessionInfo, fields: dict) -> Player:
    """Write ``fields`` onto the caller's row, creating it on first save."""
    player = player_for_email(db, session.email)
    if player is None:
        player = Player(email=session.email, role="member", auth_id=session.account_id)
        db.add(player)
    for name, value in fields.items():
        setattr(player, name, value)
    db.commit()
    db.refresh(player)
    return player


@router.get("", response_model=PlayerOut)
def get_profile(session: SessionInfo = Depends(current_session), db: Session = Depends(get_db)):
    player = player_for_email(db, session.email)
    if player is None:
        raise HTTPException(status_code=404, detail="No profile for this account yet")
    return player


@router.put("", response_model=PlayerOut)
def save_profile(
    payload: ProfileUpdate,
    session: SessionInfo = Depends(current_session),
    db: Session = Depends(get_db),
):
    """Email, role, rank and batch tag are never taken from the request."""
    try:
        return _upsert_profile(db, session, payload.model_dump(exclude_unset=True))
    except Exception as exc:
        db.rollback()
        logger.error("save_profile failed for %s: %s", session.email, exc)
        raise HTTPException(status_code=500, detail="Error saving profile")


@router.post("/avatar", response_model=PlayerOut)
def upload_avatar(
    file: UploadFile = File(...),
    session: SessionInfo = Depends(current_session),
    db: Session = Depends(get_db),
    storage: LocalBlobStorage = Depends(get_storage),
):
    data = file.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    if len(data) > MAX_AVATAR_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")

    ext = (file.filename or "").rsplit(".", 1)[-1].lower() if "." in (file.filename or "") else "png"
    path = f"avatars/{session.email}_{int(time.time() * 1000)}.{ext}"
    storage.upload(AVATAR_BUCKET, path, data, upsert=True)
    url = storage.get_public_url(AVATAR_BUCKET, path)

    player = _upsert_profile(db, session, {"profile_image_url": url})
    logger.info("Avatar updated for %s", session.email)
    return player
