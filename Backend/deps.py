"""
Request-scoped dependencies: database session, identity gateway and the
signed-in caller (session → Player → role).
"""

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from identity import IdentityService, SessionInfo
from models import Player

bearer = HTTPBearer(auto_error=False)


def get_identity(db: Session = Depends(get_db)) -> IdentityService:
    return IdentityService(db)


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


def current_session(
    token: Optional[str] = Depends(get_token),
    identity: IdentityService = Depends(get_identity),
) -> SessionInfo:
    session = identity.get_session(token) if token else None
    if session is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return session


def player_for_email(db: Session, email: str) -> Optional[Player]:
    return db.query(Player).filter(func.lower(Player.email) == email.lower()).first()


def current_player(
    session: SessionInfo = Depends(current_session),
    db: Session = Depends(get_db),
) -> Optional[Player]:
    """The caller's roster row, or None when the account has no profile yet."""
    return player_for_email(db, session.email)


def require_admin(player: Optional[Player] = Depends(current_player)) -> Player:
    if player is None or not player.is_admin:
        raise HTTPException(status_code=403, detail="You are not authorized to perform this action.")
    return player
