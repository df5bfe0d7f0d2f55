"""
Account routes: sign-up, sign-in/out, session lookup and password flows.

Endpoints:
  POST /api/auth/signup                  — Create account + player profile
  POST /api/auth/login                   — Sign in, returns a bearer token
  POST /api/auth/logout                  — End the current session
  GET  /api/auth/session                 — Current session and role
  POST /api/auth/password                — Change password
  POST /api/auth/password/reset-request  — Email a reset link
  POST /api/auth/password/reset          — Set a new password from a reset token
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from config import Config
from database import get_db
from deps import current_player, current_session, get_identity, get_token, player_for_email
from errors import NotificationError
from identity import IdentityService, SessionInfo
from limiter import limiter
from models import Player
from notifications import EmailNotifier, get_notifier, password_reset_notice
from schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordChange,
    PasswordReset,
    PasswordResetRequest,
    SessionResponse,
    SignupRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

PROFILE_FIELDS = ("full_name", "country", "discord_id", "troop_type", "hero_name", "igg_id", "bio", "troop_specialist")


@router.post("/signup", response_model=MessageResponse, status_code=201)
@limiter.limit(Config.LOGIN_RATE_LIMIT)
def signup(
    request: Request,
    payload: SignupRequest,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity),
):
    """
    Register a new member.

    Steps:
      1. Create the identity account
      2. Update the player with this email if one exists, else insert one;
         either way the row is a member row
      3. If step 2 fails, delete the account created in step 1
    """
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Password and Confirm Password do not match.")

    profile = {name: getattr(payload, name) for name in PROFILE_FIELDS}
    profile["has_farm"] = payload.farm_account

    account = identity.sign_up(payload.email, payload.password, metadata=profile)
    try:
        player = player_for_email(db, account.email)
        if player is None:
            player = Player(email=account.email)
            db.add(player)
        # Self-registration never inherits a role provisioned on the roster row.
        player.role = "member"
        for name, value in profile.items():
            setattr(player, name, value)
        player.auth_id = account.id
        db.commit()
    except Exception as exc:
        db.rollback()
        identity.admin_delete_user(account.id)
        logger.error("signup profile write failed for %s: %s", account.email, exc)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("New member signed up: %s", account.email)
    return MessageResponse(message="Sign up successful! Please log in.")


@router.post("/login", response_model=LoginResponse)
@limiter.limit(Config.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    payload: LoginRequest,
    db: Session = Depends(get_db),
    identity: IdentityService = Depends(get_identity),
):
    """Sign in and send admins to the dashboard, everyone else to their profile."""
    info = identity.sign_in(payload.email, payload.password)
    player = player_for_email(db, info.email)
    role = player.role if player else None
    return LoginResponse(
        access_token=info.token,
        role=role,
        redirect="/dashboard" if role == "admin" else "/profile",
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    token: Optional[str] = Depends(get_token),
    identity: IdentityService = Depends(get_identity),
):
    if token:
        identity.sign_out(token)
    return MessageResponse(message="Signed out")


@router.get("/session", response_model=SessionResponse)
def get_session(
    session: SessionInfo = Depends(current_session),
    player: Optional[Player] = Depends(current_player),
):
    return SessionResponse(
        account_id=session.account_id,
        email=session.email,
        expires_at=session.expires_at,
        role=player.role if player else None,
        full_name=player.full_name if player else None,
    )


@router.post("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChange,
    session: SessionInfo = Depends(current_session),
    identity: IdentityService = Depends(get_identity),
):
    if payload.new_password != payload.confirm:
        raise HTTPException(status_code=400, detail="New password and confirmation do not match.")
    identity.update_password(session.account_id, payload.new_password)
    return MessageResponse(message="Password updated successfully!")


@router.post("/password/reset-request", response_model=MessageResponse)
@limiter.limit(Config.LOGIN_RATE_LIMIT)
def request_password_reset(
    request: Request,
    payload: PasswordResetRequest,
    identity: IdentityService = Depends(get_identity),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Always answers the same way so the endpoint does not reveal accounts."""
    token = identity.request_password_reset(payload.email)
    if token:
        subject, body = password_reset_notice(payload.email, token)
        try:
            notifier.send(payload.email, subject, body)
        except NotificationError as e:
            logger.warning("⚠ Reset email for %s not sent: %s", payload.email, e.message)
    return MessageResponse(message="If the address is registered, a reset link has been sent.")


@router.post("/password/reset", response_model=MessageResponse)
def reset_password(
    payload: PasswordReset,
    identity: IdentityService = Depends(get_identity),
):
    identity.reset_password(payload.token, payload.new_password)
    return MessageResponse(message="Password updated successfully!")
