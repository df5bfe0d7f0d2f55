"""
Identity gateway: accounts, password sessions and auth-state notifications.

Accounts live in ``auth_accounts`` and are joined to the roster by email.
Privileged operations (``admin_create_user`` / ``admin_delete_user``) are only
called from server code that already checked the caller is an admin.
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import Config
from errors import IdentityError
from models import AuthAccount, AuthSession

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"
PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


def utcnow() -> datetime:
    """Naive UTC now, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


# ── Password hashing ─────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        _, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


# ── Auth state notifications ─────────────────────────────────────

@dataclass(frozen=True)
class SessionInfo:
    token: str
    account_id: str
    email: str
    expires_at: datetime


AuthListener = Callable[[str, Optional[SessionInfo]], None]


class Subscription:
    def __init__(self, hub: "AuthEventHub", listener: AuthListener):
        self._hub = hub
        self.listener = listener

    def unsubscribe(self):
        self._hub._listeners.discard(self)


class AuthEventHub:
    """Process-wide fan-out of auth state changes to subscribed listeners."""

    def __init__(self):
        self._listeners: set[Subscription] = set()

    def subscribe(self, listener: AuthListener) -> Subscription:
        subscription = Subscription(self, listener)
        self._listeners.add(subscription)
        return subscription

    def emit(self, event: str, session: Optional[SessionInfo] = None):
        for subscription in list(self._listeners):
            try:
                subscription.listener(event, session)
            except Exception:
                logger.exception("Auth listener failed on %s", event)

    def __len__(self):
        return len(self._listeners)


auth_events = AuthEventHub()


# ── Identity service ─────────────────────────────────────────────

class IdentityService:
    """Account and session operations over one database session."""

    def __init__(self, db: Session, events: AuthEventHub = auth_events):
        self.db = db
        self.events = events

    # Accounts

    def find_by_email(self, email: str) -> Optional[AuthAccount]:
        return (
            self.db.query(AuthAccount)
            .filter(func.lower(AuthAccount.email) == normalize_email(email))
            .first()
        )

    def _create_account(self, email: str, password: str, email_confirm: bool, metadata: Optional[dict]) -> AuthAccount:
        email = normalize_email(email)
        if not email or "@" not in email:
            raise IdentityError("Unable to validate email address: invalid format")
        if not password or len(password) < Config.MIN_PASSWORD_LENGTH:
            raise IdentityError(f"Password should be at least {Config.MIN_PASSWORD_LENGTH} characters")
        if self.find_by_email(email) is not None:
            raise IdentityError("A user with this email address has already been registered")

        account = AuthAccount(
            email=email,
            password_hash=hash_password(password),
            email_confirmed=email_confirm,
            user_metadata=dict(metadata or {}),
        )
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> AuthAccount:
        """Self-service account creation."""
        account = self._create_account(email, password, email_confirm=False, metadata=metadata)
        logger.info("Account signed up: %s", account.email)
        return account

    def admin_create_user(self, email: str, password: str, email_confirm: bool = True,
                          metadata: Optional[dict] = None) -> AuthAccount:
        """Privileged account creation on behalf of an admin."""
        account = self._create_account(email, password, email_confirm=email_confirm, metadata=metadata)
        logger.info("Account created by admin: %s", account.email)
        return account

    def admin_delete_user(self, account_id: str) -> bool:
        account = self.db.get(AuthAccount, account_id)
        if account is None:
            return False
        self.db.delete(account)
        self.db.commit()
        logger.info("Account deleted: %s", account.email)
        return True

    # Sessions

    def sign_in(self, email: str, password: str) -> SessionInfo:
        account = self.find_by_email(email)
        if account is None or not verify_password(password or "", account.password_hash):
            raise IdentityError("Invalid login credentials")

        session = AuthSession(
            token=secrets.token_urlsafe(32),
            account_id=account.id,
            expires_at=utcnow() + timedelta(hours=Config.SESSION_TTL_HOURS),
        )
        self.db.add(session)
        self.db.commit()

        info = SessionInfo(session.token, account.id, account.email, session.expires_at)
        self.events.emit(SIGNED_IN, info)
        return info

    def get_session(self, token: str) -> Optional[SessionInfo]:
        if not token:
            return None
        session = self.db.get(AuthSession, token)
        if session is None:
            return None
        if session.expires_at <= utcnow():
            self.db.delete(session)
            self.db.commit()
            return None
        return SessionInfo(session.token, session.account_id, session.account.email, session.expires_at)

    def sign_out(self, token: str):
        session = self.db.get(AuthSession, token)
        if session is None:
            return
        info = SessionInfo(session.token, session.account_id, session.account.email, session.expires_at)
        self.db.delete(session)
        self.db.commit()
        self.events.emit(SIGNED_OUT, info)

    # Passwords

    def update_password(self, account_id: str, new_password: str):
        if not new_password or len(new_password) < Config.MIN_PASSWORD_LENGTH:
            raise IdentityError(f"Password should be at least {Config.MIN_PASSWORD_LENGTH} characters")
        account = self.db.get(AuthAccount, account_id)
        if account is None:
            raise IdentityError("User not found")
        account.password_hash = hash_password(new_password)
        self.db.commit()
        self.events.emit(USER_UPDATED)

    def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token, or None when no account has this email."""
        account = self.find_by_email(email)
        if account is None:
            return None
        account.reset_token = secrets.token_urlsafe(32)
        account.reset_expires_at = utcnow() + timedelta(minutes=Config.RESET_TOKEN_TTL_MINUTES)
        self.db.commit()
        self.events.emit(PASSWORD_RECOVERY)
        return account.reset_token

    def reset_password(self, token: str, new_password: str):
        if not new_password or len(new_password) < Config.MIN_PASSWORD_LENGTH:
            raise IdentityError(f"Password should be at least {Config.MIN_PASSWORD_LENGTH} characters")
        account = None
        if token:
            account = self.db.query(AuthAccount).filter(AuthAccount.reset_token == token).first()
        if account is None or account.reset_expires_at is None or account.reset_expires_at <= utcnow():
            raise IdentityError("Password reset link is invalid or has expired")
        account.reset_token = None
        account.reset_expires_at = None
        self.db.commit()
        self.update_password(account.id, new_password)
