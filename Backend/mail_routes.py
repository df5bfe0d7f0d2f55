"""
Local send-email relay.

Endpoints:
  POST /api/send-email  — Deliver {to, subject, body} over SMTP
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from config import Config
from deps import get_identity, get_token, player_for_email
from identity import IdentityService
from notifications import SmtpMailer, get_mailer
from schemas import MessageResponse, SendEmailRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Mail"])


def authorize_relay(
    relay_token: Optional[str] = Header(default=None, alias="X-Relay-Token"),
    token: Optional[str] = Depends(get_token),
    identity: IdentityService = Depends(get_identity),
):
    """Accept the shared relay token or an admin session."""
    if relay_token and Config.MAIL_RELAY_TOKEN and hmac.compare_digest(relay_token, Config.MAIL_RELAY_TOKEN):
        return
    session = identity.get_session(token) if token else None
    if session is not None:
        player = player_for_email(identity.db, session.email)
        if player is not None and player.is_admin:
            return
    raise HTTPException(status_code=403, detail="Not allowed to send mail")


@router.post("/send-email", response_model=MessageResponse, dependencies=[Depends(authorize_relay)])
def send_email(payload: SendEmailRequest, mailer: SmtpMailer = Depends(get_mailer)):
    delivered = mailer.send(payload.to, payload.subject, payload.body)
    return MessageResponse(message="Email sent" if delivered else "Email accepted (SMTP not configured)")
