"""
Outbound mail: the relay client used by server flows and the SMTP sender
behind the local ``/api/send-email`` relay.
"""

import logging
import smtplib
from email.message import EmailMessage

import requests

from config import Config
from errors import NotificationError

logger = logging.getLogger(__name__)


class EmailNotifier:
    """POSTs ``{to, subject, body}`` to the send-email relay."""

    def __init__(self, url: str = Config.SEND_EMAIL_URL, token: str = Config.MAIL_RELAY_TOKEN, timeout: int = 10):
        self.url = url
        self.token = token
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str):
        if not self.url:
            logger.info("Mail relay not configured; dropping '%s' to %s", subject, to)
            return
        try:
            resp = requests.post(
                self.url,
                json={"to": to, "subject": subject, "body": body},
                headers={"X-Relay-Token": self.token} if self.token else {},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(f"Failed to send email to {to}: {e}") from e


def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def credentials_notice(full_name: str, email: str, password: str) -> tuple[str, str]:
    """Subject and HTML body telling a new member their login."""
    subject = f"Your {Config.PORTAL_NAME} Login"
    body = f"""
      <p>Hi {full_name or 'Survivor'},</p>
      <p>Your {Config.PORTAL_NAME} account has been created successfully!</p>
      <p><b>Login Email:</b> {email}<br/>
      <b>Password:</b> {password}</p>
      <p>Please log in and change your password immediately.</p>
      <p>Portal Link: <a href="{Config.PORTAL_URL}">{Config.PORTAL_NAME}</a></p>
    """
    return subject, body


def password_reset_notice(email: str, token: str) -> tuple[str, str]:
    subject = f"{Config.PORTAL_NAME} password reset"
    link = f"{Config.PORTAL_URL}/reset-password?token={token}"
    body = f"""
      <p>A password reset was requested for {email}.</p>
      <p><a href="{link}">Choose a new password</a></p>
      <p>If you did not ask for this, you can ignore this message.</p>
    """
    return subject, body


class SmtpMailer:
    """Delivers relay messages through the configured SMTP server."""

    def __init__(self, host: str = Config.SMTP_HOST, port: int = Config.SMTP_PORT,
                 user: str = Config.SMTP_USER, password: str = Config.SMTP_PASSWORD,
                 sender: str = Config.SMTP_SENDER):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send an HTML message; returns False when SMTP is not configured."""
        if not self.host:
            logger.warning("⚠ SMTP not configured — message to %s not delivered", to)
            return False

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(body, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
                smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {to} failed: {e}") from e
        logger.info("✓ Mail delivered to %s", to)
        return True


def get_mailer() -> SmtpMailer:
    return SmtpMailer()
