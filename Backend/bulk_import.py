"""
Bulk member registration from an uploaded CSV file.

A run walks the rows in file order and, for each row with an email, creates
the identity account, resolves the rank name and inserts the Player tagged
with the run's batch identifier. A failing row is recorded as
``{email, error}`` and the run moves on; nothing is retried. Every Player a
run created can be removed again with ``rollback(batch_id)``.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cache import LEADERBOARD_KEY, cache_invalidate
from config import Config
from errors import NotificationError, PortalError
from identity import IdentityService
from models import AuthAccount, ImportBatch, Player
from notifications import EmailNotifier, credentials_notice
from ranks import fetch_ranks, resolve_rank_id

logger = logging.getLogger(__name__)

TEMPLATE_HEADER = ["full_name", "email", "country", "troop_type", "rank_name"]
TEMPLATE_ROWS = [
    ["John Doe", "john@example.com", "USA", "Infantry", "Elite"],
    ["Alice Smith", "alice@example.com", "UK", "Rider", "Commander"],
]
FAILURES_HEADER = ["email", "error"]


# ── CSV ──────────────────────────────────────────────────────────

def parse_csv(text: str) -> list[dict]:
    """Split a header + rows file into one dict per data line.

    Values are paired positionally with the header names; a short line leaves
    the trailing fields as None. Quoted fields are not understood: a comma
    always separates fields.
    """
    text = (text or "").strip()
    if not text:
        return []
    lines = text.split("\n")
    headers = [h.strip() for h in lines[0].split(",")]
    rows = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        rows.append({h: (values[i] if i < len(values) else None) for i, h in enumerate(headers)})
    return rows


def template_csv() -> str:
    return "\n".join(",".join(row) for row in [TEMPLATE_HEADER, *TEMPLATE_ROWS])


def failures_csv(failures: Iterable[dict]) -> str:
    lines = [",".join(FAILURES_HEADER)]
    for f in failures:
        lines.append(f"{f['email']},{str(f['error']).replace(',', ';')}")
    return "\n".join(lines)


def _value(row: dict, key: str) -> str:
    return (row.get(key) or "").strip()


def _error_message(exc: Exception) -> str:
    if isinstance(exc, PortalError):
        return exc.message
    if isinstance(exc, SQLAlchemyError) and getattr(exc, "orig", None) is not None:
        return str(exc.orig)
    return str(exc) or type(exc).__name__


# ── Import run ───────────────────────────────────────────────────

@dataclass
class ImportReport:
    batch_id: str
    total: int
    success: int = 0
    skipped: int = 0
    processed: int = 0
    failures: list[dict] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def progress(self) -> int:
        if not self.total:
            return 100
        return round(self.processed * 100 / self.total)


ProgressCallback = Callable[[ImportReport], None]


class BulkImporter:
    def __init__(self, db: Session, identity: IdentityService, notifier: Optional[EmailNotifier] = None,
                 default_password: str = Config.DEFAULT_MEMBER_PASSWORD, created_by: Optional[str] = None):
        self.db = db
        self.identity = identity
        self.notifier = notifier
        self.default_password = default_password
        self.created_by = created_by

    def run(self, rows: list[dict], notify: bool = False,
            progress: Optional[ProgressCallback] = None) -> ImportReport:
        ranks = fetch_ranks(self.db)

        batch = ImportBatch(total=len(rows), created_by=self.created_by, failures=[])
        self.db.add(batch)
        self.db.commit()
        report = ImportReport(batch_id=batch.id, total=len(rows))
        logger.info("Bulk import %s started: %d rows", batch.id, len(rows))

        for row in rows:
            email = _value(row, "email")
            if not email:
                report.skipped += 1
            else:
                try:
                    player = self._import_row(row, email, batch.id, ranks)
                except Exception as e:
                    message = _error_message(e)
                    logger.warning("✗ Failed for %s: %s", email, message)
                    report.failures.append({"email": email, "error": message})
                else:
                    report.success += 1
                    if notify:
                        self._notify(player)

            report.processed += 1
            batch.processed = report.processed
            batch.success_count = report.success
            batch.failures = list(report.failures)
            self.db.commit()
            if progress is not None:
                progress(report)

        batch.status = "completed"
        self.db.commit()
        logger.info("Bulk import %s complete: %d succeeded, %d failed, %d skipped",
                    batch.id, report.success, report.failed, report.skipped)
        return report

    def _import_row(self, row: dict, email: str, batch_id: str, ranks) -> Player:
        account = self.identity.admin_create_user(email, self.default_password, email_confirm=True)
        try:
            player = Player(
                full_name=_value(row, "full_name"),
                email=account.email,
                country=_value(row, "country"),
                troop_type=_value(row, "troop_type"),
                rank_id=resolve_rank_id(_value(row, "rank_name"), ranks),
                auth_id=account.id,
                role="member",
                batch_id=batch_id,
            )
            self.db.add(player)
            self.db.commit()
        except Exception:
            # Account exists without a profile; remove it before reporting the row.
            self.db.rollback()
            self.identity.admin_delete_user(account.id)
            raise
        return player

    def _notify(self, player: Player):
        if self.notifier is None:
            return
        subject, body = credentials_notice(player.full_name, player.email, self.default_password)
        try:
            self.notifier.send(player.email, subject, body)
        except NotificationError as e:
            logger.warning("⚠ Credentials notice for %s not sent: %s", player.email, e.message)

    # ── Cleanup ──────────────────────────────────────────────────

    def rollback(self, batch_id: str) -> int:
        """Delete every Player the run created, with their accounts."""
        players = self.db.query(Player).filter(Player.batch_id == batch_id).all()
        account_ids = [p.auth_id for p in players if p.auth_id]
        for player in players:
            self.db.delete(player)
        for account in self.db.query(AuthAccount).filter(AuthAccount.id.in_(account_ids)).all():
            self.db.delete(account)

        batch = self.db.get(ImportBatch, batch_id)
        if batch is not None:
            batch.status = "rolled_back"
        self.db.commit()
        cache_invalidate(LEADERBOARD_KEY)
        logger.info("Bulk import %s rolled back: %d players deleted", batch_id, len(players))
        return len(players)

    def cleanup_failed(self, emails: Iterable[str]) -> int:
        """Delete stale roster rows that blocked a run's failed registrations.

        Only rows with no linked account and no batch tag are removed; a
        registered member or a Player from another import is never touched.
        """
        emails = {e.strip().lower() for e in emails if e}
        if not emails:
            return 0
        players = (
            self.db.query(Player)
            .filter(Player.email.in_(emails), Player.auth_id.is_(None), Player.batch_id.is_(None))
            .all()
        )
        for player in players:
            self.db.delete(player)
        self.db.commit()
        if players:
            cache_invalidate(LEADERBOARD_KEY)
        logger.info("Cleanup removed %d stale players", len(players))
        return len(players)
