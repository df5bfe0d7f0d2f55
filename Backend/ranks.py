"""
Rank lookups: by name (bulk import) and by might (auto-classification).
"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models import Rank


def fetch_ranks(db: Session) -> list[Rank]:
    """All ranks, lowest threshold first."""
    return db.query(Rank).order_by(Rank.min_might.asc()).all()


def resolve_rank_id(rank_name: Optional[str], ranks: Iterable[Rank]) -> Optional[int]:
    """Case-insensitive exact match of a human-readable rank name."""
    if not rank_name or not rank_name.strip():
        return None
    wanted = rank_name.strip().lower()
    for rank in ranks:
        if rank.name.lower() == wanted:
            return rank.id
    return None


def classify_rank(might: Optional[int], ranks: Iterable[Rank]) -> Optional[int]:
    """Highest rank whose minimum might is reached, or None."""
    if might is None:
        return None
    best = None
    for rank in ranks:
        if rank.min_might <= might and (best is None or rank.min_might >= best.min_might):
            best = rank
    return best.id if best else None
