"""
Database seeding script for the Alliance Portal.

Populates the database with:
  - The default rank ladder
  - Recurring event thresholds
  - A starter Hall of Fame

Existing rows are left alone, so the script can be re-run.

Usage:
    python seed_db.py
"""

import time

from database import SessionLocal, create_tables
from models import EventThreshold, HallOfFame, Rank

DEFAULT_RANKS = [
    ("Recruit", 0),
    ("Warrior", 5_000_000),
    ("Veteran", 20_000_000),
    ("Elite", 50_000_000),
    ("Commander", 100_000_000),
]

DEFAULT_THRESHOLDS = [
    {"event_name": "Kingdom vs Kingdom", "min_participation": 1, "min_score": 500_000, "season": "S1",
     "description": "Cross-kingdom war event"},
    {"event_name": "Alliance Showdown", "min_participation": 3, "min_score": 100_000, "season": "S1",
     "description": "Weekly alliance showdown"},
    {"event_name": "Guild Fest", "min_participation": 5, "min_score": 50_000, "season": "S1",
     "description": "Guild fest quests"},
]

DEFAULT_LEGENDS = [
    {"full_name": "Founding Leader", "title": "Alliance Founder", "inducted_year": 2023},
]


def seed(db=None):
    """Run all seeding steps sequentially."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # ── Step 1: Ranks ────────────────────────────────────────
        print("⏳ Seeding ranks …")
        start = time.time()
        existing = {name for (name,) in db.query(Rank.name).all()}
        for name, min_might in DEFAULT_RANKS:
            if name not in existing:
                db.add(Rank(name=name, min_might=min_might))
        db.commit()
        print(f"   ✓ Ranks ensured in {time.time() - start:.1f}s")

        # ── Step 2: Event thresholds ─────────────────────────────
        print("⏳ Seeding event thresholds …")
        existing = {name for (name,) in db.query(EventThreshold.event_name).all()}
        for threshold in DEFAULT_THRESHOLDS:
            if threshold["event_name"] not in existing:
                db.add(EventThreshold(**threshold))
        db.commit()
        print("   ✓ Event thresholds ensured")

        # ── Step 3: Hall of Fame ─────────────────────────────────
        if db.query(HallOfFame).count() == 0:
            print("⏳ Inducting founding legends …")
            db.add_all(HallOfFame(**legend) for legend in DEFAULT_LEGENDS)
            db.commit()
            print("   ✓ Hall of Fame seeded")
    finally:
        if own_session:
            db.close()

    print("\n🎉 Database seeding complete!")


if __name__ == "__main__":
    create_tables()
    seed()
