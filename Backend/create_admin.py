"""
Bootstrap an admin: identity account plus an admin Player row.

Usage:
    python create_admin.py admin@example.com 'S3cret!' --name "Alliance Leader"
"""

import argparse

from database import SessionLocal, create_tables
from deps import player_for_email
from errors import IdentityError
from identity import IdentityService
from models import Player


def create_admin(db, email: str, password: str, full_name: str = "") -> Player:
    """Create (or promote) the admin; an existing account keeps its password."""
    identity = IdentityService(db)
    account = identity.find_by_email(email)
    if account is None:
        account = identity.admin_create_user(email, password, email_confirm=True)

    player = player_for_email(db, account.email)
    if player is None:
        player = Player(email=account.email, full_name=full_name)
        db.add(player)
    player.role = "admin"
    player.auth_id = account.id
    db.commit()
    db.refresh(player)
    return player


def main():
    parser = argparse.ArgumentParser(description="Create an Alliance Portal admin")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default="")
    args = parser.parse_args()

    create_tables()
    db = SessionLocal()
    try:
        player = create_admin(db, args.email, args.password, args.name)
        print(f"Admin {player.email} ready (player id {player.id}).")
    except IdentityError as e:
        print(f"Error creating admin: {e.message}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
