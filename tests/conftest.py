"""Shared fixtures: in-memory database, API client and signed-in callers."""

import os
import tempfile

# Settings are read at import time, so they have to be in place first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEND_EMAIL_URL"] = ""
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="portal-storage-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import app
from create_admin import create_admin
from database import get_db
from errors import NotificationError
from identity import IdentityService
from models import Base, Player, Rank
from notifications import get_notifier
from storage import LocalBlobStorage, get_storage


class FakeNotifier:
    """Records messages instead of posting them to the mail relay."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, body):
        if to in self.fail_for:
            raise NotificationError(f"Failed to send email to {to}: relay down")
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def identity(db):
    return IdentityService(db)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def storage(tmp_path):
    return LocalBlobStorage(root=str(tmp_path / "blobs"), public_base_url="http://testserver")


@pytest.fixture
def client(session_factory, notifier, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def ranks(db):
    rows = [Rank(name="Recruit", min_might=0), Rank(name="Elite", min_might=50_000_000),
            Rank(name="Commander", min_might=100_000_000)]
    db.add_all(rows)
    db.commit()
    return {r.name: r for r in rows}


def _login(client, email, password):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def admin(db):
    return create_admin(db, "admin@example.com", "adminpass", "Alliance Leader")


@pytest.fixture
def admin_headers(client, admin):
    return _login(client, "admin@example.com", "adminpass")


@pytest.fixture
def member(db, identity):
    account = identity.admin_create_user("member@example.com", "memberpass")
    player = Player(email=account.email, full_name="Regular Member", role="member", auth_id=account.id)
    db.add(player)
    db.commit()
    return player


@pytest.fixture
def member_headers(client, member):
    return _login(client, "member@example.com", "memberpass")
