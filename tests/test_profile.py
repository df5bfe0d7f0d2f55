from identity import IdentityService
from models import Player


def test_profile_of_signed_in_member(client, member_headers):
    resp = client.get("/api/profile", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "member@example.com"


def test_profile_requires_sign_in(client):
    assert client.get("/api/profile").status_code == 401


def test_first_save_creates_profile(client, db):
    IdentityService(db).admin_create_user("fresh@example.com", "freshpass")
    resp = client.post("/api/auth/login", json={"email": "fresh@example.com", "password": "freshpass"})
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

    assert client.get("/api/profile", headers=headers).status_code == 404

    resp = client.put("/api/profile", headers=headers, json={"full_name": "Fresh", "troop_type": "Ranged"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "member"
    assert resp.json()["full_name"] == "Fresh"


def test_save_profile_keeps_email_and_role(client, member_headers, db):
    resp = client.put("/api/profile", headers=member_headers,
                      json={"bio": "Hello", "might": 42, "email": "evil@example.com", "role": "admin"})
    assert resp.status_code == 200

    db.expire_all()
    player = db.query(Player).filter_by(email="member@example.com").one()
    assert player.bio == "Hello"
    assert player.might == 42
    assert player.role == "member"


def test_avatar_upload_stores_public_url(client, member_headers, storage):
    resp = client.post("/api/profile/avatar", headers=member_headers,
                       files={"file": ("me.JPG", b"\xff\xd8fake-jpeg", "image/jpeg")})
    assert resp.status_code == 200, resp.text

    url = resp.json()["profile_image_url"]
    assert url.startswith("http://testserver/storage/profile-images/avatars/member@example.com_")
    assert url.endswith(".jpg")

    path = url.split("/storage/profile-images/", 1)[1]
    assert (storage.root / "profile-images" / path).read_bytes() == b"\xff\xd8fake-jpeg"


def test_avatar_upload_rejects_empty_file(client, member_headers):
    resp = client.post("/api/profile/avatar", headers=member_headers,
                       files={"file": ("me.png", b"", "image/png")})
    assert resp.status_code == 400


def test_save_profile_cannot_change_rank(client, member_headers, member, ranks, db):
    resp = client.put("/api/profile", headers=member_headers,
                      json={"full_name": "Climber", "rank_id": ranks["Commander"].id})
    assert resp.status_code == 200
    assert resp.json()["rank_id"] is None

    db.expire_all()
    assert db.get(Player, member.id).rank_id is None
