from models import AuthAccount, Player

SIGNUP = {
    "full_name": "New Member",
    "email": "New@Example.com",
    "password": "hunter22",
    "confirm_password": "hunter22",
    "country": "NL",
    "troop_type": "Rider",
    "farm_account": True,
}


def test_signup_creates_account_and_member_profile(client, db):
    resp = client.post("/api/auth/signup", json=SIGNUP)
    assert resp.status_code == 201, resp.text

    player = db.query(Player).filter_by(email="new@example.com").one()
    assert player.role == "member"
    assert player.has_farm is True
    assert player.full_name == "New Member"
    assert player.auth_id == db.query(AuthAccount).one().id


def test_signup_fills_existing_roster_row(client, db):
    db.add(Player(email="new@example.com", might=123, role="member"))
    db.commit()

    assert client.post("/api/auth/signup", json=SIGNUP).status_code == 201

    db.expire_all()
    player = db.query(Player).filter_by(email="new@example.com").one()
    assert player.might == 123
    assert player.country == "NL"
    assert db.query(Player).count() == 1


def test_signup_password_mismatch(client, db):
    resp = client.post("/api/auth/signup", json={**SIGNUP, "confirm_password": "other"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Password and Confirm Password do not match."
    assert db.query(AuthAccount).count() == 0


def test_signup_duplicate_email(client):
    client.post("/api/auth/signup", json=SIGNUP)
    resp = client.post("/api/auth/signup", json=SIGNUP)
    assert resp.status_code == 400
    assert "already been registered" in resp.json()["detail"]


def test_login_redirects_by_role(client, admin, member):
    admin_login = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass"})
    member_login = client.post("/api/auth/login", json={"email": "member@example.com", "password": "memberpass"})

    assert admin_login.json()["redirect"] == "/dashboard"
    assert admin_login.json()["role"] == "admin"
    assert member_login.json()["redirect"] == "/profile"
    assert member_login.json()["token_type"] == "bearer"


def test_login_with_wrong_password(client, member):
    resp = client.post("/api/auth/login", json={"email": "member@example.com", "password": "nope"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid login credentials"


def test_session_and_logout(client, member_headers):
    resp = client.get("/api/auth/session", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "member@example.com"
    assert resp.json()["role"] == "member"

    assert client.post("/api/auth/logout", headers=member_headers).status_code == 200
    assert client.get("/api/auth/session", headers=member_headers).status_code == 401


def test_session_requires_token(client):
    resp = client.get("/api/auth/session")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not signed in"


def test_change_password(client, member_headers):
    resp = client.post("/api/auth/password", headers=member_headers,
                       json={"new_password": "changed1", "confirm": "changed1"})
    assert resp.status_code == 200

    resp = client.post("/api/auth/login", json={"email": "member@example.com", "password": "changed1"})
    assert resp.status_code == 200


def test_change_password_mismatch(client, member_headers):
    resp = client.post("/api/auth/password", headers=member_headers,
                       json={"new_password": "changed1", "confirm": "changed2"})
    assert resp.status_code == 400


def test_password_reset_by_email(client, member, notifier):
    resp = client.post("/api/auth/password/reset-request", json={"email": "member@example.com"})
    assert resp.status_code == 200
    assert notifier.sent[0]["to"] == "member@example.com"

    token = notifier.sent[0]["body"].split("token=")[1].split('"')[0]
    resp = client.post("/api/auth/password/reset", json={"token": token, "new_password": "fromlink1"})
    assert resp.status_code == 200
    assert client.post("/api/auth/login", json={"email": "member@example.com", "password": "fromlink1"}).status_code == 200


def test_password_reset_request_does_not_reveal_accounts(client, notifier):
    resp = client.post("/api/auth/password/reset-request", json={"email": "ghost@example.com"})
    assert resp.status_code == 200
    assert notifier.sent == []


def test_password_reset_with_bad_token(client):
    resp = client.post("/api/auth/password/reset", json={"token": "bogus", "new_password": "whatever1"})
    assert resp.status_code == 400
    assert "invalid or has expired" in resp.json()["detail"]


def test_signup_on_admin_provisioned_row_gets_member_role(client, admin_headers, db):
    resp = client.post("/api/players", headers=admin_headers,
                       json={"email": "coleader@example.com", "role": "admin"})
    assert resp.status_code == 201

    resp = client.post("/api/auth/signup", json={**SIGNUP, "email": "coleader@example.com"})
    assert resp.status_code == 201

    login = client.post("/api/auth/login", json={"email": "coleader@example.com", "password": "hunter22"}).json()
    assert login["role"] == "member"
    assert login["redirect"] == "/profile"
    db.expire_all()
    assert db.query(Player).filter_by(email="coleader@example.com").one().role == "member"
