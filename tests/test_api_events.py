from datetime import date

import pytest

from models import Achievement, Event, EventPlayer, EventThreshold, HallOfFame, Player


def make_event(client, headers, name, when, season=None, **extra):
    resp = client.post("/api/events", headers=headers,
                       json={"event_name": name, "event_date": when, "season": season, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def fighters(db):
    players = [Player(email=f"p{i}@example.com", full_name=name, troop_type="Infantry")
               for i, name in enumerate(["Ann", "Ben", "Cat"])]
    db.add_all(players)
    db.commit()
    return players


def test_create_event_upserts_threshold(client, admin_headers, db):
    first = make_event(client, admin_headers, "Guild Fest", "2024-05-01", season="S1", min_score=100)
    second = make_event(client, admin_headers, "Guild Fest", "2024-06-01", season="S2", min_score=200)

    assert first["event_threshold_id"] == second["event_threshold_id"]
    assert db.query(EventThreshold).count() == 1
    threshold = db.query(EventThreshold).one()
    assert threshold.season == "S2"
    assert threshold.min_score == 200
    assert second["threshold"]["event_name"] == "Guild Fest"


def test_update_event(client, admin_headers):
    event = make_event(client, admin_headers, "Guild Fest", "2024-05-01")
    resp = client.put(f"/api/events/{event['id']}", headers=admin_headers,
                      json={"event_name": "Kingdom vs Kingdom", "event_date": "2024-07-01"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Kingdom vs Kingdom"
    assert resp.json()["threshold"]["event_name"] == "Kingdom vs Kingdom"


def test_members_cannot_manage_events(client, member_headers):
    resp = client.post("/api/events", headers=member_headers, json={"event_name": "Guild Fest"})
    assert resp.status_code == 403


def test_events_search_matches_name_or_season(client, admin_headers):
    make_event(client, admin_headers, "Guild Fest", "2024-05-01", season="Spring")
    make_event(client, admin_headers, "Showdown", "2024-06-01", season="Summer")
    make_event(client, admin_headers, "Spring Cup", "2024-04-01", season="S9")

    found = client.get("/api/events", params={"search": "spring"}).json()["items"]
    assert [e["name"] for e in found] == ["Guild Fest", "Spring Cup"]

    found = client.get("/api/events", params={"search": "spring", "season": "s9"}).json()["items"]
    assert [e["name"] for e in found] == ["Spring Cup"]

    found = client.get("/api/events", params={"event_name": "show"}).json()["items"]
    assert [e["name"] for e in found] == ["Showdown"]


def test_events_default_to_newest_first(client, admin_headers):
    make_event(client, admin_headers, "Old", "2023-01-01")
    make_event(client, admin_headers, "New", "2024-01-01")
    names = [e["name"] for e in client.get("/api/events").json()["items"]]
    assert names == ["New", "Old"]


def test_thresholds_listed(client, admin_headers):
    make_event(client, admin_headers, "Showdown", "2024-06-01")
    make_event(client, admin_headers, "Guild Fest", "2024-05-01")
    assert [t["event_name"] for t in client.get("/api/event-thresholds").json()] == ["Guild Fest", "Showdown"]


def test_delete_event_removes_participation(client, admin_headers, fighters, db):
    event = make_event(client, admin_headers, "Guild Fest", "2024-05-01")
    client.post("/api/event-players", headers=admin_headers,
                json={"event_id": event["id"], "player_id": fighters[0].id, "participation_choice": True})

    assert client.delete(f"/api/events/{event['id']}", headers=admin_headers).status_code == 204
    assert db.query(Event).count() == 0
    assert db.query(EventPlayer).count() == 0


def test_participation_requires_event_and_player(client, admin_headers, fighters):
    resp = client.post("/api/event-players", headers=admin_headers, json={"player_id": fighters[0].id})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please select event and player."

    resp = client.post("/api/event-players", headers=admin_headers, json={"event_id": 42, "player_id": fighters[0].id})
    assert resp.status_code == 400


def test_record_and_edit_participation(client, admin_headers, fighters):
    event = make_event(client, admin_headers, "Guild Fest", "2024-05-01")
    resp = client.post("/api/event-players", headers=admin_headers,
                       json={"event_id": event["id"], "player_id": fighters[0].id,
                             "participation_choice": True, "battle_rating": 900, "kills": 12, "deaths": 3})
    assert resp.status_code == 201, resp.text
    entry = resp.json()
    assert entry["player"]["full_name"] == "Ann"
    assert entry["event"]["name"] == "Guild Fest"

    resp = client.put(f"/api/event-players/{entry['id']}", headers=admin_headers,
                      json={"event_id": event["id"], "player_id": fighters[0].id, "battle_rating": 1000})
    assert resp.json()["battle_rating"] == 1000
    assert resp.json()["participation_choice"] is False

    assert client.delete(f"/api/event-players/{entry['id']}", headers=admin_headers).status_code == 204


def test_participation_listing_filters(client, admin_headers, member_headers, fighters):
    fest = make_event(client, admin_headers, "Guild Fest", "2024-05-01")
    kvk = make_event(client, admin_headers, "KvK", "2024-06-01")
    for event, player, joined in [(fest, fighters[0], True), (fest, fighters[1], False), (kvk, fighters[2], True)]:
        client.post("/api/event-players", headers=admin_headers,
                    json={"event_id": event["id"], "player_id": player.id, "participation_choice": joined})

    def who(**params):
        items = client.get("/api/event-players", headers=member_headers,
                           params={"sort": "player.full_name", "order": "asc", **params}).json()["items"]
        return [i["player"]["full_name"] for i in items]

    assert who() == ["Ann", "Ben", "Cat"]
    assert who(participation="yes") == ["Ann", "Cat"]
    assert who(event_id=fest["id"]) == ["Ann", "Ben"]
    assert who(search="kvk") == ["Cat"]
    assert who(player_id=fighters[1].id) == ["Ben"]


def test_leaderboard_orders_by_battle_rating(client, admin_headers, fighters):
    event = make_event(client, admin_headers, "Guild Fest", "2024-05-01")
    for player, rating in zip(fighters, [500, None, 900]):
        client.post("/api/event-players", headers=admin_headers,
                    json={"event_id": event["id"], "player_id": player.id, "battle_rating": rating})

    board = client.get("/api/hof/leaderboard").json()["leaderboard"]

    assert [(e["rank"], e["full_name"], e["battle_rating"]) for e in board] == [(1, "Cat", 900), (2, "Ann", 500)]


def test_leaderboard_is_capped_at_twenty(client, db):
    players = [Player(email=f"p{i}@example.com", full_name=f"P{i}") for i in range(25)]
    event = Event(name="Guild Fest")
    db.add_all(players + [event])
    db.commit()
    db.add_all(EventPlayer(event_id=event.id, player_id=p.id, battle_rating=i) for i, p in enumerate(players))
    db.commit()

    board = client.get("/api/hof/leaderboard").json()["leaderboard"]
    assert len(board) == 20
    assert board[0]["battle_rating"] == 24


def test_achievements_and_members(client, db):
    db.add_all([
        Achievement(title="First Blood", date_awarded=date(2024, 1, 1)),
        Achievement(title="Warlord", date_awarded=date(2024, 3, 1)),
        HallOfFame(full_name="Founder", inducted_year=2023),
        HallOfFame(full_name="Hero", inducted_year=2024),
    ])
    db.commit()

    assert [a["title"] for a in client.get("/api/hof/achievements").json()] == ["Warlord", "First Blood"]
    assert [m["full_name"] for m in client.get("/api/hof/members").json()] == ["Hero", "Founder"]
