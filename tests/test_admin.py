import logging
from datetime import datetime, timedelta

from opensquid.core.database import SessionLocal
from opensquid.models.orm import Team
from opensquid.services.teams import seed_admin


def test_teams_list_excludes_admins(client, admin_headers, register):
    register("Alpha", "alpha@techfest.org")
    register("Beta", "beta@techfest.org")
    r = client.get("/api/admin/teams", headers=admin_headers)
    assert r.status_code == 200
    names = [t["name"] for t in r.json()]
    assert names == ["Beta", "Alpha"]
    r = client.get("/api/users", headers=admin_headers)
    assert {t["role"] for t in r.json()} == {"user", "admin"}


def test_ban_blocks_sign_in_until_lifted(client, admin_headers, register):
    team, _ = register()
    r = client.post(f"/api/admin/teams/{team['id']}/ban", headers=admin_headers, json={"reason": "cheating"})
    assert r.status_code == 200
    assert r.json()["banned"] is True
    r = client.post("/api/auth/sign-in", json={"email": "red@techfest.org", "password": "squidgame456"})
    assert r.status_code == 403
    assert "cheating" in r.json()["error"]["message"]
    client.post(f"/api/admin/teams/{team['id']}/unban", headers=admin_headers)
    r = client.post("/api/auth/sign-in", json={"email": "red@techfest.org", "password": "squidgame456"})
    assert r.status_code == 200


def test_ban_revokes_existing_token(client, admin_headers, register, questions):
    team, hdr = register()
    session = client.post("/api/quiz-sessions", headers=admin_headers, json={"title": "Round 1"}).json()
    answer = {"user_id": team["id"], "session_id": session["id"], "question_id": questions[0]["id"],
              "selected_answer": 0, "is_correct": True}
    client.post(f"/api/admin/teams/{team['id']}/ban", headers=admin_headers, json={"reason": "cheating"})

    r = client.post("/api/user-answers", headers=hdr, json=answer)
    assert r.status_code == 403
    assert r.json()["error"]["message"] == "Team is banned: cheating"
    r = client.post(f"/api/quiz-sessions/{session['id']}/participants", headers=hdr, json={"user_id": team["id"]})
    assert r.status_code == 403
    r = client.post("/api/uploads/images", headers=hdr, files={"file": ("a.png", b"\x89PNG", "image/png")})
    assert r.status_code == 403

    client.post(f"/api/admin/teams/{team['id']}/unban", headers=admin_headers)
    assert client.post("/api/user-answers", headers=hdr, json=answer).status_code == 201


def test_expired_ban_is_lifted_for_existing_token(client, admin_headers, register, questions):
    team, hdr = register()
    session = client.post("/api/quiz-sessions", headers=admin_headers, json={"title": "Round 1"}).json()
    client.post(f"/api/admin/teams/{team['id']}/ban", headers=admin_headers, json={"expires_in_days": 1})
    with SessionLocal() as db:
        db.get(Team, team["id"]).ban_expires = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
    r = client.post(f"/api/quiz-sessions/{session['id']}/participants", headers=hdr, json={"user_id": team["id"]})
    assert r.status_code == 201
    assert client.get("/api/auth/session", headers=hdr).json()["banned"] is False


def test_expired_ban_is_lifted_on_sign_in(client, admin_headers, register):
    team, _ = register()
    client.post(f"/api/admin/teams/{team['id']}/ban", headers=admin_headers, json={"expires_in_days": 1})
    with SessionLocal() as db:
        row = db.get(Team, team["id"])
        row.ban_expires = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
    r = client.post("/api/auth/sign-in", json={"email": "red@techfest.org", "password": "squidgame456"})
    assert r.status_code == 200
    assert r.json()["team"]["banned"] is False


def test_cannot_ban_admin_or_unknown(client, admin_headers):
    admin_id = next(t["id"] for t in client.get("/api/users", headers=admin_headers).json() if t["role"] == "admin")
    assert client.post(f"/api/admin/teams/{admin_id}/ban", headers=admin_headers, json={}).status_code == 400
    assert client.post("/api/admin/teams/nope/ban", headers=admin_headers, json={}).status_code == 404


def test_summary(client, admin_headers, register, questions):
    register()
    client.post("/api/quiz-sessions", headers=admin_headers, json={"title": "Round 1"})
    r = client.get("/api/admin/summary", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["teams"] == 1
    assert body["questions"] == 3
    assert body["quiz_sessions"] == {"pending": 1, "live": 0, "completed": 0}
    assert body["live_quiz_session_id"] is None


def test_seed_admin_skips_a_regular_team(client, register, caplog):
    team, _ = register()
    with SessionLocal() as db:
        with caplog.at_level(logging.WARNING, logger="opensquid.services.teams"):
            assert seed_admin(db, "Red@techfest.org", "admin-pass-456", "Admin") is None
        assert db.get(Team, team["id"]).role == "user"
        assert seed_admin(db, "admin@opensquid.org", "ignored", "Admin").is_admin
    assert "no admin account seeded" in caplog.text
