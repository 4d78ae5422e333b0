from __future__ import annotations

from fastapi.testclient import TestClient

from sparetime.app import app

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "traveler", "password": "traveler123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"username": "traveler", "password": "traveler123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["username"] == "traveler"
    assert body["user"]["role"] == "user"
    assert body["user"]["memory_user_id"] == "sparetime-traveler"


def test_login_success_admin():
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"username": "traveler", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_login_rejects_empty_fields():
    resp = client.post("/auth/login", json={"username": "", "password": ""})
    assert resp.status_code == 422


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["username"] == "traveler"


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


# ── Route protection ─────────────────────────────────────────────────────


def test_suggest_requires_login():
    c = TestClient(app)
    resp = c.post("/suggest", json={"anchor_id": "anchor_a", "free_time_min": 30})
    assert resp.status_code == 401


def test_sources_require_login():
    c = TestClient(app)
    assert c.get("/sources").status_code == 401
    assert c.post("/sources", json={"name": "Blue Bottle"}).status_code == 401


def test_exclusions_require_login():
    c = TestClient(app)
    assert c.get("/exclusions").status_code == 401
    assert c.post("/exclusions/forget", json={"category": "cafe"}).status_code == 401


def test_chat_requires_login():
    c = TestClient(app)
    resp = c.post("/chat", json={"message": "forget cafes"})
    assert resp.status_code == 401


def test_analytics_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.get("/analytics")
    assert resp.status_code == 403


def test_analytics_allowed_for_admin():
    c = TestClient(app)
    _login_admin(c)
    resp = c.get("/analytics")
    assert resp.status_code == 200


# ── Public endpoints stay public ─────────────────────────────────────────


def test_health_is_public():
    c = TestClient(app)
    assert c.get("/health").status_code == 200
