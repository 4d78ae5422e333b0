from __future__ import annotations

from fastapi.testclient import TestClient

from sparetime.app import app
from sparetime.sessions.state import clear_sessions

CAFES = [
    {"id": f"c{i}", "name": f"Cafe {i}", "category": "cafe", "duration_min": 30,
     "anchor_id": "anchor_a" if i in (2, 4) else "anchor_b"}
    for i in range(1, 6)
]
MUSEUMS = [
    {"id": f"m{i}", "name": f"Museum {i}", "category": "museum", "duration_min": 60, "anchor_id": "anchor_b"}
    for i in range(1, 4)
]


def _login(c):
    c.post("/auth/login", json={"username": "traveler", "password": "traveler123"})


def _client_with_catalog():
    clear_sessions()
    c = TestClient(app)
    _login(c)
    for source in CAFES + MUSEUMS:
        assert c.post("/sources", json=source).status_code == 201
    return c


def test_health():
    resp = TestClient(app).get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ── Stateless suggest ────────────────────────────────────────────────────


def test_suggest_ranks_anchor_matches_first():
    c = TestClient(app)
    _login(c)
    resp = c.post("/suggest", json={"sources": CAFES + MUSEUMS, "anchor_id": "anchor_a", "free_time_min": 90})
    assert resp.status_code == 200
    body = resp.json()
    assert [s["source_id"] for s in body["suggestions"][:2]] == ["c2", "c4"]
    assert body["debug"]["total_sources"] == 8


def test_suggest_accepts_camel_case_exclusions():
    c = TestClient(app)
    _login(c)
    resp = c.post("/suggest", json={
        "sources": CAFES + MUSEUMS,
        "excludedCategories": ["cafe"],
        "anchor_id": "anchor_a",
        "free_time_min": 90,
    })
    body = resp.json()
    assert body["suggestions"]
    assert all(s["category"] == "museum" for s in body["suggestions"])
    assert body["debug"]["excluded_source_count"] == 5


def test_suggest_requires_anchor():
    c = TestClient(app)
    _login(c)
    resp = c.post("/suggest", json={"sources": CAFES, "free_time_min": 90})
    assert resp.status_code == 422


def test_suggest_rejects_negative_free_time():
    c = TestClient(app)
    _login(c)
    resp = c.post("/suggest", json={"sources": CAFES, "anchor_id": "anchor_a", "free_time_min": -5})
    assert resp.status_code == 422


# ── Sources ──────────────────────────────────────────────────────────────


def test_add_source_generates_id():
    clear_sessions()
    c = TestClient(app)
    _login(c)
    resp = c.post("/sources", json={"name": "Golden Gate Park", "category": "park"})
    assert resp.status_code == 201
    assert resp.json()["id"]
    assert [s["name"] for s in c.get("/sources").json()] == ["Golden Gate Park"]


def test_add_duplicate_source_conflicts():
    c = _client_with_catalog()
    resp = c.post("/sources", json=CAFES[0])
    assert resp.status_code == 409


def test_remove_source():
    c = _client_with_catalog()
    resp = c.delete("/sources/c1")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Cafe 1"
    assert c.delete("/sources/c1").status_code == 404
    assert len(c.get("/sources").json()) == 7


def test_list_sources_by_category():
    c = _client_with_catalog()
    resp = c.get("/sources", params={"category": "museum"})
    assert [s["id"] for s in resp.json()] == ["m1", "m2", "m3"]


def test_import_replaces_catalog_and_ledger():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "cafe"})
    resp = c.post("/sources/import", json={
        "trip": {"title": "Lisbon"},
        "context": {"anchors": [{"anchor_id": "anchor_alfama"}]},
        "sources": [
            {"id": "x1", "title": "Miradouro", "category": "viewpoint", "duration_min": 20},
            {"id": "x2", "title": "Pastéis", "category": "cafe", "notes": "get two"},
        ],
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_sources"] == 2
    assert body["anchors"] == ["anchor_alfama"]
    assert c.get("/exclusions").json() == {"excluded_categories": []}
    assert [s["memo"] for s in c.get("/sources").json()] == ["", "get two"]


def test_import_rejects_duplicate_ids():
    c = _client_with_catalog()
    resp = c.post("/sources/import", json={
        "sources": [{"id": "x", "title": "A"}, {"id": "x", "title": "B"}],
    })
    assert resp.status_code == 422
    assert len(c.get("/sources").json()) == 8


def test_categories_report_exclusion():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "cafe"})
    body = {row["category"]: row for row in c.get("/sources/categories").json()}
    assert body["cafe"]["count"] == 5
    assert body["cafe"]["excluded"] is True
    assert body["cafe"]["label"] == "Cafés"
    assert body["museum"]["excluded"] is False


# ── Exclusions ───────────────────────────────────────────────────────────


def test_forget_is_non_destructive():
    c = _client_with_catalog()
    c.post("/session/suggest", json={"anchor_id": "anchor_a", "free_time_min": 90})

    resp = c.post("/exclusions/forget", json={"category": "cafe"})

    body = resp.json()
    assert body["changed"] is True
    assert body["excluded_categories"] == ["cafe"]
    assert len(body["affected_sources"]) == 5
    assert all(s["category"] != "cafe" for s in body["results"]["suggestions"])
    assert len(c.get("/sources", params={"category": "cafe"}).json()) == 5


def test_forget_twice_is_idempotent():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "cafe"})
    body = c.post("/exclusions/forget", json={"category": "cafe"}).json()
    assert body["changed"] is False
    assert body["excluded_categories"] == ["cafe"]
    assert body["results"] is None


def test_restore_brings_category_back():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "cafe"})
    c.post("/session/suggest", json={"anchor_id": "anchor_a", "free_time_min": 90})

    body = c.post("/exclusions/restore", json={"category": "cafe"}).json()

    assert body["changed"] is True
    assert body["excluded_categories"] == []
    assert [s["source_id"] for s in body["results"]["suggestions"][:2]] == ["c2", "c4"]


def test_restore_unknown_category_is_noop():
    c = _client_with_catalog()
    body = c.post("/exclusions/restore", json={"category": "market"}).json()
    assert body["changed"] is False


def test_verify_without_memory_service():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "museum"})
    body = c.get("/exclusions/verify").json()
    assert body["local"] == ["museum"]
    assert body["remote_available"] is False


# ── Session ──────────────────────────────────────────────────────────────


def test_session_suggest_respects_ledger():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "museum"})
    body = c.post("/session/suggest", json={"anchor_id": "anchor_b", "free_time_min": 90}).json()
    assert body["debug"]["excluded_categories"] == ["museum"]
    assert {s["category"] for s in body["suggestions"]} == {"cafe"}


def test_gap_context_drives_chat_gap_fill():
    c = _client_with_catalog()
    resp = c.put("/session/context", json={"anchor_id": "anchor_b", "free_time_min": 40, "message": "x"})
    assert resp.json()["message"] is None

    body = c.post("/chat", json={"message": "The museum tour finished early"}).json()

    assert body["action"] == "gap_fill"
    assert all(s["duration_min"] <= 40 for s in body["results"]["suggestions"])


def test_reset_clears_everything():
    c = _client_with_catalog()
    c.post("/exclusions/forget", json={"category": "cafe"})
    assert c.post("/session/reset").json() == {"status": "reset"}
    assert c.get("/sources").json() == []
    assert c.get("/exclusions").json() == {"excluded_categories": []}


# ── Chat ─────────────────────────────────────────────────────────────────


def test_chat_forget_then_suggest():
    c = _client_with_catalog()

    forget = c.post("/chat", json={"message": "forget cafes"}).json()
    assert forget["type"] == "forgotten"

    body = c.post("/chat", json={"message": "90 min free near anchor_a, any suggestions?"}).json()
    assert body["type"] == "suggestions"
    assert all(s["category"] != "cafe" for s in body["results"]["suggestions"])


def test_chat_rejects_empty_message():
    c = TestClient(app)
    _login(c)
    assert c.post("/chat", json={"message": ""}).status_code == 422
