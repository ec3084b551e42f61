import datetime

import pytest
from fastapi.testclient import TestClient

from portal_analytics.app import app

# import the orchestrator instance to monkeypatch its handle_report
from portal_analytics import app as app_module
orchestrator = app_module.orchestrator  # the single instance created in portal_analytics.app

NOW = datetime.datetime(2025, 3, 20, 12, 0, 0)


def iso(dt):
    return dt.isoformat()


def closed_tickets(n=10):
    out = []
    for i in range(n):
        sub = NOW - datetime.timedelta(days=2, hours=i)
        out.append({
            "id": f"REQ-{i:04d}",
            "status": "Closed",
            "department": "Water",
            "submission_date": iso(sub),
            "started_at": iso(sub + datetime.timedelta(minutes=10)),
            "answered_at": iso(sub + datetime.timedelta(minutes=30)),
            "closed_at": iso(sub + datetime.timedelta(minutes=60)),
        })
    return out


@pytest.fixture
def client():
    return TestClient(app)


def test_inline_report_success(client):
    payload = {
        "tickets": closed_tickets(),
        "contact_messages": [{"id": "m1", "status": "New", "submission_date": iso(NOW)}],
        "date_from": "2025-03-01",
        "date_to": "2025-03-20",
        "seed": 0,
        "now": iso(NOW),
    }
    r = client.post("/api/analytics/report", json=payload)
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "success"
    rep = j["report"]
    assert rep["total_count"] == 10
    assert rep["score"] == 98
    assert rep["grade"] == "Excellent"
    assert rep["message_count_by_status"]["New"] == 1
    assert len(rep["trailing_daily"]) == 14
    assert rep["filter"]["date_from"] == "2025-03-01"
    assert {f["key"] for f in rep["factors"]} == {"speed", "start", "closure", "backlog", "stale", "duration"}


def test_inline_report_defaults_range_from_now(client):
    r = client.post("/api/analytics/report", json={"tickets": closed_tickets(3), "now": iso(NOW)})
    assert r.status_code == 200
    rep = r.json()["report"]
    assert rep["filter"]["date_to"] == "2025-03-20"
    assert rep["filter"]["date_from"] == "2025-02-18"
    assert rep["total_count"] == 3


def test_seed_rotates_recommendation_only(client):
    base = {"tickets": closed_tickets(), "now": iso(NOW)}
    r0 = client.post("/api/analytics/report", json={**base, "seed": 0}).json()["report"]
    r1 = client.post("/api/analytics/report", json={**base, "seed": 1}).json()["report"]
    assert r0["score"] == r1["score"]
    assert r0["factors"] == r1["factors"]
    assert r0["recommendations"][-1] != r1["recommendations"][-1]


def test_empty_payload_is_valid(client):
    r = client.post("/api/analytics/report", json={"now": iso(NOW)})
    assert r.status_code == 200
    rep = r.json()["report"]
    assert rep["total_count"] == 0
    assert rep["avg_answer"]["formatted"] == "—"


def test_unknown_status_rejected(client):
    bad = closed_tickets(1)
    bad[0]["status"] = "Archived"
    r = client.post("/api/analytics/report", json={"tickets": bad})
    assert r.status_code == 422


def test_error_envelope_maps_to_500(monkeypatch, client):
    monkeypatch.setattr(orchestrator, "handle_report", lambda *a, **kw: {
        "request_id": "x", "status": "error", "error_code": "E_INTERNAL", "message": "boom", "details": {},
    })
    r = client.post("/api/analytics/report", json={})
    assert r.status_code == 500
    assert r.json()["error_code"] == "E_INTERNAL"
