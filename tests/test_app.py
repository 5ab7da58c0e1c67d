"""
Tests for the FastAPI surface.
"""

import pytest
from fastapi.testclient import TestClient

import formfix.app as app_module
from formfix.app import create_app
from formfix.config import Settings
from formfix.store import InMemoryMetricStore


def metric(**overrides):
    base = {"sessionId": "ffx_1", "form": "contact", "field": "Email", "type": "field_focus", "data": {"focusCount": 1}, "ts": 1}
    base.update(overrides)
    return base


@pytest.fixture
def store():
    return InMemoryMetricStore()


@pytest.fixture
def client(store):
    return TestClient(create_app(store=store, settings=Settings(store="memory")))


class TestIngestEndpoint:
    def test_accepts_metric(self, client, store):
        r = client.post("/api/formfix", json=metric())
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}
        assert len(store) == 1

    @pytest.mark.parametrize("drop", ["type", "field"])
    def test_rejects_missing_keys(self, client, store, drop):
        body = {k: v for k, v in metric().items() if k != drop}
        r = client.post("/api/formfix", json=body)
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid metric payload"}
        assert len(store) == 0

    def test_rejects_unparseable_body(self, client, store):
        r = client.post("/api/formfix", content=b"{not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid metric payload"}
        assert len(store) == 0

    def test_rejects_non_finite_numbers(self, client, store):
        body = b'{"field": "Email", "type": "hesitation", "data": {"hesitation": Infinity}}'
        r = client.post("/api/formfix", content=body, headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid metric payload"}
        assert len(store) == 0
        r = client.post("/api/formfix/insights")
        assert r.status_code == 200
        assert r.json()["success"] is True

    def test_metrics_listing_in_receipt_order(self, client):
        client.post("/api/formfix", json=metric(field="Name"))
        client.post("/api/formfix", json=metric(field="Email", type="hesitation", data={"hesitation": 900}))
        r = client.get("/api/formfix/metrics")
        assert r.status_code == 200
        rows = r.json()
        assert [row["field"] for row in rows] == ["Name", "Email"]
        assert all(row["receivedAt"] is not None for row in rows)
        assert rows[1]["data"] == {"hesitation": 900}


class TestInsightsEndpoint:
    def test_insights_from_request_body(self, client):
        metrics = [
            metric(type="rage_click", data={"count": 3}),
            metric(type="form_submit", field="contact", data={"submittedAt": 5}),
        ]
        r = client.post("/api/formfix/insights", json={"formId": "contact", "metrics": metrics})
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        insights = body["insights"]
        assert insights["frictionScore"] == "High"
        assert insights["problematicFields"][0]["issues"]["rageClicks"] is True
        assert insights["predictedCompletionRate"] == 100

    def test_insights_default_to_stored_metrics(self, client):
        client.post("/api/formfix", json=metric(type="hesitation", data={"hesitation": 8000}))
        r = client.post("/api/formfix/insights")
        assert r.status_code == 200
        recs = r.json()["insights"]["recommendations"]
        assert [rec["type"] for rec in recs] == ["field_clarity"]

    def test_failure_is_generic(self, client):
        r = client.post("/api/formfix/insights", json={"metrics": [{"type": "paste"}]})
        assert r.status_code == 500
        assert r.json()["success"] is False
        assert "insights" not in r.json()

    def test_unexpected_error_is_generic(self, client, monkeypatch):
        def boom(metrics, thresholds):
            raise RuntimeError("out of range float")

        monkeypatch.setattr(app_module, "generate_insights", boom)
        r = client.post("/api/formfix/insights")
        assert r.status_code == 500
        assert r.json() == {"success": False, "error": "Insights generation failed"}


class TestHousekeeping:
    def test_health(self, client):
        r = client.get("/health")
        assert r.json() == {"ok": True, "service": "formfix-api", "store": "memory", "store_ok": True}

    def test_config_exposes_thresholds(self, store):
        c = TestClient(create_app(store=store, settings=Settings(problematic_score=4.5)))
        cfg = c.get("/api/formfix/config").json()
        assert cfg["problematic_score"] == 4.5
        assert cfg["rage_min_clicks"] == 3
