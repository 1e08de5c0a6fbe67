"""Unit tests for the admin rule and settings routes."""

import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from voicerules.api.admin_server import create_app
from voicerules.api.errors import ERROR_HEADER
from voicerules.application.engine import RuleDispatchEngine


def _payload(keyword="open light", text="OK"):
    return {
        "trigger": {"type": "startsWith", "keyword": keyword},
        "response": {"type": "text", "text": text},
        "enabled": True,
    }


@pytest.fixture
def engine(store):
    return RuleDispatchEngine(store)


@pytest.fixture
def client(store, engine):
    return TestClient(create_app(store, engine))


class TestRules:
    def test_list_empty(self, client):
        response = client.get("/api/rules")
        assert response.status_code == 200
        assert response.json() == []

    def test_create_then_get(self, client):
        created = client.post("/api/rules", json=_payload())

        assert created.status_code == 200
        body = created.json()
        assert body["success"] is True
        rule_id = body["rule"]["id"]
        assert body["rule"]["createdAt"] > 0

        fetched = client.get(f"/api/rules/{rule_id}")
        assert fetched.status_code == 200
        assert fetched.json()["trigger"] == {"type": "startsWith", "keyword": "open light"}

    def test_create_reloads_engine(self, client, engine):
        client.post("/api/rules", json=_payload())
        assert [r.trigger.keyword for r in engine.context.rules] == ["open light"]

    def test_duplicate_trigger_is_400(self, client):
        client.post("/api/rules", json=_payload())
        response = client.post("/api/rules", json=_payload(text="again"))

        assert response.status_code == 400
        assert response.headers[ERROR_HEADER] == "1"
        body = response.json()
        assert body["code"] == "duplicate_trigger"
        assert body["message"] == "A rule with this trigger already exists"

    def test_missing_fields_is_400(self, client):
        response = client.post("/api/rules", json={"trigger": {"type": "exact"}})
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_update(self, client):
        rule_id = client.post("/api/rules", json=_payload()).json()["rule"]["id"]

        response = client.put(f"/api/rules/{rule_id}", json=_payload(text="Changed"))

        assert response.status_code == 200
        rule = response.json()["rule"]
        assert rule["id"] == rule_id
        assert rule["response"]["text"] == "Changed"
        assert "updatedAt" in rule

    def test_toggle(self, client, engine):
        rule_id = client.post("/api/rules", json=_payload()).json()["rule"]["id"]

        response = client.post(f"/api/rules/{rule_id}/enabled", json={"enabled": False})

        assert response.status_code == 200
        assert response.json()["rule"]["enabled"] is False
        assert engine.context.rules == ()

    def test_delete(self, client):
        rule_id = client.post("/api/rules", json=_payload()).json()["rule"]["id"]

        response = client.delete(f"/api/rules/{rule_id}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get("/api/rules").json() == []

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/rules/missing"),
            ("put", "/api/rules/missing"),
            ("delete", "/api/rules/missing"),
        ],
    )
    def test_unknown_id_is_404(self, client, method, path):
        kwargs = {"json": _payload()} if method == "put" else {}
        response = getattr(client, method)(path, **kwargs)

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"
        assert response.json()["message"] == "Rule not found"


class TestSettings:
    def test_defaults(self, client):
        response = client.get("/api/settings")
        assert response.status_code == 200
        assert response.json()["callAIKeywords"] == ["请", "你"]
        assert response.json()["historyMaxLength"] == 10

    def test_save_reloads_engine(self, client, engine):
        response = client.post(
            "/api/settings",
            json={"callAIKeywords": ["hey"], "systemPrompt": "Be brief.", "historyMaxLength": 5},
        )

        assert response.status_code == 200
        assert client.get("/api/settings").json()["systemPrompt"] == "Be brief."
        assert engine.context.call_ai_keywords == ["hey"]

    def test_invalid_settings_is_400(self, client):
        response = client.post("/api/settings", json={"historyMaxLength": "many"})
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"


def test_reload(client, store, engine):
    response = client.post("/api/reload")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "0 enabled rules" in response.json()["message"]
