"""Unit tests for the isolated process execution service routes."""

import shutil
from unittest.mock import AsyncMock, patch

import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from voicerules.api.executor_server import DEFAULT_PORT, create_app, get_port
from voicerules.core.domain.errors import RuleTimeoutError
from voicerules.infrastructure.sandbox.process_runner import ProcessResult

_RUN_SOURCE = "voicerules.api.routes.execute.run_source"


@pytest.fixture
def client():
    return TestClient(create_app())


class TestExecute:
    @pytest.mark.skipif(shutil.which("python3") is None, reason="python3 not on PATH")
    def test_python_round_trip(self, client):
        response = client.post(
            "/execute", json={"language": "python", "code": "print(1+1)", "timeout": 5}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "output": "2", "error": "", "exitCode": 0}

    def test_missing_parameters(self, client):
        response = client.post("/execute", json={"language": "python"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required parameters: language and code"}

    def test_unsupported_language(self, client):
        response = client.post("/execute", json={"language": "ruby", "code": "puts 1"})

        assert response.status_code == 400
        assert response.json() == {"error": "Unsupported language: ruby"}

    def test_timeout_is_500(self, client):
        with patch(
            _RUN_SOURCE,
            AsyncMock(side_effect=RuleTimeoutError("execution timed out after 1s", timeout=1)),
        ):
            response = client.post("/execute", json={"language": "python", "code": "x", "timeout": 1})

        assert response.status_code == 500
        assert response.json() == {"error": "execution timed out after 1s"}

    def test_passes_timeout_through(self, client):
        runner = AsyncMock(return_value=ProcessResult(stdout="", stderr="oops", exit_code=1))
        with patch(_RUN_SOURCE, runner):
            response = client.post(
                "/execute", json={"language": "node", "code": "x", "timeout": 12}
            )

        runner.assert_awaited_once_with("node", "x", 12.0)
        assert response.json()["exitCode"] == 1
        assert response.json()["error"] == "oops"

    def test_non_positive_timeout_rejected(self, client):
        response = client.post("/execute", json={"language": "python", "code": "x", "timeout": 0})
        assert response.status_code == 422


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "T" in body["timestamp"]


class TestGetPort:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("REMOTE_EXECUTOR_PORT", raising=False)
        assert get_port() == DEFAULT_PORT == 3001

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("REMOTE_EXECUTOR_PORT", "4010")
        assert get_port() == 4010

    def test_invalid_value_falls_back(self, monkeypatch):
        monkeypatch.setenv("REMOTE_EXECUTOR_PORT", "abc")
        assert get_port() == 3001
