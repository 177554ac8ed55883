"""Tests for the HTTP transport: review API, MCP routes and error envelopes."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from prism_cli import runtime as runtime_module
from prism_cli.runtime import Runtime, build_store, get_runtime, reset_runtime
from prism_cli.server.app import create_app, get_app, reset_app
from prism_core.config import load_config
from prism_core.errors import ConfigError
from prism_store.base import StorageError
from prism_store.sqlite import SQLiteStore


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    cfg = load_config(config_path=str(tmp_path / "none.yml"))
    cfg["store_path"] = str(tmp_path / "server.db")
    return cfg


@pytest.fixture
def runtime(config):
    rt = Runtime.from_config(config, environ={})
    yield rt
    rt.close()


@pytest.fixture
def client(runtime):
    with TestClient(create_app(runtime)) as c:
        yield c


def _analyze(client, session=None, code="x = eval(input())", focus="security"):
    headers = {"X-Session-Id": session} if session else {}
    return client.post("/api/v1/review/analyze", json={"code": code, "focus": focus}, headers=headers)


# ---------------------------------------------------------------------------
# Review API
# ---------------------------------------------------------------------------


class TestReviewRoutes:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_models(self, client):
        resp = client.get("/api/v1/review/models")
        assert resp.status_code == 200
        assert resp.json() == ["mock-model"]

    def test_analyze_returns_201_with_review_id(self, client):
        resp = _analyze(client, session="s1")

        assert resp.status_code == 201
        body = resp.json()
        assert body["reviewId"]
        assert body["summary"].startswith("(MOCK)")
        assert body["score"] == 88
        assert len(body["issues"]) == 1

    def test_history_is_scoped_by_header(self, client):
        first = _analyze(client, session="s1").json()
        _analyze(client, session="s2")

        resp = client.get("/api/v1/review/history", headers={"X-Session-Id": "s1"})

        assert resp.status_code == 200
        history = resp.json()
        assert [h["id"] for h in history] == [first["reviewId"]]
        assert history[0]["sessionId"] == "s1"
        assert history[0]["focus"] == "security"
        assert history[0]["score"] == 88

    def test_history_without_header_spans_sessions(self, client):
        _analyze(client, session="s1")
        _analyze(client, session="s2")
        _analyze(client)

        assert len(client.get("/api/v1/review/history").json()) == 3

    def test_history_limit(self, client):
        for _ in range(4):
            _analyze(client, session="s1")

        resp = client.get("/api/v1/review/history", params={"limit": 2}, headers={"X-Session-Id": "s1"})

        assert len(resp.json()) == 2

    def test_history_default_limit_is_twenty(self, client):
        for _ in range(21):
            _analyze(client, session="s1")
        assert len(client.get("/api/v1/review/history", headers={"X-Session-Id": "s1"}).json()) == 20

    def test_history_rejects_zero_limit(self, client):
        assert client.get("/api/v1/review/history", params={"limit": 0}).status_code == 422

    def test_clear_history(self, client):
        _analyze(client, session="s1")
        _analyze(client, session="s2")

        resp = client.delete("/api/v1/review/history", headers={"X-Session-Id": "s1"})

        assert resp.json() == {"deleted": 1}
        assert client.get("/api/v1/review/history", headers={"X-Session-Id": "s1"}).json() == []
        assert len(client.get("/api/v1/review/history", headers={"X-Session-Id": "s2"}).json()) == 1

    def test_clear_without_header_is_noop(self, client):
        _analyze(client, session="s1")

        resp = client.delete("/api/v1/review/history")

        assert resp.status_code == 200
        assert resp.json() == {"deleted": 0}
        assert len(client.get("/api/v1/review/history").json()) == 1

    def test_invalid_focus_is_400_envelope(self, client):
        resp = _analyze(client, focus="style")

        assert resp.status_code == 400
        assert resp.json()["error"]["type"] == "ValidationError"
        assert "security" in resp.json()["error"]["message"]

    def test_empty_code_is_400(self, client):
        assert _analyze(client, code="   ").status_code == 400

    def test_missing_body_field_is_422(self, client):
        resp = client.post("/api/v1/review/analyze", json={"focus": "security"})
        assert resp.status_code == 422

    def test_storage_failure_is_503(self, runtime, client, mocker):
        mocker.patch.object(runtime.store, "create", side_effect=StorageError("database is locked"))

        resp = _analyze(client, session="s1")

        assert resp.status_code == 503
        assert resp.json() == {"error": {"type": "StorageError", "message": "database is locked"}}


# ---------------------------------------------------------------------------
# MCP routes
# ---------------------------------------------------------------------------


class TestMcpRoutes:
    def test_discovery(self, client):
        resp = client.get("/api/v1/mcp/discovery")
        assert resp.status_code == 200
        assert resp.json()["serverInfo"]["name"] == "prism-code-review"

    def test_bare_mcp_prefix_is_not_a_route(self, client):
        assert client.get("/api/v1/mcp").status_code == 404

    def test_tools_list(self, client):
        tools = client.post("/api/v1/mcp/tools/list").json()["tools"]
        assert len(tools) == 3

    def test_tools_call_analyze_uses_mcp_session(self, client):
        resp = client.post(
            "/api/v1/mcp/tools/call",
            json={"name": "analyze_code", "arguments": {"code": "x = 1", "focus": "bugs"}},
        )

        assert resp.status_code == 200
        review = json.loads(resp.json()["content"][0]["text"])
        history = client.get("/api/v1/review/history", headers={"X-Session-Id": "mcp-session"}).json()
        assert [h["id"] for h in history] == [review["reviewId"]]

    def test_tools_call_missing_focus_is_400(self, client):
        resp = client.post("/api/v1/mcp/tools/call", json={"name": "analyze_code", "arguments": {"code": "x"}})
        assert resp.status_code == 400
        assert resp.json()["error"]["type"] == "ValidationError"

    def test_tools_call_unknown_tool_is_400(self, client):
        resp = client.post("/api/v1/mcp/tools/call", json={"name": "rm_rf"})
        assert resp.status_code == 400
        assert resp.json()["error"]["type"] == "BadRequestError"

    def test_resources_list_without_body(self, client):
        resources = client.post("/api/v1/mcp/resources/list").json()["resources"]
        assert [r["uri"] for r in resources] == ["prism://models", "prism://history/mcp-session"]

    def test_resources_list_for_session(self, client):
        review = _analyze(client, session="s7").json()

        resources = client.post("/api/v1/mcp/resources/list", json={"sessionId": "s7"}).json()["resources"]

        assert resources[-1]["uri"] == f"prism://review/{review['reviewId']}"

    def test_resources_read_review(self, client):
        review = _analyze(client, session="s7").json()

        resp = client.post(
            "/api/v1/mcp/resources/read",
            json={"uri": f"prism://review/{review['reviewId']}", "sessionId": "s7"},
        )

        content = resp.json()["contents"][0]
        assert content["mimeType"] == "application/json"
        assert json.loads(content["text"])["id"] == review["reviewId"]

    def test_resources_read_unknown_is_404(self, client):
        resp = client.post("/api/v1/mcp/resources/read", json={"uri": "prism://nothing"})
        assert resp.status_code == 404
        assert resp.json()["error"]["type"] == "NotFoundError"

    def test_prompts(self, client):
        assert len(client.post("/api/v1/mcp/prompts/list").json()["prompts"]) == 3

        resp = client.post("/api/v1/mcp/prompts/get", json={"name": "security_review", "arguments": {"code": "f()"}})

        assert "f()" in resp.json()["messages"][0]["content"]["text"]

    def test_unknown_prompt_is_404(self, client):
        assert client.post("/api/v1/mcp/prompts/get", json={"name": "nope"}).status_code == 404


# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------


class TestBuildStore:
    def test_embedded_by_default(self, config):
        store = build_store(config, environ={})
        assert isinstance(store, SQLiteStore)
        store.close()

    def test_networked_with_marker(self, config, mocker):
        postgres = mocker.patch("prism_store.postgres.PostgresStore")

        build_store(config, environ={"VERCEL": "1", "POSTGRES_URL": "postgresql://db/prism"})

        postgres.assert_called_once_with(dsn="postgresql://db/prism")

    def test_marker_without_url_raises(self, config):
        with pytest.raises(ConfigError):
            build_store(config, environ={"PRISM_DEPLOYMENT": "1"})


class TestRuntime:
    def test_from_config_wires_limits(self, runtime):
        assert runtime.orchestrator.history_limit == 20
        assert runtime.adapter.history_limit == 10
        assert runtime.adapter.session_id == "mcp-session"
        assert runtime.orchestrator.store is runtime.store

    def test_close_drains_executor_before_store(self):
        calls = []
        rt = Runtime(
            config={},
            store=MagicMock(close=lambda: calls.append("store")),
            provider=MagicMock(),
            orchestrator=MagicMock(close=lambda: calls.append("orchestrator")),
            adapter=MagicMock(),
        )
        rt.close()
        assert calls == ["orchestrator", "store"]

    def test_get_runtime_builds_once(self, tmp_path, monkeypatch, mocker):
        cfg = tmp_path / ".prism.yml"
        cfg.write_text(f"store_path: {tmp_path / 'rt.db'}\n")
        monkeypatch.setenv("PRISM_CONFIG", str(cfg))
        for var in ("VERCEL", "PRISM_DEPLOYMENT", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        register = mocker.patch("prism_cli.runtime.atexit.register")
        mocker.patch("prism_cli.runtime.atexit.unregister")
        reset_runtime()

        try:
            first = get_runtime()
            second = get_runtime()

            assert first is second
            assert first.config["store_path"] == str(tmp_path / "rt.db")
            register.assert_called_once_with(first.close)
        finally:
            reset_runtime()
        assert runtime_module._runtime is None

    def test_get_app_is_cached(self, mocker, runtime):
        mocker.patch("prism_cli.server.app.get_runtime", return_value=runtime)
        reset_app()
        try:
            assert get_app() is get_app()
            assert get_app().state.runtime is runtime
        finally:
            reset_app()
