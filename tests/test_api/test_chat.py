"""Tests for the conversation endpoints."""

import pytest
from fastapi.testclient import TestClient

from mcp_chat.api.main import create_app
from mcp_chat.chat import ChatSession
from mcp_chat.config import get_config
from mcp_chat.errors import HostUnavailable, ModelUnavailable, RateLimited

from fakes import FakeModel, FakeToolHost, call, text_response, tool_response


def _client(host, model) -> TestClient:
    return TestClient(create_app(ChatSession(get_config(), host=host, model=model)))


class TestSendMessage:
    """Tests for POST /v1/chat."""

    def test_answer_with_tool_call(self, fake_host):
        model = FakeModel(
            [
                tool_response(call("1", "say_hello", name="Alice")),
                text_response("I greeted Alice."),
            ]
        )
        with _client(fake_host, model) as client:
            response = client.post("/v1/chat", json={"message": "greet alice"})

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "I greeted Alice."
        assert data["rounds"] == 2
        assert data["tools_used"] == ["say_hello"]
        assert data["hit_round_limit"] is False
        assert data["trace"] is None
        assert data["id"].startswith("chat-")
        assert data["session_id"]

    def test_include_trace(self, fake_host):
        model = FakeModel(
            [
                tool_response(call("1", "say_hello", name="Alice")),
                text_response("Done."),
            ]
        )
        with _client(fake_host, model) as client:
            response = client.post(
                "/v1/chat", json={"message": "greet alice", "include_trace": True}
            )

        trace = response.json()["trace"]
        assert len(trace) == 2
        assert trace[0]["round"] == 1
        assert trace[0]["tool_calls"][0]["tool_name"] == "say_hello"
        assert trace[0]["results"][0] == {"call_id": "1", "text": "Hello, Alice!"}
        assert trace[1]["text"] == "Done."

    def test_round_limit(self, fake_host):
        model = FakeModel(
            [tool_response(call("1", "say_hello", name="A"), text="Working on it.")]
        )
        with _client(fake_host, model) as client:
            response = client.post(
                "/v1/chat", json={"message": "greet", "max_rounds": 1}
            )

        data = response.json()
        assert data["hit_round_limit"] is True
        assert data["answer"] == "Working on it."

    def test_blank_message_rejected(self, fake_host):
        with _client(fake_host, FakeModel([])) as client:
            response = client.post("/v1/chat", json={"message": "   "})
        assert response.status_code == 400

    def test_missing_message_rejected(self, fake_host):
        with _client(fake_host, FakeModel([])) as client:
            response = client.post("/v1/chat", json={})
        assert response.status_code == 400

    def test_max_rounds_must_be_positive(self, fake_host):
        with _client(fake_host, FakeModel([])) as client:
            response = client.post("/v1/chat", json={"message": "hi", "max_rounds": 0})
        assert response.status_code == 400

    def test_configured_max_rounds_below_one(self, fake_host):
        """A bad session default is a client-visible 400, not a server error."""
        cfg = get_config()
        cfg.session.max_rounds = 0
        app = create_app(ChatSession(cfg, host=fake_host, model=FakeModel([])))
        with TestClient(app) as client:
            response = client.post("/v1/chat", json={"message": "hi"})

        assert response.status_code == 400
        assert "max_rounds" in response.json()["detail"]

    @pytest.mark.parametrize(
        "error, expected",
        [
            (RateLimited("slow down"), 429),
            (ModelUnavailable("model down"), 502),
            (HostUnavailable("host gone"), 503),
        ],
    )
    def test_error_mapping(self, fake_host, error, expected):
        with _client(fake_host, FakeModel([error])) as client:
            response = client.post("/v1/chat", json={"message": "hello"})

        assert response.status_code == expected
        assert str(error) in response.json()["detail"]

    def test_host_unavailable_at_startup(self):
        host = FakeToolHost(connect_error=HostUnavailable("spawn failed"))
        with _client(host, FakeModel([])) as client:
            response = client.post("/v1/chat", json={"message": "hello"})

        assert response.status_code == 503
        assert "spawn failed" in response.json()["detail"]


class TestHistory:
    """Tests for GET and DELETE /v1/history."""

    def test_history_after_message(self, fake_host):
        model = FakeModel(
            [
                tool_response(call("1", "say_hello", name="Alice")),
                text_response("Done."),
            ]
        )
        with _client(fake_host, model) as client:
            client.post("/v1/chat", json={"message": "greet alice"})
            response = client.get("/v1/history")

        assert response.status_code == 200
        turns = response.json()["turns"]
        assert [turn["role"] for turn in turns] == ["user", "assistant", "tool", "assistant"]
        assert turns[0]["text"] == "greet alice"
        assert turns[1]["tool_calls"][0]["arguments"] == {"name": "Alice"}
        assert turns[2]["results"][0]["text"] == "Hello, Alice!"

    def test_clear_history(self, fake_host):
        with _client(fake_host, FakeModel([text_response("hi")])) as client:
            client.post("/v1/chat", json={"message": "hello"})
            response = client.delete("/v1/history")
            assert response.status_code == 204
            assert client.get("/v1/history").json()["turns"] == []


class TestTools:
    """Tests for GET /v1/tools."""

    def test_lists_directory(self, fake_host):
        with _client(fake_host, FakeModel([])) as client:
            response = client.get("/v1/tools")

        assert response.status_code == 200
        data = response.json()
        assert data["tools_enabled"] is True
        assert [tool["name"] for tool in data["tools"]] == ["say_hello", "get_time"]
        assert data["tools"][0]["parameters"]["name"]["required"] is True
        assert data["tools"][1]["parameters"] == {}
