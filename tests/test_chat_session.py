"""
Tests for the ChatSession façade.
"""

import pytest

from mcp_chat.chat import ChatSession
from mcp_chat.config import get_config
from mcp_chat.errors import HostUnavailable, ModelUnavailable
from mcp_chat.models import AssistantTurn, ToolResultTurn, UserTurn

from fakes import FakeModel, FakeToolHost, call, text_response, tool_response


def _chat(host, model, max_rounds=5) -> ChatSession:
    app_config = get_config()
    app_config.session.max_rounds = max_rounds
    return ChatSession(app_config, host=host, model=model)


class TestStart:
    """Tests for ChatSession.start."""

    @pytest.mark.asyncio
    async def test_fetches_directory_once(self, fake_host):
        chat = _chat(fake_host, FakeModel([text_response("a"), text_response("b")]))

        await chat.start()
        await chat.run("one")
        await chat.run("two")

        assert fake_host.list_calls == 1
        assert [spec.name for spec in chat.tools] == ["say_hello", "get_time"]
        assert chat.tools_enabled is True

    @pytest.mark.asyncio
    async def test_unreachable_host(self):
        host = FakeToolHost(connect_error=HostUnavailable("spawn failed"))
        chat = _chat(host, FakeModel([]))

        with pytest.raises(HostUnavailable):
            await chat.start()

        assert host.closed is True
        assert chat.started is False
        assert chat.tools == ()

    @pytest.mark.asyncio
    async def test_run_starts_implicitly(self, fake_host):
        chat = _chat(fake_host, FakeModel([text_response("hi")]))

        assert await chat.run("hello") == "hi"
        assert chat.started is True


class TestRun:
    """Tests for running utterances through the session."""

    @pytest.mark.asyncio
    async def test_greeting_round_trip(self, fake_host):
        model = FakeModel(
            [
                tool_response(call("1", "say_hello", name="Alice")),
                text_response("I greeted Alice."),
            ]
        )
        chat = _chat(fake_host, model)

        result = await chat.run_detailed("greet alice")

        assert result.answer == "I greeted Alice."
        assert result.tools_used == ["say_hello"]
        assert chat.last_result is result
        kinds = [type(turn) for turn in chat.get_history()]
        assert kinds == [UserTurn, AssistantTurn, ToolResultTurn, AssistantTurn]

    @pytest.mark.asyncio
    async def test_default_max_rounds_from_config(self, fake_host):
        model = FakeModel(
            [
                tool_response(call("1", "say_hello", name="A")),
                tool_response(call("2", "say_hello", name="B")),
            ]
        )
        chat = _chat(fake_host, model, max_rounds=2)

        result = await chat.run_detailed("keep greeting")

        assert result.hit_round_limit is True
        assert len(model.calls) == 2

    @pytest.mark.asyncio
    async def test_history_carries_across_runs(self, fake_host):
        model = FakeModel([text_response("first"), text_response("second")])
        chat = _chat(fake_host, model)

        await chat.run("one")
        await chat.run("two")

        assert len(chat.get_history()) == 4
        assert model.calls[1]["transcript"][0] == UserTurn("one")

    @pytest.mark.asyncio
    async def test_model_failure_propagates(self, fake_host):
        chat = _chat(fake_host, FakeModel([ModelUnavailable("down")]))

        with pytest.raises(ModelUnavailable):
            await chat.run("hello")

        assert chat.get_history() == (UserTurn("hello"),)


class TestHistory:
    """Tests for get_history and clear_history."""

    def test_empty_before_start(self, fake_host):
        chat = _chat(fake_host, FakeModel([]))
        assert chat.get_history() == ()

    @pytest.mark.asyncio
    async def test_clear_keeps_directory(self, fake_host):
        chat = _chat(fake_host, FakeModel([text_response("hi")]))
        await chat.run("hello")
        prompt = chat.session.system_prompt

        chat.clear_history()

        assert chat.get_history() == ()
        assert chat.last_result is None
        assert chat.session.system_prompt == prompt
        assert len(chat.tools) == 2


class TestShutdown:
    """Tests for shutdown and the context manager."""

    @pytest.mark.asyncio
    async def test_shutdown_releases_resources(self, fake_host):
        model = FakeModel([])
        chat = _chat(fake_host, model)
        await chat.start()

        await chat.shutdown()

        assert fake_host.closed is True
        assert model.closed is True
        assert chat.started is False

    @pytest.mark.asyncio
    async def test_context_manager(self, fake_host):
        model = FakeModel([text_response("hi")])

        async with _chat(fake_host, model) as chat:
            assert chat.started is True
            assert await chat.run("hello") == "hi"

        assert fake_host.closed is True
