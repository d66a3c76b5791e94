"""
Pytest configuration and fixtures for mcp_chat tests.
"""

import pytest

from mcp_chat.models import ToolSpec

from fakes import FakeToolHost, get_time_spec, say_hello_spec, text_result


@pytest.fixture
def directory() -> list[ToolSpec]:
    """A two-tool capability directory."""
    return [say_hello_spec(), get_time_spec()]


@pytest.fixture
def fake_host(directory) -> FakeToolHost:
    """A tool host serving say_hello and get_time."""
    return FakeToolHost(
        tools=directory,
        handlers={
            "say_hello": lambda args: text_result(f"Hello, {args.get('name', 'World')}!"),
            "get_time": lambda args: text_result("Current time: 2026-01-01T12:00:00+00:00"),
        },
    )
