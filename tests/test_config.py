"""
Tests for configuration loading.
"""

from unittest.mock import patch

import pytest

from mcp_chat.config import Config, SessionConfig, get_config
from mcp_chat.config_loader import load_app_config, reset_config_cache, resolve_env_vars


@pytest.fixture(autouse=True)
def clean_cache(monkeypatch):
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    reset_config_cache()
    yield
    reset_config_cache()


class TestEnvConfig:
    """Tests for the environment-driven defaults."""

    def test_defaults(self):
        cfg = get_config()
        assert isinstance(cfg, Config)
        assert cfg.session.max_rounds >= 1
        assert cfg.tool_host.command
        assert cfg.model.timeout > 0

    def test_langfuse_enabled_requires_both_keys(self):
        cfg = get_config()
        cfg.langfuse.public_key = "pk"
        cfg.langfuse.secret_key = ""
        assert cfg.langfuse.enabled is False
        cfg.langfuse.secret_key = "sk"
        assert cfg.langfuse.enabled is True


class TestResolveEnvVars:
    """Tests for ${VAR} interpolation."""

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("MCP_CHAT_TEST_VAR", "value")
        assert resolve_env_vars("x-${MCP_CHAT_TEST_VAR}-y") == "x-value-y"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("MCP_CHAT_TEST_VAR", raising=False)
        assert resolve_env_vars("${MCP_CHAT_TEST_VAR:-fallback}") == "fallback"

    def test_unset_without_default_is_empty(self, monkeypatch):
        monkeypatch.delenv("MCP_CHAT_TEST_VAR", raising=False)
        assert resolve_env_vars("[${MCP_CHAT_TEST_VAR}]") == "[]"


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_no_path_uses_environment(self):
        cfg = load_app_config()
        assert cfg.model.model == get_config().model.model

    def test_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCP_CHAT_TEST_KEY", "sk-from-env")
        path = tmp_path / "config.yaml"
        path.write_text(
            "model:\n"
            "  model: local-model\n"
            "  api_key: ${MCP_CHAT_TEST_KEY}\n"
            "  temperature: 0.5\n"
            "tool_host:\n"
            "  command: my-host\n"
            "  args: --stdio --verbose\n"
            "session:\n"
            "  max_rounds: 3\n"
            "server:\n"
            "  port: 9000\n"
            "  reload: 'true'\n"
            "logging:\n"
            "  level: DEBUG\n"
        )

        cfg = load_app_config(str(path))

        assert cfg.model.model == "local-model"
        assert cfg.model.api_key == "sk-from-env"
        assert cfg.model.temperature == 0.5
        assert cfg.tool_host.command == "my-host"
        assert cfg.tool_host.args == ["--stdio", "--verbose"]
        assert cfg.session.max_rounds == 3
        assert cfg.server.port == 9000
        assert cfg.server.reload is True
        assert cfg.log_level == "DEBUG"

    def test_missing_sections_fall_back(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("session:\n  max_rounds: 2\n")

        cfg = load_app_config(str(path))

        assert cfg.session.max_rounds == 2
        assert cfg.tool_host.command == get_config().tool_host.command
        assert cfg.model.model == get_config().model.model

    def test_cached_until_reload(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("session:\n  max_rounds: 2\n")
        first = load_app_config(str(path))

        path.write_text("session:\n  max_rounds: 4\n")
        assert load_app_config(str(path)) is first
        assert load_app_config(str(path), reload=True).session.max_rounds == 4

    def test_config_path_env(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("model:\n  model: from-env-path\n")
        monkeypatch.setenv("CONFIG_PATH", str(path))

        assert load_app_config().model.model == "from-env-path"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_app_config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_app_config(str(path))

    def test_max_rounds_below_one(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("session:\n  max_rounds: 0\n")
        with pytest.raises(ValueError, match="max_rounds"):
            load_app_config(str(path))

    def test_environment_max_rounds_below_one(self):
        """MAX_ROUNDS=0 in the environment is rejected like the YAML value."""
        env_config = Config(session=SessionConfig(max_rounds=0))
        with patch("mcp_chat.config_loader.get_config", return_value=env_config):
            with pytest.raises(ValueError, match="MAX_ROUNDS"):
                load_app_config()
