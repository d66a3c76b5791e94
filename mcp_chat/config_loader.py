"""
Configuration loader for mcp_chat.

Loads configuration from YAML files with support for
environment variable interpolation. Missing keys fall back to the
environment-driven defaults in ``config.py``.
"""

import logging
import os
import re
import shlex
from pathlib import Path
from typing import Any, Optional

import yaml

from .config import (
    Config,
    LangfuseConfig,
    ModelConfig,
    ServerConfig,
    SessionConfig,
    ToolHostConfig,
    get_config,
)

logger = logging.getLogger(__name__)

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

# Singleton cache for app config
_app_config: Optional[Config] = None


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _parse_model_config(data: dict, defaults: ModelConfig) -> ModelConfig:
    """Parse model configuration from dict."""
    return ModelConfig(
        base_url=data.get("base_url", defaults.base_url),
        api_key=data.get("api_key", defaults.api_key),
        model=data.get("model", defaults.model),
        temperature=float(data.get("temperature", defaults.temperature)),
        max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
        timeout=float(data.get("timeout", defaults.timeout)),
    )


def _parse_tool_host_config(data: dict, defaults: ToolHostConfig) -> ToolHostConfig:
    """Parse tool host configuration from dict."""
    args = data.get("args", defaults.args)
    if isinstance(args, str):
        args = shlex.split(args)

    return ToolHostConfig(
        command=data.get("command", defaults.command),
        args=[str(arg) for arg in args],
        init_timeout=float(data.get("init_timeout", defaults.init_timeout)),
        call_timeout=float(data.get("call_timeout", defaults.call_timeout)),
    )


def _parse_session_config(data: dict, defaults: SessionConfig) -> SessionConfig:
    """Parse session configuration from dict."""
    max_rounds = int(data.get("max_rounds", defaults.max_rounds))
    if max_rounds < 1:
        raise ValueError(f"session.max_rounds must be at least 1, got {max_rounds}")
    return SessionConfig(max_rounds=max_rounds)


def _parse_server_config(data: dict, defaults: ServerConfig) -> ServerConfig:
    """Parse server configuration from dict."""
    return ServerConfig(
        host=data.get("host", defaults.host),
        port=int(data.get("port", defaults.port)),
        reload=_as_bool(data.get("reload"), defaults.reload),
    )


def _parse_langfuse_config(data: dict, defaults: LangfuseConfig) -> LangfuseConfig:
    """Parse Langfuse configuration from dict."""
    return LangfuseConfig(
        public_key=data.get("public_key", defaults.public_key),
        secret_key=data.get("secret_key", defaults.secret_key),
        host=data.get("host", defaults.host),
        debug=_as_bool(data.get("debug"), defaults.debug),
    )


def load_app_config(path: Optional[str] = None, reload: bool = False) -> Config:
    """
    Load application configuration from a YAML file.

    Uses a singleton pattern - subsequent calls return the cached config
    unless reload=True is specified. Without a path and without the
    CONFIG_PATH env var, the environment-driven config is returned.

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        ValueError: If the config is invalid
    """
    global _app_config

    if _app_config is not None and not reload:
        return _app_config

    if path is None:
        path = os.environ.get("CONFIG_PATH")

    defaults = get_config()
    if not path:
        logger.debug("No configuration file given, using environment")
        if defaults.session.max_rounds < 1:
            raise ValueError(
                f"MAX_ROUNDS must be at least 1, got {defaults.session.max_rounds}"
            )
        _app_config = defaults
        return _app_config

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found at {config_path}. "
            f"Create one from config/config.yaml.example or unset CONFIG_PATH."
        )

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, "r") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raise ValueError(f"Configuration file {config_path} is empty")

    raw_config = _substitute_env_vars_recursive(raw_config)

    app_config = Config(
        model=_parse_model_config(raw_config.get("model", {}), defaults.model),
        tool_host=_parse_tool_host_config(
            raw_config.get("tool_host", {}), defaults.tool_host
        ),
        session=_parse_session_config(
            raw_config.get("session", {}), defaults.session
        ),
        server=_parse_server_config(raw_config.get("server", {}), defaults.server),
        langfuse=_parse_langfuse_config(
            raw_config.get("langfuse", {}), defaults.langfuse
        ),
        log_level=raw_config.get("logging", {}).get("level", defaults.log_level),
    )

    _app_config = app_config
    logger.debug(
        f"Configuration loaded: model={app_config.model.model}, "
        f"tool_host={app_config.tool_host.command}"
    )
    return app_config


def reset_config_cache() -> None:
    """Reset the configuration cache, forcing a reload on next access."""
    global _app_config
    _app_config = None
    logger.debug("Configuration cache reset")
