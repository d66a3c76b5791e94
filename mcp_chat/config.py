"""
Configuration management for mcp_chat.

Loads all configuration from environment variables with sensible defaults
for local development. ``config_loader.load_app_config`` builds the same
structure from a YAML file.
"""

import os
import shlex
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class ModelConfig:
    """Configuration for the OpenAI-compatible chat model."""
    base_url: str = os.getenv("MODEL_BASE_URL", "https://api.openai.com/v1")
    api_key: str = os.getenv("MODEL_API_KEY", os.getenv("OPENAI_API_KEY", ""))
    model: str = os.getenv("MODEL_NAME", "gpt-4o-mini")
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.2"))
    max_tokens: int = int(os.getenv("MODEL_MAX_TOKENS", "1024"))
    # Round-level timeout for one model call, in seconds.
    timeout: float = float(os.getenv("MODEL_TIMEOUT", "60"))


@dataclass
class ToolHostConfig:
    """Configuration for the MCP tool host spawned over stdio."""
    command: str = os.getenv("TOOL_HOST_COMMAND", sys.executable)
    args: list[str] = field(
        default_factory=lambda: shlex.split(
            os.getenv("TOOL_HOST_ARGS", "-m mcp_chat.host.server")
        )
    )
    init_timeout: float = float(os.getenv("TOOL_HOST_INIT_TIMEOUT", "30"))
    # Per-call timeout for one tool invocation, in seconds.
    call_timeout: float = float(os.getenv("TOOL_CALL_TIMEOUT", "60"))


@dataclass
class SessionConfig:
    """Configuration for the negotiation loop."""
    max_rounds: int = int(os.getenv("MAX_ROUNDS", "5"))


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    port: int = int(os.getenv("SERVER_PORT", "8000"))
    reload: bool = _env_bool("SERVER_RELOAD")


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = _env_bool("LANGFUSE_DEBUG")

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    model: ModelConfig = field(default_factory=ModelConfig)
    tool_host: ToolHostConfig = field(default_factory=ToolHostConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration from the environment."""
    return Config()


# Global config instance
config = get_config()
