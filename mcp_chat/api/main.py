"""
FastAPI application for mcp_chat.

Hosts one process-wide chat session backed by a spawned MCP tool host.

Usage:
    # Development server with auto-reload
    uvicorn mcp_chat.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn mcp_chat.api.main:app --host 0.0.0.0 --port 8000

The session holds a single conversation, so the server runs one worker.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..chat import ChatSession
from ..config import Config
from ..config_loader import load_app_config
from ..errors import HostUnavailable
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import chat, health


def configure_logging(app_config: Optional[Config] = None):
    """Configure logging based on the LOG_LEVEL setting."""
    app_config = app_config or load_app_config()
    log_level = getattr(logging, app_config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("mcp_chat").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


def _log_configuration(app_config: Config) -> None:
    logger.info("=" * 60)
    logger.info("MODEL")
    logger.info(f"  Base URL: {app_config.model.base_url}")
    logger.info(f"  Model: {app_config.model.model}")
    logger.info(f"  Temperature: {app_config.model.temperature}")
    logger.info(f"  Timeout: {app_config.model.timeout}s")
    logger.info("-" * 60)
    logger.info("TOOL HOST")
    command_line = " ".join([app_config.tool_host.command, *app_config.tool_host.args])
    logger.info(f"  Command: {command_line}")
    logger.info(f"  Call timeout: {app_config.tool_host.call_timeout}s")
    logger.info(f"  Max rounds: {app_config.session.max_rounds}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the tool host session and tracing; tear both down on exit."""
    logger.info("Starting mcp_chat API server")

    chat_session: ChatSession = app.state.chat
    _log_configuration(chat_session.config)

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(chat_session.config.langfuse)
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
        logger.info(f"  Host: {tracing_client.host}")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")

    logger.info("-" * 60)
    logger.info("TOOLS")
    try:
        await chat_session.start()
    except HostUnavailable as e:
        app.state.startup_error = str(e)
        logger.error(f"  Tool host unavailable, chat endpoints will return 503: {e}")
    else:
        for spec in chat_session.tools:
            logger.info(f"  - {spec.name}: {spec.description[:60]}")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down mcp_chat API server")
    await chat_session.shutdown()
    shutdown_tracing()
    logger.info("Tracing client shutdown complete")


def create_app(chat_session: Optional[ChatSession] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        chat_session: Session to serve; built from the loaded config when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="mcp_chat API",
        description=(
            "Chat with a model that can call the tools of an MCP tool host. "
            "One conversation is shared by all clients of this server."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.chat = chat_session or ChatSession(load_app_config())
    app.state.lock = asyncio.Lock()
    app.state.startup_error = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, tags=["Chat"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        body = await request.body()
        logger.debug(f"Request body: {body.decode('utf-8', errors='replace')[:1000]}")
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_errors(exc)},
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-JSON values (such as exceptions) stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


app = create_app()


def run():
    """Run the server using uvicorn."""
    import uvicorn

    server = load_app_config().server
    uvicorn.run(
        "mcp_chat.api.main:app",
        host=server.host,
        port=server.port,
        reload=server.reload,
        workers=1,
    )


if __name__ == "__main__":
    run()
