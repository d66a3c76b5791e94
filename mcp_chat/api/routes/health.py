"""Health check endpoints."""

from fastapi import APIRouter, Request

from ... import __version__
from ..schemas import HealthResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the API server is running and its tool host is connected.",
)
def health_check(request: Request) -> HealthResponse:
    """Return health status of the API server."""
    chat = request.app.state.chat
    error = request.app.state.startup_error
    connected = chat.started and error is None
    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        model=chat.config.model.model,
        tool_host_connected=connected and chat.tools_enabled,
        tools=len(chat.tools),
        error=error,
    )
