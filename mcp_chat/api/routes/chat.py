"""
Conversation endpoints.

All requests share the process-wide ``ChatSession``; ``run`` calls are
serialized with the app's lock because one session drives one loop at a time.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...chat import ChatSession
from ...errors import ChatError, HostUnavailable, ModelUnavailable, RateLimited
from ...models import turn_to_dict
from ...tracing import get_tracing_client
from ..schemas import (
    ChatRequest,
    ChatResponse,
    HistoryResponse,
    ParameterInfo,
    RoundTrace,
    ToolInfo,
    ToolListResponse,
    TurnModel,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_chat(request: Request) -> ChatSession:
    """Return the started session or fail with 503."""
    error = request.app.state.startup_error
    if error:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Tool host unavailable: {error}",
        )
    return request.app.state.chat


@router.post(
    "/v1/chat",
    response_model=ChatResponse,
    summary="Send a message",
    description=(
        "Run one user message through the model/tool negotiation loop and "
        "return the final answer."
    ),
)
async def send_message(
    body: ChatRequest,
    request: Request,
    chat_session: ChatSession = Depends(get_chat),
) -> ChatResponse:
    logger.info(f"Processing chat request: {body.message[:100]}")

    try:
        async with request.app.state.lock:
            result = await chat_session.run_detailed(body.message, body.max_rounds)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RateLimited as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except ModelUnavailable as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except HostUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        )
    except ChatError as e:
        logger.exception(f"Chat request failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        )
    finally:
        _flush_tracing()

    trace = None
    if body.include_trace:
        trace = [RoundTrace(**step) for step in result.trace()]

    return ChatResponse(
        session_id=chat_session.session.session_id,
        answer=result.answer,
        rounds=result.model_calls,
        tools_used=result.tools_used,
        hit_round_limit=result.hit_round_limit,
        trace=trace,
    )


@router.get("/v1/history", response_model=HistoryResponse, summary="Get history")
def get_history(chat_session: ChatSession = Depends(get_chat)) -> HistoryResponse:
    """Return the raw transcript, oldest turn first."""
    return HistoryResponse(
        session_id=chat_session.session.session_id if chat_session.session else "",
        turns=[TurnModel(**turn_to_dict(turn)) for turn in chat_session.get_history()],
    )


@router.delete(
    "/v1/history",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear history",
)
async def clear_history(
    request: Request, chat_session: ChatSession = Depends(get_chat)
) -> None:
    async with request.app.state.lock:
        chat_session.clear_history()
    logger.info("Conversation history cleared")


@router.get("/v1/tools", response_model=ToolListResponse, summary="List tools")
def list_tools(chat_session: ChatSession = Depends(get_chat)) -> ToolListResponse:
    """Return the capability directory fetched at start-up."""
    return ToolListResponse(
        tools=[
            ToolInfo(
                name=spec.name,
                description=spec.description,
                parameters={
                    name: ParameterInfo(
                        description=param.description,
                        kind=param.kind,
                        required=param.required,
                    )
                    for name, param in spec.parameters.items()
                },
            )
            for spec in chat_session.tools
        ],
        tools_enabled=chat_session.tools_enabled,
    )


def _flush_tracing() -> None:
    """Flush tracing client if available."""
    client = get_tracing_client()
    if client:
        client.flush()
