"""FastAPI route definitions for the inventory chat API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from src.agent import InventoryAgent
from src.api.schemas import ChatRequest, ChatResponse, HealthResponse
from src.errors import GENERIC_USER_MESSAGE, AgentError

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_agent(request: Request) -> InventoryAgent:
    """Retrieve the agent built during the FastAPI lifespan."""
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(
            status_code=503,
            detail="The agent is still starting up. Please try again in a moment.",
        )
    return agent


async def _run_turn(http_request: Request, thread_id: str | None, message: str) -> ChatResponse:
    agent = _get_agent(http_request)
    request_id = getattr(http_request.state, "request_id", "?")

    try:
        reply = await agent.run(thread_id, message)
    except AgentError as e:
        # Full detail goes to the log; the client only sees the safe message.
        logger.exception("[%s] Chat turn failed (%s)", request_id, type(e).__name__)
        raise HTTPException(status_code=e.status_code, detail=e.user_message) from e
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.exception("[%s] Error processing chat request", request_id)
        raise HTTPException(status_code=500, detail=GENERIC_USER_MESSAGE) from e

    return ChatResponse(response=reply.response, thread_id=reply.thread_id)


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


@router.post("/chat", response_model=ChatResponse)
async def start_chat(request: ChatRequest, http_request: Request):
    """Send a message; starts a new thread unless ``thread_id`` is given."""
    return await _run_turn(http_request, request.thread_id, request.message)


@router.post("/chat/{thread_id}", response_model=ChatResponse)
async def continue_chat(thread_id: str, request: ChatRequest, http_request: Request):
    """Send a message on an existing thread (the path id wins over the body)."""
    return await _run_turn(http_request, thread_id, request.message)
