"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Incoming chat message from the widget."""

    message: str = Field(..., min_length=1, max_length=2000, description="The user's message")
    thread_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Existing thread to continue; omit to start a new one",
    )


class ChatResponse(BaseModel):
    """Response from the agent."""

    response: str = Field(..., description="The assistant's reply")
    thread_id: str = Field(..., description="Thread id to send with the next message")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "inventory-chat-agent"
