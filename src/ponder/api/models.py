"""
Pydantic models for Ponder API requests and responses.
This module defines the request and response schemas used by the Ponder API.
"""

from typing import (
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from ponder.core.schema import (
    Message,
    TraceEntry,
)


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class SessionResponse(BaseModel):
    """Response with session information."""

    session_id: str


class HistoryResponse(BaseModel):
    """Conversation history of one session."""

    session_id: str
    messages: List[Message]


class MessageRequest(BaseModel):
    """Incoming user message."""

    message: str = Field(..., description="User message for Ponder")
    session_id: Optional[str] = Field(None, description="Session ID for conversation context")


class MessageResponse(BaseModel):
    """API response returned to the caller."""

    reply: str
    session_id: str
    iterations: int
    trace: List[TraceEntry] = Field(default_factory=list)
