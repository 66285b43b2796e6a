"""Pydantic models for the relay API and the client-side stream pipeline.

Models:
    - ChatTurn: A single role/text turn on the wire
    - ChatRequest: Incoming relay request payload
    - ErrorResponse: Structured ``{error}`` body
    - StreamEvent: Decoded delta or terminal signal
    - StreamState: Per-call consumer lifecycle
    - ConversationTurn: A turn held in browser-session state
"""

from src.models.schemas import (
    ChatRequest,
    ChatTurn,
    ConversationTurn,
    ErrorResponse,
    StreamEvent,
    StreamEventKind,
    StreamState,
)

__all__ = [
    "ChatRequest",
    "ChatTurn",
    "ConversationTurn",
    "ErrorResponse",
    "StreamEvent",
    "StreamEventKind",
    "StreamState",
]
