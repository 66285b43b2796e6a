"""Pydantic models shared by the relay and the stream consumer."""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Role = Literal["user", "assistant"]


class ChatTurn(BaseModel):
    """A single turn as sent over the wire: role and text only.

    Attributes:
        role: Who produced the turn, ``user`` or ``assistant``.
        content: The turn text.
    """

    role: Role
    content: str


class ChatRequest(BaseModel):
    """Request payload for the relay's ``POST /chat`` endpoint.

    Attributes:
        messages: Ordered conversation turns, oldest first. Never empty.
        image: Optional data URI attached to the final user turn.
    """

    messages: list[ChatTurn] = Field(..., min_length=1)
    image: str | None = None

    @field_validator("image", mode="before")
    @classmethod
    def blank_image_is_absent(cls, v: str | None) -> str | None:
        """Treat an empty image string the same as no image."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ErrorResponse(BaseModel):
    """Structured error body returned by the relay."""

    error: str


class StreamEventKind(str, Enum):
    """Kinds of decoded stream events."""

    DELTA = "delta"
    DONE = "done"
    ERROR = "error"


class StreamEvent(BaseModel):
    """One decoded unit of the upstream event stream.

    Attributes:
        kind: Whether this is a text fragment or a terminal signal.
        content: The text fragment for ``delta`` events.
        error: The error message for ``error`` events.
    """

    kind: StreamEventKind
    content: str = ""
    error: str | None = None


class StreamState(str, Enum):
    """Lifecycle of a single stream consumer call."""

    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"
    ABORTED = "aborted"


class ConversationTurn(BaseModel):
    """A turn held in the browser session's conversation.

    Attributes:
        id: Unique turn identifier.
        role: ``user`` or ``assistant``.
        content: Turn text. Grows in place while an assistant turn streams.
        image: Optional inline image (data URI) attached by the user.
        created_at: When the turn was added.
        error: Set when streaming into this turn failed.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Role
    content: str = ""
    image: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error: str | None = None

    def to_chat_turn(self) -> ChatTurn:
        """Project onto the wire shape, dropping image and metadata."""
        return ChatTurn(role=self.role, content=self.content)
