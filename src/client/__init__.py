"""Client side of the chat pipeline.

Issues requests to the relay and turns its event stream into incremental
text growth in conversation state.

Responsibilities:
    - SSE line decoding into delta and terminal events
    - One-call-at-a-time stream consumption with callbacks or async iteration
    - Conversation turns with in-place growth of the open assistant turn
"""

from src.client.conversation import Conversation
from src.client.sse import parse_sse_line
from src.client.stream import StreamBusyError, StreamConsumer, StreamError

__all__ = [
    "Conversation",
    "StreamBusyError",
    "StreamConsumer",
    "StreamError",
    "parse_sse_line",
]
