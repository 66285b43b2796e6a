"""Decoding of OpenAI-compatible chat-completion event streams."""

import json
import logging

from src.models.schemas import StreamEvent, StreamEventKind

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


def _error_text(error: object) -> str:
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    if isinstance(error, str) and error:
        return error
    return "Upstream stream reported an error"


def parse_sse_line(line: str) -> StreamEvent | None:
    """Decode one line of an event stream.

    Only ``data:`` lines matter. Blank lines, ``:`` comments and other
    fields yield None, as do payloads without text.

    Args:
        line: A single line, with or without a trailing carriage return.

    Returns:
        A delta, done or error event, or None when the line carries nothing.
    """
    line = line.rstrip("\r")
    if not line.startswith("data:"):
        return None

    data = line[5:].strip()
    if data == DONE_SENTINEL:
        return StreamEvent(kind=StreamEventKind.DONE)

    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        logger.warning(f"Skipping undecodable stream payload: {data[:80]!r}")
        return None

    if not isinstance(payload, dict):
        return None

    if payload.get("error"):
        return StreamEvent(kind=StreamEventKind.ERROR, error=_error_text(payload["error"]))

    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None

    delta = choices[0].get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    if isinstance(content, str) and content:
        return StreamEvent(kind=StreamEventKind.DELTA, content=content)
    return None
