"""Streaming chat endpoint.

Validates the request, opens the upstream stream and pipes it back
unmodified as ``text/event-stream``.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from src.relay.errors import RelayError
from src.relay.service import ChatRelay, parse_chat_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def get_relay(request: Request) -> ChatRelay:
    """Return the relay bound to the application at startup."""
    return request.app.state.relay


@router.post(
    "",
    response_class=StreamingResponse,
    responses={
        400: {"description": "Malformed JSON or missing messages"},
        402: {"description": "Upstream credits exhausted"},
        429: {"description": "Upstream rate limit"},
        500: {"description": "Upstream or internal failure"},
    },
)
async def chat(request: Request, relay: ChatRelay = Depends(get_relay)) -> StreamingResponse:
    """Relay a conversation to the upstream gateway and stream the answer.

    Body: ``{"messages": [{"role", "content"}, ...], "image"?: data URI}``.

    Returns:
        StreamingResponse carrying the upstream event stream byte for byte.

    Raises:
        RelayError: Rendered as ``{"error": message}`` by the app's handler.
    """
    chat_request = parse_chat_request(await request.body(), relay.config.messages)

    try:
        upstream = await relay.open_stream(chat_request)
    except RelayError:
        raise
    except Exception as e:
        logger.exception("Chat error")
        raise RelayError(
            relay.config.messages.unexpected,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ) from e

    logger.info(
        f"Relaying stream for {len(chat_request.messages)} turn(s)"
        f"{' with image' if chat_request.image else ''}"
    )
    return StreamingResponse(
        relay.forward(upstream),
        status_code=upstream.status_code,
        headers={"Content-Type": "text/event-stream"},
    )
