"""Chat relay service: shapes requests for the upstream gateway and forwards its stream.

Core module of the relay. The HTTP layer hands it raw request bytes and gets
back either an open upstream response to pipe through, or a RelayError.

Architecture Decisions:

1. **Injected credential** - ChatRelay receives its RelayConfig (and with it
   the API key) at construction. Tests build a relay around a fake gateway
   without touching the environment.

2. **Open, then forward** - open_stream() returns as soon as upstream headers
   arrive, so status mapping happens before any bytes are committed to the
   caller. forward() then yields upstream body chunks as they arrive, without
   decoding or re-framing them.

3. **No retries** - a failed upstream call is reported once. Recovery is the
   caller's decision.
"""

import json
import logging
from collections.abc import AsyncGenerator, Sequence
from typing import Any

import httpx
from fastapi import status
from pydantic import ValidationError

from src.models.schemas import ChatRequest, ChatTurn
from src.relay.config import RelayConfig, RelayMessages, get_relay_config
from src.relay.errors import (
    CreditsExhaustedError,
    InvalidChatRequestError,
    MissingCredentialError,
    RateLimitedError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def parse_chat_request(body: bytes, messages: RelayMessages) -> ChatRequest:
    """Decode and validate a raw ``POST /chat`` body.

    Args:
        body: Raw request bytes.
        messages: Error texts to report with.

    Returns:
        The validated ChatRequest.

    Raises:
        InvalidChatRequestError: Body is not JSON, has no turns, or a turn is malformed.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidChatRequestError(messages.invalid_json) from e

    if not isinstance(data, dict):
        data = {}

    turns = data.get("messages")
    if not isinstance(turns, list) or not turns:
        raise InvalidChatRequestError(messages.missing_messages)

    try:
        return ChatRequest.model_validate(data)
    except ValidationError as e:
        logger.info(f"Rejected chat request: {e.error_count()} validation error(s)")
        raise InvalidChatRequestError(messages.invalid_turn) from e


def build_upstream_messages(
    turns: Sequence[ChatTurn],
    image: str | None,
    system_prompt: str,
) -> list[dict[str, Any]]:
    """Assemble the upstream message list.

    The system prompt goes first. When an image is given and the final turn
    is from the user, that turn becomes a text + image_url multi-part
    payload. Every other turn passes through as plain text.

    Args:
        turns: Conversation turns, oldest first.
        image: Optional image reference for the final user turn.
        system_prompt: Instruction placed before the conversation.

    Returns:
        Messages in OpenAI chat-completions format.
    """
    upstream: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    last_index = len(turns) - 1

    for index, turn in enumerate(turns):
        if image and index == last_index and turn.role == "user":
            upstream.append({
                "role": turn.role,
                "content": [
                    {"type": "text", "text": turn.content},
                    {"type": "image_url", "image_url": {"url": image}},
                ],
            })
        else:
            upstream.append({"role": turn.role, "content": turn.content})

    return upstream


class ChatRelay:
    """Proxy between chat clients and the upstream chat-completions gateway.

    Wraps an httpx.AsyncClient with:
    - Bearer authentication from the injected config
    - Streaming request assembly
    - Mapping of upstream failures onto RelayError subclasses
    - Chunk-for-chunk body forwarding
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Relay configuration. Loads from environment if not provided.
            client: HTTP client for upstream calls. Created (and owned) if not provided.
        """
        self._config = config or get_relay_config()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.upstream_timeout)

    @property
    def config(self) -> RelayConfig:
        return self._config

    def _auth_headers(self) -> dict[str, str]:
        if not self._config.has_api_key:
            raise MissingCredentialError(self._config.messages.missing_credential)
        return {"Authorization": f"Bearer {self._config.api_key}"}

    def build_payload(self, chat_request: ChatRequest) -> dict[str, Any]:
        """Build the upstream JSON body for a validated request."""
        return {
            "model": self._config.model_name,
            "messages": build_upstream_messages(
                chat_request.messages,
                chat_request.image,
                self._config.system_prompt,
            ),
            "stream": True,
        }

    async def open_stream(self, chat_request: ChatRequest) -> httpx.Response:
        """Send the request upstream and return the open streaming response.

        Args:
            chat_request: Validated request from the caller.

        Returns:
            Upstream response with a success status and an unread body.
            The caller must drain it through forward() or close it.

        Raises:
            MissingCredentialError: No API key configured.
            RateLimitedError: Upstream answered 429.
            CreditsExhaustedError: Upstream answered 402.
            UpstreamError: Any other upstream failure, including transport errors.
        """
        messages = self._config.messages
        request = self._client.build_request(
            "POST",
            self._config.gateway_url,
            headers=self._auth_headers(),
            json=self.build_payload(chat_request),
        )

        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"AI gateway unreachable: {e!r}")
            raise UpstreamError(messages.upstream_failed) from e

        if response.is_success:
            logger.debug(f"AI gateway stream opened ({response.status_code})")
            return response

        try:
            if response.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
                logger.warning("AI gateway rate limited the request")
                raise RateLimitedError(messages.rate_limited)

            if response.status_code == status.HTTP_402_PAYMENT_REQUIRED:
                logger.warning("AI gateway credits exhausted")
                raise CreditsExhaustedError(messages.credits_exhausted)

            try:
                error_text = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError as e:
                error_text = f"<unreadable body: {e!r}>"
            logger.error(f"AI gateway error: {response.status_code} {error_text}")
            raise UpstreamError(messages.upstream_failed)
        finally:
            await response.aclose()

    async def forward(self, response: httpx.Response) -> AsyncGenerator[bytes]:
        """Yield the upstream body chunk by chunk, then close it.

        Args:
            response: Open response returned by open_stream().

        Yields:
            Body bytes in the order upstream sent them.
        """
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            logger.warning(f"AI gateway stream interrupted: {e!r}")
            raise
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        """Close the upstream client if this relay created it."""
        if self._owns_client:
            await self._client.aclose()
