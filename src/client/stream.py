"""Stream consumer for the chat relay.

Drives one request/response cycle against ``POST /chat`` and turns the
streamed body into text fragments as they arrive.

Two interfaces over the same machinery:
    - iter_deltas(): async generator of fragments, raising StreamError
    - stream_chat(): callback style, firing on_delta per fragment and then
      exactly one of on_done / on_error

A consumer allows one open call at a time. Starting a second while the
first is still requesting or streaming raises StreamBusyError.
"""

import logging
import os
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Sequence
from contextlib import aclosing, asynccontextmanager
from typing import Any

import httpx

from src.client.sse import parse_sse_line
from src.models.schemas import ChatTurn, StreamEventKind, StreamState

logger = logging.getLogger(__name__)

DEFAULT_RELAY_PORT = "8000"
DEFAULT_TIMEOUT = 120.0

GENERIC_ERROR_MESSAGE = "Javob olishda xatolik yuz berdi. Qayta urinib ko'ring."
CONNECTION_ERROR_MESSAGE = "Aloqa uzildi. Qayta urinib ko'ring."

_OPEN_STATES = (StreamState.REQUESTING, StreamState.STREAMING)


def default_relay_url() -> str:
    """Relay endpoint from RELAY_URL, else the local relay on PORT."""
    port = os.getenv("PORT", DEFAULT_RELAY_PORT)
    return os.getenv("RELAY_URL") or f"http://localhost:{port}/chat"


class StreamError(Exception):
    """A chat stream failed before completing.

    Attributes:
        message: Text suitable for showing to the user.
        status_code: HTTP status from the relay, if the failure was a response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StreamBusyError(RuntimeError):
    """A stream is already open on this consumer."""


async def _read_error_message(response: httpx.Response) -> str:
    """Extract ``{error}`` from a failed relay response, or fall back to a generic message."""
    try:
        await response.aread()
        payload = response.json()
    except (httpx.HTTPError, ValueError):
        return GENERIC_ERROR_MESSAGE

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error:
            return error
    return GENERIC_ERROR_MESSAGE


class StreamConsumer:
    """Client for the relay's streaming chat endpoint.

    One consumer serves one conversation. It keeps no text between calls;
    callers accumulate fragments themselves.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the consumer.

        Args:
            url: Relay chat endpoint. Defaults to default_relay_url().
            client: Shared HTTP client. A short-lived one is opened per call otherwise.
            timeout: Timeout in seconds for per-call clients.
        """
        self._url = url or default_relay_url()
        self._client = client
        self._timeout = timeout
        self._state = StreamState.IDLE
        self._call_id = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_open(self) -> bool:
        """Whether a call is currently requesting or streaming."""
        return self._state in _OPEN_STATES

    def abort(self) -> None:
        """Abandon the open call.

        No further callbacks fire for it, and a new call may start at once.
        The abandoned connection is closed when its next chunk arrives.
        """
        if self.is_open:
            self._call_id += 1
            self._state = StreamState.ABORTED
            logger.info("Chat stream aborted by caller")

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    def iter_deltas(
        self,
        messages: Sequence[ChatTurn],
        image: str | None = None,
    ) -> AsyncGenerator[str]:
        """Start a call and return an async generator of text fragments.

        The consumer is marked busy immediately, before iteration begins.

        Args:
            messages: Conversation turns, role and text only.
            image: Optional data URI for the newest user turn.

        Returns:
            Generator yielding each fragment in arrival order. It finishes
            normally on clean stream end and raises StreamError on failure.

        Raises:
            StreamBusyError: Another call on this consumer is still open.
        """
        if self.is_open:
            raise StreamBusyError("A chat stream is already open for this conversation")

        self._call_id += 1
        self._state = StreamState.REQUESTING

        payload: dict[str, Any] = {"messages": [m.model_dump() for m in messages]}
        if image:
            payload["image"] = image

        return self._deltas(self._call_id, payload)

    def _is_current(self, call_id: int) -> bool:
        return self._call_id == call_id

    async def _deltas(self, call_id: int, payload: dict[str, Any]) -> AsyncGenerator[str]:
        outcome = StreamState.ERRORED
        try:
            async with (
                self._session() as client,
                client.stream(
                    "POST",
                    self._url,
                    json=payload,
                    headers={"Accept": "text/event-stream"},
                ) as response,
            ):
                if not self._is_current(call_id):
                    return
                if not response.is_success:
                    message = await _read_error_message(response)
                    logger.warning(f"Relay answered {response.status_code}: {message}")
                    raise StreamError(message, status_code=response.status_code)

                self._state = StreamState.STREAMING
                async for line in response.aiter_lines():
                    if not self._is_current(call_id):
                        return
                    event = parse_sse_line(line)
                    if event is None:
                        continue
                    if event.kind is StreamEventKind.DONE:
                        break
                    if event.kind is StreamEventKind.ERROR:
                        raise StreamError(event.error or GENERIC_ERROR_MESSAGE)
                    yield event.content
            outcome = StreamState.DONE
        except httpx.HTTPError as e:
            logger.warning(f"Chat stream failed: {e!r}")
            raise StreamError(CONNECTION_ERROR_MESSAGE) from e
        finally:
            if self._is_current(call_id):
                self._state = outcome

    async def stream_chat(
        self,
        messages: Sequence[ChatTurn],
        image: str | None = None,
        *,
        on_delta: Callable[[str], None],
        on_done: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Stream a reply, reporting progress through callbacks.

        on_delta fires synchronously once per fragment, in arrival order.
        Afterwards exactly one of on_done or on_error fires, unless the call
        was aborted, in which case neither does. Fragments already delivered
        before an error are not retracted.

        Args:
            messages: Conversation turns, role and text only.
            image: Optional data URI for the newest user turn.
            on_delta: Receives each text fragment.
            on_done: Called once after a clean end of stream.
            on_error: Called once with a user-facing message on failure.

        Raises:
            StreamBusyError: Another call on this consumer is still open.
        """
        deltas = self.iter_deltas(messages, image)
        call_id = self._call_id

        try:
            async with aclosing(deltas):
                async for fragment in deltas:
                    on_delta(fragment)
        except StreamError as e:
            if self._is_current(call_id):
                on_error(e.message)
            return

        if self._is_current(call_id):
            on_done()
