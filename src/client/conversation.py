"""Browser-session conversation state.

Holds the ordered turns of one conversation and streams assistant replies
into the newest turn. Nothing here is persisted server-side; callers save
and restore it through to_storage() / from_storage().
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from src.client.stream import StreamBusyError, StreamConsumer
from src.models.schemas import ChatTurn, ConversationTurn, Role

logger = logging.getLogger(__name__)


class Conversation:
    """Ordered, append-only turns plus the single open assistant turn."""

    def __init__(
        self,
        consumer: StreamConsumer | None = None,
        turns: Iterable[ConversationTurn] | None = None,
    ) -> None:
        self.consumer = consumer or StreamConsumer()
        self.turns: list[ConversationTurn] = list(turns or [])

    @property
    def is_typing(self) -> bool:
        """Whether an assistant turn is currently receiving deltas."""
        return self.consumer.is_open

    def add_turn(self, role: Role, content: str, image: str | None = None) -> ConversationTurn:
        turn = ConversationTurn(role=role, content=content, image=image)
        self.turns.append(turn)
        return turn

    def update_last_turn(self, content: str) -> None:
        """Replace the text of the newest turn. No-op on an empty conversation."""
        if self.turns:
            self.turns[-1].content = content

    def clear(self) -> None:
        """Drop every turn, abandoning any open stream."""
        self.consumer.abort()
        self.turns.clear()

    def history(self) -> list[ChatTurn]:
        """Turns as sent to the relay: role and text, images dropped.

        Assistant turns that failed before producing any text are left out.
        """
        return [
            turn.to_chat_turn()
            for turn in self.turns
            if not (turn.role == "assistant" and turn.error and not turn.content)
        ]

    async def send(
        self,
        content: str,
        image: str | None = None,
        on_update: Callable[[ConversationTurn], None] | None = None,
    ) -> ConversationTurn:
        """Append a user turn and stream the assistant's reply into a new turn.

        On failure the partial reply is kept and the error message is
        recorded on the assistant turn.

        Args:
            content: The user's message.
            image: Optional data URI attached to this message.
            on_update: Called with the assistant turn after every change.

        Returns:
            The assistant turn, complete or marked with an error.

        Raises:
            StreamBusyError: A previous reply is still streaming.
        """
        if self.is_typing:
            raise StreamBusyError("Wait for the current reply to finish")

        request_turns = self.history()
        request_turns.append(ChatTurn(role="user", content=content))

        self.add_turn("user", content, image=image)
        assistant = self.add_turn("assistant", "")
        accumulated = ""

        def notify() -> None:
            if on_update is not None:
                on_update(assistant)

        def on_delta(fragment: str) -> None:
            nonlocal accumulated
            accumulated += fragment
            assistant.content = accumulated
            notify()

        def on_error(message: str) -> None:
            logger.warning(f"Assistant reply failed after {len(accumulated)} chars: {message}")
            assistant.error = message
            notify()

        await self.consumer.stream_chat(
            request_turns,
            image,
            on_delta=on_delta,
            on_done=notify,
            on_error=on_error,
        )
        return assistant

    def to_storage(self) -> list[dict[str, Any]]:
        """Serialize turns to JSON-compatible dicts."""
        return [turn.model_dump(mode="json") for turn in self.turns]

    @classmethod
    def from_storage(
        cls,
        data: Iterable[dict[str, Any]] | None,
        consumer: StreamConsumer | None = None,
    ) -> "Conversation":
        """Restore a conversation saved with to_storage().

        Entries that no longer validate are skipped.
        """
        turns: list[ConversationTurn] = []
        for item in data or []:
            try:
                turns.append(ConversationTurn.model_validate(item))
            except ValueError as e:
                logger.error(f"Error loading chat history entry: {e}")
        return cls(consumer=consumer, turns=turns)
