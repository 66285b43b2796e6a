"""Unit tests for request parsing, message assembly and ChatRelay."""

import asyncio
import json

import httpx
import pytest
import pytest_check as check

from src.models.schemas import ChatRequest, ChatTurn
from src.relay.config import RelayConfig, RelayMessages
from src.relay.errors import (
    CreditsExhaustedError,
    InvalidChatRequestError,
    MissingCredentialError,
    RateLimitedError,
    UpstreamError,
)
from src.relay.service import ChatRelay, build_upstream_messages, parse_chat_request
from tests.fakes import FakeGateway

MESSAGES = RelayMessages()
IMAGE = "data:image/png;base64,iVBORw0KGgo="


def _request(*turns: tuple[str, str], image: str | None = None) -> ChatRequest:
    return ChatRequest(
        messages=[ChatTurn(role=role, content=content) for role, content in turns],
        image=image,
    )


class TestParseChatRequest:
    """Tests for parse_chat_request validation."""

    def test_valid_body(self) -> None:
        """Well-formed body parses into a ChatRequest."""
        body = json.dumps({"messages": [{"role": "user", "content": "Salom"}]}).encode()

        result = parse_chat_request(body, MESSAGES)

        check.equal(len(result.messages), 1)
        check.equal(result.messages[0].content, "Salom")
        check.is_none(result.image)

    def test_image_is_kept(self) -> None:
        """Image data URI is carried through."""
        body = json.dumps(
            {"messages": [{"role": "user", "content": "Bu nima?"}], "image": IMAGE}
        ).encode()

        assert parse_chat_request(body, MESSAGES).image == IMAGE

    def test_empty_image_is_absent(self) -> None:
        """Empty image string is treated as no image."""
        body = json.dumps({"messages": [{"role": "user", "content": "x"}], "image": ""}).encode()

        assert parse_chat_request(body, MESSAGES).image is None

    @pytest.mark.parametrize("body", [b"not json", b"{", b"\xff\xfe"])
    def test_malformed_json(self, body: bytes) -> None:
        """Undecodable body is rejected with the invalid JSON message."""
        with pytest.raises(InvalidChatRequestError) as exc_info:
            parse_chat_request(body, MESSAGES)

        assert exc_info.value.message == MESSAGES.invalid_json
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(
        "payload",
        [{}, {"messages": []}, {"messages": "hello"}, [], None, {"messages": None}],
    )
    def test_missing_or_empty_messages(self, payload: object) -> None:
        """Missing, empty or non-list messages are rejected."""
        with pytest.raises(InvalidChatRequestError) as exc_info:
            parse_chat_request(json.dumps(payload).encode(), MESSAGES)

        assert exc_info.value.message == MESSAGES.missing_messages

    def test_malformed_turn(self) -> None:
        """A turn with an unknown role is rejected."""
        body = json.dumps({"messages": [{"role": "system", "content": "x"}]}).encode()

        with pytest.raises(InvalidChatRequestError) as exc_info:
            parse_chat_request(body, MESSAGES)

        assert exc_info.value.message == MESSAGES.invalid_turn


class TestBuildUpstreamMessages:
    """Tests for upstream message assembly."""

    def test_system_prompt_comes_first(self) -> None:
        """System instruction is prepended before all turns."""
        result = build_upstream_messages([ChatTurn(role="user", content="Hi")], None, "SYS")

        assert result == [
            {"role": "system", "content": "SYS"},
            {"role": "user", "content": "Hi"},
        ]

    def test_image_attached_to_final_user_turn_only(self) -> None:
        """Only the last user turn becomes multi-part when an image is given."""
        turns = [
            ChatTurn(role="user", content="first"),
            ChatTurn(role="assistant", content="reply"),
            ChatTurn(role="user", content="look at this"),
        ]

        result = build_upstream_messages(turns, IMAGE, "SYS")

        check.equal(result[1], {"role": "user", "content": "first"})
        check.equal(result[2], {"role": "assistant", "content": "reply"})
        check.equal(
            result[3]["content"],
            [
                {"type": "text", "text": "look at this"},
                {"type": "image_url", "image_url": {"url": IMAGE}},
            ],
        )

    def test_image_ignored_when_last_turn_is_assistant(self) -> None:
        """An image is dropped when the final turn is not from the user."""
        turns = [
            ChatTurn(role="user", content="q"),
            ChatTurn(role="assistant", content="a"),
        ]

        result = build_upstream_messages(turns, IMAGE, "SYS")

        assert all(isinstance(m["content"], str) for m in result)

    def test_no_image_keeps_plain_text(self) -> None:
        """Without an image every turn is plain text."""
        turns = [ChatTurn(role="user", content="one"), ChatTurn(role="user", content="two")]

        result = build_upstream_messages(turns, None, "SYS")

        assert [m["content"] for m in result] == ["SYS", "one", "two"]


class TestChatRelayOpenStream:
    """Tests for ChatRelay upstream calls against a fake gateway."""

    async def test_sends_streaming_request_with_bearer(
        self, relay: ChatRelay, gateway: FakeGateway, relay_config: RelayConfig
    ) -> None:
        """Upstream receives model, assembled messages, stream flag and credential."""
        gateway.stream(["ok"])

        response = await relay.open_stream(_request(("user", "Salom")))
        await response.aclose()

        request = gateway.requests[0]
        payload = gateway.last_json()
        check.equal(str(request.url), relay_config.gateway_url)
        check.equal(request.headers["authorization"], "Bearer test-gateway-key")
        check.equal(payload["model"], "test/model")
        check.is_true(payload["stream"])
        check.equal(payload["messages"][0], {"role": "system", "content": "You are a test assistant."})
        check.equal(payload["messages"][1], {"role": "user", "content": "Salom"})

    async def test_forward_yields_upstream_bytes_unchanged(
        self, relay: ChatRelay, gateway: FakeGateway
    ) -> None:
        """forward() yields exactly the bytes upstream sent."""
        chunks = gateway.stream(["Hel", "lo", " world"])

        response = await relay.open_stream(_request(("user", "hi")))
        received = [chunk async for chunk in relay.forward(response)]

        assert b"".join(received) == b"".join(chunks)
        assert response.is_closed

    async def test_forward_yields_before_upstream_finishes(
        self, relay: ChatRelay, gateway: FakeGateway
    ) -> None:
        """The first chunk is forwarded while upstream is still holding the rest."""
        chunks = gateway.stream(["first", "second"])
        gateway.release = asyncio.Event()

        response = await relay.open_stream(_request(("user", "hi")))
        body = relay.forward(response)

        first = await asyncio.wait_for(body.__anext__(), timeout=1.0)
        check.equal(first, chunks[0])
        check.is_false(gateway.release.is_set())

        gateway.release.set()
        rest = [chunk async for chunk in body]
        check.equal(b"".join([first, *rest]), b"".join(chunks))

    @pytest.mark.parametrize(
        ("status_code", "error_class", "message"),
        [
            (429, RateLimitedError, MESSAGES.rate_limited),
            (402, CreditsExhaustedError, MESSAGES.credits_exhausted),
        ],
    )
    async def test_capacity_errors_keep_status(
        self,
        relay: ChatRelay,
        gateway: FakeGateway,
        status_code: int,
        error_class: type,
        message: str,
    ) -> None:
        """Rate-limit and credit failures map to domain errors with the same status."""
        gateway.fail(status_code, '{"error": "provider detail"}')

        with pytest.raises(error_class) as exc_info:
            await relay.open_stream(_request(("user", "hi")))

        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == message
        assert gateway.call_count == 1

    async def test_other_upstream_status_is_generic(
        self, relay: ChatRelay, gateway: FakeGateway, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Other failures become a generic 500 and the upstream body is only logged."""
        gateway.fail(503, "secret upstream detail")

        with pytest.raises(UpstreamError) as exc_info:
            await relay.open_stream(_request(("user", "hi")))

        check.equal(exc_info.value.status_code, 500)
        check.equal(exc_info.value.message, MESSAGES.upstream_failed)
        check.is_not_in("secret", exc_info.value.message)
        check.is_in("secret upstream detail", caplog.text)
        check.is_in("503", caplog.text)

    async def test_transport_failure_is_upstream_error(self, relay_config: RelayConfig) -> None:
        """Connection failures surface as UpstreamError."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            relay = ChatRelay(relay_config, client=client)

            with pytest.raises(UpstreamError):
                await relay.open_stream(_request(("user", "hi")))

    async def test_missing_credential_fails_before_upstream(self, gateway: FakeGateway) -> None:
        """Without an API key no upstream call is made."""
        async with gateway.client() as client:
            relay = ChatRelay(RelayConfig(api_key=None), client=client)

            with pytest.raises(MissingCredentialError) as exc_info:
                await relay.open_stream(_request(("user", "hi")))

        assert exc_info.value.status_code == 500
        assert gateway.call_count == 0

    async def test_aclose_leaves_injected_client_open(
        self, relay: ChatRelay, gateway: FakeGateway
    ) -> None:
        """A relay does not close a client it was given."""
        await relay.aclose()
        gateway.stream(["still open"])

        response = await relay.open_stream(_request(("user", "hi")))
        await response.aclose()

        assert gateway.call_count == 1
