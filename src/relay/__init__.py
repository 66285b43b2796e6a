"""Edge relay between chat clients and the upstream LLM gateway.

Responsibilities:
    - Request validation (JSON body, non-empty turn list)
    - Upstream message assembly with system prompt and optional image
    - Bearer authentication from injected configuration
    - Unmodified forwarding of the upstream event stream
    - Mapping of rate-limit and credit failures to domain errors

Holds no conversation state. Every request is independent.
"""

from src.relay.config import RelayConfig, RelayMessages, get_relay_config
from src.relay.errors import (
    CreditsExhaustedError,
    InvalidChatRequestError,
    MissingCredentialError,
    RateLimitedError,
    RelayError,
    UpstreamError,
)
from src.relay.service import ChatRelay, build_upstream_messages, parse_chat_request

__all__ = [
    "ChatRelay",
    "CreditsExhaustedError",
    "InvalidChatRequestError",
    "MissingCredentialError",
    "RateLimitedError",
    "RelayConfig",
    "RelayError",
    "RelayMessages",
    "UpstreamError",
    "build_upstream_messages",
    "get_relay_config",
    "parse_chat_request",
]
