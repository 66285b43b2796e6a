"""Relay configuration with environment variable loading.

Pydantic-based configuration for the chat relay. The upstream credential is
resolved once here and handed to the relay, never read per request.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from src.relay.prompts import SYSTEM_PROMPT

# Load environment variables from .env file
load_dotenv()

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.5-flash"
DEFAULT_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


class RelayMessages(BaseModel):
    """User-facing error texts returned in ``{error}`` bodies."""

    invalid_json: str = "Yaroqsiz JSON body yuborildi"
    missing_messages: str = "messages massivini yuborish kerak"
    invalid_turn: str = "Xabar formati noto'g'ri"
    rate_limited: str = "Juda ko'p so'rov. Biroz kuting va qayta urinib ko'ring."
    credits_exhausted: str = "Kredit tugadi. Hisobingizga kredit qo'shing."
    upstream_failed: str = "AI xatosi yuz berdi"
    unexpected: str = "Noma'lum xato yuz berdi"
    missing_credential: str = "LOVABLE_API_KEY is not configured"


class RelayConfig(BaseModel):
    """Configuration for the chat relay.

    Attributes:
        api_key: Bearer credential for the upstream gateway. ``None`` when unset.
        gateway_url: Upstream chat-completions endpoint.
        model_name: Model identifier sent upstream.
        system_prompt: Instruction prepended to every conversation.
        upstream_timeout: Seconds before the upstream call times out.
        allow_headers: Request headers advertised in CORS responses.
        messages: Error texts returned to callers.
    """

    api_key: str | None = Field(
        default_factory=lambda: os.getenv("LOVABLE_API_KEY") or os.getenv("LLM_API_KEY"),
        description="API key for the upstream gateway",
    )
    gateway_url: str = Field(
        default_factory=lambda: os.getenv("LLM_GATEWAY_URL", DEFAULT_GATEWAY_URL),
        description="Upstream chat-completions endpoint",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", DEFAULT_MODEL),
        description="Model to use",
    )
    system_prompt: str = Field(
        default_factory=lambda: os.getenv("SYSTEM_PROMPT") or SYSTEM_PROMPT,
        description="System instruction prepended to every request",
    )
    upstream_timeout: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT", "120")),
        gt=0.0,
        description="Upstream request timeout in seconds",
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOW_HEADERS),
        description="Headers allowed in cross-origin requests",
    )
    messages: RelayMessages = Field(default_factory=RelayMessages)

    @field_validator("api_key")
    @classmethod
    def normalize_api_key(cls, v: str | None) -> str | None:
        """Strip the API key and treat a blank value as missing."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def has_api_key(self) -> bool:
        """Whether an upstream credential is configured."""
        return self.api_key is not None


def get_relay_config() -> RelayConfig:
    """Create relay configuration from environment.

    A missing API key does not raise here; the relay reports it on every
    request so the service stays up for health checks.

    Returns:
        Configured RelayConfig instance.
    """
    return RelayConfig()
