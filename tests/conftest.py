"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - gateway: Scripted fake of the upstream LLM gateway
    - relay_config: Relay configuration with a test credential
    - relay: ChatRelay wired to the fake gateway
    - app: FastAPI application built around that relay
    - async_client: HTTPX client for API testing
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.relay.config import RelayConfig
from src.relay.service import ChatRelay
from tests.fakes import FakeGateway


@pytest.fixture
def gateway() -> FakeGateway:
    """Return a fake upstream gateway that records calls."""
    return FakeGateway()


@pytest.fixture
def relay_config() -> RelayConfig:
    """Return relay configuration with a fixed test credential.

    Returns:
        Config pointing at a fake gateway URL.
    """
    return RelayConfig(
        api_key="test-gateway-key",
        gateway_url="https://gateway.test/v1/chat/completions",
        model_name="test/model",
        system_prompt="You are a test assistant.",
    )


@pytest.fixture
async def relay(relay_config: RelayConfig, gateway: FakeGateway) -> AsyncGenerator[ChatRelay]:
    """Create a ChatRelay whose upstream is the fake gateway.

    Yields:
        Relay sharing the gateway's mock-transport client.
    """
    client = gateway.client()
    yield ChatRelay(relay_config, client=client)
    await client.aclose()


@pytest.fixture
def app(relay: ChatRelay) -> FastAPI:
    """Create the FastAPI app around the test relay."""
    return create_app(relay=relay)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
