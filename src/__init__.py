"""Artificial Chat - streaming chat assistant over a hosted LLM gateway.

Combines FastAPI for the edge relay, httpx for upstream and client streaming,
NiceGUI for the chat page, and Pydantic for data validation.

Components:
    - relay: Upstream request shaping, error mapping and stream forwarding
    - api: HTTP endpoints and CORS
    - client: Stream consumer and conversation state
    - ui: Web interface for chat interactions
    - models: Request, event and turn schemas
"""

__version__ = "0.1.0"
