"""FastAPI relay endpoints for the chat assistant.

HTTP streaming routes that proxy conversations to the upstream gateway.
Responses are Server-Sent Events forwarded untouched.

Endpoints:
    - OPTIONS *: CORS preflight, empty 200
    - POST /chat: Stream a chat completion
    - GET /health: Service health status

Serve with ``uvicorn --factory src.api.app:create_app``.
"""

from src.api.app import create_app

__all__ = ["create_app"]
