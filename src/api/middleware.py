"""Permissive CORS for the relay.

Every response carries the allow-origin and allow-headers headers. Any
OPTIONS request is answered directly with an empty 200 and never reaches
a route.
"""

from collections.abc import Sequence

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class RelayCORSMiddleware:
    """ASGI middleware adding fixed CORS headers and short-circuiting preflight."""

    def __init__(self, app: ASGIApp, allow_headers: Sequence[str]) -> None:
        self.app = app
        self.cors_headers = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
            "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=200, headers=self.cors_headers)
            await response(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.update(self.cors_headers)
            await send(message)

        await self.app(scope, receive, send_with_cors)
