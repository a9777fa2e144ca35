"""
Request body limit

Incident reports may carry a base64 image, so request bodies are bounded.
The bound is checked against `Content-Length` up front and against the
bytes actually received, which covers chunked uploads without that header.
"""

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class BodySizeLimitMiddleware:
    """Reject HTTP request bodies larger than `max_body_bytes` with 413"""

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    def _error_detail(self) -> str:
        return f"Request body exceeds {self.max_body_bytes} bytes"

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > self.max_body_bytes:
            response = JSONResponse(
                status_code=413,
                content={"success": False, "error": self._error_detail()},
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    # Raised while the route reads its body; rendered by the HTTPException handler
                    raise HTTPException(status_code=413, detail=self._error_detail())
            return message

        await self.app(scope, limited_receive, send)
