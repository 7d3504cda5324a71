"""
Pure ASGI endpoint serving an RPCServer.

Works under any ASGI host (Starlette, FastAPI, granian, uvicorn) without a
framework dependency.

Usage:
    from hybrid_rpc import KeyPair
    from hybrid_rpc.middleware.asgi import RPCEndpoint
    from hybrid_rpc.server import RPCServer

    server = RPCServer(KeyPair.from_file("private.pem"), {"ping": lambda: "pong"})
    app = RPCEndpoint(server)

    # or mounted inside Starlette:
    Starlette(routes=[Mount("/rpc", app=RPCEndpoint(server))])

Status mapping:
    200  sealed reply, "key"/"iv" response headers
    400  request envelope could not be opened
    404  unknown method, invalid params or malformed request object
    405  anything but POST
    413  request body larger than max_body_size
    500  handler raised or returned a value that is not JSON serializable

A client that disconnects mid-body gets no response at all.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

from hybrid_rpc._logging import get_logger
from hybrid_rpc.constants import CONTENT_TYPE
from hybrid_rpc.exceptions import EnvelopeError, MethodError
from hybrid_rpc.server import RPCServer

__all__ = [
    "RPCEndpoint",
]

_logger = get_logger(__name__)

Receive = Callable[[], Awaitable[dict[str, Any]]]
Send = Callable[[dict[str, Any]], Awaitable[None]]


class _ClientDisconnected(Exception):
    """Client went away before the request body was complete."""


class RPCEndpoint:
    """
    ASGI application: read the sealed request, respond with a sealed reply.

    Error responses carry a JSON body {"error": message} and never expose
    internal error details.
    """

    def __init__(self, server: RPCServer, *, max_body_size: int | None = None) -> None:
        """
        Initialize endpoint.

        Args:
            server: RPCServer that opens, dispatches and seals
            max_body_size: Reject larger request bodies with 413 (None = no limit)
        """
        self.server = server
        self.max_body_size = max_body_size

    async def __call__(self, scope: dict[str, Any], receive: Receive, send: Send) -> None:
        """ASGI interface."""
        if scope["type"] != "http":
            # Lifespan and websocket scopes carry no RPC traffic
            if scope["type"] == "lifespan":
                await self._handle_lifespan(receive, send)
            return

        path = scope.get("path", "")
        method = scope.get("method", "")
        if method != "POST":
            _logger.debug("Rejected non-POST request: method=%s path=%s", method, path)
            await self._send_error(send, 405, "Method not allowed", extra_headers=[(b"allow", b"POST")])
            return

        try:
            body = await self._read_body(receive)
        except _ClientDisconnected:
            _logger.debug("Client disconnected during request: path=%s", path)
            return
        if body is None:
            await self._send_error(send, 413, "Request body too large")
            return

        headers = {
            name.decode("latin-1"): value.decode("latin-1") for name, value in scope.get("headers", [])
        }

        try:
            reply_body, reply_headers = self.server.respond(body, headers)
        except EnvelopeError as e:
            _logger.debug("Request open failed: path=%s error_type=%s", path, type(e.__cause__ or e).__name__)
            await self._send_error(send, 400, "Request decryption failed")
            return
        except MethodError as e:
            _logger.debug("Request rejected: path=%s method=%r reason=%s", path, e.method, e.reason)
            await self._send_error(send, 404, "Method not found or invalid params")
            return
        except Exception as e:
            _logger.error("Request handling failed: path=%s error_type=%s", path, type(e).__name__)
            await self._send_error(send, 500, "Internal error")
            return

        encoded = reply_body.encode("ascii")
        response_headers = [
            (b"content-type", CONTENT_TYPE.encode()),
            (b"content-length", str(len(encoded)).encode()),
            *((name.encode("latin-1"), value.encode("latin-1")) for name, value in reply_headers.items()),
        ]
        await send({"type": "http.response.start", "status": 200, "headers": response_headers})
        await send({"type": "http.response.body", "body": encoded, "more_body": False})

    async def _read_body(self, receive: Receive) -> bytes | None:
        """
        Collect the full request body; None if it exceeds max_body_size.

        Raises:
            _ClientDisconnected: If http.disconnect arrives before the last chunk
        """
        buffer = bytearray()
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                raise _ClientDisconnected
            buffer.extend(message.get("body", b""))
            if self.max_body_size is not None and len(buffer) > self.max_body_size:
                return None
            if not message.get("more_body", False):
                break
        return bytes(buffer)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _send_error(
        self,
        send: Send,
        status: int,
        message: str,
        extra_headers: list[tuple[bytes, bytes]] | None = None,
    ) -> None:
        """Send an error response."""
        body = json.dumps({"error": message}).encode()
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(body)).encode()),
                    *(extra_headers or []),
                ],
            }
        )
        await send(
            {
                "type": "http.response.body",
                "body": body,
                "more_body": False,
            }
        )
