"""
aiohttp client for the hybrid JSON-RPC envelope.

Same contract as hybrid_rpc.client.RPCClient, for asyncio applications:
one awaited POST per call, status checked before the reply is opened.

Usage:
    async with AsyncRPCClient("https://api.example.com/rpc", public_key) as client:
        result = await client.call("echo", {"x": 1})
"""

import asyncio
import types
from typing import Any

import aiohttp
from typing_extensions import Self

from hybrid_rpc._logging import get_logger
from hybrid_rpc.client import is_success
from hybrid_rpc.constants import CONTENT_TYPE
from hybrid_rpc.envelope import Envelope
from hybrid_rpc.exceptions import RPCConnectionError
from hybrid_rpc.jsonrpc import Params, build_request
from hybrid_rpc.keys import KeyPair

__all__ = [
    "AsyncRPCClient",
]

_logger = get_logger(__name__)


class AsyncRPCClient:
    """
    aiohttp-based JSON-RPC client with transparent envelope sealing.

    Use as an async context manager; an externally supplied
    aiohttp.ClientSession is reused and left open.
    """

    def __init__(
        self,
        url: str,
        key_pair: KeyPair,
        *,
        session: aiohttp.ClientSession | None = None,
        envelope: Envelope | None = None,
        **aiohttp_kwargs: Any,
    ) -> None:
        """
        Initialize async client.

        Args:
            url: Full endpoint URL requests are POSTed to
            key_pair: Server's public key
            session: Existing aiohttp.ClientSession to reuse
            envelope: Override the envelope roles derived from key_pair
            **aiohttp_kwargs: Additional arguments passed to aiohttp.ClientSession
        """
        self.url = url
        self.envelope = envelope or Envelope.for_key(key_pair)
        self._session = session
        self._owns_session = session is None
        self._aiohttp_kwargs = aiohttp_kwargs

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        if self._session is None:
            self._session = aiohttp.ClientSession(**self._aiohttp_kwargs)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    async def call(self, method: str, params: Params | tuple[Any, ...] | None = None) -> Any:
        """
        Invoke a remote method.

        Raises:
            TypeError: If params is a bare scalar
            RPCConnectionError: If the status is outside [200, 400) or the
                transport fails or times out
            EnvelopeError: If sealing the request or opening the reply fails
        """
        if not self._session:
            raise RuntimeError("Session not initialized. Use 'async with' context manager.")

        body, header = self.envelope.seal_object(build_request(method, params))
        headers = {**header, "Content-Type": CONTENT_TYPE}

        try:
            async with self._session.post(self.url, data=body.encode("ascii"), headers=headers) as resp:
                _logger.debug("Response received: method=%s url=%s status=%d", method, self.url, resp.status)
                if not is_success(resp.status):
                    raise RPCConnectionError(resp.status, resp.reason or "")
                text = await resp.text()
                reply_headers = resp.headers
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            _logger.debug("Request failed: method=%s url=%s error=%s", method, self.url, type(e).__name__)
            raise RPCConnectionError(None, str(e) or type(e).__name__) from e

        return self.envelope.open_object(text, reply_headers)
