"""
Blocking JSON-RPC client over httpx.

Usage:
    from hybrid_rpc import KeyPair
    from hybrid_rpc.client import RPCClient

    with RPCClient("https://api.example.com/rpc", KeyPair.from_file("public.pem")) as client:
        client.call("ping")
        client.call("echo", {"x": 1})
"""

from __future__ import annotations

import types
from typing import Any

import httpx
from typing_extensions import Self

from hybrid_rpc._logging import get_logger
from hybrid_rpc.constants import CONTENT_TYPE, DEFAULT_TIMEOUT, SUCCESS_STATUS_MAX, SUCCESS_STATUS_MIN
from hybrid_rpc.envelope import Envelope
from hybrid_rpc.exceptions import RPCConnectionError
from hybrid_rpc.jsonrpc import Params, build_request
from hybrid_rpc.keys import KeyPair

__all__ = [
    "RPCClient",
    "is_success",
]

_logger = get_logger(__name__)


def is_success(status: int) -> bool:
    """Whether an HTTP status counts as a successful exchange (2xx or 3xx)."""
    return SUCCESS_STATUS_MIN <= status < SUCCESS_STATUS_MAX


class RPCClient:
    """
    Send encrypted JSON-RPC requests with one POST per call.

    Each call seals its request under a fresh session key, checks the HTTP
    status before touching the reply, then opens and parses the reply
    envelope. No retries.
    """

    def __init__(
        self,
        url: str,
        key_pair: KeyPair,
        *,
        timeout: float | None = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
        envelope: Envelope | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            url: Full endpoint URL requests are POSTed to
            key_pair: Server's public key (or a private key for the legacy
                key-type-selects-direction behaviour)
            timeout: Transport timeout in seconds, passed to httpx
            http_client: Existing httpx.Client to reuse (left open on close)
            envelope: Override the envelope roles derived from key_pair
        """
        self.url = url
        self.envelope = envelope or Envelope.for_key(key_pair)
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=timeout)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._http.close()

    def call(self, method: str, params: Params | tuple[Any, ...] | None = None) -> Any:
        """
        Invoke a remote method.

        Args:
            method: Remote method name
            params: list/tuple or dict parameters; omitted from the request
                when None

        Returns:
            Decoded response object

        Raises:
            TypeError: If params is a bare scalar
            RPCConnectionError: If the status is outside [200, 400) or the
                transport fails; the reply is never opened in that case
            EnvelopeError: If sealing the request or opening the reply fails
        """
        request = build_request(method, params)
        body, header = self.envelope.seal_object(request)

        headers = {**header, "Content-Type": CONTENT_TYPE}
        try:
            response = self._http.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            _logger.debug("Request failed: method=%s url=%s error=%s", method, self.url, type(e).__name__)
            raise RPCConnectionError(None, str(e)) from e

        _logger.debug("Response received: method=%s url=%s status=%d", method, self.url, response.status_code)
        if not is_success(response.status_code):
            raise RPCConnectionError(response.status_code, response.reason_phrase)

        return self.envelope.open_object(response.text, response.headers)

    # Alias for callers using the post() name
    post = call
