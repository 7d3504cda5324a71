"""
JSON-RPC server core: open, dispatch, seal.

Methods are looked up in an explicit registry, never by attribute name on an
arbitrary delegate object.

Usage:
    server = RPCServer(KeyPair.from_file("private.pem"))

    @server.method("echo")
    def echo(**params):
        return params

    body, headers = server.respond(request_body, request_headers)
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from hybrid_rpc._logging import get_logger
from hybrid_rpc.envelope import Envelope
from hybrid_rpc.exceptions import MethodError
from hybrid_rpc.jsonrpc import Params, parse_request
from hybrid_rpc.keys import KeyPair

__all__ = [
    "Handler",
    "MethodRegistry",
    "RPCServer",
]

_logger = get_logger(__name__)

Handler = Callable[..., Any]


class MethodRegistry:
    """
    Mapping from method name to handler.

    Only callables with an introspectable signature are accepted, so every
    params mismatch is caught before the handler runs.
    """

    __slots__ = ("_handlers", "_signatures")

    def __init__(self, handlers: Mapping[str, Handler] | None = None) -> None:
        self._handlers: dict[str, Handler] = {}
        self._signatures: dict[str, inspect.Signature] = {}
        for name, handler in (handlers or {}).items():
            self.register(name, handler)

    def register(self, name: str, handler: Handler) -> Handler:
        if not name:
            raise ValueError("Method name must be non-empty")
        if not callable(handler):
            raise TypeError(f"Handler for {name!r} is not callable")
        try:
            signature = inspect.signature(handler)
        except (TypeError, ValueError) as e:
            raise TypeError(f"Handler for {name!r} has no introspectable signature") from e
        self._handlers[name] = handler
        self._signatures[name] = signature
        return handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)
        self._signatures.pop(name, None)

    def lookup(self, name: str) -> Handler:
        try:
            return self._handlers[name]
        except KeyError:
            raise MethodError(name, "Method not found") from None

    def invoke(self, name: str, params: Params | None) -> Any:
        """
        Call the handler registered under name.

        Array params are passed positionally, object params as keywords, and
        absent params as no arguments.

        Raises:
            MethodError: If no handler is registered or the handler rejects
                the shape of params
        """
        handler = self.lookup(name)
        args: list[Any] = params if isinstance(params, list) else []
        kwargs: dict[str, Any] = params if isinstance(params, dict) else {}
        try:
            self._signatures[name].bind(*args, **kwargs)
        except TypeError as e:
            raise MethodError(name, "Invalid params") from e
        return handler(*args, **kwargs)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


class RPCServer:
    """
    Handle sealed JSON-RPC requests.

    The transport (an ASGI app, a framework view) hands over the raw body and
    headers; see hybrid_rpc.middleware.asgi for a ready-made endpoint.
    """

    def __init__(
        self,
        key_pair: KeyPair,
        methods: MethodRegistry | Mapping[str, Handler] | None = None,
        *,
        envelope: Envelope | None = None,
    ) -> None:
        """
        Initialize server.

        Args:
            key_pair: Server's private key
            methods: Registry or plain mapping of method name to handler
            envelope: Override the envelope roles derived from key_pair
        """
        self.envelope = envelope or Envelope.for_key(key_pair)
        self.methods = methods if isinstance(methods, MethodRegistry) else MethodRegistry(methods)

    def method(self, name: str) -> Callable[[Handler], Handler]:
        """Decorator registering a handler under name."""

        def decorator(handler: Handler) -> Handler:
            return self.methods.register(name, handler)

        return decorator

    def handle(self, body: str | bytes, headers: Mapping[str, Any]) -> Any:
        """
        Open a request envelope and dispatch it.

        Args:
            body: Raw request body (base64 text)
            headers: Request headers holding "key" and "iv"

        Returns:
            The handler's result (the response object, not yet sealed)

        Raises:
            EnvelopeError: If the request envelope cannot be opened
            MethodError: If the request is malformed, the method is unknown,
                or the params do not fit the handler
        """
        request = self.envelope.open_object(body, headers)
        method, params = parse_request(request)
        _logger.debug(
            "Dispatching: method=%s params=%s",
            method,
            type(params).__name__ if params is not None else "none",
        )
        return self.methods.invoke(method, params)

    def respond(self, body: str | bytes, headers: Mapping[str, Any]) -> tuple[str, dict[str, str]]:
        """
        handle() the request, then seal the result for the reply.

        Returns:
            Tuple of (body, headers) to send back

        Raises:
            EnvelopeError, MethodError: As handle()
        """
        result = self.handle(body, headers)
        return self.envelope.seal_object(result)
