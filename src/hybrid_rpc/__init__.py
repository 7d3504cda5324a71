"""
Hybrid-encrypted JSON-RPC over plain HTTP.

Each message is enciphered with a fresh AES-256 key and IV; the key and IV are
wrapped with RSA and carried as text in the "key" and "iv" HTTP headers.

Usage (Client - httpx):
    from hybrid_rpc import KeyPair
    from hybrid_rpc.client import RPCClient

    with RPCClient("https://api.example.com/rpc", KeyPair.from_file("public.pem")) as client:
        client.call("echo", {"x": 1})

Usage (Server - any ASGI host):
    from hybrid_rpc import KeyPair
    from hybrid_rpc.middleware.asgi import RPCEndpoint
    from hybrid_rpc.server import RPCServer

    server = RPCServer(KeyPair.from_file("private.pem"))

    @server.method("echo")
    def echo(**params):
        return params

    app = RPCEndpoint(server)
"""

from hybrid_rpc.cipher import SessionSecret
from hybrid_rpc.constants import HEADER_IV, HEADER_KEY, JSONRPC_VERSION, Direction
from hybrid_rpc.envelope import Envelope
from hybrid_rpc.exceptions import (
    CipherError,
    CryptoError,
    EnvelopeError,
    HybridRPCError,
    KeyMaterialError,
    MethodError,
    RPCConnectionError,
    RPCError,
)
from hybrid_rpc.keys import AsymmetricTranscoder, KeyPair

__all__ = [
    # Constants
    "HEADER_IV",
    "HEADER_KEY",
    "JSONRPC_VERSION",
    "Direction",
    # Core
    "AsymmetricTranscoder",
    "Envelope",
    "KeyPair",
    "SessionSecret",
    # Exceptions
    "CipherError",
    "CryptoError",
    "EnvelopeError",
    "HybridRPCError",
    "KeyMaterialError",
    "MethodError",
    "RPCConnectionError",
    "RPCError",
]

__version__ = "0.1.0"
