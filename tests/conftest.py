"""Shared test fixtures for hybrid_rpc tests."""

import logging
from collections.abc import Callable

import pytest

from hybrid_rpc.envelope import Envelope
from hybrid_rpc.keys import KeyPair
from hybrid_rpc.server import RPCServer

# Enable hybrid_rpc debug logging during tests
logging.getLogger("hybrid_rpc").setLevel(logging.DEBUG)
logging.getLogger("hybrid_rpc").addHandler(logging.StreamHandler())


# === Key Fixtures ===


@pytest.fixture(scope="session")
def server_keypair() -> KeyPair:
    """Generate the server's RSA key pair (private half loaded).

    Session-scoped: RSA generation is slow, one pair is shared by all tests.
    """
    return KeyPair.generate()


@pytest.fixture(scope="session")
def client_keypair(server_keypair: KeyPair) -> KeyPair:
    """Public half of the server key, as distributed to clients."""
    return KeyPair.from_pem(server_keypair.public_pem())


@pytest.fixture(scope="session")
def other_keypair() -> KeyPair:
    """An unrelated key pair, for wrong-key tests."""
    return KeyPair.generate()


# === Envelope Fixtures ===


@pytest.fixture
def client_envelope(client_keypair: KeyPair) -> Envelope:
    return Envelope.for_client(client_keypair)


@pytest.fixture
def server_envelope(server_keypair: KeyPair) -> Envelope:
    return Envelope.for_server(server_keypair)


# === Server Fixtures ===


@pytest.fixture
def rpc_server(server_keypair: KeyPair) -> RPCServer:
    """RPCServer with a small set of test methods."""
    server = RPCServer(server_keypair)

    @server.method("ping")
    def ping() -> dict[str, str]:
        return {"result": "pong"}

    @server.method("echo")
    def echo(*args: object, **kwargs: object) -> object:
        return list(args) if args else kwargs

    @server.method("add")
    def add(a: int, b: int) -> int:
        return a + b

    return server


# === Tamper Utilities ===


def flip_char(text: str, index: int, alphabet: str) -> str:
    """Replace text[index] with a different character from alphabet."""
    current = text[index]
    replacement = next(c for c in alphabet if c != current)
    return text[:index] + replacement + text[index + 1 :]


@pytest.fixture
def tamper() -> Callable[[str, int, str], str]:
    """Expose flip_char as a fixture."""
    return flip_char
