"""API type contract tests.

These tests verify that public APIs maintain their type signatures.
Uses typing_extensions.assert_type for STATIC type checking by pyright.
"""

from typing_extensions import assert_type

from hybrid_rpc.cipher import SessionSecret, encipher
from hybrid_rpc.envelope import Envelope
from hybrid_rpc.packing import pack, unpack


class TestEnvelopeTypes:
    """Verify Envelope type contracts."""

    def test_seal_returns_text_body_and_str_headers(self, client_envelope: Envelope) -> None:
        """Envelope.seal must return (str, dict[str, str]) - both header-safe text."""
        result = client_envelope.seal(b"hello")

        assert_type(result, tuple[str, dict[str, str]])
        body, header = result
        assert isinstance(body, str)
        assert all(isinstance(k, str) and isinstance(v, str) for k, v in header.items())

    def test_open_returns_bytes(self, client_envelope: Envelope, server_envelope: Envelope) -> None:
        result = server_envelope.open(*client_envelope.seal(b"hello"))

        assert_type(result, bytes)
        assert isinstance(result, bytes)


class TestCipherTypes:
    def test_encipher_returns_session_secret(self) -> None:
        result = encipher(b"hello")

        assert_type(result, SessionSecret)
        assert isinstance(result.ciphertext, bytes)


class TestPackingTypes:
    def test_pack_returns_str(self) -> None:
        result = pack(b"\x00" * 8)
        assert_type(result, str)
        assert isinstance(result, str)

    def test_unpack_returns_bytes(self) -> None:
        result = unpack("1:2")
        assert_type(result, bytes)
        assert isinstance(result, bytes)
