"""
Exception hierarchy for hybrid_rpc.

Crypto errors inherit from CryptoError, RPC errors from RPCError, and both
from HybridRPCError for easy catching.
"""

from __future__ import annotations


class HybridRPCError(Exception):
    """Base exception for everything raised by hybrid_rpc."""


class CryptoError(HybridRPCError):
    """Base exception for all cryptographic errors."""


class CipherError(CryptoError):
    """Failed to encipher or decipher a payload.

    Possible causes:
    - Wrong key or IV length
    - Corrupted ciphertext (authentication tag mismatch)
    - Invalid PKCS#7 padding
    - SessionSecret reused for a second message
    """


class KeyMaterialError(CryptoError):
    """RSA key material unusable for the requested operation.

    Possible causes:
    - Malformed or non-RSA PEM
    - Plaintext exceeds the modulus-bound capacity
    - Operation needs the private half but only the public half is loaded
    - Wrapped secret does not decrypt under this key
    """


class EnvelopeError(CryptoError):
    """Failed to seal or open an envelope.

    Always chained to the underlying cause (CipherError, KeyMaterialError,
    or a malformed body/header).
    """


class RPCError(HybridRPCError):
    """Base exception for JSON-RPC level errors."""


class RPCConnectionError(RPCError):
    """HTTP exchange did not succeed.

    Raised for status codes outside [200, 400) before any attempt to open the
    response envelope, and for transport failures (code is None then).
    """

    def __init__(self, code: int | None, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = ["Failed."]
        if self.code is not None:
            parts.append(f"Response code {self.code}.")
        if self.message.strip():
            parts.append(f"{self.message.strip()}.")
        return " ".join(parts)


class MethodError(RPCError):
    """Requested method is unknown or rejected its parameters."""

    def __init__(self, method: str | None, reason: str) -> None:
        self.method = method
        self.reason = reason
        super().__init__(f"{reason}: {method!r}" if method is not None else reason)
