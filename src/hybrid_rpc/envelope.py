"""
Hybrid envelope: AES-encrypted body, RSA-wrapped key and IV in headers.

Envelope format:
    body             base64(ciphertext)                (HTTP body)
    header["key"]    pack(RSA-wrap(session key))       (HTTP header)
    header["iv"]     pack(RSA-wrap(session IV))        (HTTP header)

Every seal() draws a fresh SessionSecret, so identical plaintexts never share
key, IV, body or headers.
"""

from __future__ import annotations

import binascii
import json
from collections.abc import Mapping
from typing import Any, cast

from hybrid_rpc import cipher, packing
from hybrid_rpc._logging import get_logger
from hybrid_rpc.cipher import SessionSecret
from hybrid_rpc.constants import HEADER_IV, HEADER_KEY, Direction
from hybrid_rpc.exceptions import CryptoError, EnvelopeError
from hybrid_rpc.headers import b64_decode, b64_encode, get_header
from hybrid_rpc.keys import AsymmetricTranscoder, KeyPair

__all__ = [
    "Envelope",
]

_logger = get_logger(__name__)


class Envelope:
    """
    Seal and open hybrid envelopes with one KeyPair.

    Sealing and opening each use their own Direction. The two ends of a link
    must agree: whatever one side seals CONFIDENTIAL the other opens
    CONFIDENTIAL, and likewise for AUTHENTIC.

    Example:
        server = Envelope.for_server(KeyPair.generate())
        client = Envelope.for_client(server.key_pair.public())

        body, header = client.seal(b"hello world")
        server.open(body, header)  # b"hello world"
    """

    __slots__ = ("_key_pair", "_opener", "_sealer")

    def __init__(
        self,
        key_pair: KeyPair,
        *,
        seal_direction: Direction,
        open_direction: Direction,
    ) -> None:
        """
        Initialize envelope.

        Args:
            key_pair: RSA key pair (public half alone is enough for a client)
            seal_direction: Direction used to wrap outgoing secrets
            open_direction: Direction used to unwrap incoming secrets
        """
        self._key_pair = key_pair
        self._sealer = AsymmetricTranscoder(key_pair, seal_direction)
        self._opener = AsymmetricTranscoder(key_pair, open_direction)

    @classmethod
    def for_client(cls, key_pair: KeyPair) -> Envelope:
        """Requests readable only by the private-key holder; replies wrapped with its private key."""
        return cls(key_pair, seal_direction=Direction.CONFIDENTIAL, open_direction=Direction.AUTHENTIC)

    @classmethod
    def for_server(cls, key_pair: KeyPair) -> Envelope:
        """Mirror of for_client(); needs the private key."""
        return cls(key_pair, seal_direction=Direction.AUTHENTIC, open_direction=Direction.CONFIDENTIAL)

    @classmethod
    def for_key(cls, key_pair: KeyPair) -> Envelope:
        """
        Pick the role from the loaded key half.

        A private key seals with private encrypt and opens with private
        decrypt (server role); a public key seals with public encrypt and opens
        with public decrypt (client role).
        """
        return cls.for_server(key_pair) if key_pair.is_private else cls.for_client(key_pair)

    @property
    def key_pair(self) -> KeyPair:
        return self._key_pair

    @property
    def seal_direction(self) -> Direction:
        return self._sealer.direction

    @property
    def open_direction(self) -> Direction:
        return self._opener.direction

    def seal(self, plaintext: bytes) -> tuple[str, dict[str, str]]:
        """
        Encrypt plaintext under a fresh session key.

        Args:
            plaintext: Raw bytes to protect

        Returns:
            Tuple of (body, header): base64 body text and the "key"/"iv"
            header mapping

        Raises:
            EnvelopeError: If enciphering or wrapping fails
        """
        try:
            secret = cipher.encipher(plaintext)
            header = {
                HEADER_KEY: packing.pack(self._sealer.encrypt(secret.key)),
                HEADER_IV: packing.pack(self._sealer.encrypt(secret.iv)),
            }
            body = b64_encode(cast(bytes, secret.ciphertext))
        except (CryptoError, ValueError) as e:
            raise EnvelopeError(f"Failed to seal envelope: {e}") from e

        _logger.debug(
            "Envelope sealed: direction=%s plaintext_size=%d body_size=%d",
            self._sealer.direction.value,
            len(plaintext),
            len(body),
        )
        return (body, header)

    def open(self, body: str | bytes, header: Mapping[str, Any]) -> bytes:
        """
        Recover the plaintext of a sealed envelope.

        Args:
            body: base64 body text
            header: Mapping holding "key" and "iv" (case-insensitive lookup;
                extra entries such as other HTTP headers are ignored)

        Returns:
            Original plaintext

        Raises:
            EnvelopeError: If a header is missing, or unpacking, unwrapping,
                base64 decoding or deciphering fails (tampering included)
        """
        key_text = get_header(header, HEADER_KEY)
        iv_text = get_header(header, HEADER_IV)
        if key_text is None or iv_text is None:
            missing = HEADER_KEY if key_text is None else HEADER_IV
            raise EnvelopeError(f"Missing {missing} header")

        try:
            key = self._opener.decrypt(packing.unpack(key_text))
            iv = self._opener.decrypt(packing.unpack(iv_text))
            ciphertext = b64_decode(body)
            plaintext = SessionSecret(key=key, iv=iv, ciphertext=ciphertext).decipher()
        except (CryptoError, ValueError, binascii.Error) as e:
            raise EnvelopeError(f"Failed to open envelope: {type(e).__name__}") from e

        _logger.debug(
            "Envelope opened: direction=%s body_size=%d plaintext_size=%d",
            self._opener.direction.value,
            len(body),
            len(plaintext),
        )
        return plaintext

    def seal_object(self, value: Any) -> tuple[str, dict[str, str]]:
        """
        Serialize value as JSON (UTF-8) and seal it.

        Raises:
            TypeError: If value is not JSON serializable
            EnvelopeError: If sealing fails
        """
        return self.seal(json.dumps(value).encode("utf-8"))

    def open_object(self, body: str | bytes, header: Mapping[str, Any]) -> Any:
        """
        Open an envelope and parse its JSON payload.

        Raises:
            EnvelopeError: If opening fails or the payload is not valid JSON
        """
        plaintext = self.open(body, header)
        try:
            return json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise EnvelopeError("Envelope payload is not valid JSON") from e
