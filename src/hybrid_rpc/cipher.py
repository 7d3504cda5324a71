"""
Symmetric layer: AES-CBC with PKCS#7 padding and an HMAC-SHA256 tag.

Ciphertext format:
┌──────────────────────────────┬─────────────────┐
│ AES-CBC(PKCS7(plaintext))    │ HMAC-SHA256 tag │
│ (N * 16B)                    │ (32B)           │
└──────────────────────────────┴─────────────────┘

The session key never touches AES or HMAC directly. HKDF-SHA256 expands it
into an encryption sub-key (same length as the session key) and a 32-byte MAC
sub-key. The tag covers iv || cbc_ciphertext and is checked before unpadding.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from hybrid_rpc.constants import (
    AES_BLOCK_SIZE,
    AES_IV_SIZE,
    AES_KEY_SIZE,
    AES_KEY_SIZES,
    HMAC_TAG_SIZE,
    SUBKEY_INFO,
    SUBKEY_SIZE,
)
from hybrid_rpc.exceptions import CipherError

__all__ = [
    "SessionSecret",
    "decipher",
    "encipher",
]


def _check_key_iv(key: bytes, iv: bytes) -> None:
    if len(key) not in AES_KEY_SIZES:
        raise CipherError(f"Invalid key length: {len(key)} bytes (expected one of {AES_KEY_SIZES})")
    if len(iv) != AES_IV_SIZE:
        raise CipherError(f"Invalid IV length: {len(iv)} bytes (expected {AES_IV_SIZE})")


def _derive_subkeys(key: bytes) -> tuple[bytes, bytes]:
    """Split the session key into (encryption key, MAC key)."""
    okm = HKDF(
        algorithm=hashes.SHA256(),
        length=len(key) + SUBKEY_SIZE,
        salt=None,
        info=SUBKEY_INFO,
    ).derive(key)
    return okm[: len(key)], okm[len(key) :]


def _tag(mac_key: bytes, iv: bytes, body: bytes) -> hmac.HMAC:
    h = hmac.HMAC(mac_key, hashes.SHA256())
    h.update(iv)
    h.update(body)
    return h


@dataclass(frozen=True)
class SessionSecret:
    """
    One-time symmetric key material for a single message.

    Holds the key, the IV and, once enciphered, the ciphertext. Key and IV are
    fixed at construction; enciphering returns a new SessionSecret rather than
    mutating this one, and a secret that already carries ciphertext refuses to
    encipher again.

    Example:
        secret = SessionSecret.generate().encipher(b"hello")
        secret.ciphertext  # bytes
        secret.decipher()  # b"hello"
    """

    key: bytes = field(repr=False)
    iv: bytes = field(repr=False)
    ciphertext: bytes | None = None

    def __post_init__(self) -> None:
        _check_key_iv(self.key, self.iv)

    @classmethod
    def generate(cls) -> SessionSecret:
        """Create a secret with a fresh random AES-256 key and CBC IV."""
        return cls(key=secrets.token_bytes(AES_KEY_SIZE), iv=secrets.token_bytes(AES_IV_SIZE))

    def encipher(self, plaintext: bytes) -> SessionSecret:
        """
        Encipher plaintext under this secret's key and IV.

        Args:
            plaintext: Raw bytes (may be empty)

        Returns:
            New SessionSecret with the same key/IV and ciphertext set

        Raises:
            CipherError: If this secret has already been used
        """
        if self.ciphertext is not None:
            raise CipherError("SessionSecret already holds ciphertext; create a new one per message")

        enc_key, mac_key = _derive_subkeys(self.key)

        padder = padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(enc_key), modes.CBC(self.iv)).encryptor()
        body = encryptor.update(padded) + encryptor.finalize()

        tag = _tag(mac_key, self.iv, body).finalize()
        return SessionSecret(key=self.key, iv=self.iv, ciphertext=body + tag)

    def decipher(self) -> bytes:
        """
        Verify and decipher this secret's ciphertext.

        Returns:
            Original plaintext

        Raises:
            CipherError: If ciphertext is missing, truncated, tampered with,
                or incorrectly padded
        """
        data = self.ciphertext
        if data is None:
            raise CipherError("SessionSecret holds no ciphertext")
        if len(data) < AES_BLOCK_SIZE + HMAC_TAG_SIZE or (len(data) - HMAC_TAG_SIZE) % AES_BLOCK_SIZE:
            raise CipherError(f"Invalid ciphertext length: {len(data)} bytes")

        body, tag = data[:-HMAC_TAG_SIZE], data[-HMAC_TAG_SIZE:]
        enc_key, mac_key = _derive_subkeys(self.key)

        try:
            _tag(mac_key, self.iv, body).verify(tag)
        except InvalidSignature as e:
            raise CipherError("Authentication tag mismatch") from e

        decryptor = Cipher(algorithms.AES(enc_key), modes.CBC(self.iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()

        unpadder = padding.PKCS7(AES_BLOCK_SIZE * 8).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise CipherError("Invalid padding") from e


def encipher(plaintext: bytes, key: bytes | None = None, iv: bytes | None = None) -> SessionSecret:
    """
    Encipher plaintext, generating whichever of key/IV is not supplied.

    Args:
        plaintext: Raw bytes to encipher
        key: Session key (16, 24 or 32 bytes); random 32 bytes if omitted
        iv: CBC IV (16 bytes); random if omitted

    Returns:
        SessionSecret carrying ciphertext, key and iv

    Raises:
        CipherError: If a supplied key or IV has the wrong length
    """
    secret = SessionSecret(
        key=key if key is not None else secrets.token_bytes(AES_KEY_SIZE),
        iv=iv if iv is not None else secrets.token_bytes(AES_IV_SIZE),
    )
    return secret.encipher(plaintext)


def decipher(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Decipher ciphertext produced by encipher().

    Raises:
        CipherError: On wrong key/IV length, tag mismatch or bad padding
    """
    return SessionSecret(key=key, iv=iv, ciphertext=ciphertext).decipher()
