"""
RSA key material and the asymmetric wrap of session secrets.

A KeyPair holds an RSA public key and, optionally, its private half. An
AsymmetricTranscoder applies one named Direction with it:

    CONFIDENTIAL  public encrypt (RSA-OAEP/SHA-256)   private decrypt
    AUTHENTIC     private encrypt (PKCS#1 v1.5 BT=1)  public decrypt (recovery)

Only short secrets (an AES key, a CBC IV) are ever wrapped; inputs above the
padding-bounded capacity of the modulus are refused.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from pathlib import Path

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from hybrid_rpc.constants import (
    OAEP_OVERHEAD,
    PACK_WORD_SIZE,
    PKCS1_OVERHEAD,
    RSA_DEFAULT_KEY_SIZE,
    RSA_MIN_KEY_SIZE,
    RSA_PUBLIC_EXPONENT,
    Direction,
)
from hybrid_rpc.exceptions import KeyMaterialError

__all__ = [
    "AsymmetricTranscoder",
    "KeyPair",
]

_OAEP = padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA256()), algorithm=hashes.SHA256(), label=None)


@dataclass(frozen=True)
class KeyPair:
    """
    Immutable RSA key pair; the private half is optional.

    Example:
        server_keys = KeyPair.generate()
        client_keys = KeyPair.from_pem(server_keys.public_pem())
        client_keys.is_private  # False
    """

    public_key: rsa.RSAPublicKey = field(repr=False)
    private_key: rsa.RSAPrivateKey | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        size = self.public_key.key_size
        if size < RSA_MIN_KEY_SIZE:
            raise KeyMaterialError(f"RSA key too small: {size} bits (minimum {RSA_MIN_KEY_SIZE})")
        # Wrapped output is key_size/8 bytes and must pack into whole 32-bit words
        if size % (PACK_WORD_SIZE * 8):
            raise KeyMaterialError(f"RSA key size must be a multiple of {PACK_WORD_SIZE * 8} bits, got {size}")

    @classmethod
    def generate(cls, key_size: int = RSA_DEFAULT_KEY_SIZE) -> KeyPair:
        """Generate a fresh RSA key pair."""
        private_key = rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size)
        return cls(public_key=private_key.public_key(), private_key=private_key)

    @classmethod
    def from_pem(cls, pem: bytes | str, password: bytes | None = None) -> KeyPair:
        """
        Load a PEM-encoded RSA key (private or public).

        Args:
            pem: PEM text (PKCS#1, PKCS#8 or SubjectPublicKeyInfo)
            password: Passphrase for an encrypted private key

        Returns:
            KeyPair; is_private tells which half was loaded

        Raises:
            KeyMaterialError: If the PEM is malformed, encrypted without a
                password, or not an RSA key
        """
        data = pem.encode("ascii") if isinstance(pem, str) else pem

        try:
            if b"PRIVATE KEY" in data:
                private_key = serialization.load_pem_private_key(data, password=password)
                if not isinstance(private_key, rsa.RSAPrivateKey):
                    raise KeyMaterialError(f"Expected an RSA private key, got {type(private_key).__name__}")
                return cls(public_key=private_key.public_key(), private_key=private_key)

            public_key = serialization.load_pem_public_key(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyMaterialError(f"Unable to load PEM key: {e}") from e

        if not isinstance(public_key, rsa.RSAPublicKey):
            raise KeyMaterialError(f"Expected an RSA public key, got {type(public_key).__name__}")
        return cls(public_key=public_key)

    @classmethod
    def from_file(cls, path: str | Path, password: bytes | None = None) -> KeyPair:
        """Load a PEM key from disk."""
        return cls.from_pem(Path(path).read_bytes(), password=password)

    @property
    def is_private(self) -> bool:
        """Whether the private half is loaded."""
        return self.private_key is not None

    @property
    def key_size(self) -> int:
        """Modulus size in bits."""
        return self.public_key.key_size

    def public(self) -> KeyPair:
        """Return a KeyPair holding only the public half."""
        return KeyPair(public_key=self.public_key)

    def public_pem(self) -> bytes:
        """Serialize the public half (SubjectPublicKeyInfo PEM)."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def private_pem(self, password: bytes | None = None) -> bytes:
        """
        Serialize the private half (PKCS#8 PEM).

        Raises:
            KeyMaterialError: If only the public half is loaded
        """
        if self.private_key is None:
            raise KeyMaterialError("No private key loaded")
        encryption: serialization.KeySerializationEncryption = (
            serialization.BestAvailableEncryption(password) if password else serialization.NoEncryption()
        )
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        )


class AsymmetricTranscoder:
    """
    Encrypt/decrypt short secrets with RSA in one fixed Direction.

    The direction is chosen by the caller, never inferred from the key. A
    private-key holder can act on both ends of either direction (the public
    half derives from the private one); a public-key holder can only encrypt
    CONFIDENTIAL and decrypt AUTHENTIC.
    """

    __slots__ = ("_direction", "_key_pair")

    def __init__(self, key_pair: KeyPair, direction: Direction) -> None:
        self._key_pair = key_pair
        self._direction = Direction(direction)

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def key_pair(self) -> KeyPair:
        return self._key_pair

    @property
    def capacity(self) -> int:
        """Largest plaintext, in bytes, a single encrypt() accepts."""
        overhead = OAEP_OVERHEAD if self._direction is Direction.CONFIDENTIAL else PKCS1_OVERHEAD
        return self._key_pair.key_size // 8 - overhead

    def encrypt(self, data: bytes) -> bytes:
        """
        Wrap data.

        Raises:
            KeyMaterialError: If data exceeds capacity, or the direction needs
                a private key that is not loaded
        """
        if len(data) > self.capacity:
            raise KeyMaterialError(
                f"Plaintext too long for {self._key_pair.key_size}-bit key: {len(data)} bytes (max {self.capacity})"
            )
        if self._direction is Direction.CONFIDENTIAL:
            return self._key_pair.public_key.encrypt(data, _OAEP)
        return self._private_encrypt(data)

    def decrypt(self, data: bytes) -> bytes:
        """
        Unwrap data produced by encrypt() with the other half of the pair.

        Raises:
            KeyMaterialError: If data is not a valid wrap under this key, or
                the direction needs a private key that is not loaded
        """
        modulus_len = self._key_pair.key_size // 8
        if len(data) != modulus_len:
            raise KeyMaterialError(f"Wrapped secret must be {modulus_len} bytes, got {len(data)}")

        if self._direction is Direction.CONFIDENTIAL:
            private_key = self._require_private("decrypt")
            try:
                return private_key.decrypt(data, _OAEP)
            except ValueError as e:
                raise KeyMaterialError("Decryption failed") from e

        try:
            return self._key_pair.public_key.recover_data_from_signature(data, padding.PKCS1v15(), None)
        except (InvalidSignature, ValueError) as e:
            raise KeyMaterialError("Decryption failed") from e

    def _require_private(self, operation: str) -> rsa.RSAPrivateKey:
        private_key = self._key_pair.private_key
        if private_key is None:
            raise KeyMaterialError(f"{self._direction.value} {operation} requires the private key")
        return private_key

    def _private_encrypt(self, data: bytes) -> bytes:
        """RSA private-key operation over an EMSA-PKCS1-v1_5 block type 1.

        Equivalent to OpenSSL RSA_private_encrypt with RSA_PKCS1_PADDING.
        The exponentiation is blinded with a random r.
        """
        private_key = self._require_private("encrypt")
        numbers = private_key.private_numbers()
        n = numbers.public_numbers.n
        e = numbers.public_numbers.e
        k = self._key_pair.key_size // 8

        block = b"\x00\x01" + b"\xff" * (k - len(data) - 3) + b"\x00" + data
        m = int.from_bytes(block, "big")

        while True:
            r = secrets.randbelow(n - 2) + 2
            try:
                r_inv = pow(r, -1, n)
            except ValueError:
                continue
            break

        blinded = (m * pow(r, e, n)) % n
        s = (pow(blinded, numbers.d, n) * r_inv) % n
        return s.to_bytes(k, "big")
