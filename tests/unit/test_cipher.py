"""Unit tests for the AES-CBC + HMAC symmetric layer."""

import dataclasses

import pytest

from hybrid_rpc.cipher import SessionSecret, decipher, encipher
from hybrid_rpc.constants import AES_BLOCK_SIZE, AES_IV_SIZE, AES_KEY_SIZE, HMAC_TAG_SIZE
from hybrid_rpc.exceptions import CipherError


class TestEncipher:
    """Test encipher() key/IV handling and output shape."""

    @pytest.mark.parametrize(
        "plaintext",
        [b"", b"a", b"x" * 15, b"x" * 16, b"x" * 17, b'{"method":"ping","jsonrpc":"2.0"}', bytes(range(256)) * 40],
        ids=["empty", "1B", "15B", "16B", "17B", "json", "10KB"],
    )
    def test_roundtrip(self, plaintext: bytes) -> None:
        """decipher(encipher(p)) == p for all sizes, including empty."""
        secret = encipher(plaintext)
        assert secret.ciphertext is not None
        assert decipher(secret.ciphertext, secret.key, secret.iv) == plaintext

    def test_generates_aes256_key_and_iv(self) -> None:
        """Missing key/IV are generated at AES-256 and CBC sizes."""
        secret = encipher(b"hello")
        assert len(secret.key) == AES_KEY_SIZE
        assert len(secret.iv) == AES_IV_SIZE

    def test_fresh_key_material_per_call(self) -> None:
        """Two calls never share key, IV or ciphertext."""
        a = encipher(b"same plaintext")
        b = encipher(b"same plaintext")
        assert a.key != b.key
        assert a.iv != b.iv
        assert a.ciphertext != b.ciphertext

    def test_supplied_key_and_iv_are_used(self) -> None:
        """Supplied key/IV are kept and make the output deterministic."""
        key, iv = b"k" * 32, b"v" * 16
        a = encipher(b"hello", key, iv)
        b = encipher(b"hello", key, iv)
        assert a.key == key
        assert a.iv == iv
        assert a.ciphertext == b.ciphertext

    def test_partial_supply_generates_the_other(self) -> None:
        """Supplying only a key still yields a random IV."""
        secret = encipher(b"hello", key=b"k" * 32)
        assert secret.key == b"k" * 32
        assert len(secret.iv) == AES_IV_SIZE

    @pytest.mark.parametrize("key_size", [16, 24, 32])
    def test_accepts_all_aes_key_sizes(self, key_size: int) -> None:
        secret = encipher(b"hello", key=b"k" * key_size)
        assert secret.ciphertext is not None
        assert decipher(secret.ciphertext, secret.key, secret.iv) == b"hello"

    def test_ciphertext_layout(self) -> None:
        """Ciphertext is whole CBC blocks followed by the HMAC tag."""
        secret = encipher(b"x" * 20)
        assert secret.ciphertext is not None
        assert len(secret.ciphertext) == 2 * AES_BLOCK_SIZE + HMAC_TAG_SIZE

    @pytest.mark.parametrize("key", [b"", b"k" * 15, b"k" * 33])
    def test_wrong_key_length_fails(self, key: bytes) -> None:
        with pytest.raises(CipherError, match="key length"):
            encipher(b"hello", key=key)

    @pytest.mark.parametrize("iv", [b"", b"v" * 8, b"v" * 32])
    def test_wrong_iv_length_fails(self, iv: bytes) -> None:
        with pytest.raises(CipherError, match="IV length"):
            encipher(b"hello", iv=iv)


class TestDecipher:
    """Test decipher() failure modes."""

    def test_wrong_key_fails(self) -> None:
        secret = encipher(b"hello")
        assert secret.ciphertext is not None
        with pytest.raises(CipherError):
            decipher(secret.ciphertext, b"w" * 32, secret.iv)

    def test_wrong_iv_fails(self) -> None:
        """The IV is covered by the tag."""
        secret = encipher(b"hello")
        assert secret.ciphertext is not None
        with pytest.raises(CipherError, match="tag mismatch"):
            decipher(secret.ciphertext, secret.key, b"w" * 16)

    def test_every_flipped_byte_is_detected(self) -> None:
        """Flipping any single ciphertext byte fails instead of decrypting garbage."""
        secret = encipher(b"x" * 40)
        assert secret.ciphertext is not None
        for i in range(len(secret.ciphertext)):
            tampered = bytearray(secret.ciphertext)
            tampered[i] ^= 0x01
            with pytest.raises(CipherError):
                decipher(bytes(tampered), secret.key, secret.iv)

    @pytest.mark.parametrize("length", [0, 16, HMAC_TAG_SIZE, HMAC_TAG_SIZE + 15, HMAC_TAG_SIZE + 17])
    def test_invalid_length_fails(self, length: int) -> None:
        with pytest.raises(CipherError, match="ciphertext length"):
            decipher(b"\x00" * length, b"k" * 32, b"v" * 16)

    def test_wrong_key_length_fails(self) -> None:
        with pytest.raises(CipherError, match="key length"):
            decipher(b"\x00" * 48, b"k" * 10, b"v" * 16)


class TestSessionSecret:
    """Test SessionSecret lifecycle invariants."""

    def test_key_and_iv_are_immutable(self) -> None:
        secret = SessionSecret.generate()
        with pytest.raises(dataclasses.FrozenInstanceError):
            secret.key = b"k" * 32  # type: ignore[misc]
        with pytest.raises(dataclasses.FrozenInstanceError):
            secret.iv = b"v" * 16  # type: ignore[misc]

    def test_encipher_returns_new_secret_with_same_key(self) -> None:
        secret = SessionSecret.generate()
        sealed = secret.encipher(b"hello")
        assert secret.ciphertext is None
        assert sealed.key == secret.key
        assert sealed.iv == secret.iv
        assert sealed.decipher() == b"hello"

    def test_second_encipher_is_refused(self) -> None:
        """A secret that already holds ciphertext cannot encipher again."""
        sealed = SessionSecret.generate().encipher(b"first")
        with pytest.raises(CipherError, match="already holds ciphertext"):
            sealed.encipher(b"second")

    def test_decipher_without_ciphertext_fails(self) -> None:
        with pytest.raises(CipherError, match="no ciphertext"):
            SessionSecret.generate().decipher()

    def test_repr_hides_key_material(self) -> None:
        secret = SessionSecret(key=b"K" * 32, iv=b"V" * 16)
        assert "KKKK" not in repr(secret)
        assert "VVVV" not in repr(secret)
