"""Unit tests for radix-36 integer packing."""

import secrets

import pytest

from hybrid_rpc.packing import pack, unpack


class TestPack:
    """Test pack() output format."""

    def test_known_values(self) -> None:
        assert pack(b"\x00\x00\x00\x01\x00\x00\x01\x00") == "1:74"

    def test_zero_and_max_words(self) -> None:
        assert pack(b"\x00\x00\x00\x00\xff\xff\xff\xff") == "0:1z141z3"

    def test_empty(self) -> None:
        assert pack(b"") == ""

    def test_output_is_lowercase_ascii(self) -> None:
        text = pack(secrets.token_bytes(256))
        assert text.isascii()
        assert text == text.lower()
        assert len(text.split(":")) == 64

    @pytest.mark.parametrize("length", [1, 2, 3, 5, 255])
    def test_length_not_multiple_of_four_fails(self, length: int) -> None:
        with pytest.raises(ValueError, match="multiple of 4"):
            pack(b"\x00" * length)


class TestUnpack:
    """Test unpack() parsing and rejection of non-canonical text."""

    @pytest.mark.parametrize("length", [0, 4, 16, 32, 256, 512])
    def test_roundtrip(self, length: int) -> None:
        data = secrets.token_bytes(length)
        assert unpack(pack(data)) == data

    def test_roundtrip_preserves_leading_zero_bytes(self) -> None:
        data = b"\x00" * 8 + b"\x00\x00\x00\x07"
        assert unpack(pack(data)) == data

    def test_known_values(self) -> None:
        assert unpack("1:74") == b"\x00\x00\x00\x01\x00\x00\x01\x00"

    @pytest.mark.parametrize(
        "text",
        ["1::2", ":1", "1:", "1:-2", "+1", " 1", "1_0", "ZZ", "1:7G", "01", "1:!"],
    )
    def test_invalid_tokens_fail(self, text: str) -> None:
        with pytest.raises(ValueError, match="Invalid packed token"):
            unpack(text)

    def test_overflowing_token_fails(self) -> None:
        # 0xFFFFFFFF + 1 in base 36
        with pytest.raises(ValueError, match="exceeds 32 bits"):
            unpack("1z141z4")
