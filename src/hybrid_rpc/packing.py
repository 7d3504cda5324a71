"""
Integer packing of binary secrets into header-safe text.

Bytes are read as big-endian unsigned 32-bit words; each word is written in
lowercase base-36 and the words are joined with ":".

    pack(b"\\x00\\x00\\x00\\x01\\x00\\x00\\x01\\x00") == "1:74"

The scheme is pure ASCII, carries no padding and survives any text-only
channel (HTTP headers in particular).
"""

import struct

from hybrid_rpc.constants import PACK_DELIMITER, PACK_RADIX, PACK_WORD_SIZE

__all__ = [
    "pack",
    "unpack",
]

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_DIGIT_SET = frozenset(_DIGITS)
_WORD_MAX = 0xFFFFFFFF


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, PACK_RADIX)
        digits.append(_DIGITS[r])
    return "".join(reversed(digits))


def pack(data: bytes) -> str:
    """
    Encode bytes as colon-separated base-36 words.

    Args:
        data: Bytes whose length is a multiple of 4

    Returns:
        Packed text ("" for empty input)

    Raises:
        ValueError: If len(data) is not a multiple of 4
    """
    if len(data) % PACK_WORD_SIZE:
        raise ValueError(f"Cannot pack {len(data)} bytes: length must be a multiple of {PACK_WORD_SIZE}")
    words = struct.unpack(f">{len(data) // PACK_WORD_SIZE}I", data)
    return PACK_DELIMITER.join(_to_base36(w) for w in words)


def unpack(text: str) -> bytes:
    """
    Decode text produced by pack().

    Args:
        text: Colon-separated base-36 tokens

    Returns:
        Original bytes

    Raises:
        ValueError: On empty or non-canonical tokens, or values that do not
            fit in 32 bits
    """
    if not text:
        return b""

    words = []
    for token in text.split(PACK_DELIMITER):
        # Canonical form only: int() would also accept upper case, signs,
        # whitespace, underscores and leading zeros
        if not token or not _DIGIT_SET.issuperset(token) or (len(token) > 1 and token[0] == "0"):
            raise ValueError(f"Invalid packed token: {token!r}")
        value = int(token, PACK_RADIX)
        if value > _WORD_MAX:
            raise ValueError(f"Packed token exceeds 32 bits: {token!r}")
        words.append(value)
    return struct.pack(f">{len(words)}I", *words)
