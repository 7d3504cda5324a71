"""
HTTP body and header utilities for the hybrid envelope.

The body is standard base64 (RFC 4648 §4). The wrapped key and IV travel in
the "key" and "iv" headers using integer packing (see hybrid_rpc.packing).
"""

import base64
import binascii
import re
from collections.abc import Mapping
from typing import Any

from hybrid_rpc.constants import HEADER_IV, HEADER_KEY

__all__ = [
    "HEADER_IV",
    "HEADER_KEY",
    "b64_decode",
    "b64_encode",
    "get_header",
]

# Legacy encoders (e.g. Ruby's Base64.encode64) wrap lines every 60 chars
_LINE_BREAKS = re.compile(r"[\r\n]")


def b64_encode(data: bytes) -> str:
    """
    Encode bytes to a single-line base64 string.

    Args:
        data: Raw bytes to encode

    Returns:
        base64 encoded string (with padding, no line breaks)
    """
    return base64.b64encode(data).decode("ascii")


def b64_decode(s: str | bytes) -> bytes:
    """
    Decode a base64 string strictly.

    Line breaks are ignored. Characters outside the base64 alphabet and
    non-canonical encodings (stray bits in the final quantum) are errors, so
    every distinct text maps to distinct bytes.

    Args:
        s: base64 text

    Returns:
        Decoded bytes

    Raises:
        binascii.Error: If the text is not valid base64
    """
    if isinstance(s, bytes):
        try:
            s = s.decode("ascii")
        except UnicodeDecodeError as e:
            raise binascii.Error("Non-ASCII base64 input") from e
    text = _LINE_BREAKS.sub("", s)
    data = base64.b64decode(text, validate=True)
    if base64.b64encode(data).decode("ascii") != text:
        raise binascii.Error("Non-canonical base64 input")
    return data


def get_header(headers: Mapping[str, Any], name: str) -> str | None:
    """Get header value, handling case-insensitive lookups."""
    # Try exact match first (faster)
    if name in headers:
        return str(headers[name])
    # Fall back to case-insensitive search
    name_lower = name.lower()
    for key in headers:
        if str(key).lower() == name_lower:
            return str(headers[key])
    return None
