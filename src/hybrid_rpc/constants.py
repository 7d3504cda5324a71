"""
Protocol constants for the hybrid JSON-RPC envelope.

Wire summary:
    body:    base64(AES-256-CBC(json) || HMAC-SHA256 tag)
    key:     pack(RSA(session key))
    iv:      pack(RSA(session IV))

pack() renders 32-bit big-endian words as base-36 tokens joined by ":".
"""

from enum import Enum

# =============================================================================
# HTTP HEADERS
# =============================================================================

HEADER_KEY = "key"
"""Header carrying the wrapped session key."""

HEADER_IV = "iv"
"""Header carrying the wrapped session IV."""

CONTENT_TYPE = "text/plain"
"""Body is base64 text, not JSON."""

# =============================================================================
# SYMMETRIC CIPHER (AES-256-CBC + HMAC-SHA256)
# =============================================================================

AES_KEY_SIZE = 32
"""Session key size in bytes (AES-256)."""

AES_KEY_SIZES = (16, 24, 32)
"""Key sizes accepted when deciphering."""

AES_BLOCK_SIZE = 16
"""AES block size in bytes; also the CBC IV size."""

AES_IV_SIZE = AES_BLOCK_SIZE

HMAC_TAG_SIZE = 32
"""HMAC-SHA256 tag appended to the CBC ciphertext."""

SUBKEY_SIZE = 32
"""Size of each HKDF-derived sub-key (encryption and MAC)."""

SUBKEY_INFO = b"hybrid-rpc cbc-hmac-sha256"
"""HKDF info label binding derived sub-keys to this protocol."""

# =============================================================================
# ASYMMETRIC WRAP (RSA)
# =============================================================================

RSA_PUBLIC_EXPONENT = 65537
RSA_DEFAULT_KEY_SIZE = 2048
"""Modulus size used by KeyPair.generate()."""

RSA_MIN_KEY_SIZE = 1024

OAEP_HASH_SIZE = 32
"""SHA-256 digest size, used for the OAEP capacity bound."""

OAEP_OVERHEAD = 2 * OAEP_HASH_SIZE + 2
PKCS1_OVERHEAD = 11
"""Minimum PKCS#1 v1.5 padding: 00 || BT || PS (>= 8 bytes) || 00."""

PACK_WORD_SIZE = 4
"""IntegerPacking word size in bytes (32-bit big-endian)."""

PACK_DELIMITER = ":"
PACK_RADIX = 36

# =============================================================================
# JSON-RPC
# =============================================================================

JSONRPC_VERSION = "2.0"

# =============================================================================
# TRANSPORT
# =============================================================================

DEFAULT_TIMEOUT = 30.0
"""Seconds; handed to the HTTP client, never enforced by the envelope layer."""

SUCCESS_STATUS_MIN = 200
SUCCESS_STATUS_MAX = 400
"""Success is SUCCESS_STATUS_MIN <= status < SUCCESS_STATUS_MAX."""


class Direction(str, Enum):
    """Which half of the RSA key pair encrypts a wrapped secret.

    CONFIDENTIAL: public key encrypts, private key decrypts. Only the
        private-key holder can recover the secret.
    AUTHENTIC: private key encrypts, public key decrypts. Any public-key
        holder can recover the secret, and only the private-key holder
        could have produced it.
    """

    CONFIDENTIAL = "confidential"
    AUTHENTIC = "authentic"
