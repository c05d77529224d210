"""
Bech32 encoding for keys and wrapped keys.

Secret keys travel as ``nsec1...``, public keys as ``npub1...`` and
password-wrapped secret keys as ``ncryptsec1...``. The checksum is plain
bech32 (not bech32m). Wrapped keys are longer than the 90-character limit
enforced by ``bech32.bech32_decode``, so decoding here checks the
characters and checksum directly with no length limit.
"""

from typing import Tuple

from bech32 import CHARSET, bech32_encode, bech32_verify_checksum, convertbits

from .types import (
    NSEC_PREFIX,
    NPUB_PREFIX,
    SECRET_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    InvalidEncodingError,
)


CHECKSUM_LENGTH = 6

# Longest string accepted on decode (covers ncryptsec with room to spare)
MAX_ENCODED_LENGTH = 5000


def encode_bech32(prefix: str, data: bytes) -> str:
    """
    Encode bytes as a bech32 string.

    Args:
        prefix: Human-readable prefix (e.g. "nsec")
        data: Payload bytes

    Returns:
        Lowercase bech32 string
    """
    words = convertbits(data, 8, 5, True)
    return bech32_encode(prefix, words)


def decode_bech32(value: str) -> Tuple[str, bytes]:
    """
    Decode a bech32 string.

    Args:
        value: The encoded string

    Returns:
        Tuple of (prefix, payload bytes)

    Raises:
        InvalidEncodingError: On bad characters, mixed case or checksum mismatch.
    """
    if not isinstance(value, str):
        raise InvalidEncodingError("Encoded value must be a string")

    if len(value) > MAX_ENCODED_LENGTH:
        raise InvalidEncodingError("Encoded value is too long")

    if any(ord(c) < 33 or ord(c) > 126 for c in value):
        raise InvalidEncodingError("Encoded value contains invalid characters")

    if value.lower() != value and value.upper() != value:
        raise InvalidEncodingError("Encoded value has mixed case")

    value = value.lower()
    separator = value.rfind("1")
    if separator < 1 or separator + CHECKSUM_LENGTH + 1 > len(value):
        raise InvalidEncodingError("Encoded value has no valid separator")

    prefix = value[:separator]
    if not all(c in CHARSET for c in value[separator + 1 :]):
        raise InvalidEncodingError("Encoded value contains invalid characters")

    words = [CHARSET.find(c) for c in value[separator + 1 :]]
    if not bech32_verify_checksum(prefix, words):
        raise InvalidEncodingError("Checksum mismatch")

    data = convertbits(words[:-CHECKSUM_LENGTH], 5, 8, False)
    if data is None:
        raise InvalidEncodingError("Invalid payload padding")

    return prefix, bytes(data)


def decode_expected(value: str, prefix: str, size: int) -> bytes:
    """Decode a bech32 string, requiring a specific prefix and payload size."""
    actual_prefix, data = decode_bech32(value)

    if actual_prefix != prefix:
        raise InvalidEncodingError(f"Expected prefix {prefix!r}, got {actual_prefix!r}")

    if len(data) != size:
        raise InvalidEncodingError(f"Expected {size} bytes, got {len(data)}")

    return data


def encode_secret_key(secret_key: bytes) -> str:
    """Encode a 32-byte secret key as nsec."""
    if len(secret_key) != SECRET_KEY_SIZE:
        raise InvalidEncodingError(f"Secret key must be {SECRET_KEY_SIZE} bytes")
    return encode_bech32(NSEC_PREFIX, secret_key)


def decode_secret_key(value: str) -> bytes:
    """Decode an nsec string to the 32-byte secret key."""
    return decode_expected(value, NSEC_PREFIX, SECRET_KEY_SIZE)


def encode_public_key(public_key: bytes) -> str:
    """Encode a 32-byte x-only public key as npub."""
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidEncodingError(f"Public key must be {PUBLIC_KEY_SIZE} bytes")
    return encode_bech32(NPUB_PREFIX, public_key)


def decode_public_key(value: str) -> bytes:
    """Decode an npub string to the 32-byte public key."""
    return decode_expected(value, NPUB_PREFIX, PUBLIC_KEY_SIZE)
