"""Encrypted payload framing for selfnote."""

import base64
import binascii
from dataclasses import dataclass

from .types import (
    PAYLOAD_VERSION,
    PAYLOAD_NONCE_SIZE,
    MAC_SIZE,
    MIN_PAYLOAD_SIZE,
    MAX_PAYLOAD_SIZE,
    MIN_ENCODED_PAYLOAD_SIZE,
    MAX_ENCODED_PAYLOAD_SIZE,
    MalformedPayloadError,
    UnsupportedVersionError,
)


@dataclass
class EncryptedPayload:
    """Versioned encrypted payload."""
    version: int
    nonce: bytes  # 32 bytes
    ciphertext: bytes  # variable (2-byte length + padded plaintext)
    mac: bytes  # 32 bytes

    def to_bytes(self) -> bytes:
        return encode_payload(self)

    def to_base64(self) -> str:
        return base64.b64encode(encode_payload(self)).decode("ascii")


def encode_payload(payload: EncryptedPayload) -> bytes:
    """
    Encode a payload to bytes.

    Format:
        [0]        version (0x02)
        [1-32]     nonce (32 bytes)
        [33..-32]  ciphertext (variable)
        [-32:]     mac (32 bytes)

    Args:
        payload: EncryptedPayload to encode

    Returns:
        Encoded bytes
    """
    return bytes([payload.version]) + payload.nonce + payload.ciphertext + payload.mac


def decode_payload(data: bytes) -> EncryptedPayload:
    """
    Decode bytes into a payload.

    Args:
        data: Encoded payload bytes

    Returns:
        Decoded EncryptedPayload

    Raises:
        MalformedPayloadError: If the frame size is out of range
        UnsupportedVersionError: If the version byte is unknown
    """
    if len(data) < MIN_PAYLOAD_SIZE or len(data) > MAX_PAYLOAD_SIZE:
        raise MalformedPayloadError(
            f"Invalid payload size: {len(data)} bytes "
            f"(expected {MIN_PAYLOAD_SIZE}..{MAX_PAYLOAD_SIZE})"
        )

    version = data[0]
    if version != PAYLOAD_VERSION:
        raise UnsupportedVersionError(version)

    offset = 1
    nonce = data[offset : offset + PAYLOAD_NONCE_SIZE]
    offset += PAYLOAD_NONCE_SIZE

    ciphertext = data[offset:-MAC_SIZE]
    mac = data[-MAC_SIZE:]

    return EncryptedPayload(version=version, nonce=nonce, ciphertext=ciphertext, mac=mac)


def decode_payload_text(payload: str) -> EncryptedPayload:
    """
    Decode a base64 payload string.

    Raises:
        MalformedPayloadError: If the text is empty, too long, or not base64
        UnsupportedVersionError: If the payload is flagged with a future version
    """
    if not isinstance(payload, str):
        raise MalformedPayloadError("Payload must be a string")

    if not payload:
        raise MalformedPayloadError("Payload is empty")

    # A leading '#' marks a non-base64 future encoding
    if payload[0] == "#":
        raise UnsupportedVersionError(ord("#"))

    if len(payload) < MIN_ENCODED_PAYLOAD_SIZE or len(payload) > MAX_ENCODED_PAYLOAD_SIZE:
        raise MalformedPayloadError(f"Invalid payload length: {len(payload)}")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPayloadError("Payload is not valid base64") from e

    return decode_payload(data)


def is_encrypted_payload(payload: str) -> bool:
    """
    Check if a string looks like an encrypted payload.

    Args:
        payload: String to check

    Returns:
        True if the string decodes to a well-formed frame
    """
    try:
        decode_payload_text(payload)
    except (MalformedPayloadError, UnsupportedVersionError):
        return False
    return True
