"""
Conversation keys and the padded authenticated cipher.

Payloads follow the NIP-44 v2 construction:

    conversation_key = HKDF-Extract(salt="nip44-v2", ikm=ecdh_x)
    chacha_key, chacha_nonce, hmac_key = HKDF-Expand(conversation_key, info=nonce, L=76)
    ciphertext = ChaCha20(chacha_key, chacha_nonce, pad(plaintext))
    mac = HMAC-SHA256(hmac_key, nonce || ciphertext)
"""

import hmac
import os
from typing import Optional, Tuple, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from .envelope import EncryptedPayload, decode_payload, decode_payload_text
from .keys import shared_x
from .types import (
    CONVERSATION_KEY_SALT,
    CONVERSATION_KEY_SIZE,
    PAYLOAD_VERSION,
    PAYLOAD_NONCE_SIZE,
    MESSAGE_KEYS_SIZE,
    MIN_PLAINTEXT_SIZE,
    MAX_PLAINTEXT_SIZE,
    AuthenticationFailedError,
    EncryptionError,
    InvalidKeyMaterialError,
    MalformedPayloadError,
    UnsupportedVersionError,
)


def _hmac_sha256(key: bytes, data: bytes) -> bytes:
    h = crypto_hmac.HMAC(key, hashes.SHA256())
    h.update(data)
    return h.finalize()


def get_conversation_key(secret_key: bytes, public_key: bytes) -> bytes:
    """
    Derive the symmetric conversation key between two parties.

    The key is symmetric: get_conversation_key(a, B) == get_conversation_key(b, A).

    Args:
        secret_key: Our 32-byte secret key
        public_key: Their 32-byte x-only public key

    Returns:
        32-byte conversation key

    Raises:
        InvalidKeyMaterialError: If either key is invalid
    """
    return _hmac_sha256(CONVERSATION_KEY_SALT, shared_x(secret_key, public_key))


def get_message_keys(conversation_key: bytes, nonce: bytes) -> Tuple[bytes, bytes, bytes]:
    """
    Expand per-message keys from the conversation key and nonce.

    Returns:
        Tuple of (chacha_key, chacha_nonce, hmac_key)
    """
    if len(conversation_key) != CONVERSATION_KEY_SIZE:
        raise InvalidKeyMaterialError(
            f"Conversation key must be {CONVERSATION_KEY_SIZE} bytes, got {len(conversation_key)}"
        )
    if len(nonce) != PAYLOAD_NONCE_SIZE:
        raise InvalidKeyMaterialError(f"Nonce must be {PAYLOAD_NONCE_SIZE} bytes, got {len(nonce)}")

    hkdf = HKDFExpand(algorithm=hashes.SHA256(), length=MESSAGE_KEYS_SIZE, info=nonce)
    keys = hkdf.derive(conversation_key)
    return keys[0:32], keys[32:44], keys[44:76]


def calc_padded_len(unpadded_len: int) -> int:
    """
    Round a plaintext length up to its padding bucket.

    Lengths up to 32 pad to 32. Above that, lengths round up to a multiple of
    32 while the next power of two is at most 256, and to a multiple of
    next_power / 8 beyond.
    """
    if unpadded_len <= 32:
        return 32

    next_power = 1 << (unpadded_len - 1).bit_length()
    chunk = 32 if next_power <= 256 else next_power // 8
    return chunk * ((unpadded_len - 1) // chunk + 1)


def pad(plaintext: bytes) -> bytes:
    """Prefix the plaintext with its 2-byte length and zero-pad to its bucket."""
    length = len(plaintext)
    if length < MIN_PLAINTEXT_SIZE or length > MAX_PLAINTEXT_SIZE:
        raise EncryptionError(
            f"Plaintext too large: {length} bytes (max {MAX_PLAINTEXT_SIZE})"
        )

    prefix = length.to_bytes(2, byteorder="big")
    suffix = bytes(calc_padded_len(length) - length)
    return prefix + plaintext + suffix


def unpad(padded: bytes) -> bytes:
    """Remove padding using the embedded length field."""
    if len(padded) < 2:
        raise MalformedPayloadError("Padded plaintext too short")

    length = int.from_bytes(padded[0:2], byteorder="big")
    plaintext = padded[2 : 2 + length]

    if len(plaintext) != length or len(padded) != 2 + calc_padded_len(length):
        raise MalformedPayloadError("Invalid padding")

    return plaintext


def _chacha20(key: bytes, nonce: bytes, data: bytes) -> bytes:
    # 16-byte IV: 32-bit little-endian block counter (0) followed by the 96-bit nonce
    cipher = Cipher(algorithms.ChaCha20(key, b"\x00\x00\x00\x00" + nonce), mode=None)
    encryptor = cipher.encryptor()
    return encryptor.update(data) + encryptor.finalize()


def encrypt_payload(
    plaintext: bytes,
    conversation_key: bytes,
    nonce: Optional[bytes] = None,
) -> EncryptedPayload:
    """
    Encrypt bytes under a conversation key.

    Args:
        plaintext: Bytes to encrypt (0..65535 bytes)
        conversation_key: 32-byte conversation key
        nonce: Fixed 32-byte nonce (test vectors only; random by default)

    Returns:
        EncryptedPayload

    Raises:
        EncryptionError: If the plaintext is too large
    """
    if nonce is None:
        nonce = os.urandom(PAYLOAD_NONCE_SIZE)

    chacha_key, chacha_nonce, hmac_key = get_message_keys(conversation_key, nonce)

    ciphertext = _chacha20(chacha_key, chacha_nonce, pad(plaintext))
    mac = _hmac_sha256(hmac_key, nonce + ciphertext)

    return EncryptedPayload(
        version=PAYLOAD_VERSION,
        nonce=nonce,
        ciphertext=ciphertext,
        mac=mac,
    )


def decrypt_payload(payload: EncryptedPayload, conversation_key: bytes) -> bytes:
    """
    Authenticate and decrypt a payload.

    Raises:
        UnsupportedVersionError: If the version is unknown
        AuthenticationFailedError: If the MAC does not match
        MalformedPayloadError: If the padding is inconsistent
    """
    # The MAC does not cover the version byte
    if payload.version != PAYLOAD_VERSION:
        raise UnsupportedVersionError(payload.version)

    chacha_key, chacha_nonce, hmac_key = get_message_keys(conversation_key, payload.nonce)

    expected_mac = _hmac_sha256(hmac_key, payload.nonce + payload.ciphertext)
    if not hmac.compare_digest(expected_mac, payload.mac):
        raise AuthenticationFailedError()

    padded = _chacha20(chacha_key, chacha_nonce, payload.ciphertext)
    return unpad(padded)


def encrypt(
    plaintext: Union[bytes, str],
    conversation_key: bytes,
    nonce: Optional[bytes] = None,
) -> str:
    """
    Encrypt a message and return the base64 payload.

    Args:
        plaintext: Bytes, or text to be UTF-8 encoded
        conversation_key: 32-byte conversation key
        nonce: Fixed 32-byte nonce (test vectors only)

    Returns:
        Base64 payload string
    """
    if isinstance(plaintext, str):
        try:
            plaintext = plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncryptionError("Plaintext is not valid UTF-8") from e

    return encrypt_payload(plaintext, conversation_key, nonce).to_base64()


def decrypt(payload: Union[str, bytes], conversation_key: bytes) -> bytes:
    """
    Decrypt a payload produced by encrypt().

    Structural checks run before any cryptographic work.

    Args:
        payload: Base64 payload string, or the raw frame bytes
        conversation_key: 32-byte conversation key

    Returns:
        Decrypted bytes

    Raises:
        MalformedPayloadError: If the payload is structurally invalid
        UnsupportedVersionError: If the version is unknown
        AuthenticationFailedError: If the MAC does not match
    """
    if isinstance(payload, (bytes, bytearray)):
        decoded = decode_payload(bytes(payload))
    else:
        decoded = decode_payload_text(payload)

    return decrypt_payload(decoded, conversation_key)


def encrypt_text(plaintext: str, conversation_key: bytes) -> str:
    """Encrypt a string."""
    return encrypt(plaintext, conversation_key)


def decrypt_text(payload: str, conversation_key: bytes) -> str:
    """Decrypt a payload into a string."""
    data = decrypt(payload, conversation_key)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayloadError("Decrypted content is not valid UTF-8") from e
