"""
Password-based wrapping of secret keys.

A secret key is encrypted under a key derived from a password with scrypt,
using XChaCha20-Poly1305. The scrypt work factor travels with each blob, so
older blobs stay readable while new blobs can use a higher cost.

## Wire Format (91 bytes)

    [0]      version (0x02)
    [1]      log_n (scrypt N = 2^log_n, r = 8, p = 1)
    [2-17]   salt (16 bytes)
    [18-41]  nonce (24 bytes)
    [42]     key security byte (authenticated as associated data)
    [43-90]  ciphertext + tag (48 bytes)

The text form is bech32 with the ``ncryptsec`` prefix.
"""

import asyncio
import logging
import os
import unicodedata
from dataclasses import dataclass

import nacl.bindings
import nacl.exceptions
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .encoding import decode_bech32, encode_bech32
from .types import (
    NCRYPTSEC_PREFIX,
    SECRET_KEY_SIZE,
    WRAP_VERSION,
    WRAP_SALT_SIZE,
    WRAP_NONCE_SIZE,
    WRAP_CIPHERTEXT_SIZE,
    WRAPPED_KEY_SIZE,
    DEFAULT_SCRYPT_LOG_N,
    MAX_SCRYPT_LOG_N,
    KEY_SECURITY_INSECURE,
    KEY_SECURITY_UNKNOWN,
    AuthenticationFailedError,
    InvalidEncodingError,
    MalformedPayloadError,
    UnsupportedVersionError,
)
from .keys import validate_secret_key

logger = logging.getLogger(__name__)

SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_SIZE = 32


@dataclass
class PasswordWrappedKey:
    """A secret key encrypted under a password."""
    version: int
    log_n: int
    salt: bytes  # 16 bytes
    nonce: bytes  # 24 bytes
    key_security: int
    ciphertext: bytes  # 48 bytes (32 + 16 tag)

    def to_bytes(self) -> bytes:
        return (
            bytes([self.version, self.log_n])
            + self.salt
            + self.nonce
            + bytes([self.key_security])
            + self.ciphertext
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "PasswordWrappedKey":
        """
        Parse a wrapped key.

        Raises:
            MalformedPayloadError: If the data has the wrong size
            UnsupportedVersionError: If the version is unknown
        """
        if len(data) < 1:
            raise MalformedPayloadError("Wrapped key is empty")

        if data[0] != WRAP_VERSION:
            raise UnsupportedVersionError(data[0])

        if len(data) != WRAPPED_KEY_SIZE:
            raise MalformedPayloadError(
                f"Wrapped key must be {WRAPPED_KEY_SIZE} bytes, got {len(data)}"
            )

        offset = 2
        salt = data[offset : offset + WRAP_SALT_SIZE]
        offset += WRAP_SALT_SIZE

        nonce = data[offset : offset + WRAP_NONCE_SIZE]
        offset += WRAP_NONCE_SIZE

        key_security = data[offset]
        offset += 1

        return cls(
            version=data[0],
            log_n=data[1],
            salt=salt,
            nonce=nonce,
            key_security=key_security,
            ciphertext=data[offset:],
        )

    def to_text(self) -> str:
        """Encode as an ncryptsec string."""
        return encode_bech32(NCRYPTSEC_PREFIX, self.to_bytes())

    @classmethod
    def from_text(cls, value: str) -> "PasswordWrappedKey":
        """
        Parse an ncryptsec string.

        Raises:
            InvalidEncodingError: If the text is not a valid ncryptsec string
            UnsupportedVersionError: If the version is unknown
        """
        prefix, data = decode_bech32(value)
        if prefix != NCRYPTSEC_PREFIX:
            raise InvalidEncodingError(f"Expected prefix {NCRYPTSEC_PREFIX!r}, got {prefix!r}")

        try:
            return cls.from_bytes(data)
        except MalformedPayloadError as e:
            raise InvalidEncodingError(str(e)) from e


def normalize_password(password: str) -> bytes:
    """NFKC-normalize a password and encode it as UTF-8."""
    return unicodedata.normalize("NFKC", password).encode("utf-8")


def derive_password_key(password: str, salt: bytes, log_n: int) -> bytes:
    """
    Derive a 32-byte key from a password with scrypt.

    This is deliberately slow; cost doubles with each step of log_n.
    """
    if not 1 <= log_n <= MAX_SCRYPT_LOG_N:
        raise ValueError(f"log_n must be between 1 and {MAX_SCRYPT_LOG_N}, got {log_n}")

    kdf = Scrypt(salt=salt, length=SCRYPT_KEY_SIZE, n=2 ** log_n, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(normalize_password(password))


def wrap_secret_key(
    secret_key: bytes,
    password: str,
    log_n: int = DEFAULT_SCRYPT_LOG_N,
    key_security: int = KEY_SECURITY_UNKNOWN,
) -> PasswordWrappedKey:
    """
    Encrypt a secret key under a password.

    Args:
        secret_key: 32-byte secret key
        password: The password
        log_n: scrypt work factor (N = 2^log_n)
        key_security: Key security byte (0x00, 0x01 or 0x02)

    Returns:
        PasswordWrappedKey
    """
    validate_secret_key(secret_key)
    if not KEY_SECURITY_INSECURE <= key_security <= KEY_SECURITY_UNKNOWN:
        raise ValueError(f"Invalid key security byte: {key_security}")

    salt = os.urandom(WRAP_SALT_SIZE)
    nonce = os.urandom(WRAP_NONCE_SIZE)

    key = derive_password_key(password, salt, log_n)
    ad = bytes([key_security])
    ciphertext = nacl.bindings.crypto_aead_xchacha20poly1305_ietf_encrypt(
        bytes(secret_key), ad, nonce, key
    )

    logger.debug("Wrapped secret key with log_n=%d", log_n)

    return PasswordWrappedKey(
        version=WRAP_VERSION,
        log_n=log_n,
        salt=salt,
        nonce=nonce,
        key_security=key_security,
        ciphertext=ciphertext,
    )


def unwrap_secret_key(wrapped: PasswordWrappedKey, password: str) -> bytes:
    """
    Decrypt a wrapped secret key.

    Args:
        wrapped: The wrapped key
        password: The password

    Returns:
        32-byte secret key

    Raises:
        UnsupportedVersionError: If the version is unknown
        AuthenticationFailedError: If the password is wrong or the blob was altered
    """
    if wrapped.version != WRAP_VERSION:
        raise UnsupportedVersionError(wrapped.version)

    if len(wrapped.ciphertext) != WRAP_CIPHERTEXT_SIZE:
        raise MalformedPayloadError("Wrapped key ciphertext has the wrong size")

    try:
        key = derive_password_key(password, wrapped.salt, wrapped.log_n)
    except ValueError as e:
        # An altered work factor is tampering, not a caller error
        raise AuthenticationFailedError() from e

    ad = bytes([wrapped.key_security])
    try:
        secret_key = nacl.bindings.crypto_aead_xchacha20poly1305_ietf_decrypt(
            wrapped.ciphertext, ad, wrapped.nonce, key
        )
    except nacl.exceptions.CryptoError as e:
        raise AuthenticationFailedError() from e

    if len(secret_key) != SECRET_KEY_SIZE:
        raise AuthenticationFailedError()

    return secret_key


def encrypt_secret_key(
    secret_key: bytes,
    password: str,
    log_n: int = DEFAULT_SCRYPT_LOG_N,
    key_security: int = KEY_SECURITY_UNKNOWN,
) -> str:
    """Encrypt a secret key and return the ncryptsec string."""
    return wrap_secret_key(secret_key, password, log_n, key_security).to_text()


def decrypt_secret_key(value: str, password: str) -> bytes:
    """Decrypt an ncryptsec string."""
    return unwrap_secret_key(PasswordWrappedKey.from_text(value), password)


async def wrap_secret_key_async(
    secret_key: bytes,
    password: str,
    log_n: int = DEFAULT_SCRYPT_LOG_N,
    key_security: int = KEY_SECURITY_UNKNOWN,
) -> PasswordWrappedKey:
    """Run wrap_secret_key on a worker thread."""
    return await asyncio.to_thread(wrap_secret_key, secret_key, password, log_n, key_security)


async def unwrap_secret_key_async(wrapped: PasswordWrappedKey, password: str) -> bytes:
    """Run unwrap_secret_key on a worker thread."""
    return await asyncio.to_thread(unwrap_secret_key, wrapped, password)
