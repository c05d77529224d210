"""Share links carrying a password-wrapped secret key."""

import base64
import binascii
import re
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from .password import PasswordWrappedKey, unwrap_secret_key, wrap_secret_key
from .types import (
    DEFAULT_SCRYPT_LOG_N,
    KEY_SECURITY_UNKNOWN,
    WRAPPED_KEY_SIZE,
    InvalidEncodingError,
    MalformedPayloadError,
)

_URLSAFE_ALPHABET = re.compile(r"[A-Za-z0-9_-]+")


def encode_shareable(
    secret_key: bytes,
    password: str,
    log_n: int = DEFAULT_SCRYPT_LOG_N,
    key_security: int = KEY_SECURITY_UNKNOWN,
) -> str:
    """
    Wrap a secret key under a password and encode it for a URL.

    Format: base64url of the 91-byte wrapped key, without padding.

    Args:
        secret_key: The 32-byte secret key.
        password: The password protecting the key.
        log_n: scrypt work factor.
        key_security: Key security byte.

    Returns:
        URL-safe string.
    """
    return encode_wrapped(wrap_secret_key(secret_key, password, log_n, key_security))


def encode_wrapped(wrapped: PasswordWrappedKey) -> str:
    """Encode an already wrapped key as unpadded base64url."""
    return _encode_unpadded(wrapped.to_bytes())


def _encode_unpadded(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode_wrapped(value: str) -> PasswordWrappedKey:
    """
    Decode a shareable string without unwrapping it.

    Raises:
        InvalidEncodingError: If the value is not a well-formed wrapped key.
        UnsupportedVersionError: If the wrapped key version is unknown.
    """
    if not isinstance(value, str) or not value:
        raise InvalidEncodingError("Shared key is empty")

    if not _URLSAFE_ALPHABET.fullmatch(value):
        raise InvalidEncodingError("Shared key is not unpadded base64url")

    # Add padding back
    padded = value + "=" * (-len(value) % 4)

    try:
        data = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError("Shared key is not valid base64url") from e

    # Unused trailing bits must be zero
    if _encode_unpadded(data) != value:
        raise InvalidEncodingError("Shared key is not canonical base64url")

    if len(data) != WRAPPED_KEY_SIZE:
        raise InvalidEncodingError(f"Shared key must be {WRAPPED_KEY_SIZE} bytes, got {len(data)}")

    try:
        return PasswordWrappedKey.from_bytes(data)
    except MalformedPayloadError as e:
        raise InvalidEncodingError(str(e)) from e


def decode_shareable(value: str, password: str) -> bytes:
    """
    Decode and unwrap a shareable string.

    Args:
        value: The URL-safe string.
        password: The password.

    Returns:
        The 32-byte secret key.

    Raises:
        InvalidEncodingError: If the value is malformed (no point asking for
            another password).
        AuthenticationFailedError: If the password is wrong.
        UnsupportedVersionError: If the wrapped key version is unknown.
    """
    return unwrap_secret_key(decode_wrapped(value), password)


def create_share_url(base_url: str, value: str, param: str = "key") -> str:
    """Append a shareable value to a URL as a query parameter."""
    parsed = urlparse(base_url)
    params = parse_qs(parsed.query, keep_blank_values=True)
    params[param] = [value]
    query = urlencode(params, doseq=True)
    return urlunparse(parsed._replace(query=query))


def parse_share_url(url: str, param: str = "key") -> Optional[str]:
    """
    Extract the shareable value from a URL.

    Returns:
        The value, or None if the URL carries no shared key.
    """
    params = parse_qs(urlparse(url).query)
    if param not in params:
        return None
    return params[param][0]


def strip_share_param(url: str, param: str = "key") -> str:
    """Return the URL with the shared key parameter removed."""
    parsed = urlparse(url)
    params = parse_qs(parsed.query, keep_blank_values=True)
    params.pop(param, None)
    query = urlencode(params, doseq=True)
    return urlunparse(parsed._replace(query=query))
