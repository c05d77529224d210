"""secp256k1 key generation and point operations for selfnote."""

import os
from dataclasses import dataclass

import coincurve

from .types import (
    CURVE_ORDER,
    SECRET_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    InvalidKeyMaterialError,
)


@dataclass(frozen=True)
class Identity:
    """
    A secp256k1 keypair.

    Attributes:
        secret_key: 32-byte scalar.
        public_key: 32-byte x-only public key.
    """
    secret_key: bytes
    public_key: bytes

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> "Identity":
        """
        Build an identity from a secret key, deriving the public key.

        Raises:
            InvalidKeyMaterialError: If the scalar is not in [1, n-1].
        """
        return cls(secret_key=bytes(secret_key), public_key=get_public_key(secret_key))

    @classmethod
    def generate(cls) -> "Identity":
        """Generate a fresh random identity."""
        return cls.from_secret_key(generate_secret_key())

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def __repr__(self) -> str:
        # Never print the secret key
        return f"Identity({self.public_key_hex})"

    __str__ = __repr__


def validate_secret_key(secret_key: bytes) -> None:
    """
    Check that a secret key is a valid secp256k1 scalar.

    Raises:
        InvalidKeyMaterialError: If the key has the wrong length or is out of range.
    """
    if not isinstance(secret_key, (bytes, bytearray)) or len(secret_key) != SECRET_KEY_SIZE:
        raise InvalidKeyMaterialError(f"Secret key must be {SECRET_KEY_SIZE} bytes")

    scalar = int.from_bytes(secret_key, "big")
    if scalar == 0 or scalar >= CURVE_ORDER:
        raise InvalidKeyMaterialError("Secret key is outside the curve order")


def generate_secret_key() -> bytes:
    """
    Generate a random secret key.

    Draws 32 bytes from the OS CSPRNG and retries until the value is a
    valid scalar (non-zero and below the curve order).

    Returns:
        32-byte secret key
    """
    while True:
        candidate = os.urandom(SECRET_KEY_SIZE)
        scalar = int.from_bytes(candidate, "big")
        if 0 < scalar < CURVE_ORDER:
            return candidate


def get_public_key(secret_key: bytes) -> bytes:
    """
    Derive the x-only public key for a secret key.

    Args:
        secret_key: 32-byte secret key

    Returns:
        32-byte x-coordinate of secret_key * G
    """
    validate_secret_key(secret_key)
    private_key = coincurve.PrivateKey(bytes(secret_key))
    return private_key.public_key.format(compressed=True)[1:]


def lift_x(public_key: bytes) -> coincurve.PublicKey:
    """
    Lift an x-only public key to the curve point with even y.

    Raises:
        InvalidKeyMaterialError: If the key has the wrong length or is not on the curve.
    """
    if not isinstance(public_key, (bytes, bytearray)) or len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidKeyMaterialError(f"Public key must be {PUBLIC_KEY_SIZE} bytes")

    try:
        return coincurve.PublicKey(b"\x02" + bytes(public_key))
    except ValueError as e:
        raise InvalidKeyMaterialError("Public key is not on the curve") from e


def shared_x(secret_key: bytes, public_key: bytes) -> bytes:
    """
    Perform secp256k1 ECDH and return the unhashed x-coordinate.

    Args:
        secret_key: Our 32-byte secret key
        public_key: Their 32-byte x-only public key

    Returns:
        32-byte x-coordinate of the shared point
    """
    validate_secret_key(secret_key)
    point = lift_x(public_key)

    try:
        shared = point.multiply(bytes(secret_key))
    except ValueError as e:
        raise InvalidKeyMaterialError("Shared point is degenerate") from e

    return shared.format(compressed=True)[1:]


def public_key_from_hex(value: str) -> bytes:
    """Parse a hex x-only public key."""
    try:
        data = bytes.fromhex(value)
    except (TypeError, ValueError) as e:
        raise InvalidKeyMaterialError("Public key is not valid hex") from e

    if len(data) != PUBLIC_KEY_SIZE:
        raise InvalidKeyMaterialError(f"Public key must be {PUBLIC_KEY_SIZE} bytes")
    return data


def generate_identity() -> Identity:
    """Generate a fresh random identity."""
    return Identity.generate()
