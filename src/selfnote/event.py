"""
Signed event records.

A record's id is the SHA-256 of its canonical serialization

    [0, <pubkey hex>, <created_at>, <kind>, <tags>, <content>]

as compact JSON (no whitespace, UTF-8, non-ASCII left unescaped). The
signature is a BIP-340 Schnorr signature over the 32 id bytes, made with
the secp256k1 identity key.
"""

import hashlib
import json
import os
from dataclasses import dataclass
from typing import Any, List, Optional

import coincurve

from .keys import Identity, public_key_from_hex, validate_secret_key
from .types import (
    EVENT_ID_SIZE,
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
    InvalidKeyMaterialError,
    InvalidRecordFieldError,
)

Tags = List[List[str]]


@dataclass
class Record:
    """
    A signed event record.

    Field order matches the JSON shape readers expect:
    kind, created_at, tags, content, pubkey, id, sig.
    """
    kind: int
    created_at: int
    tags: Tags
    content: str
    pubkey: str
    id: str
    sig: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "created_at": self.created_at,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "pubkey": self.pubkey,
            "id": self.id,
            "sig": self.sig,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Record":
        """
        Build a record from a decoded JSON object.

        Raises:
            InvalidRecordFieldError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise InvalidRecordFieldError("Record must be a JSON object")

        missing = [name for name in _RECORD_FIELDS if name not in data]
        if missing:
            raise InvalidRecordFieldError(f"Record is missing fields: {', '.join(missing)}")

        for name in ("pubkey", "id", "sig", "content"):
            if not isinstance(data[name], str):
                raise InvalidRecordFieldError(f"Record field {name!r} must be a string")

        _check_header(data["kind"], data["created_at"])
        _check_tags(data["tags"])

        return cls(
            kind=data["kind"],
            created_at=data["created_at"],
            tags=[list(tag) for tag in data["tags"]],
            content=data["content"],
            pubkey=data["pubkey"],
            id=data["id"],
            sig=data["sig"],
        )

    @classmethod
    def from_json(cls, text: str) -> "Record":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidRecordFieldError("Record is not valid JSON") from e
        return cls.from_dict(data)

    def get_tag(self, name: str) -> Optional[str]:
        """Return the first value of the first tag with the given name."""
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] == name:
                return tag[1]
        return None


_RECORD_FIELDS = ("kind", "created_at", "tags", "content", "pubkey", "id", "sig")


def _check_header(kind: Any, created_at: Any) -> None:
    for name, value in (("kind", kind), ("created_at", created_at)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRecordFieldError(f"Record field {name!r} must be an integer")
        if value < 0:
            raise InvalidRecordFieldError(f"Record field {name!r} must not be negative")


def _check_tags(tags: Any) -> None:
    if not isinstance(tags, list):
        raise InvalidRecordFieldError("Tags must be a list")
    for tag in tags:
        if not isinstance(tag, (list, tuple)):
            raise InvalidRecordFieldError("Each tag must be a list of strings")
        for item in tag:
            if not isinstance(item, str):
                raise InvalidRecordFieldError("Each tag must be a list of strings")


def canonicalize(pubkey: str, created_at: int, kind: int, tags: Tags, content: str) -> bytes:
    """
    Serialize record fields to the canonical pre-image.

    Args:
        pubkey: Hex public key
        created_at: Unix seconds
        kind: Record kind
        tags: List of string lists
        content: Record content

    Returns:
        UTF-8 bytes of the canonical JSON array

    Raises:
        InvalidRecordFieldError: If a field has the wrong type or a string
            is not encodable as UTF-8
    """
    if not isinstance(pubkey, str) or not isinstance(content, str):
        raise InvalidRecordFieldError("pubkey and content must be strings")
    _check_header(kind, created_at)
    _check_tags(tags)

    serialized = json.dumps(
        [0, pubkey, created_at, kind, [list(tag) for tag in tags], content],
        separators=(",", ":"),
        ensure_ascii=False,
    )

    try:
        return serialized.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidRecordFieldError("Record contains text that is not valid UTF-8") from e


def identify(canonical: bytes) -> bytes:
    """Return the 32-byte content hash of a canonical serialization."""
    return hashlib.sha256(canonical).digest()


def sign(event_id: bytes, secret_key: bytes, aux_rand: Optional[bytes] = None) -> bytes:
    """
    Sign an event id with BIP-340 Schnorr.

    Args:
        event_id: 32-byte event id
        secret_key: 32-byte secret key
        aux_rand: 32 bytes of auxiliary randomness (random by default)

    Returns:
        64-byte signature
    """
    if len(event_id) != EVENT_ID_SIZE:
        raise InvalidRecordFieldError(f"Event id must be {EVENT_ID_SIZE} bytes, got {len(event_id)}")
    validate_secret_key(secret_key)

    if aux_rand is None:
        aux_rand = os.urandom(32)

    private_key = coincurve.PrivateKey(bytes(secret_key))
    return private_key.sign_schnorr(bytes(event_id), aux_rand)


def verify(event_id: bytes, sig: bytes, public_key: bytes) -> bool:
    """
    Verify a BIP-340 signature over an event id.

    Args:
        event_id: 32-byte event id
        sig: 64-byte signature
        public_key: 32-byte x-only public key

    Returns:
        True if the signature is valid, False otherwise
    """
    if len(event_id) != EVENT_ID_SIZE or len(sig) != SIGNATURE_SIZE or len(public_key) != PUBLIC_KEY_SIZE:
        return False

    try:
        verifying_key = coincurve.PublicKeyXOnly(bytes(public_key))
        return bool(verifying_key.verify(bytes(sig), bytes(event_id)))
    except ValueError:
        return False


def build_and_sign(
    kind: int,
    created_at: int,
    tags: Tags,
    content: str,
    identity: Identity,
) -> Record:
    """
    Build, identify and sign a record.

    Args:
        kind: Record kind
        created_at: Unix seconds
        tags: List of string lists
        content: Record content
        identity: The signing identity

    Returns:
        Signed Record

    Raises:
        InvalidRecordFieldError: If the fields cannot be serialized canonically
    """
    pubkey = identity.public_key.hex()
    canonical = canonicalize(pubkey, created_at, kind, tags, content)
    event_id = identify(canonical)
    sig = sign(event_id, identity.secret_key)

    return Record(
        kind=kind,
        created_at=created_at,
        tags=[list(tag) for tag in tags],
        content=content,
        pubkey=pubkey,
        id=event_id.hex(),
        sig=sig.hex(),
    )


def compute_id(record: Record) -> str:
    """Recompute a record's id from its fields."""
    canonical = canonicalize(record.pubkey, record.created_at, record.kind, record.tags, record.content)
    return identify(canonical).hex()


def verify_record(record: Record) -> bool:
    """
    Check a record's id and signature.

    Returns:
        True if the id matches the fields and the signature is valid
    """
    try:
        if compute_id(record) != record.id:
            return False
        public_key = public_key_from_hex(record.pubkey)
        return verify(bytes.fromhex(record.id), bytes.fromhex(record.sig), public_key)
    except (InvalidRecordFieldError, InvalidKeyMaterialError, ValueError):
        return False
