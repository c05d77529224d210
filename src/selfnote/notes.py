"""
Encrypted notes to self.

A note is a signed kind-1 record holding the plaintext and a title tag.
It travels inside a signed kind-31234 wrapper whose content is the inner
record's JSON, encrypted under the author's self conversation key:

    wrapper (kind 31234, tags [["d", <random>], ["k", "23"]])
      content = encrypt(inner.to_json(), conversation_key(sk, pk))

    inner (kind 1, tags [["title", <title>]])
      content = <plaintext>
"""

import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Optional

from .crypto import decrypt, encrypt, get_conversation_key
from .event import Record, build_and_sign, verify_record
from .keys import Identity
from .types import (
    KIND_LEGACY_NOTE,
    KIND_NOTE_WRAPPER,
    KIND_SHORT_NOTE,
    NOTE_ROUTING_KIND,
    DecryptionFailedError,
    InvalidInnerRecordError,
    InvalidRecordFieldError,
    MalformedPayloadError,
)

logger = logging.getLogger(__name__)

ELLIPSIS = "..."

_HTML_TAG = re.compile(r"<[^>]*>")
_NON_WORD = re.compile(r"[^\w\s]")


@dataclass
class OpenedNote:
    """A decrypted and verified note."""
    content: str
    title: str
    note_id: str
    address: str
    created_at: int


def title_from_content(content: str, max_length: int = 50, max_words: int = 10) -> str:
    """
    Generate a title from note content.

    Removes HTML tags and characters that are neither word characters nor
    whitespace, then joins the first ``max_words`` words with single spaces.
    When nothing survives outside the tags, the words inside them are used.
    Titles longer than ``max_length`` are cut at the last space at or before
    ``max_length`` (or hard cut when the first word alone is too long) and
    get an ellipsis.

    Args:
        content: Note content
        max_length: Maximum title length, not counting the ellipsis
        max_words: Number of words to keep

    Returns:
        The title (empty only when the content has no word characters)
    """
    words = _NON_WORD.sub("", _HTML_TAG.sub("", content)).split()
    if not words:
        # Content that is only markup keeps the words inside the tags
        words = _NON_WORD.sub(" ", content).split()
    title = " ".join(words[:max_words])

    if len(title) > max_length:
        cut = title.rfind(" ", 0, max_length + 1)
        title = title[:cut] if cut > 0 else title[:max_length]
        title += ELLIPSIS

    return title


def _now() -> int:
    return int(time.time())


def _random_identifier() -> str:
    return os.urandom(16).hex()


def create_note(
    content: str,
    identity: Identity,
    title: Optional[str] = None,
    created_at: Optional[int] = None,
    max_title_length: int = 50,
) -> Record:
    """
    Create an encrypted note wrapper.

    Args:
        content: Note plaintext
        identity: Author identity
        title: Note title (generated from the content when absent)
        created_at: Unix seconds (now by default)
        max_title_length: Maximum generated title length

    Returns:
        The signed outer Record, ready for transport

    Raises:
        InvalidRecordFieldError: If the content is empty or cannot be serialized
        EncryptionError: If the inner record is too large to encrypt
    """
    if not isinstance(content, str) or not content.strip():
        raise InvalidRecordFieldError("Note content cannot be empty")

    if not title:
        title = title_from_content(content, max_title_length)

    if created_at is None:
        created_at = _now()

    inner = build_and_sign(
        kind=KIND_SHORT_NOTE,
        created_at=created_at,
        tags=[["title", title]],
        content=content,
        identity=identity,
    )

    conversation_key = get_conversation_key(identity.secret_key, identity.public_key)
    payload = encrypt(inner.to_json(), conversation_key)

    outer = build_and_sign(
        kind=KIND_NOTE_WRAPPER,
        created_at=created_at,
        tags=[["d", _random_identifier()], ["k", NOTE_ROUTING_KIND]],
        content=payload,
        identity=identity,
    )

    logger.debug("Created note %s (inner %s)", outer.id, inner.id)
    return outer


def is_note_wrapper(record: Record) -> bool:
    """Check whether a record is an acceptable note wrapper."""
    return record.kind == KIND_NOTE_WRAPPER and bool(record.content)


def open_note(record: Record, identity: Identity) -> OpenedNote:
    """
    Decrypt and verify a note wrapper.

    Args:
        record: The outer Record
        identity: The author identity

    Returns:
        OpenedNote

    Raises:
        DecryptionFailedError: If the wrapper cannot be decrypted
            (AuthenticationFailedError, MalformedPayloadError and
            UnsupportedVersionError are subclasses)
        InvalidInnerRecordError: If the decrypted record is malformed, wrongly
            signed or written by another author
    """
    if record.kind != KIND_NOTE_WRAPPER:
        raise DecryptionFailedError(f"Not a note wrapper: kind {record.kind}")

    conversation_key = get_conversation_key(identity.secret_key, identity.public_key)
    plaintext = decrypt(record.content, conversation_key)

    try:
        inner = Record.from_json(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, InvalidRecordFieldError) as e:
        raise InvalidInnerRecordError("Decrypted note is not a valid record") from e

    if not verify_record(inner):
        raise InvalidInnerRecordError("Inner record signature is invalid")

    if inner.pubkey != identity.public_key_hex:
        raise InvalidInnerRecordError("Inner record was written by another key")

    if inner.kind != KIND_SHORT_NOTE:
        raise InvalidInnerRecordError(f"Unexpected inner record kind: {inner.kind}")

    logger.debug("Opened note %s", record.id)

    return OpenedNote(
        content=inner.content,
        title=inner.get_tag("title") or "",
        note_id=inner.id,
        address=record.get_tag("d") or "",
        created_at=inner.created_at,
    )


# MARK: - Legacy flat notes


def create_legacy_note(
    content: str,
    identity: Identity,
    title: Optional[str] = None,
    created_at: Optional[int] = None,
) -> Record:
    """
    Create a flat kind-1990 note.

    Content and title are encrypted separately; the encrypted title is
    carried in a ``title`` tag. Kept for reading and writing notes stored
    by older clients.
    """
    if not isinstance(content, str) or not content.strip():
        raise InvalidRecordFieldError("Note content cannot be empty")

    if not title:
        title = title_from_content(content)

    conversation_key = get_conversation_key(identity.secret_key, identity.public_key)

    return build_and_sign(
        kind=KIND_LEGACY_NOTE,
        created_at=_now() if created_at is None else created_at,
        tags=[["title", encrypt(title, conversation_key)]],
        content=encrypt(content, conversation_key),
        identity=identity,
    )


def open_legacy_note(record: Record, identity: Identity) -> OpenedNote:
    """Decrypt a flat kind-1990 note."""
    if record.kind != KIND_LEGACY_NOTE:
        raise DecryptionFailedError(f"Not a legacy note: kind {record.kind}")

    if not verify_record(record):
        raise InvalidInnerRecordError("Note signature is invalid")

    conversation_key = get_conversation_key(identity.secret_key, identity.public_key)

    encrypted_title = record.get_tag("title")
    title = ""
    if encrypted_title:
        title = _decode_text(decrypt(encrypted_title, conversation_key))

    return OpenedNote(
        content=_decode_text(decrypt(record.content, conversation_key)),
        title=title,
        note_id=record.id,
        address=record.id,
        created_at=record.created_at,
    )


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayloadError("Decrypted content is not valid UTF-8") from e
