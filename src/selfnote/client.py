"""
Note client for selfnote.

The NoteClient ties the key store, the note protocol and the share-link
codec to an external note transport. It never discards unsaved input: a
failed save hands the content back to the caller along with the reason.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .account import KeyStore
from .config import NoteConfig
from .event import Record
from .keys import Identity
from .notes import OpenedNote, create_note, is_note_wrapper, open_note, title_from_content
from .password import unwrap_secret_key_async, wrap_secret_key_async
from .share import (
    create_share_url,
    decode_wrapped,
    encode_wrapped,
    parse_share_url,
    strip_share_param,
)
from .types import (
    EncryptionError,
    InvalidEncodingError,
    InvalidRecordFieldError,
    NoCredentialError,
    TransportError,
)

logger = logging.getLogger(__name__)


class NoteTransport(ABC):
    """Interface for submitting signed note records."""

    @abstractmethod
    async def submit(self, event: dict) -> bool:
        """
        Submit a record in its JSON shape.

        Returns:
            True if the note was saved.

        Raises:
            TransportError: If the submission could not be made.
        """
        ...


class InMemoryNoteTransport(NoteTransport):
    """
    In-memory transport (for testing).

    Accepts records the way the save endpoint does: note wrappers with
    non-empty content.
    """

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.saved: List[dict] = []

    async def submit(self, event: dict) -> bool:
        if not self.accept:
            return False

        try:
            record = Record.from_dict(event)
        except InvalidRecordFieldError:
            return False

        if not is_note_wrapper(record):
            return False

        self.saved.append(event)
        return True


class SaveStatus(Enum):
    """Outcome of a save."""
    SAVED = "saved"
    NO_CREDENTIAL = "no_credential"
    FAILED = "failed"


@dataclass
class SaveResult:
    """Result of saving a note. On failure, ``content`` holds the unsaved input."""
    status: SaveStatus
    content: str
    title: Optional[str] = None
    record: Optional[Record] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SaveStatus.SAVED


class NoteClient:
    """
    High-level client for encrypted notes to self.

    Example usage:
        ```python
        client = NoteClient(
            keystore=KeyStore(FileCredentialStore()),
            transport=my_transport,
        )

        result = await client.save_note("Buy milk")
        if not result.ok:
            show_error(result.error)  # result.content still holds the input

        link = await client.export_share_link("password", "https://notes.example/")
        ```
    """

    def __init__(
        self,
        keystore: KeyStore,
        transport: NoteTransport,
        config: Optional[NoteConfig] = None,
    ) -> None:
        """
        Initialize the note client.

        Args:
            keystore: Holds the active identity.
            transport: Submits signed records.
            config: Optional configuration (default: NoteConfig()).
        """
        self.keystore = keystore
        self.transport = transport
        self.config = config or NoteConfig()

    @property
    def identity(self) -> Optional[Identity]:
        """The active identity, or None if no credential exists."""
        return self.keystore.current()

    # MARK: - Notes

    async def save_note(self, content: str, title: Optional[str] = None) -> SaveResult:
        """
        Encrypt, sign and submit a note.

        Args:
            content: Note text.
            title: Optional title (generated from the content when absent).

        Returns:
            SaveResult. Save failures are reported in the result.

        Raises:
            InvalidEncodingError: If the stored credential cannot be decoded.
        """
        identity = self.keystore.current()
        if identity is None:
            return SaveResult(
                status=SaveStatus.NO_CREDENTIAL,
                content=content,
                title=title,
                error=str(NoCredentialError()),
            )

        if not title:
            title = title_from_content(
                content, self.config.title_max_length, self.config.title_max_words
            )

        try:
            record = create_note(content, identity, title=title)
        except (InvalidRecordFieldError, EncryptionError) as e:
            return SaveResult(status=SaveStatus.FAILED, content=content, title=title, error=str(e))

        try:
            saved = await self.transport.submit(record.to_dict())
        except TransportError as e:
            logger.warning("Note submission failed: %s", e)
            saved = False

        if not saved:
            return SaveResult(
                status=SaveStatus.FAILED,
                content=content,
                title=title,
                record=record,
                error="Failed to save note. Please try again.",
            )

        logger.info("Saved note %s", record.id)
        return SaveResult(status=SaveStatus.SAVED, content=content, title=title, record=record)

    def open_note(self, record: Record) -> OpenedNote:
        """
        Decrypt a note wrapper with the active identity.

        Raises:
            NoCredentialError: If no credential is stored.
            DecryptionFailedError: If the wrapper cannot be decrypted.
            InvalidInnerRecordError: If the inner record is invalid.
        """
        return open_note(record, self.keystore.require())

    # MARK: - Key sharing

    async def export_share_link(self, password: str, base_url: Optional[str] = None) -> str:
        """
        Wrap the active secret key for sharing.

        The scrypt work runs on a worker thread.

        Args:
            password: Password protecting the shared key.
            base_url: If given, return a full URL carrying the key.

        Returns:
            The URL-safe shared key, or a URL carrying it.
        """
        identity = self.keystore.require()
        wrapped = await wrap_secret_key_async(
            identity.secret_key,
            password,
            self.config.scrypt_log_n,
            self.config.key_security,
        )

        value = encode_wrapped(wrapped)
        if base_url is None:
            return value
        return create_share_url(base_url, value, self.config.share_param)

    async def import_share_link(self, value: str, password: str) -> Identity:
        """
        Unwrap a shared key and make it the active identity.

        Raises:
            InvalidEncodingError: If the value is malformed.
            AuthenticationFailedError: If the password is wrong.
            UnsupportedVersionError: If the wrapped key version is unknown.
        """
        wrapped = decode_wrapped(value)
        secret_key = await unwrap_secret_key_async(wrapped, password)
        return self.keystore.import_secret_key(secret_key)

    async def import_from_url(self, url: str, password: str) -> Tuple[Identity, str]:
        """
        Import the shared key carried by a URL.

        Returns:
            Tuple of (identity, url with the key parameter removed).

        Raises:
            InvalidEncodingError: If the URL carries no shared key.
        """
        value = parse_share_url(url, self.config.share_param)
        if value is None:
            raise InvalidEncodingError("URL does not carry a shared key")

        identity = await self.import_share_link(value, password)
        return identity, strip_share_param(url, self.config.share_param)
