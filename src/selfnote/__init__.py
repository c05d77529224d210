"""
selfnote - Encrypted notes to self on a secp256k1 identity

Python implementation of the note protocol using secp256k1 Schnorr
signatures, NIP-44 style payload encryption and scrypt-wrapped keys.
"""

from .keys import Identity, generate_identity, generate_secret_key, get_public_key
from .encoding import (
    encode_secret_key,
    decode_secret_key,
    encode_public_key,
    decode_public_key,
)
from .crypto import (
    get_conversation_key,
    calc_padded_len,
    encrypt,
    decrypt,
    encrypt_text,
    decrypt_text,
)
from .envelope import EncryptedPayload, encode_payload, decode_payload, is_encrypted_payload
from .password import (
    PasswordWrappedKey,
    wrap_secret_key,
    unwrap_secret_key,
    encrypt_secret_key,
    decrypt_secret_key,
    wrap_secret_key_async,
    unwrap_secret_key_async,
)
from .event import (
    Record,
    canonicalize,
    identify,
    sign,
    verify,
    build_and_sign,
    verify_record,
)
from .notes import (
    OpenedNote,
    title_from_content,
    create_note,
    open_note,
    is_note_wrapper,
    create_legacy_note,
    open_legacy_note,
)
from .share import (
    encode_shareable,
    decode_shareable,
    create_share_url,
    parse_share_url,
    strip_share_param,
)
from .storage import CredentialStore, InMemoryCredentialStore, FileCredentialStore
from .account import KeyStore
from .config import NoteConfig
from .client import (
    NoteTransport,
    InMemoryNoteTransport,
    SaveStatus,
    SaveResult,
    NoteClient,
)
from .types import (
    KIND_SHORT_NOTE,
    KIND_LEGACY_NOTE,
    KIND_NOTE_WRAPPER,
    SelfNoteError,
    InvalidEncodingError,
    InvalidKeyMaterialError,
    EncryptionError,
    DecryptionFailedError,
    AuthenticationFailedError,
    UnsupportedVersionError,
    MalformedPayloadError,
    InvalidRecordFieldError,
    InvalidInnerRecordError,
    NoCredentialError,
    StorageError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "Identity",
    "generate_secret_key",
    "generate_identity",
    "get_public_key",
    # Encoding
    "encode_secret_key",
    "decode_secret_key",
    "encode_public_key",
    "decode_public_key",
    # Crypto
    "get_conversation_key",
    "calc_padded_len",
    "encrypt",
    "decrypt",
    "encrypt_text",
    "decrypt_text",
    # Envelope
    "EncryptedPayload",
    "encode_payload",
    "decode_payload",
    "is_encrypted_payload",
    # Password
    "PasswordWrappedKey",
    "wrap_secret_key",
    "unwrap_secret_key",
    "encrypt_secret_key",
    "decrypt_secret_key",
    "wrap_secret_key_async",
    "unwrap_secret_key_async",
    # Events
    "Record",
    "canonicalize",
    "identify",
    "sign",
    "verify",
    "build_and_sign",
    "verify_record",
    # Notes
    "OpenedNote",
    "title_from_content",
    "create_note",
    "open_note",
    "is_note_wrapper",
    "create_legacy_note",
    "open_legacy_note",
    # Share links
    "encode_shareable",
    "decode_shareable",
    "create_share_url",
    "parse_share_url",
    "strip_share_param",
    # Storage
    "CredentialStore",
    "InMemoryCredentialStore",
    "FileCredentialStore",
    "KeyStore",
    # Config
    "NoteConfig",
    # Client
    "NoteTransport",
    "InMemoryNoteTransport",
    "SaveStatus",
    "SaveResult",
    "NoteClient",
    # Constants
    "KIND_SHORT_NOTE",
    "KIND_LEGACY_NOTE",
    "KIND_NOTE_WRAPPER",
    # Errors
    "SelfNoteError",
    "InvalidEncodingError",
    "InvalidKeyMaterialError",
    "EncryptionError",
    "DecryptionFailedError",
    "AuthenticationFailedError",
    "UnsupportedVersionError",
    "MalformedPayloadError",
    "InvalidRecordFieldError",
    "InvalidInnerRecordError",
    "NoCredentialError",
    "StorageError",
    "TransportError",
]
