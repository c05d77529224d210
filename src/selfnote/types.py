"""Type definitions and protocol constants for selfnote."""


# Curve constants (secp256k1)
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECRET_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 32  # x-only
SIGNATURE_SIZE = 64
EVENT_ID_SIZE = 32

# Bech32 human-readable prefixes
NSEC_PREFIX = "nsec"
NPUB_PREFIX = "npub"
NCRYPTSEC_PREFIX = "ncryptsec"

# Authenticated cipher constants
PAYLOAD_VERSION = 0x02
CONVERSATION_KEY_SALT = b"nip44-v2"
CONVERSATION_KEY_SIZE = 32
PAYLOAD_NONCE_SIZE = 32
MAC_SIZE = 32
MESSAGE_KEYS_SIZE = 76  # chacha key (32) + chacha nonce (12) + hmac key (32)
MIN_PLAINTEXT_SIZE = 0
MAX_PLAINTEXT_SIZE = 65535
MIN_PAYLOAD_SIZE = 99  # version + nonce + (2 + 32) + mac
MAX_PAYLOAD_SIZE = 65603
MIN_ENCODED_PAYLOAD_SIZE = 132
MAX_ENCODED_PAYLOAD_SIZE = 87472

# Password key wrap constants
WRAP_VERSION = 0x02
WRAP_SALT_SIZE = 16
WRAP_NONCE_SIZE = 24
WRAP_CIPHERTEXT_SIZE = 48  # 32-byte key + 16-byte tag
WRAPPED_KEY_SIZE = 91
DEFAULT_SCRYPT_LOG_N = 16
MAX_SCRYPT_LOG_N = 22

# Key security byte, authenticated alongside the wrapped key
KEY_SECURITY_INSECURE = 0x00
KEY_SECURITY_SECURE = 0x01
KEY_SECURITY_UNKNOWN = 0x02

# Event kinds
KIND_SHORT_NOTE = 1
KIND_LEGACY_NOTE = 1990
KIND_NOTE_WRAPPER = 31234
NOTE_ROUTING_KIND = "23"


# Exception types
class SelfNoteError(Exception):
    """Base exception for selfnote errors."""
    pass


class InvalidEncodingError(SelfNoteError):
    """Malformed or checksum-failed text encoding."""
    pass


class InvalidKeyMaterialError(SelfNoteError):
    """Off-curve, out-of-range, or wrongly sized key input."""
    pass


class EncryptionError(SelfNoteError):
    """Encryption failed."""
    pass


class DecryptionFailedError(SelfNoteError):
    """Decryption failed."""
    pass


class AuthenticationFailedError(DecryptionFailedError):
    """MAC or tag mismatch: wrong key, wrong password, or tampered data."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class UnsupportedVersionError(DecryptionFailedError):
    """Unknown payload version."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Unsupported version: {version}")
        self.version = version


class MalformedPayloadError(DecryptionFailedError):
    """Payload is structurally invalid."""
    pass


class InvalidRecordFieldError(SelfNoteError):
    """A record field cannot be serialized canonically."""
    pass


class InvalidInnerRecordError(SelfNoteError):
    """Decrypted note content is not a valid signed record."""
    pass


class NoCredentialError(SelfNoteError):
    """No identity is available."""

    def __init__(self) -> None:
        super().__init__("No credential found. Generate or import a key first.")


class StorageError(SelfNoteError):
    """Storage operation failed."""
    pass


class TransportError(SelfNoteError):
    """Note submission failed."""
    pass
