"""
Identity lifecycle for selfnote.

A KeyStore owns the active Identity for a session. The identity is loaded
from a CredentialStore, generated on first use, imported from an encoded or
shared key, or reset. Identities are immutable, so replacing one is a single
reference swap under a lock and readers never see a half-updated keypair.
"""

import logging
import threading
from typing import Optional

from .config import NoteConfig
from .encoding import decode_secret_key, encode_secret_key
from .keys import Identity
from .storage import CredentialStore, FileCredentialStore
from .types import NoCredentialError

logger = logging.getLogger(__name__)


class KeyStore:
    """
    Holds the active identity and keeps it in sync with a credential store.

    Example usage:
        ```python
        keystore = KeyStore(InMemoryCredentialStore())

        identity = keystore.active_identity()   # generates and persists
        same = keystore.active_identity()       # same identity

        keystore.import_encoded("nsec1...")     # replace it
        keystore.reset()                        # forget it
        ```
    """

    def __init__(self, credentials: CredentialStore) -> None:
        """
        Initialize the key store.

        Args:
            credentials: Where the encoded secret key is persisted.
        """
        self._credentials = credentials
        self._identity: Optional[Identity] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: NoteConfig) -> "KeyStore":
        """Create a key store backed by the configured credential file."""
        return cls(FileCredentialStore(config.credential_path))

    def _load(self) -> Optional[Identity]:
        """Load the identity from the credential store (lock held)."""
        if self._identity is not None:
            return self._identity

        encoded = self._credentials.get()
        if encoded is None:
            return None

        # A corrupt credential raises rather than being replaced
        identity = Identity.from_secret_key(decode_secret_key(encoded))
        self._identity = identity
        logger.info("Loaded existing key %s", identity.public_key_hex)
        return identity

    def active_identity(self) -> Identity:
        """
        Return the session identity, generating and persisting one if needed.

        Repeated calls return the same identity.

        Returns:
            The active Identity.

        Raises:
            InvalidEncodingError: If the stored credential cannot be decoded.
        """
        with self._lock:
            identity = self._load()
            if identity is not None:
                return identity

            identity = Identity.generate()
            self._credentials.set(encode_secret_key(identity.secret_key))
            self._identity = identity
            logger.info("Generated new key %s", identity.public_key_hex)
            return identity

    def current(self) -> Optional[Identity]:
        """
        Return the identity if a credential exists, without generating one.

        Returns:
            The Identity, or None when no credential is stored.
        """
        with self._lock:
            return self._load()

    def require(self) -> Identity:
        """
        Return the identity or raise.

        Raises:
            NoCredentialError: If no credential is stored.
        """
        identity = self.current()
        if identity is None:
            raise NoCredentialError()
        return identity

    def import_secret_key(self, secret_key: bytes) -> Identity:
        """
        Replace the identity with one built from a raw secret key.

        Raises:
            InvalidKeyMaterialError: If the secret key is invalid.
        """
        identity = Identity.from_secret_key(secret_key)
        encoded = encode_secret_key(identity.secret_key)

        with self._lock:
            self._credentials.set(encoded)
            self._identity = identity

        logger.info("Imported key %s", identity.public_key_hex)
        return identity

    def import_encoded(self, encoded: str) -> Identity:
        """
        Replace the identity with one decoded from an nsec string.

        Raises:
            InvalidEncodingError: If the string is not a valid nsec.
        """
        return self.import_secret_key(decode_secret_key(encoded))

    def export_encoded(self) -> str:
        """
        Return the active identity's secret key as an nsec string.

        Raises:
            NoCredentialError: If no credential is stored.
        """
        return encode_secret_key(self.require().secret_key)

    def reset(self) -> None:
        """Remove the stored credential and forget the identity."""
        with self._lock:
            self._credentials.remove()
            self._identity = None
        logger.info("Reset key")
