"""
Credential storage for selfnote.

The key store only needs a single-value contract: get, set and remove the
encoded secret key (an ``nsec1...`` string). Implementations decide where
it lives.
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .types import StorageError

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Interface for persisting the encoded secret key."""

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the stored credential, or None if there is none."""
        ...

    @abstractmethod
    def set(self, credential: str) -> None:
        """Store the credential, replacing any previous one."""
        ...

    @abstractmethod
    def remove(self) -> None:
        """Remove the stored credential."""
        ...


class InMemoryCredentialStore(CredentialStore):
    """
    In-memory implementation of CredentialStore (for testing).

    WARNING: The credential is lost when the process exits.
    """

    def __init__(self, credential: Optional[str] = None) -> None:
        self._credential = credential
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        with self._lock:
            return self._credential

    def set(self, credential: str) -> None:
        with self._lock:
            self._credential = credential

    def remove(self) -> None:
        with self._lock:
            self._credential = None


class FileCredentialStore(CredentialStore):
    """
    File-based credential storage.

    The credential is written to a single file with 600 permissions inside
    a 700 directory (default ``~/.selfnote/credential``). Writes go through
    a temporary file and an atomic rename so readers never see a partial
    credential.
    """

    # Directory name for credential storage
    DIRECTORY_NAME = ".selfnote"

    # File name for the credential
    FILE_NAME = "credential"

    def __init__(self, path: Optional[Path] = None) -> None:
        """
        Create a new file credential store.

        Args:
            path: Optional credential file path.
        """
        self._path = Path(path) if path is not None else Path.home() / self.DIRECTORY_NAME / self.FILE_NAME
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Optional[str]:
        with self._lock:
            if not self._path.exists():
                return None
            try:
                value = self._path.read_text(encoding="utf-8").strip()
            except OSError as e:
                raise StorageError(f"Failed to read credential file: {self._path}") from e
            return value or None

    def set(self, credential: str) -> None:
        with self._lock:
            self._ensure_directory()
            temp_path = self._path.with_name(self._path.name + ".tmp")
            try:
                # Create with restrictive permissions before any secret is written
                fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(credential)
                os.replace(temp_path, self._path)
            except OSError as e:
                raise StorageError(f"Failed to write credential file: {self._path}") from e
            self._set_restrictive_permissions(self._path)
            logger.debug("Stored credential at %s", self._path)

    def remove(self) -> None:
        with self._lock:
            try:
                self._path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StorageError(f"Failed to remove credential file: {self._path}") from e

    def _ensure_directory(self) -> Path:
        """Ensure the credential directory exists."""
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        try:
            directory.chmod(0o700)
        except OSError:
            pass  # Ignore permission errors on some platforms
        return directory

    def _set_restrictive_permissions(self, file_path: Path) -> None:
        """Set restrictive file permissions (600 on Unix)."""
        try:
            file_path.chmod(0o600)
        except OSError:
            pass  # Ignore permission errors on some platforms
