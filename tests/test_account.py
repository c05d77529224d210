"""Tests for the key store and credential storage."""

import os
import stat
import sys
import threading

import pytest
from selfnote.account import KeyStore
from selfnote.config import NoteConfig
from selfnote.encoding import decode_secret_key, encode_secret_key
from selfnote.keys import generate_secret_key
from selfnote.storage import FileCredentialStore, InMemoryCredentialStore
from selfnote.types import (
    InvalidEncodingError,
    InvalidKeyMaterialError,
    NoCredentialError,
)
from .test_vectors import NSEC, NSEC_HEX


class CountingCredentialStore(InMemoryCredentialStore):
    """Records how many times a credential is written."""

    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def set(self, credential: str) -> None:
        self.writes += 1
        super().set(credential)


class TestInMemoryCredentialStore:
    """Test InMemoryCredentialStore."""

    def test_set_get_remove(self) -> None:
        store = InMemoryCredentialStore()
        assert store.get() is None

        store.set(NSEC)
        assert store.get() == NSEC

        store.remove()
        assert store.get() is None

    def test_initial_value(self) -> None:
        assert InMemoryCredentialStore(NSEC).get() == NSEC


class TestFileCredentialStore:
    """Test FileCredentialStore."""

    @pytest.fixture
    def store(self, tmp_path):
        return FileCredentialStore(tmp_path / "keys" / "credential")

    def test_missing_file(self, store) -> None:
        assert store.get() is None

    def test_set_get(self, store) -> None:
        store.set(NSEC)
        assert store.get() == NSEC
        assert store.path.read_text(encoding="utf-8") == NSEC

    def test_overwrite(self, store) -> None:
        store.set(NSEC)
        other = encode_secret_key(generate_secret_key())
        store.set(other)
        assert store.get() == other

    def test_no_temp_file_left(self, store) -> None:
        store.set(NSEC)
        assert [p.name for p in store.path.parent.iterdir()] == ["credential"]

    def test_remove(self, store) -> None:
        store.set(NSEC)
        store.remove()
        assert store.get() is None

        # Removing twice is fine
        store.remove()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_permissions(self, store) -> None:
        store.set(NSEC)

        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600
        assert stat.S_IMODE(os.stat(store.path.parent).st_mode) == 0o700

    def test_default_path(self) -> None:
        store = FileCredentialStore()
        assert store.path.name == "credential"
        assert store.path.parent.name == ".selfnote"


class TestKeyStore:
    """Test the identity lifecycle."""

    @pytest.fixture
    def credentials(self):
        return InMemoryCredentialStore()

    @pytest.fixture
    def keystore(self, credentials):
        return KeyStore(credentials)

    def test_current_without_credential(self, keystore) -> None:
        assert keystore.current() is None

    def test_require_without_credential(self, keystore) -> None:
        with pytest.raises(NoCredentialError):
            keystore.require()

        with pytest.raises(NoCredentialError):
            keystore.export_encoded()

    def test_active_identity_is_stable(self, keystore, credentials) -> None:
        first = keystore.active_identity()
        second = keystore.active_identity()

        assert first == second
        assert decode_secret_key(credentials.get()) == first.secret_key

    def test_persisted_across_instances(self, credentials) -> None:
        first = KeyStore(credentials).active_identity()
        assert KeyStore(credentials).active_identity() == first

    def test_loads_existing_credential(self) -> None:
        keystore = KeyStore(InMemoryCredentialStore(NSEC))

        identity = keystore.active_identity()
        assert identity.secret_key.hex() == NSEC_HEX
        assert keystore.export_encoded() == NSEC

    def test_import_encoded(self, keystore, credentials) -> None:
        keystore.active_identity()
        identity = keystore.import_encoded(NSEC)

        assert identity.secret_key.hex() == NSEC_HEX
        assert keystore.require() == identity
        assert credentials.get() == NSEC

    def test_import_invalid(self, keystore, credentials) -> None:
        with pytest.raises(InvalidEncodingError):
            keystore.import_encoded("nsec1invalid")

        with pytest.raises(InvalidKeyMaterialError):
            keystore.import_secret_key(bytes(32))

        assert credentials.get() is None

    def test_reset(self, keystore, credentials) -> None:
        keystore.active_identity()
        keystore.reset()

        assert credentials.get() is None
        assert keystore.current() is None

    def test_reset_then_generate(self, keystore) -> None:
        first = keystore.active_identity()
        keystore.reset()
        assert keystore.active_identity() != first

    def test_corrupt_credential_is_kept(self) -> None:
        credentials = InMemoryCredentialStore("garbage")
        keystore = KeyStore(credentials)

        with pytest.raises(InvalidEncodingError):
            keystore.active_identity()

        assert credentials.get() == "garbage"

    def test_with_file_store(self, tmp_path) -> None:
        path = tmp_path / "credential"
        identity = KeyStore(FileCredentialStore(path)).active_identity()

        assert KeyStore(FileCredentialStore(path)).current() == identity

    def test_from_config(self, tmp_path) -> None:
        path = tmp_path / "credential"
        keystore = KeyStore.from_config(NoteConfig(credential_path=path))

        identity = keystore.active_identity()
        assert decode_secret_key(path.read_text(encoding="utf-8")) == identity.secret_key

    def test_concurrent_callers_share_one_identity(self) -> None:
        credentials = CountingCredentialStore()
        keystore = KeyStore(credentials)
        barrier = threading.Barrier(8)
        results = []
        results_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            identity = keystore.active_identity()
            with results_lock:
                results.append(identity)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert len(set(results)) == 1
        assert credentials.writes == 1
