"""Tests for the note client."""

import asyncio

import pytest
from selfnote.account import KeyStore
from selfnote.client import InMemoryNoteTransport, NoteClient, NoteTransport, SaveStatus
from selfnote.config import NoteConfig
from selfnote.event import Record
from selfnote.notes import create_note
from selfnote.storage import InMemoryCredentialStore
from selfnote.types import (
    KIND_NOTE_WRAPPER,
    AuthenticationFailedError,
    InvalidEncodingError,
    NoCredentialError,
    TransportError,
)
from .test_vectors import NSEC, TEST_LOG_N


class FailingTransport(NoteTransport):
    """Transport whose submissions always raise."""

    async def submit(self, event: dict) -> bool:
        raise TransportError("connection refused")


@pytest.fixture
def config():
    return NoteConfig(scrypt_log_n=TEST_LOG_N)


@pytest.fixture
def keystore():
    return KeyStore(InMemoryCredentialStore(NSEC))


@pytest.fixture
def transport():
    return InMemoryNoteTransport()


@pytest.fixture
def client(keystore, transport, config):
    return NoteClient(keystore, transport, config)


class TestSaveNote:
    """Test saving notes."""

    def test_save(self, client, transport) -> None:
        result = asyncio.run(client.save_note("Buy milk"))

        assert result.ok
        assert result.status == SaveStatus.SAVED
        assert result.title == "Buy milk"
        assert result.error is None
        assert len(transport.saved) == 1

        saved = transport.saved[0]
        assert saved["kind"] == KIND_NOTE_WRAPPER
        assert saved["id"] == result.record.id

    def test_saved_note_opens(self, client, transport) -> None:
        asyncio.run(client.save_note("Remember the keys", title="Keys"))

        opened = client.open_note(Record.from_dict(transport.saved[0]))
        assert opened.content == "Remember the keys"
        assert opened.title == "Keys"

    def test_title_uses_config(self, keystore, transport) -> None:
        client = NoteClient(keystore, transport, NoteConfig(title_max_length=8, title_max_words=2))
        result = asyncio.run(client.save_note("one two three four"))

        assert result.title == "one two"

    def test_no_credential(self, transport, config) -> None:
        client = NoteClient(KeyStore(InMemoryCredentialStore()), transport, config)
        result = asyncio.run(client.save_note("unsaved thought"))

        assert result.status == SaveStatus.NO_CREDENTIAL
        assert result.content == "unsaved thought"
        assert not transport.saved

    def test_rejected_keeps_content(self, keystore, config) -> None:
        transport = InMemoryNoteTransport(accept=False)
        client = NoteClient(keystore, transport, config)
        result = asyncio.run(client.save_note("do not lose me"))

        assert result.status == SaveStatus.FAILED
        assert result.content == "do not lose me"
        assert result.error == "Failed to save note. Please try again."
        assert result.record is not None

    def test_transport_error_keeps_content(self, keystore, config) -> None:
        client = NoteClient(keystore, FailingTransport(), config)
        result = asyncio.run(client.save_note("do not lose me"))

        assert result.status == SaveStatus.FAILED
        assert result.content == "do not lose me"

    def test_empty_content(self, client, transport) -> None:
        result = asyncio.run(client.save_note("   "))

        assert result.status == SaveStatus.FAILED
        assert result.content == "   "
        assert not transport.saved

    def test_open_without_credential(self, keystore, transport, config) -> None:
        record = create_note("x", keystore.require())
        client = NoteClient(KeyStore(InMemoryCredentialStore()), transport, config)

        with pytest.raises(NoCredentialError):
            client.open_note(record)


class TestInMemoryNoteTransport:
    """Test the in-memory transport."""

    def test_rejects_non_wrappers(self, transport) -> None:
        assert not asyncio.run(transport.submit({"kind": 1}))
        assert not transport.saved


class TestShareLinks:
    """Test exporting and importing shared keys."""

    def test_export_import(self, client, keystore, transport, config) -> None:
        identity = keystore.require()
        value = asyncio.run(client.export_share_link("hunter2"))

        other = NoteClient(KeyStore(InMemoryCredentialStore()), transport, config)
        imported = asyncio.run(other.import_share_link(value, "hunter2"))

        assert imported == identity
        assert other.identity == identity

    def test_export_url_and_import(self, client, keystore, transport, config) -> None:
        url = asyncio.run(client.export_share_link("hunter2", "https://notes.example/?theme=dark"))
        assert url.startswith("https://notes.example/?")

        other = NoteClient(KeyStore(InMemoryCredentialStore()), transport, config)
        identity, clean_url = asyncio.run(other.import_from_url(url, "hunter2"))

        assert identity == keystore.require()
        assert clean_url == "https://notes.example/?theme=dark"

    def test_wrong_password(self, client, transport, config) -> None:
        value = asyncio.run(client.export_share_link("hunter2"))
        other_keystore = KeyStore(InMemoryCredentialStore())
        other = NoteClient(other_keystore, transport, config)

        with pytest.raises(AuthenticationFailedError):
            asyncio.run(other.import_share_link(value, "wrong"))

        assert other_keystore.current() is None

    def test_url_without_key(self, client) -> None:
        with pytest.raises(InvalidEncodingError):
            asyncio.run(client.import_from_url("https://notes.example/", "hunter2"))

    def test_export_without_credential(self, transport, config) -> None:
        client = NoteClient(KeyStore(InMemoryCredentialStore()), transport, config)

        with pytest.raises(NoCredentialError):
            asyncio.run(client.export_share_link("hunter2"))
