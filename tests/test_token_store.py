"""Tests for the on-disk token cache."""

import json
from datetime import datetime, timedelta, timezone

from subtidy.opensubtitles.token_store import AuthToken, TokenStore

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _store(tmp_path, username="alice", api_key="test-api-key") -> TokenStore:
    return TokenStore(tmp_path / "cache", username, api_key)


def test_save_and_load(tmp_path):
    store = _store(tmp_path)
    store.save(AuthToken("tok-1", "alice", NOW + timedelta(hours=2)))

    loaded = store.load(now=NOW)
    assert loaded == AuthToken("tok-1", "alice", NOW + timedelta(hours=2))


def test_missing_file(tmp_path):
    assert _store(tmp_path).load(now=NOW) is None


def test_expired_token_reads_as_absent(tmp_path):
    store = _store(tmp_path)
    store.save(AuthToken("tok-1", "alice", NOW - timedelta(seconds=1)))
    assert store.load(now=NOW) is None


def test_other_user_reads_as_absent(tmp_path):
    store = _store(tmp_path)
    store.save(AuthToken("tok-1", "bob", NOW + timedelta(hours=2)))
    assert store.load(now=NOW) is None


def test_corrupt_file_reads_as_absent(tmp_path):
    store = _store(tmp_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json")
    assert store.load(now=NOW) is None


def test_naive_expiry_treated_as_utc(tmp_path):
    store = _store(tmp_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps({"username": "alice", "token": "tok", "expires_at": "2024-05-01T13:00:00"})
    )
    loaded = store.load(now=NOW)
    assert loaded is not None
    assert loaded.expires_at.tzinfo is not None


def test_secrets_never_written(tmp_path):
    store = _store(tmp_path)
    store.save(AuthToken("tok-1", "alice", NOW + timedelta(hours=2)))

    text = store.path.read_text()
    assert "test-api-key" not in text
    assert "test-api-key" not in store.path.name
    assert set(json.loads(text)) == {"username", "token", "expires_at"}


def test_key_separates_accounts(tmp_path):
    assert _store(tmp_path).path != _store(tmp_path, api_key="other-key").path
    assert _store(tmp_path).path != _store(tmp_path, username="bob").path


def test_clear(tmp_path):
    store = _store(tmp_path)
    store.save(AuthToken("tok-1", "alice", NOW + timedelta(hours=2)))
    store.clear()
    assert not store.path.exists()
    store.clear()
