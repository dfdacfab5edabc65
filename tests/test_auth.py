"""Tests for token reuse, re-authentication and logout."""

from datetime import datetime, timedelta, timezone

import pytest

from subtidy.core.errors import AuthenticationError
from subtidy.opensubtitles.auth import Authenticator, AuthState
from subtidy.opensubtitles.client import OpenSubtitlesClient
from subtidy.opensubtitles.token_store import AuthToken, TokenStore


def _authenticator(config, session, sleeps, tmp_path) -> Authenticator:
    client = OpenSubtitlesClient(config, session=session, sleep=sleeps.append)
    store = TokenStore(tmp_path / "cache", config.username, config.api_key)
    return Authenticator(client, store, config)


def test_cached_token_needs_no_network(os_config, session, sleeps, tmp_path):
    auth = _authenticator(os_config, session, sleeps, tmp_path)
    expires = datetime.now(timezone.utc) + timedelta(hours=2)
    auth.store.save(AuthToken("cached-tok", "alice", expires))

    assert auth.authenticate() == "cached-tok"
    assert auth.client.token == "cached-tok"
    assert auth.cached

    assert auth.close() is AuthState.TOKEN_KEPT
    assert session.calls == []
    assert auth.store.load() is not None


def test_fresh_login_is_cached(os_config, session, sleeps, tmp_path):
    session.add("POST", "/login", json_data={"token": "new-tok"})
    auth = _authenticator(os_config, session, sleeps, tmp_path)

    assert auth.authenticate() == "new-tok"
    assert auth.state is AuthState.AUTHENTICATED
    assert auth.fresh

    stored = auth.store.load()
    assert stored.token == "new-tok"
    remaining = stored.expires_at - datetime.now(timezone.utc)
    assert timedelta(hours=22) < remaining <= timedelta(hours=23)


def test_authenticate_twice_logs_in_once(os_config, session, sleeps, tmp_path):
    session.add("POST", "/login", json_data={"token": "new-tok"})
    auth = _authenticator(os_config, session, sleeps, tmp_path)
    auth.authenticate()
    auth.authenticate()
    assert session.count("POST", "/login") == 1


def test_fresh_token_kept_by_default(os_config, session, sleeps, tmp_path):
    session.add("POST", "/login", json_data={"token": "new-tok"})
    auth = _authenticator(os_config, session, sleeps, tmp_path)
    auth.authenticate()

    assert auth.close() is AuthState.TOKEN_KEPT
    assert session.count("DELETE", "/logout") == 0


def test_fresh_token_logged_out_when_not_kept(os_config, session, sleeps, tmp_path):
    config = os_config.model_copy(update={"keep_session": False})
    session.add("POST", "/login", json_data={"token": "new-tok"})
    session.add("DELETE", "/logout", json_data={"status": 200})
    auth = _authenticator(config, session, sleeps, tmp_path)
    auth.authenticate()

    assert auth.close() is AuthState.LOGGED_OUT
    assert session.count("DELETE", "/logout") == 1
    assert not auth.store.path.exists()
    assert auth.client.token is None


def test_cached_token_never_logged_out(os_config, session, sleeps, tmp_path):
    config = os_config.model_copy(update={"keep_session": False})
    auth = _authenticator(config, session, sleeps, tmp_path)
    expires_at = datetime.now(timezone.utc) + timedelta(hours=2)
    auth.store.save(AuthToken("cached-tok", "alice", expires_at))
    auth.authenticate()

    assert auth.close() is AuthState.TOKEN_KEPT
    assert session.calls == []


def test_failed_logout_still_ends_session(os_config, session, sleeps, tmp_path):
    config = os_config.model_copy(update={"keep_session": False})
    session.add("POST", "/login", json_data={"token": "new-tok"})
    session.add("DELETE", "/logout", status=500, text="oops")
    auth = _authenticator(config, session, sleeps, tmp_path)
    auth.authenticate()

    assert auth.close() is AuthState.LOGGED_OUT


def test_close_without_token(os_config, session, sleeps, tmp_path):
    auth = _authenticator(os_config, session, sleeps, tmp_path)
    assert auth.close() is AuthState.NO_TOKEN


def test_rejected_credentials(os_config, session, sleeps, tmp_path):
    session.add("POST", "/login", status=401, json_data={"message": "invalid"})
    auth = _authenticator(os_config, session, sleeps, tmp_path)
    with pytest.raises(AuthenticationError):
        auth.authenticate()
    assert auth.state is AuthState.NO_TOKEN
    assert not auth.store.path.exists()


def test_reauthenticate_replaces_stale_cache(os_config, session, sleeps, tmp_path):
    session.add("POST", "/login", json_data={"token": "new-tok"})
    auth = _authenticator(os_config, session, sleeps, tmp_path)
    expires_at = datetime.now(timezone.utc) + timedelta(hours=2)
    auth.store.save(AuthToken("stale-tok", "alice", expires_at))
    auth.authenticate()

    assert auth.reauthenticate() == "new-tok"
    assert auth.store.load().token == "new-tok"
    assert auth.fresh


def test_unwritable_cache_keeps_token_for_the_run(os_config, session, sleeps, tmp_path):
    (tmp_path / "cache").write_text("not a directory")
    session.add("POST", "/login", json_data={"token": "new-tok"})
    auth = _authenticator(os_config, session, sleeps, tmp_path)

    assert auth.authenticate() == "new-tok"
    assert auth.state is AuthState.AUTHENTICATED
    assert auth.client.token == "new-tok"
    assert auth.authenticate() == "new-tok"
    assert session.count("POST", "/login") == 1


def test_unwritable_cache_survives_reauth_and_logout(os_config, session, sleeps, tmp_path):
    (tmp_path / "cache").write_text("not a directory")
    config = os_config.model_copy(update={"keep_session": False})
    session.add("POST", "/login", json_data={"token": "new-tok"})
    session.add("DELETE", "/logout", json_data={"status": 200})
    auth = _authenticator(config, session, sleeps, tmp_path)
    auth.authenticate()

    assert auth.reauthenticate() == "new-tok"
    assert auth.close() is AuthState.LOGGED_OUT
    assert session.count("DELETE", "/logout") == 1
