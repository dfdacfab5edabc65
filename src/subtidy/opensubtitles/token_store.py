"""Per-user token cache shared across runs.

One JSON file per (username, API key) pair under the cache directory:
{"username": ..., "token": ..., "expires_at": "<ISO-8601>"}. The file
name is derived from a hash of both values; neither the API key nor the
password is ever written. Unreadable, mismatched or expired entries read
as absent, which simply leads to a fresh login.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from rich.markup import escape

from subtidy.utils.cache import atomic_write_text, cache_key
from subtidy.utils.console import console


@dataclass(frozen=True)
class AuthToken:
    token: str
    username: str
    expires_at: datetime

    def is_valid(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at


class TokenStore:
    def __init__(self, cache_dir: Path, username: str, api_key: str) -> None:
        self.username = username
        self.path = Path(cache_dir) / f"token-{cache_key(username, api_key)}.json"

    def load(self, now: datetime | None = None) -> AuthToken | None:
        """Return the cached token if present, well-formed and unexpired."""
        if not self.path.is_file():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            token = AuthToken(
                token=str(data["token"]),
                username=str(data["username"]),
                expires_at=datetime.fromisoformat(data["expires_at"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            console.print(f"[yellow]Ignoring unreadable token cache:[/yellow] {escape(str(e))}")
            return None

        if token.expires_at.tzinfo is None:
            expires_at = token.expires_at.replace(tzinfo=timezone.utc)
            token = AuthToken(token.token, token.username, expires_at)
        if token.username != self.username or not token.token:
            return None
        if not token.is_valid(now):
            return None
        return token

    def save(self, token: AuthToken) -> None:
        data = {
            "username": token.username,
            "token": token.token,
            "expires_at": token.expires_at.isoformat(),
        }
        atomic_write_text(self.path, json.dumps(data, indent=2))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
