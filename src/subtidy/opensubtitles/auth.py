"""Login state for a run: cached token reuse, re-authentication and logout."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from rich.markup import escape

from subtidy.core.config import OpenSubtitlesConfig
from subtidy.core.errors import ApiError
from subtidy.opensubtitles.client import OpenSubtitlesClient
from subtidy.opensubtitles.token_store import AuthToken, TokenStore
from subtidy.utils.console import console


class AuthState(Enum):
    NO_TOKEN = "no_token"
    AUTHENTICATED = "authenticated"
    LOGGED_OUT = "logged_out"
    TOKEN_KEPT = "token_kept"


class Authenticator:
    """Owns the bearer token for one run.

    A token read from the cache is used as-is and never logged out, so it
    stays valid for later runs. A token obtained by logging in during this
    run is "fresh"; it is cached, and logged out at the end only when the
    configuration asks not to keep sessions.
    """

    def __init__(
        self,
        client: OpenSubtitlesClient,
        store: TokenStore,
        config: OpenSubtitlesConfig,
    ) -> None:
        self.client = client
        self.store = store
        self.config = config
        self.state = AuthState.NO_TOKEN
        self.fresh = False

    @property
    def cached(self) -> bool:
        return self.state is AuthState.AUTHENTICATED and not self.fresh

    def authenticate(self) -> str:
        """Return a usable token, logging in only if the cache has none.

        Raises:
            AuthenticationError: Credentials rejected.
            ApiError: Login failed otherwise (including exhausted rate limits).
        """
        if self.state is AuthState.AUTHENTICATED and self.client.token:
            return self.client.token

        cached = self.store.load()
        if cached is not None:
            console.print("[dim]Using cached OpenSubtitles token.[/dim]")
            self.client.token = cached.token
            self.state = AuthState.AUTHENTICATED
            self.fresh = False
            return cached.token

        return self._login()

    def reauthenticate(self) -> str:
        """Discard the current (stale) token and log in again."""
        console.print("[yellow]Token rejected, logging in again...[/yellow]")
        self._clear_cache()
        self.client.token = None
        self.state = AuthState.NO_TOKEN
        return self._login()

    def _login(self) -> str:
        username = self.config.username or ""
        console.print(f"[bold]Logging in to OpenSubtitles as[/bold] {escape(username)}")
        token = self.client.login(username, self.config.password or "")
        expires_at = datetime.now(timezone.utc) + timedelta(hours=self.config.token_lifetime_hours)
        try:
            self.store.save(AuthToken(token=token, username=username, expires_at=expires_at))
        except OSError as e:
            console.print(
                "[yellow]Could not cache token, using it for this run only:[/yellow] "
                + escape(str(e))
            )
        self.state = AuthState.AUTHENTICATED
        self.fresh = True
        return token

    def close(self) -> AuthState:
        """End the session: log out a fresh token unless sessions are kept."""
        if self.state is not AuthState.AUTHENTICATED:
            return self.state
        if not self.fresh or self.config.keep_session:
            self.state = AuthState.TOKEN_KEPT
            return self.state

        try:
            self.client.logout()
            console.print("[dim]Logged out of OpenSubtitles.[/dim]")
        except ApiError as e:
            console.print(f"[yellow]Logout failed:[/yellow] {escape(str(e))}")
        self._clear_cache()
        self.client.token = None
        self.state = AuthState.LOGGED_OUT
        return self.state

    def _clear_cache(self) -> None:
        try:
            self.store.clear()
        except OSError as e:
            console.print(f"[yellow]Could not remove cached token:[/yellow] {escape(str(e))}")
