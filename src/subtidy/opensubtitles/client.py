"""HTTP client for the OpenSubtitles.com REST API.

Thin wrapper over a requests session that maps HTTP failures onto the
SubTidy error types and applies the rate-limit retry policy:

- 401/403 -> AuthenticationError (never retried here)
- 429     -> RateLimitError, retried per Retry-After / ratelimit-reset
- other   -> ApiError
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import requests

from subtidy.core.config import OpenSubtitlesConfig
from subtidy.core.errors import ApiError, AuthenticationError, RateLimitError
from subtidy.opensubtitles.retry import RetryPolicy, call_with_retry
from subtidy.utils.parsing import parse_int, parse_seconds


@dataclass
class DownloadTicket:
    """Response of POST /download: a one-off link plus the remaining quota."""

    link: str
    remaining: int | None = None
    file_name: str | None = None


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "errors", "error"):
            if data.get(key):
                return str(data[key])
    return (response.text or "").strip()[:200]


def raise_for_status(response: requests.Response, label: str) -> None:
    """Raise the matching SubTidy error for a failed response."""
    status = response.status_code
    if status < 400:
        return
    detail = _error_detail(response)
    if status in (401, 403):
        raise AuthenticationError(f"{label} rejected (HTTP {status}): {detail}", status_code=status)
    if status == 429:
        headers = {k.lower(): v for k, v in response.headers.items()}
        raise RateLimitError(
            f"{label} rate limited: {detail}",
            retry_after=parse_seconds(headers.get("retry-after")),
            reset_after=parse_seconds(
                headers.get("ratelimit-reset") or headers.get("x-ratelimit-reset")
            ),
        )
    raise ApiError(f"{label} failed (HTTP {status}): {detail}", status_code=status)


class OpenSubtitlesClient:
    """Stateful API client. ``token`` is set after login and sent as a bearer."""

    def __init__(
        self,
        config: OpenSubtitlesConfig,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Api-Key": config.api_key or "",
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            }
        )
        self.token: str | None = None
        self._sleep = sleep
        self._login_policy = RetryPolicy(max_attempts=config.login_attempts)
        self._request_policy = RetryPolicy(max_attempts=config.request_attempts)

    def _request(
        self, method: str, url: str, label: str, credentials: bool = True, **kwargs: object
    ) -> requests.Response:
        headers: dict[str, str | None] = {}
        if not credentials:
            # None removes the session header from this request
            headers = {"Api-Key": None, "Authorization": None}
        elif self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.config.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise ApiError(f"{label} failed: {e}") from e
        raise_for_status(response, label)
        return response

    def _call(self, method: str, path: str, label: str, policy: RetryPolicy, **kwargs: object):
        url = f"{self.config.base_url.rstrip('/')}{path}"
        return call_with_retry(
            lambda: self._request(method, url, label, **kwargs),
            policy,
            label=label,
            sleep=self._sleep,
        )

    @staticmethod
    def _json(response: requests.Response, label: str) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(f"{label} returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ApiError(f"{label} returned unexpected JSON: {type(data).__name__}")
        return data

    def login(self, username: str, password: str) -> str:
        """POST /login and return the bearer token (also stored on the client)."""
        response = self._call(
            "POST",
            "/login",
            "login",
            self._login_policy,
            json={"username": username, "password": password},
        )
        token = self._json(response, "login").get("token")
        if not token:
            raise ApiError("login response contained no token")
        self.token = token
        return token

    def search(self, params: dict[str, str]) -> list[dict]:
        """GET /subtitles; returns the raw result records."""
        response = self._call("GET", "/subtitles", "search", self._request_policy, params=params)
        return self._json(response, "search").get("data") or []

    def request_download(self, file_id: int) -> DownloadTicket:
        """POST /download for a file id; returns the temporary link."""
        response = self._call(
            "POST",
            "/download",
            "download",
            self._request_policy,
            json={"file_id": file_id, "sub_format": "srt"},
        )
        data = self._json(response, "download")
        link = data.get("link")
        if not link:
            raise ApiError(f"download response for file {file_id} contained no link")
        return DownloadTicket(
            link=link,
            remaining=parse_int(data.get("remaining")),
            file_name=data.get("file_name"),
        )

    def fetch(self, link: str) -> bytes:
        """GET the subtitle bytes behind a download link.

        The link points at a file host, so no catalogue credentials are sent.
        """
        response = call_with_retry(
            lambda: self._request("GET", link, "fetch", credentials=False),
            self._request_policy,
            label="fetch",
            sleep=self._sleep,
        )
        return response.content

    def logout(self) -> None:
        """DELETE /logout, invalidating the current token."""
        self._call("DELETE", "/logout", "logout", self._request_policy)
        self.token = None
