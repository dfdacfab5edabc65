"""Shared test fixtures."""

import json
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def identify_json(fixtures_dir: Path) -> str:
    """mkvmerge -J output for an episode with mixed subtitle tracks."""
    return (fixtures_dir / "identify.json").read_text()


@pytest.fixture
def sample_srt(fixtures_dir: Path) -> bytes:
    return (fixtures_dir / "sample.srt").read_bytes()


@pytest.fixture
def video_path(tmp_path: Path) -> Path:
    """A fake 200 KiB episode file."""
    path = tmp_path / "Show.S01E01.mkv"
    path.write_bytes(bytes(range(256)) * 800)
    return path


class DummyResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        json_data: object = None,
        text: str = "",
        content: bytes = b"",
        headers: dict | None = None,
    ) -> None:
        self.status_code = status_code
        self._json_data = json_data
        self.text = text or (json.dumps(json_data) if json_data is not None else "")
        self.content = content
        self.headers = headers or {}

    def json(self) -> object:
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data


class FakeSession:
    """Stands in for requests.Session, answering from per-route response queues.

    The last queued response of a route repeats for further calls.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[dict] = []
        self._routes: dict[tuple[str, str], list[DummyResponse]] = {}

    def add(self, method: str, path: str, status: int = 200, **kwargs) -> "FakeSession":
        response = DummyResponse(status_code=status, **kwargs)
        self._routes.setdefault((method, path), []).append(response)
        return self

    def request(self, method, url, headers=None, timeout=None, **kwargs):  # noqa: ANN001
        self.calls.append({"method": method, "url": url, "headers": headers or {}, **kwargs})
        for (route_method, path), queue in self._routes.items():
            if route_method == method and url.endswith(path):
                return queue.pop(0) if len(queue) > 1 else queue[0]
        raise AssertionError(f"Unexpected request: {method} {url}")

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c["method"] == method and c["url"].endswith(path))


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def os_config():
    from subtidy.core.config import OpenSubtitlesConfig

    return OpenSubtitlesConfig(
        api_key="test-api-key",
        username="alice",
        password="s3cret",
        base_url="https://api.example.com/api/v1",
        login_attempts=3,
        request_attempts=2,
    )


@pytest.fixture
def sleeps() -> list[float]:
    """Collects backoff delays instead of sleeping."""
    return []
