"""Fill in missing sidecar subtitles from OpenSubtitles.

Per video: languages whose <stem>.<lang>.srt already exists are counted and
skipped without touching the network; the rest are searched for in a single
call (fingerprint + file name), and the best match per language is
downloaded. A failure for one language never blocks the others.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from rich.markup import escape

from subtidy.core.config import OpenSubtitlesConfig
from subtidy.core.errors import ApiError, AuthenticationError
from subtidy.core.languages import dedupe_languages
from subtidy.core.models import DownloadAggregate, TargetState, VideoFile
from subtidy.media.fingerprint import try_fingerprint
from subtidy.opensubtitles.auth import Authenticator, AuthState
from subtidy.opensubtitles.client import OpenSubtitlesClient
from subtidy.opensubtitles.token_store import TokenStore
from subtidy.subtitles.converter import save_srt
from subtidy.utils.console import console
from subtidy.utils.paths import check_target, guess_media_type


def extract_file_id(record: dict) -> int | None:
    """First file id of a search record, or None."""
    attrs = record.get("attributes") or {}
    files = attrs.get("files") or []
    if files and isinstance(files[0], dict):
        file_id = files[0].get("file_id")
        if isinstance(file_id, int) and not isinstance(file_id, bool):
            return file_id
    return None


def record_language(record: dict) -> str | None:
    language = (record.get("attributes") or {}).get("language")
    return language.lower() if isinstance(language, str) else None


def pick_best(records: list[dict], languages: list[str]) -> dict[str, dict]:
    """Choose one record per wanted language.

    Fingerprint matches win over name matches; ties go to the most
    downloaded subtitle. Records without a file id are ignored.
    """
    wanted = set(languages)
    best: dict[str, dict] = {}

    def rank(record: dict) -> tuple[bool, int]:
        attrs = record.get("attributes") or {}
        count = attrs.get("download_count")
        return bool(attrs.get("moviehash_match")), count if isinstance(count, int) else 0

    for record in records:
        language = record_language(record)
        if language not in wanted or extract_file_id(record) is None:
            continue
        if language not in best or rank(record) > rank(best[language]):
            best[language] = record
    return best


class SubtitleRetriever:
    """Downloads missing subtitles, tallying results into a DownloadAggregate."""

    def __init__(
        self,
        auth: Authenticator,
        config: OpenSubtitlesConfig,
        aggregate: DownloadAggregate | None = None,
    ) -> None:
        self.auth = auth
        self.config = config
        self.aggregate = aggregate if aggregate is not None else DownloadAggregate()

    @property
    def client(self):
        return self.auth.client

    def start(self) -> None:
        """Authenticate up front.

        Raises:
            AuthenticationError: Credentials rejected; retrieval is unusable.
            ApiError: Login failed for another reason.
        """
        self.auth.authenticate()

    def close(self) -> AuthState:
        return self.auth.close()

    def _with_reauth(self, fn: Callable[[], object]):
        """Run fn; on a rejected token log in again once and retry."""
        try:
            return fn()
        except AuthenticationError:
            self.auth.reauthenticate()
            return fn()

    def search_params(
        self, video: VideoFile, languages: list[str], fingerprint: str | None
    ) -> dict[str, str]:
        params = {
            "type": guess_media_type(video.stem),
            "query": video.stem.lower(),
            "languages": ",".join(sorted(languages)),
            "hearing_impaired": self.config.hearing_impaired,
            "foreign_parts_only": self.config.foreign_parts_only,
            "machine_translated": self.config.machine_translated,
            "ai_translated": self.config.ai_translated,
        }
        if fingerprint:
            params["moviehash"] = fingerprint
        # The API redirects unless parameters are sorted
        return dict(sorted(params.items()))

    def missing_languages(self, video: VideoFile, languages: list[str]) -> list[str]:
        """Languages without a sidecar yet; present ones are counted."""
        missing = []
        for language in dedupe_languages(languages):
            target = video.subtitle_path(language)
            if check_target(target) is TargetState.ALREADY_PRESENT:
                console.print(f"[dim]Already present:[/dim] {escape(target.name)}")
                self.aggregate.already_present += 1
                continue
            missing.append(language)
        return missing

    def fetch_missing(self, video: VideoFile, languages: list[str]) -> list[str]:
        """Download subtitles for the wanted languages the video lacks.

        Returns:
            Languages downloaded for this video.
        """
        missing = self.missing_languages(video, languages)
        if not missing:
            return []

        fingerprint = try_fingerprint(video.path)
        params = self.search_params(video, missing, fingerprint)
        console.print(
            "[bold]Searching subtitles[/bold]"
            f" ({', '.join(missing)}) for {escape(video.path.name)}"
        )
        try:
            records = self._with_reauth(lambda: self.client.search(params))
        except ApiError as e:
            console.print(f"[red]Search failed:[/red] {escape(str(e))}")
            self.aggregate.failed += len(missing)
            return []

        best = pick_best(records, missing)
        downloaded = []
        for language in missing:
            record = best.get(language)
            if record is None:
                console.print(
                    f"[yellow]No {language} subtitle found for[/yellow]"
                    f" {escape(video.path.name)}"
                )
                self.aggregate.not_found[language] += 1
                continue
            if self._download(video, language, record):
                downloaded.append(language)
        return downloaded

    def _download(self, video: VideoFile, language: str, record: dict) -> bool:
        target: Path = video.subtitle_path(language)
        file_id = extract_file_id(record)
        try:
            ticket = self._with_reauth(lambda: self.client.request_download(file_id))
            if ticket.remaining is not None:
                self.aggregate.remaining = ticket.remaining
            content = self.client.fetch(ticket.link)
        except ApiError as e:
            console.print(f"[red]Download of {language} failed:[/red] {escape(str(e))}")
            self.aggregate.failed += 1
            return False

        if check_target(target) is TargetState.ALREADY_PRESENT:
            console.print(
                f"[yellow]{escape(target.name)} appeared meanwhile, not overwriting[/yellow]"
            )
            self.aggregate.already_present += 1
            return False

        try:
            save_srt(content, target)
        except (ValueError, OSError) as e:
            console.print(f"[red]Could not save {escape(target.name)}:[/red] {escape(str(e))}")
            self.aggregate.failed += 1
            return False

        self.aggregate.downloaded[language] += 1
        source = f" (from {escape(ticket.file_name)})" if ticket.file_name else ""
        console.print(f"[green]Downloaded:[/green] {escape(target.name)}{source}")
        return True


def build_retriever(
    config: OpenSubtitlesConfig,
    cache_dir: Path,
    aggregate: DownloadAggregate | None = None,
    session=None,
    sleep: Callable[[float], None] | None = None,
) -> SubtitleRetriever:
    """Wire client, token store and authenticator for one run."""
    kwargs = {"session": session}
    if sleep is not None:
        kwargs["sleep"] = sleep
    client = OpenSubtitlesClient(config, **kwargs)
    store = TokenStore(cache_dir, config.username or "", config.api_key or "")
    return SubtitleRetriever(Authenticator(client, store, config), config, aggregate)
