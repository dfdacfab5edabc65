"""Pipeline orchestrator: download missing subtitles, tidy tracks, normalize names."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from subtidy.core.config import SubTidyConfig
from subtidy.core.errors import ApiError, AuthenticationError, MetadataError
from subtidy.core.events import EventCallback, PipelineEvent
from subtidy.core.languages import expand_wanted_codes
from subtidy.core.models import (
    DownloadAggregate,
    RetrievalStatus,
    RunSummary,
    TargetState,
    VideoFile,
    VideoResult,
)
from subtidy.media.mkvtoolnix import check_mkvtoolnix, extract_tracks, identify, remux_without
from subtidy.media.tracks import classify_tracks
from subtidy.opensubtitles.retriever import SubtitleRetriever
from subtidy.subtitles.normalizer import normalize_language_codes, normalized_name
from subtidy.utils.console import console
from subtidy.utils.paths import check_target, find_videos

_MATROSKA = (".mkv", ".mka", ".mks")


@dataclass
class RunContext:
    """State threaded through one pipeline run."""

    config: SubTidyConfig
    code_map: dict[str, str]
    languages: list[str]
    aggregate: DownloadAggregate
    retriever: SubtitleRetriever | None = None
    tracks: bool = True
    on_event: EventCallback | None = None

    def emit(self, event: PipelineEvent) -> None:
        if self.on_event:
            self.on_event(event)


def _start_retrieval(retriever: SubtitleRetriever) -> RetrievalStatus:
    try:
        retriever.start()
    except AuthenticationError as e:
        console.print(
            "[red]OpenSubtitles login rejected, skipping downloads:[/red]"
            f" {escape(str(e))}"
        )
        return RetrievalStatus.AUTH_FAILED
    except ApiError as e:
        console.print(
            "[red]OpenSubtitles login failed, skipping downloads:[/red]"
            f" {escape(str(e))}"
        )
        return RetrievalStatus.UNAVAILABLE
    return RetrievalStatus.OK


def _pending_extractions(extract: dict[int, Path], code_map: dict[str, str]) -> dict[int, Path]:
    """Drop extraction targets that already exist in raw or normalized form."""
    pending = {}
    for track_id, target in extract.items():
        short = normalized_name(target.name, code_map)
        candidates = [target] + ([target.with_name(short)] if short else [])
        present = [c for c in candidates if check_target(c) is TargetState.ALREADY_PRESENT]
        if present:
            console.print(
                f"[dim]Already present, not extracting track {track_id}:[/dim]"
                f" {escape(present[0].name)}"
            )
            continue
        pending[track_id] = target
    return pending


def process_tracks(ctx: RunContext, video: VideoFile, result: VideoResult) -> None:
    """Identify, classify, extract and remux one Matroska file."""
    tools = ctx.config.tools
    try:
        info = identify(video.path, tools)
    except MetadataError as e:
        console.print(f"[red]Skipping tracks:[/red] {escape(str(e))}")
        result.errors.append(str(e))
        return

    wanted = expand_wanted_codes(ctx.languages, ctx.code_map)
    classification = classify_tracks(
        info.tracks,
        video.path,
        wanted,
        ctx.config.subtitles.remove_track_patterns,
        ctx.code_map,
    )

    extract = _pending_extractions(classification.extract, ctx.code_map)
    if extract:
        console.print(
            f"[bold]Extracting {len(extract)} subtitle track(s)[/bold]"
            f" from {escape(video.path.name)}"
        )
        if extract_tracks(video.path, extract, tools):
            result.extracted = len(extract)
        else:
            result.errors.append(f"extraction failed for {video.path.name}")

    remove_ids = classification.remove_ids
    if remove_ids and ctx.config.subtitles.remux:
        console.print(
            f"[bold]Removing {len(remove_ids)} subtitle track(s)[/bold]"
            f" from {escape(video.path.name)}"
        )
        if remux_without(video.path, remove_ids, tools):
            result.removed = len(remove_ids)
        else:
            result.errors.append(f"remux failed for {video.path.name}")


def process_video(ctx: RunContext, path: Path) -> VideoResult:
    """Run every enabled step for a single video."""
    result = VideoResult(path=Path(path))
    try:
        video = VideoFile.from_path(path)
    except OSError as e:
        console.print(f"[red]Cannot read {escape(Path(path).name)}:[/red] {escape(str(e))}")
        result.skipped = True
        result.errors.append(str(e))
        return result

    if ctx.retriever is not None:
        result.downloaded = ctx.retriever.fetch_missing(video, ctx.languages)

    if ctx.tracks and video.path.suffix.lower() in _MATROSKA:
        process_tracks(ctx, video, result)

    # Runs after extraction: it works on file names, not in-memory state
    result.renamed = normalize_language_codes(video.directory, ctx.code_map, stem=video.stem)
    return result


def run_pipeline(
    root: Path,
    config: SubTidyConfig,
    retriever: SubtitleRetriever | None = None,
    languages: list[str] | None = None,
    tracks: bool = True,
    on_event: EventCallback | None = None,
) -> RunSummary:
    """Process every video under root, one at a time.

    Args:
        root: Directory to scan (or a single video file).
        config: Full application config.
        retriever: Subtitle downloader, or None to skip downloads.
        languages: Wanted 2-letter codes; defaults to config.subtitles.languages.
        tracks: Whether to inspect and rewrite embedded subtitle tracks.
        on_event: Optional callback for progress events.

    Returns:
        RunSummary for reporting.
    """
    root = Path(root)
    aggregate = retriever.aggregate if retriever is not None else DownloadAggregate()
    summary = RunSummary(root=root, downloads=aggregate)
    ctx = RunContext(
        config=config,
        code_map=config.code_map,
        languages=languages if languages is not None else config.subtitles.languages,
        aggregate=aggregate,
        tracks=tracks and config.subtitles.extract_tracks,
        on_event=on_event,
    )

    ctx.emit(PipelineEvent("discover", 0.0, f"Scanning {root}"))
    videos = find_videos(
        root,
        config.subtitles.video_extensions,
        min_size=config.subtitles.min_video_bytes,
    )
    console.print(f"[bold]Found {len(videos)} video(s)[/bold] under {escape(str(root))}")

    if ctx.tracks and not check_mkvtoolnix(config.tools):
        console.print("[yellow]mkvtoolnix not found, skipping track processing.[/yellow]")
        ctx.tracks = False

    if retriever is not None and videos:
        summary.retrieval = _start_retrieval(retriever)
        if summary.retrieval is RetrievalStatus.OK:
            ctx.retriever = retriever

    try:
        for i, path in enumerate(videos, 1):
            console.rule(f"[bold][{i}/{len(videos)}] {escape(path.name)}[/bold]")
            result = process_video(ctx, path)
            summary.videos.append(result)
            ctx.emit(PipelineEvent.for_video(result, i, len(videos)))
    finally:
        if ctx.retriever is not None:
            ctx.retriever.close()

    ctx.emit(PipelineEvent("done", 1.0, "Done", data=summary.downloads.to_dict()))
    return summary
