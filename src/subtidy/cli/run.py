"""subtidy run command: full pipeline over a download directory."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from subtidy.cli.utils import split_languages
from subtidy.core.config import load_config
from subtidy.core.models import RunSummary


def run(
    root: Annotated[
        Path,
        typer.Argument(help="Directory with finished downloads (or a single video)."),
    ],
    language: Annotated[
        Optional[list[str]],
        typer.Option("--language", "-l", help="Wanted 2-letter language code. Repeatable."),
    ] = None,
    no_download: Annotated[
        bool,
        typer.Option("--no-download", help="Do not fetch missing subtitles from OpenSubtitles."),
    ] = False,
    no_tracks: Annotated[
        bool,
        typer.Option("--no-tracks", help="Do not extract or remove embedded subtitle tracks."),
    ] = False,
    no_remux: Annotated[
        bool,
        typer.Option("--no-remux", help="Extract wanted tracks but leave the container untouched."),
    ] = False,
    summary_path: Annotated[
        Optional[Path],
        typer.Option("--summary", help="Write a JSON run summary to this path."),
    ] = None,
) -> None:
    """Download missing subtitles, tidy embedded tracks and normalize names.

    Every video under ROOT is processed in turn. The exit code is 1 if any
    video failed or the OpenSubtitles login was rejected.
    """
    from subtidy.core.pipeline import run_pipeline
    from subtidy.opensubtitles.retriever import build_retriever
    from subtidy.utils.console import console
    from subtidy.utils.paths import save_summary

    if not root.exists():
        console.print(f"[red]Not found: {escape(str(root))}[/red]")
        raise typer.Exit(1)

    overrides: dict[str, object] = {
        "subtitles.languages": split_languages(language),
    }
    if no_remux:
        overrides["subtitles.remux"] = False
    config = load_config(**overrides)

    retriever = None
    if not no_download:
        if config.opensubtitles.enabled:
            retriever = build_retriever(config.opensubtitles, config.cache_dir)
        else:
            console.print("[dim]OpenSubtitles credentials not configured, skipping downloads[/dim]")

    summary = run_pipeline(root, config, retriever=retriever, tracks=not no_tracks)
    print_summary(summary)

    if summary_path is not None:
        save_summary(summary, summary_path)
        console.print(f"[green]Saved:[/green] {escape(str(summary_path))}")

    if not summary.ok:
        raise typer.Exit(1)


def print_summary(summary: RunSummary) -> None:
    """Render per-video results and download counters."""
    from subtidy.utils.console import console

    console.print()
    table = Table(title=f"Results ({len(summary.videos)} videos)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Video", max_width=50, no_wrap=True)
    table.add_column("Downloaded")
    table.add_column("Extracted", justify="right")
    table.add_column("Removed", justify="right")
    table.add_column("Renamed", justify="right")
    table.add_column("Status")

    for i, v in enumerate(summary.videos, 1):
        status = "[green]ok[/green]" if v.ok else "[red]failed[/red]"
        table.add_row(
            str(i),
            escape(v.path.name),
            ", ".join(v.downloaded) or "-",
            str(v.extracted),
            str(v.removed),
            str(v.renamed),
            status,
        )
    console.print(table)

    downloads = summary.downloads
    per_language = ", ".join(f"{k}: {n}" for k, n in sorted(downloads.downloaded.items())) or "none"
    not_found = ", ".join(f"{k}: {n}" for k, n in sorted(downloads.not_found.items())) or "none"
    console.print(f"[bold]Retrieval:[/bold] {summary.retrieval.value}")
    console.print(f"[bold]Downloaded:[/bold] {downloads.total_downloaded} ({per_language})")
    console.print(f"[bold]Already present:[/bold] {downloads.already_present}")
    console.print(f"[bold]Not found:[/bold] {not_found}")
    console.print(f"[bold]Failed:[/bold] {downloads.failed}")
    if downloads.remaining is not None:
        console.print(f"[bold]Remaining downloads today:[/bold] {downloads.remaining}")

    succeeded = sum(1 for v in summary.videos if v.ok)
    console.print(f"\n[bold]{succeeded}/{len(summary.videos)} succeeded[/bold]")
