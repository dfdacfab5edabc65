"""subtidy tracks command: show what would happen to a file's subtitle tracks."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from subtidy.cli.utils import split_languages
from subtidy.core.config import load_config
from subtidy.core.errors import MetadataError
from subtidy.core.languages import expand_wanted_codes
from subtidy.core.models import SubtitleTrack, TrackDisposition
from subtidy.media.mkvtoolnix import identify
from subtidy.media.tracks import classify_tracks
from subtidy.utils.console import console

_STYLES = {
    TrackDisposition.EXTRACT: "green",
    TrackDisposition.REMOVE: "red",
    TrackDisposition.IGNORE: "dim",
}


def tracks(
    video: Annotated[
        Path,
        typer.Argument(help="Matroska file to inspect."),
    ],
    language: Annotated[
        Optional[list[str]],
        typer.Option("--language", "-l", help="Wanted 2-letter language code. Repeatable."),
    ] = None,
) -> None:
    """Classify a container's tracks without changing anything."""
    config = load_config(**{"subtitles.languages": split_languages(language)})
    try:
        info = identify(video, config.tools)
    except MetadataError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    wanted = expand_wanted_codes(config.subtitles.languages, config.code_map)
    result = classify_tracks(
        info.tracks, video, wanted, config.subtitles.remove_track_patterns, config.code_map
    )

    title = f"{escape(video.name)} ({len(info.tracks)} tracks, {info.attachments} attachments)"
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Codec")
    table.add_column("Lang")
    table.add_column("Name", max_width=30)
    table.add_column("Action")
    table.add_column("Output", max_width=50, no_wrap=True)

    for track in info.tracks:
        disposition = result.dispositions[track.id]
        style = _STYLES[disposition]
        if isinstance(track, SubtitleTrack):
            kind, lang, name = "subtitles", track.language or "-", track.name or ""
        else:
            kind, lang, name = track.type, "", ""
        output = result.extract.get(track.id)
        table.add_row(
            str(track.id),
            kind,
            track.codec,
            lang,
            escape(name),
            f"[{style}]{disposition.value}[/{style}]",
            escape(output.name) if output else "",
        )
    console.print(table)
