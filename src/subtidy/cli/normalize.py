"""subtidy normalize command: rename <name>.<xxx>.srt to <name>.<xx>.srt."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from subtidy.core.config import load_config
from subtidy.subtitles.normalizer import normalize_language_codes
from subtidy.utils.console import console


def normalize(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory containing .srt files."),
    ],
) -> None:
    """Rename subtitles with 3-letter language codes to 2-letter codes."""
    if not directory.is_dir():
        console.print(f"[red]Not a directory: {escape(str(directory))}[/red]")
        raise typer.Exit(1)

    config = load_config()
    renamed = normalize_language_codes(directory, config.code_map)
    console.print(f"\n[bold]{renamed} file(s) renamed[/bold]")
