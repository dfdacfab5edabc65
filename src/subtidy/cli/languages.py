"""subtidy languages command: show the 3-letter to 2-letter code table."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from subtidy.core.config import load_config
from subtidy.core.languages import ISO639_2_TO_1
from subtidy.utils.console import console


def languages(
    configured_only: Annotated[
        bool,
        typer.Option("--configured", help="Only show entries added or changed by configuration."),
    ] = False,
) -> None:
    """List the language codes used to rename extracted subtitles."""
    config = load_config()
    code_map = config.code_map

    table = Table(title=f"Language Codes ({len(code_map)})")
    table.add_column("ISO 639-2", style="bold cyan", width=9)
    table.add_column("ISO 639-1", width=9)
    table.add_column("Source", width=10)

    for three in sorted(code_map):
        custom = ISO639_2_TO_1.get(three) != code_map[three]
        if configured_only and not custom:
            continue
        table.add_row(three, code_map[three], "config" if custom else "built-in")

    console.print(table)
    wanted = ", ".join(config.subtitles.languages) or "-"
    console.print(f"\n[dim]Wanted languages: {wanted}[/dim]")
