"""subtidy hash command: print OpenSubtitles fingerprints."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from subtidy.cli.utils import expand_inputs
from subtidy.core.errors import FingerprintError
from subtidy.media.fingerprint import compute_fingerprint
from subtidy.utils.console import console
from subtidy.utils.parsing import format_size


def fingerprint(
    inputs: Annotated[
        list[str],
        typer.Argument(help="Video files or glob patterns."),
    ],
) -> None:
    """Compute the fingerprint used to match videos against OpenSubtitles."""
    expanded = expand_inputs(inputs)
    if not expanded:
        console.print("[red]No inputs resolved. Check your paths or patterns.[/red]")
        raise typer.Exit(1)

    table = Table(title="Fingerprints")
    table.add_column("File", max_width=60, no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Hash", style="bold cyan")

    failed = 0
    for inp in expanded:
        path = Path(inp)
        try:
            value = compute_fingerprint(path)
        except FingerprintError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            failed += 1
            continue
        table.add_row(escape(path.name), format_size(path.stat().st_size), value)

    console.print(table)
    if failed:
        raise typer.Exit(1)
