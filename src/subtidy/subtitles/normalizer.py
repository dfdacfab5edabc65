"""Rename extracted subtitles from 3-letter to 2-letter language codes.

mkvextract output is named after the container's ISO 639-2 tag
(Movie.eng.srt); players and the download step expect ISO 639-1
(Movie.en.srt). Existing files are never overwritten, so running the
normalizer twice is harmless.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path

from rich.markup import escape

from subtidy.utils.console import console

_CODE_RE = re.compile(r"^(?P<prefix>.+)\.(?P<code>[A-Za-z]{2,3})\.srt$")


def normalized_name(name: str, code_map: Mapping[str, str]) -> str | None:
    """Return the 2-letter file name for name, or None if it needs no rename."""
    match = _CODE_RE.match(name)
    if not match or len(match.group("code")) != 3:
        return None
    short = code_map.get(match.group("code").lower())
    if short is None:
        return None
    return f"{match.group('prefix')}.{short}.srt"


def normalize_language_codes(
    directory: Path,
    code_map: Mapping[str, str],
    stem: str | None = None,
) -> int:
    """Rename <name>.<xxx>.srt files to <name>.<xx>.srt.

    Args:
        directory: Directory to scan (not recursive).
        code_map: 3-letter to 2-letter code table.
        stem: If given, only files belonging to this video (<stem>.*.srt).

    Returns:
        Number of files renamed.
    """
    directory = Path(directory)
    renamed = 0
    for path in sorted(directory.glob("*.srt")):
        if stem is not None and not path.name.startswith(f"{stem}."):
            continue
        match = _CODE_RE.match(path.name)
        if not match or len(match.group("code")) != 3:
            continue

        code = match.group("code")
        new_name = normalized_name(path.name, code_map)
        if new_name is None:
            console.print(
                f"[yellow]No 2-letter code for '{code}', leaving[/yellow] {escape(path.name)}"
            )
            continue

        target = path.with_name(new_name)
        if target.exists():
            console.print(
                f"[yellow]{escape(target.name)} already exists, not renaming[/yellow]"
                f" {escape(path.name)}"
            )
            continue

        path.rename(target)
        console.print(f"[green]Renamed:[/green] {escape(path.name)} -> {escape(target.name)}")
        renamed += 1
    return renamed
