"""Matroska track identification, extraction and remuxing via MKVToolNix."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Iterable, Mapping
from pathlib import Path

from rich.markup import escape

from subtidy.core.config import ToolsConfig
from subtidy.core.errors import MetadataError
from subtidy.core.models import ContainerInfo
from subtidy.media.tracks import parse_container_info
from subtidy.utils.console import console


def check_mkvtoolnix(tools: ToolsConfig | None = None) -> bool:
    """Check if mkvmerge and mkvextract are available on the system."""
    tools = tools or ToolsConfig()
    return shutil.which(tools.mkvmerge) is not None and shutil.which(tools.mkvextract) is not None


def _run(cmd: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, capture_output=True, text=True, errors="replace")


def _tool_output(result: subprocess.CompletedProcess) -> str:
    # mkvmerge reports errors on stdout, mkvextract on stderr
    return "\n".join(s.strip() for s in (result.stdout, result.stderr) if s and s.strip())


def identify(path: Path, tools: ToolsConfig | None = None) -> ContainerInfo:
    """Read a container's track list with ``mkvmerge -J``.

    Raises:
        MetadataError: If mkvmerge fails or emits unusable JSON.
    """
    tools = tools or ToolsConfig()
    path = Path(path)
    cmd = [tools.mkvmerge, "-J", str(path)]
    try:
        result = _run(cmd)
    except OSError as e:
        raise MetadataError(f"Cannot run {tools.mkvmerge}: {e}") from e
    if result.returncode != 0:
        raise MetadataError(
            f"mkvmerge -J failed for {path.name} (exit {result.returncode}): "
            f"{_tool_output(result)}"
        )
    return parse_container_info(path, result.stdout)


def extract_tracks(
    path: Path,
    extract: Mapping[int, Path],
    tools: ToolsConfig | None = None,
) -> bool:
    """Extract subtitle tracks with a single ``mkvextract`` call.

    Args:
        path: Source container.
        extract: Track id to output path.
        tools: Tool names.

    Returns:
        True on success (or nothing to do), False if mkvextract failed.
        On failure nothing is deleted or renamed.
    """
    if not extract:
        return True
    tools = tools or ToolsConfig()
    path = Path(path)
    cmd = [tools.mkvextract, str(path), "tracks"]
    cmd.extend(f"{track_id}:{out}" for track_id, out in sorted(extract.items()))

    try:
        result = _run(cmd)
    except OSError as e:
        console.print(f"[red]Cannot run {tools.mkvextract}:[/red] {escape(str(e))}")
        return False
    if result.returncode != 0:
        console.print(
            f"[red]Extraction failed[/red] for {escape(path.name)} (exit {result.returncode})\n"
            f"{escape(_tool_output(result))}"
        )
        return False
    return True


def remux_path(path: Path) -> Path:
    """Hidden sibling file used as remux output."""
    return path.with_name(f".{path.stem}.remux{path.suffix}")


def remux_without(
    path: Path,
    remove_ids: Iterable[int],
    tools: ToolsConfig | None = None,
) -> bool:
    """Rewrite a container without the given subtitle tracks.

    Output goes to a temporary sibling which replaces the original only
    after mkvmerge succeeds. With nothing to remove, no command is run and
    no file is touched.

    Returns:
        True on success (or nothing to do), False if mkvmerge failed.
    """
    ids = sorted(set(remove_ids))
    if not ids:
        return True
    tools = tools or ToolsConfig()
    path = Path(path)
    tmp_path = remux_path(path)
    cmd = [
        tools.mkvmerge,
        "-o",
        str(tmp_path),
        "--subtitle-tracks",
        "!" + ",".join(str(i) for i in ids),
        str(path),
    ]

    try:
        result = _run(cmd)
    except OSError as e:
        console.print(f"[red]Cannot run {tools.mkvmerge}:[/red] {escape(str(e))}")
        return False
    if result.returncode != 0:
        console.print(
            f"[red]Remux failed[/red] for {escape(path.name)} (exit {result.returncode})\n"
            f"{escape(_tool_output(result))}"
        )
        tmp_path.unlink(missing_ok=True)
        return False
    if not tmp_path.is_file():
        console.print(f"[red]Remux produced no output[/red] for {escape(path.name)}")
        return False

    os.replace(tmp_path, path)
    return True
