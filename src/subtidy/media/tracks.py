"""Container track parsing and subtitle track classification.

mkvmerge's identification JSON is validated into typed track variants, then
each subtitle track is assigned exactly one disposition:

1. Image-based or styled codecs (PGS, VobSub, ASS, ...) are removed.
2. Tracks whose name matches a removal pattern are removed.
3. Tracks in a wanted language are extracted to <stem>.<lang>.srt.
4. Everything else is removed.

Non-subtitle tracks are ignored.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, Field, NonNegativeInt, ValidationError

from subtidy.core.errors import MetadataError
from subtidy.core.models import (
    Classification,
    ContainerInfo,
    OtherTrack,
    SubtitleTrack,
    Track,
    TrackDisposition,
)

# Plain-text subtitle codecs that can be written out as .srt
TEXT_CODECS = {"subrip/srt", "timed text"}
TEXT_CODEC_IDS = {"S_TEXT/UTF8", "S_TEXT/ASCII", "S_TEXT/TX3G"}


class _RawProperties(BaseModel):
    codec_id: str | None = None
    language: str | None = None
    track_name: str | None = None


class _RawTrack(BaseModel):
    id: NonNegativeInt
    type: str
    codec: str
    properties: _RawProperties = Field(default_factory=_RawProperties)


class _RawIdentification(BaseModel):
    tracks: list[_RawTrack] = Field(default_factory=list)
    attachments: list[dict] = Field(default_factory=list)


def parse_container_info(path: Path, raw: str | bytes | dict) -> ContainerInfo:
    """Parse mkvmerge -J output into a ContainerInfo.

    Raises:
        MetadataError: If the JSON is unparsable or a track lacks id/type/codec.
    """
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        ident = _RawIdentification.model_validate(data)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Unparsable track metadata for {Path(path).name}: {e}") from e
    except ValidationError as e:
        raise MetadataError(
            f"Invalid track metadata for {Path(path).name}: {e.error_count()} error(s)\n{e}"
        ) from e

    tracks: list[Track] = []
    for raw_track in ident.tracks:
        if raw_track.type == "subtitles":
            props = raw_track.properties
            tracks.append(
                SubtitleTrack(
                    id=raw_track.id,
                    codec=raw_track.codec,
                    codec_id=props.codec_id,
                    name=props.track_name or None,
                    language=props.language.lower() if props.language else None,
                )
            )
        else:
            tracks.append(OtherTrack(id=raw_track.id, type=raw_track.type, codec=raw_track.codec))
    return ContainerInfo(path=Path(path), tracks=tracks, attachments=len(ident.attachments))


def is_text_codec(track: SubtitleTrack) -> bool:
    """True for SubRip and Timed Text tracks."""
    if track.codec_id and track.codec_id.upper() in TEXT_CODEC_IDS:
        return True
    return track.codec.strip().lower() in TEXT_CODECS


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern]:
    """Compile removal patterns case-insensitively.

    A pattern that is not a valid regex is matched as a literal substring.
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error:
            compiled.append(re.compile(re.escape(pattern), re.IGNORECASE))
    return compiled


def _name_matches(name: str | None, patterns: list[re.Pattern]) -> bool:
    if not name:
        return False
    return any(p.search(name) for p in patterns)


def classify_tracks(
    tracks: Iterable[Track],
    video_path: Path,
    wanted_languages: Iterable[str],
    remove_patterns: Iterable[str] = (),
    code_map: Mapping[str, str] | None = None,
) -> Classification:
    """Assign a disposition to every track of a container.

    Args:
        tracks: Tracks in container order.
        video_path: The container; extracted files go beside it.
        wanted_languages: Track language codes to extract (as tagged in the
            container, usually 3-letter).
        remove_patterns: Regexes; a matching track name forces removal.
        code_map: 3-letter to 2-letter table. Targets are unique by their
            normalized name, so "ger" and "deu" tracks do not both claim
            <stem>.de.srt.

    Returns:
        Classification with one disposition per track. Extract targets are
        unique within the file: a second track in an already-claimed language
        is written to <stem>.track<id>.<lang>.srt.
    """
    video_path = Path(video_path)
    wanted = {code.lower() for code in wanted_languages}
    patterns = compile_patterns(remove_patterns)
    result = Classification()
    claimed: set[str] = set()

    for track in tracks:
        if not isinstance(track, SubtitleTrack):
            result.dispositions[track.id] = TrackDisposition.IGNORE
            continue

        if not is_text_codec(track) or _name_matches(track.name, patterns):
            disposition = TrackDisposition.REMOVE
        elif track.language is not None and track.language in wanted:
            disposition = TrackDisposition.EXTRACT
        else:
            disposition = TrackDisposition.REMOVE

        result.dispositions[track.id] = disposition
        if disposition is TrackDisposition.REMOVE:
            result.remove_ids.add(track.id)
            continue

        language = track.language
        short = (code_map or {}).get(language.lower(), language.lower())
        name, key = f"{video_path.stem}.{language}.srt", f"{video_path.stem}.{short}.srt"
        if key in claimed:
            name = f"{video_path.stem}.track{track.id}.{language}.srt"
            key = f"{video_path.stem}.track{track.id}.{short}.srt"
        claimed.add(key)
        target = video_path.with_name(name)
        result.extract[track.id] = target

    return result
