"""Tests for the OpenSubtitles fingerprint."""

import struct
from pathlib import Path

import pytest

from subtidy.core.errors import FingerprintError
from subtidy.media.fingerprint import compute_fingerprint, try_fingerprint


def _reference_hash(path: Path) -> str:
    """Straightforward word-by-word implementation of the published algorithm."""
    size = path.stat().st_size
    value = size
    with open(path, "rb") as f:
        for offset in (0, max(0, size - 65536)):
            f.seek(offset)
            for _ in range(65536 // 8):
                buf = f.read(8)
                if len(buf) < 8:
                    break
                (word,) = struct.unpack("<Q", buf)
                value = (value + word) & 0xFFFFFFFFFFFFFFFF
    return f"{value:016x}"


def test_deterministic(video_path: Path):
    first = compute_fingerprint(video_path)
    second = compute_fingerprint(video_path)
    assert first == second
    assert len(first) == 16
    assert all(c in "0123456789abcdef" for c in first)


def test_matches_reference_implementation(tmp_path: Path):
    path = tmp_path / "movie.mkv"
    # 300 KiB of varied bytes, so head and tail chunks differ
    path.write_bytes(bytes((i * 7 + i // 251) % 256 for i in range(300 * 1024)))
    assert compute_fingerprint(path) == _reference_hash(path)


def test_all_zero_file_hashes_to_its_size(tmp_path: Path):
    path = tmp_path / "zeros.mkv"
    path.write_bytes(bytes(131072))
    assert compute_fingerprint(path) == "0000000000020000"


def test_short_file_reads_both_passes(tmp_path: Path):
    """An 8-byte file is summed twice (head and tail overlap) plus its size."""
    path = tmp_path / "tiny.mkv"
    path.write_bytes(struct.pack("<Q", 1))
    assert compute_fingerprint(path) == f"{8 + 1 + 1:016x}"


def test_sum_wraps_at_64_bits(tmp_path: Path):
    path = tmp_path / "wrap.mkv"
    path.write_bytes(b"\xff" * 8)
    # 8 + 2 * (2**64 - 1) mod 2**64 == 6
    assert compute_fingerprint(path) == "0000000000000006"


def test_empty_file(tmp_path: Path):
    path = tmp_path / "empty.mkv"
    path.write_bytes(b"")
    assert compute_fingerprint(path) == "0" * 16


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FingerprintError):
        compute_fingerprint(tmp_path / "missing.mkv")


def test_try_fingerprint_returns_none_on_failure(tmp_path: Path):
    assert try_fingerprint(tmp_path / "missing.mkv") is None
