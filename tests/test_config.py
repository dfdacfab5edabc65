"""Tests for configuration system."""

import pytest
from pydantic import ValidationError

from subtidy.core.config import (
    OpenSubtitlesConfig,
    SubtitlesConfig,
    SubTidyConfig,
    _deep_merge,
    load_config,
)


def test_default_config_loads():
    """Config loads without errors and has all required sections."""
    config = load_config()
    assert config.subtitles is not None
    assert config.opensubtitles is not None
    assert config.tools is not None
    assert config.subtitles.languages  # non-empty
    assert config.opensubtitles.base_url.startswith("https://")


def test_cli_overrides():
    """CLI overrides take precedence over defaults."""
    config = load_config(**{"subtitles.languages": ["nl", "en"], "subtitles.remux": False})
    assert config.subtitles.languages == ["nl", "en"]
    assert config.subtitles.remux is False


def test_cli_override_none_ignored():
    """None values in CLI overrides are ignored, defaults preserved."""
    default = load_config()
    overridden = load_config(**{"subtitles.languages": None})
    assert overridden.subtitles.languages == default.subtitles.languages


def test_env_credentials(monkeypatch):
    monkeypatch.setenv("SUBTIDY_OPENSUBTITLES__API_KEY", "env-key")
    monkeypatch.setenv("SUBTIDY_OPENSUBTITLES__USERNAME", "alice")
    monkeypatch.setenv("SUBTIDY_OPENSUBTITLES__PASSWORD", "s3cret")
    config = load_config()
    assert config.opensubtitles.api_key == "env-key"
    assert config.opensubtitles.enabled


def test_deep_merge():
    base = {"a": {"b": 1, "c": 2}, "d": 3}
    override = {"a": {"b": 10, "e": 5}, "f": 6}
    result = _deep_merge(base, override)
    assert result == {"a": {"b": 10, "c": 2, "e": 5}, "d": 3, "f": 6}


def test_deep_merge_no_mutation():
    """Deep merge does not mutate the base dict."""
    base = {"a": {"b": 1}}
    override = {"a": {"c": 2}}
    _deep_merge(base, override)
    assert "c" not in base["a"]


def test_languages_deduplicated():
    config = SubtitlesConfig(languages=["EN", "nl", "en", " nl "])
    assert config.languages == ["en", "nl"]


def test_extensions_normalized():
    config = SubtitlesConfig(video_extensions=["MKV", ".Mp4"])
    assert config.video_extensions == [".mkv", ".mp4"]


def test_min_video_size():
    assert SubtitlesConfig(min_video_size="50MB").min_video_bytes == 50 * 1024**2
    with pytest.raises(ValidationError):
        SubtitlesConfig(min_video_size="big")


def test_opensubtitles_needs_all_credentials():
    assert not OpenSubtitlesConfig().enabled
    assert not OpenSubtitlesConfig(api_key="k", username="u").enabled
    assert OpenSubtitlesConfig(api_key="k", username="u", password="p").enabled


def test_code_map_includes_overrides(tmp_path):
    config = SubTidyConfig(language_map={"QAA": "xx", "eng": "en"}, cache_dir=tmp_path)
    assert config.code_map["qaa"] == "xx"
    assert config.code_map["dut"] == "nl"


def test_code_map_rejects_bad_entries(tmp_path):
    config = SubTidyConfig(language_map={"english": "en"}, cache_dir=tmp_path)
    with pytest.raises(ValueError):
        config.code_map
