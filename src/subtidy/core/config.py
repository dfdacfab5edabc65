"""Configuration system for SubTidy.

Layered config loading (lowest to highest priority):
1. config/default.toml (shipped with package)
2. ~/.config/subtidy/config.toml (user-level)
3. ./subtidy.toml (project-level)
4. Environment variables (SUBTIDY_OPENSUBTITLES__API_KEY, etc.)
5. CLI flags
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtidy.core.languages import build_language_map, dedupe_languages
from subtidy.utils.parsing import parse_size

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config" / "default.toml"
_USER_CONFIG = Path.home() / ".config" / "subtidy" / "config.toml"
_PROJECT_CONFIG = Path("subtidy.toml")


def _default_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / "subtidy"


class SubtitlesConfig(BaseModel):
    languages: list[str] = ["en"]  # 2-letter codes, in priority order
    remove_track_patterns: list[str] = []  # regexes matched against track names
    video_extensions: list[str] = [".mkv", ".mp4", ".avi", ".m4v"]
    min_video_size: str = "0"  # skip samples smaller than this, e.g. "50MB"
    extract_tracks: bool = True
    remux: bool = True

    @field_validator("languages")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return dedupe_languages(value)

    @field_validator("video_extensions")
    @classmethod
    def _normalize_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @field_validator("min_video_size")
    @classmethod
    def _check_size(cls, value: str) -> str:
        parse_size(value)
        return value

    @property
    def min_video_bytes(self) -> int:
        return parse_size(self.min_video_size)


class OpenSubtitlesConfig(BaseModel):
    api_key: str | None = None
    username: str | None = None
    password: str | None = None
    user_agent: str = "SubTidy v0.4.0"
    base_url: str = "https://api.opensubtitles.com/api/v1"
    timeout: float = 30.0
    hearing_impaired: str = "exclude"  # include, exclude, only
    foreign_parts_only: str = "exclude"
    machine_translated: str = "exclude"
    ai_translated: str = "exclude"
    login_attempts: int = 4
    request_attempts: int = 3
    token_lifetime_hours: float = 23.0  # API tokens live for 24h
    keep_session: bool = True  # keep fresh tokens for later runs instead of logging out

    @property
    def enabled(self) -> bool:
        """True when all credentials needed to log in are configured."""
        return bool(self.api_key and self.username and self.password)


class ToolsConfig(BaseModel):
    mkvmerge: str = "mkvmerge"
    mkvextract: str = "mkvextract"


class SubTidyConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SUBTIDY_",
        env_nested_delimiter="__",
    )

    subtitles: SubtitlesConfig = SubtitlesConfig()
    opensubtitles: OpenSubtitlesConfig = OpenSubtitlesConfig()
    tools: ToolsConfig = ToolsConfig()
    language_map: dict[str, str] = Field(default_factory=dict)
    cache_dir: Path = Field(default_factory=_default_cache_dir)

    @property
    def code_map(self) -> dict[str, str]:
        """Built-in 3-letter to 2-letter table merged with configured entries."""
        return build_language_map(self.language_map)


def _load_toml(path: Path) -> dict:
    """Load a TOML file if it exists, return empty dict otherwise."""
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(**cli_overrides: object) -> SubTidyConfig:
    """Load configuration from all layers and merge.

    Args:
        **cli_overrides: Direct overrides from CLI flags. Keys can be
            dot-separated (e.g. subtitles.languages=["en", "nl"]).
    """
    # Layer 1-3: TOML files
    config_data: dict = {}
    for path in (_DEFAULT_CONFIG, _USER_CONFIG, _PROJECT_CONFIG):
        layer = _load_toml(path)
        config_data = _deep_merge(config_data, layer)

    # Flatten 'general' section into top-level
    if "general" in config_data:
        general = config_data.pop("general")
        config_data = _deep_merge(config_data, general)

    # Apply CLI overrides (dot-separated keys)
    for key, value in cli_overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        target = config_data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value

    # Layer 4: env vars are handled by Pydantic BaseSettings
    return SubTidyConfig(**config_data)
