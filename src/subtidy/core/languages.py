"""Language code tables.

Matroska tags tracks with ISO 639-2 codes (three letters) while the
OpenSubtitles catalogue and most players use ISO 639-1 (two letters).
Both the bibliographic (B) and terminologic (T) variants are listed where
they differ, so "dut" and "nld" both map to "nl".

Reference: https://www.loc.gov/standards/iso639-2/php/code_list.php
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

# fmt: off
ISO639_2_TO_1: dict[str, str] = {
    "afr": "af",  "alb": "sq",  "sqi": "sq",  "amh": "am",  "ara": "ar",
    "arm": "hy",  "hye": "hy",  "aze": "az",  "baq": "eu",  "eus": "eu",
    "bel": "be",  "ben": "bn",  "bos": "bs",  "bre": "br",  "bul": "bg",
    "bur": "my",  "mya": "my",  "cat": "ca",  "chi": "zh",  "zho": "zh",
    "hrv": "hr",  "cze": "cs",  "ces": "cs",  "dan": "da",  "dut": "nl",
    "nld": "nl",  "eng": "en",  "epo": "eo",  "est": "et",  "fao": "fo",
    "fin": "fi",  "fre": "fr",  "fra": "fr",  "geo": "ka",  "kat": "ka",
    "ger": "de",  "deu": "de",  "gle": "ga",  "glg": "gl",  "gre": "el",
    "ell": "el",  "guj": "gu",  "heb": "he",  "hin": "hi",  "hun": "hu",
    "ice": "is",  "isl": "is",  "ind": "id",  "ita": "it",  "jpn": "ja",
    "kan": "kn",  "kaz": "kk",  "khm": "km",  "kor": "ko",  "kur": "ku",
    "lao": "lo",  "lat": "la",  "lav": "lv",  "lit": "lt",  "ltz": "lb",
    "mac": "mk",  "mkd": "mk",  "may": "ms",  "msa": "ms",  "mal": "ml",
    "mlt": "mt",  "mao": "mi",  "mri": "mi",  "mar": "mr",  "mon": "mn",
    "nep": "ne",  "nor": "no",  "nob": "nb",  "nno": "nn",  "per": "fa",
    "fas": "fa",  "pol": "pl",  "por": "pt",  "pan": "pa",  "rum": "ro",
    "ron": "ro",  "rus": "ru",  "srp": "sr",  "sin": "si",  "slo": "sk",
    "slk": "sk",  "slv": "sl",  "som": "so",  "spa": "es",  "swa": "sw",
    "swe": "sv",  "tgl": "tl",  "tam": "ta",  "tel": "te",  "tha": "th",
    "tib": "bo",  "bod": "bo",  "tur": "tr",  "ukr": "uk",  "urd": "ur",
    "uzb": "uz",  "vie": "vi",  "wel": "cy",  "cym": "cy",  "yid": "yi",
    "yor": "yo",  "zul": "zu",
}
# fmt: on


def build_language_map(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the built-in 3-letter to 2-letter table merged with overrides.

    Keys and values are lower-cased. Overrides replace built-in entries.
    """
    merged = dict(ISO639_2_TO_1)
    for key, value in (overrides or {}).items():
        key, value = key.strip().lower(), value.strip().lower()
        if len(key) != 3 or len(value) != 2:
            raise ValueError(f"Invalid language map entry: {key!r} -> {value!r}")
        merged[key] = value
    return merged


def dedupe_languages(codes: Iterable[str]) -> list[str]:
    """Lower-case and de-duplicate language codes, keeping first-seen order."""
    seen: list[str] = []
    for code in codes:
        code = code.strip().lower()
        if code and code not in seen:
            seen.append(code)
    return seen


def expand_wanted_codes(wanted: Iterable[str], code_map: Mapping[str, str]) -> set[str]:
    """Return every code that denotes one of the wanted languages.

    The result holds the wanted codes themselves plus all 3-letter keys of
    ``code_map`` that map onto them, so a track tagged "ger" or "deu"
    matches a wanted "de".
    """
    wanted_set = set(dedupe_languages(wanted))
    expanded = set(wanted_set)
    for three, two in code_map.items():
        if two in wanted_set:
            expanded.add(three)
    return expanded
