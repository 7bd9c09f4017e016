from __future__ import annotations

import re
from typing import Optional

from .entities import CandidateSong


# Order matters: each pattern truncates what the next one sees.
_PARENS_SUFFIX_PATTERN = re.compile(r"\s*\(.*$")
_SLASH_SUFFIX_PATTERN = re.compile(r"/.*$")
_JOIN_CHARS_PATTERN = re.compile(r"[&+]")
_FEAT_SUFFIX_PATTERN = re.compile(r"\b(?:feat(?:uring)?|ftr)\b.*$", re.IGNORECASE)

ARTIST_TITLE_SEPARATOR = " - "


def sanitize(value: str) -> str:
    """Reduce a radio-reported song or artist name to a catalog search term.

    Drops a parenthetical suffix, anything after a slash, ``&`` and ``+``
    characters, then "feat"/"ftr" credits, and lowercases. Surrounding whitespace
    left by the truncation is kept, so ``sanitize("Foo feat. Bar") == "foo "``.
    """
    value = value or ""
    value = _PARENS_SUFFIX_PATTERN.sub("", value)
    value = _SLASH_SUFFIX_PATTERN.sub("", value)
    value = _JOIN_CHARS_PATTERN.sub("", value)
    value = _FEAT_SUFFIX_PATTERN.sub("", value)
    return value.lower()


def name_key(name: str) -> str:
    """Key used for case-insensitive track name deduplication."""
    return (name or "").lower()


def split_artist_title(text: str) -> Optional[CandidateSong]:
    """Parse an ``"Artist - Title"`` string, splitting on the first separator.

    Double quotes are removed. Returns None when the separator is missing or either
    side is empty.
    """
    cleaned = (text or "").replace('"', "").strip()
    artist, sep, title = cleaned.partition(ARTIST_TITLE_SEPARATOR)
    if not sep:
        return None
    artist = artist.strip()
    title = title.strip()
    if not artist or not title:
        return None
    return CandidateSong(name=title, artist=artist)
