"""Utility helpers for the BaskLight engine."""

from __future__ import annotations

import math
import re
import unicodedata

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def clamp(value: float, lower: float, upper: float) -> float:
    """Return ``value`` limited to ``[lower, upper]``; NaN maps to ``lower``."""

    if math.isnan(value):
        return lower
    return max(lower, min(upper, value))


def format_clock(seconds: float | None) -> str:
    """Format a position as ``m:ss`` with floor truncation and unbounded minutes."""

    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    whole = int(math.floor(seconds))
    minutes, remainder = divmod(whole, 60)
    return f"{minutes}:{remainder:02d}"


def normalise_query(value: str | None) -> str:
    """Return a trimmed, case-folded search string."""

    if not value:
        return ""
    value = unicodedata.normalize("NFC", value)
    return value.strip().lower()


def contains_text(haystack: str | None, needle: str) -> bool:
    """Case-insensitive substring test; an empty needle always matches."""

    if not needle:
        return True
    if not haystack:
        return False
    return needle in normalise_query(haystack)


def download_filename(title: str, extension: str, artist: str | None = None) -> str:
    """Return the suggested file name for a downloaded media file."""

    base = (title or "").strip() or "download"
    if artist and artist.strip():
        base = f"{base} - {artist.strip()}"
    base = _UNSAFE_FILENAME_RE.sub("_", base)
    return f"{base}.{extension.lstrip('.')}"
