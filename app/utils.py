"""Utility helpers for parsing loosely-typed upstream values."""

from __future__ import annotations

import math
import re
from typing import Any


TOKEN_SEPARATOR_RE = re.compile(r"[,，、\s]+")
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")

STREAM_URL_PREFIXES = ("http://", "https://")
STREAM_FORMAT_HINTS = (".m3u8", ".mp4", ".mpd", ".flv")


def looks_playable(value: str | None) -> bool:
    """Return True when ``value`` resembles a resolvable stream reference."""

    if not value:
        return False
    lowered = value.strip().lower()
    if lowered.startswith(STREAM_URL_PREFIXES):
        return True
    return any(hint in lowered for hint in STREAM_FORMAT_HINTS)


def split_tokens(value: Any) -> list[str]:
    """Split cast/director/genre style fields into non-empty tokens."""

    if value is None:
        return []
    text = str(value)
    return [token for token in TOKEN_SEPARATOR_RE.split(text) if token]


def text_or_none(value: Any) -> str | None:
    """Return the stripped string form of ``value`` or None when blank."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_leading_int(value: Any) -> int | None:
    """Parse the leading integer of ``value`` (``"2023年"`` -> 2023)."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if value is None:
        return None
    match = LEADING_INT_RE.match(str(value))
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # Digit runs beyond the interpreter's int conversion limit.
        return None


def parse_leading_float(value: Any) -> float | None:
    """Parse the leading number of ``value``; non-finite results are None."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = LEADING_FLOAT_RE.match(str(value))
        if not match:
            return None
        number = float(match.group(1))
    if not math.isfinite(number):
        return None
    return number
