"""Parsing utilities for human-readable page text."""

from __future__ import annotations

import math
import re
from datetime import date, datetime

_DATE_PREFIXES = ("Premiered ", "Premieres ", "Streamed live on ", "Joined ")
_CLOCK_PART = re.compile(r"[0-9]{1,9}")


def parse_count(count_str: str) -> int | None:
    """Parse an abbreviated count string to an integer.

    Supports formats:
        - "1234" / "1,234 views"
        - "164K subscribers"
        - "1.64M subscribers"
        - "2B views"
        - "No views" → 0

    Args:
        count_str: Count text as rendered on the page.

    Returns:
        Count as int, or None if the text holds no count.
    """
    if not count_str:
        return None

    text = count_str.strip()
    if text.lower().startswith("no "):
        return 0

    match = re.match(r"([0-9.,]+)\s*([KMB]?)\b", text.upper())
    if not match:
        return None

    number = match.group(1).replace(",", "")
    unit = match.group(2)

    multipliers = {
        "": 1,
        "K": 1_000,
        "M": 1_000_000,
        "B": 1_000_000_000,
    }

    try:
        if unit == "" and number.isdigit():
            return int(number)
        value = float(number) * multipliers[unit]
    except ValueError:
        return None

    if not math.isfinite(value):
        return None
    return int(round(value))


def parse_clock_duration(length_str: str) -> int | None:
    """Parse ``SS``, ``MM:SS`` or ``HH:MM:SS`` into seconds."""
    if not length_str:
        return None

    parts = length_str.strip().split(":")
    seconds = 0
    for part in parts:
        if not _CLOCK_PART.fullmatch(part):
            return None
        seconds = seconds * 60 + int(part)
    return seconds


def parse_text_date(date_str: str) -> date | None:
    """Parse an upload/publish date.

    Supports formats:
        - "2021-03-14"
        - "2021-03-14T00:00:00-07:00"
        - "Mar 14, 2021"
        - "Premiered Mar 14, 2021"
        - "Joined Mar 14, 2021"
    """
    if not date_str:
        return None

    text = date_str.strip()
    for prefix in _DATE_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix) :]
            break

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in ("%b %d, %Y", "%B %d, %Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_codecs(mime_type: str) -> tuple[str, ...]:
    """Extract the codec list from ``video/mp4; codecs="avc1.4d401e, mp4a.40.2"``."""
    match = re.search(r'codecs="([^"]*)"', mime_type)
    if not match:
        return ()
    return tuple(c.strip() for c in match.group(1).split(",") if c.strip())
