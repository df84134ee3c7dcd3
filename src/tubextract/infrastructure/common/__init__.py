"""Common infrastructure utilities."""

from __future__ import annotations

from .converters import to_bool, to_int, to_str
from .parsers import parse_clock_duration, parse_codecs, parse_count, parse_text_date

__all__ = [
    "to_int",
    "to_bool",
    "to_str",
    "parse_count",
    "parse_clock_duration",
    "parse_codecs",
    "parse_text_date",
]
