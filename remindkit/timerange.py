"""Extracting a start time from reminder time strings and time ranges."""

from __future__ import annotations

import re

_RANGE_PATTERNS = tuple(
    re.compile(pattern, re.ASCII)
    for pattern in (
        r"([0-9]{1,2}:[0-9]{2})\s*[-~～到至]\s*([0-9]{1,2}:[0-9]{2})",
        r"([0-9]{1,2}:[0-9]{2})\s*[-~到至]\s*([0-9]{1,2}:[0-9]{2})",
        r"([0-9]{1,2}:[0-9]{2})\s*-\s*([0-9]{1,2}:[0-9]{2})",
    )
)

_TIME_RE = re.compile(r"[0-9]{1,2}:[0-9]{2}")
_STRICT_TIME_RE = re.compile(r"([0-9]{1,2}):([0-9]{2})")


def is_valid_time_format(time_str: str) -> bool:
    """Whether the string is a clock time such as HH:MM or H:MM."""
    match = _STRICT_TIME_RE.fullmatch(time_str)
    if match is None:
        return False
    hour, minute = int(match.group(1)), int(match.group(2))
    return hour <= 23 and minute <= 59


def parse_time_from_range(time_str: str) -> str:
    """Return the start time of a range such as "14:30 - 16:30".

    A single time is returned as is; a string with no valid time is returned
    unchanged.
    """
    for pattern in _RANGE_PATTERNS:
        match = pattern.fullmatch(time_str)
        if match and is_valid_time_format(match.group(1)):
            return match.group(1)

    found = _TIME_RE.search(time_str)
    if found and is_valid_time_format(found.group(0)):
        return found.group(0)
    return time_str