"""Pull a waybill (AWB) number out of a freeform tracking field."""

from __future__ import annotations

import re

_AWB = r"(\d{10,14})\b"

# First match wins: explicit markers, then tracking-URL path segments.
_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"(?:\bawb=|\bwaybill=){_AWB}", re.IGNORECASE),
    re.compile(rf"/p/{_AWB}", re.IGNORECASE),
    re.compile(rf"/package/{_AWB}", re.IGNORECASE),
)
_BARE_DIGITS = re.compile(rf"\b{_AWB}")


def extract_tracking_number(value: object) -> str | None:
    """Return the tracking number embedded in ``value`` or ``None``.

    Only the shape is checked (10-14 digits); the courier decides whether the
    number exists.
    """

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    for pattern in _PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    match = _BARE_DIGITS.search(text)
    return match.group(1) if match else None


__all__ = ["extract_tracking_number"]
