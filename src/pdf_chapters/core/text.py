"""Low-level string helpers for titles and page text."""

import re

_WHITESPACE = re.compile(r"\s+")
# Bullets, middle dots and ellipses used as TOC leaders
_LEADER_CHARS = re.compile(r"[·•⋯…]+")
# Three or more repeated dots, underscores or dashes
_LEADER_RUNS = re.compile(r"[._\-]{3,}")

ROMAN_VALUES: dict[str, int] = {
    "I": 1,
    "V": 5,
    "X": 10,
    "L": 50,
    "C": 100,
    "D": 500,
    "M": 1000,
}


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


def sanitize_title(raw: str) -> str:
    """Normalize a heading title.

    Collapses whitespace and removes leader dots and bullet sequences, so
    "Introduction ..........." becomes "Introduction".
    """
    title = _LEADER_CHARS.sub(" ", str(raw or ""))
    title = _LEADER_RUNS.sub(" ", title)
    return collapse_whitespace(title)


def roman_to_int(token: str) -> int | None:
    """Convert a Roman numeral to an integer.

    Returns None for empty input, any non-Roman character, or a
    non-positive result.
    """
    token = (token or "").strip().upper()
    if not token:
        return None

    result = 0
    prev = 0
    for char in reversed(token):
        curr = ROMAN_VALUES.get(char)
        if curr is None:
            return None
        if curr < prev:
            result -= curr
        else:
            result += curr
        prev = curr

    return result if result > 0 else None
