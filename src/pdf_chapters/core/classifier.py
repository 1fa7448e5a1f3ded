"""Chapter-likeness classification for outline and TOC titles.

Classification is driven by vocabulary tables rather than hard-coded checks,
so another locale can be supported by adding a `Vocabulary` and building a
`TitlePatterns` from it.
"""

import re
from dataclasses import dataclass, field

from pdf_chapters.core.text import roman_to_int, sanitize_title

MIN_TITLE_LENGTH = 3

_CHAPTER_KEYWORDS = r"(?:chapter|chap\.?|ch\.?|part|unit)"
_LETTER = r"[A-Za-zÀ-ɏ가-힣]"
_BARE_NUMBER = r"^(\d+)"


@dataclass(frozen=True)
class Vocabulary:
    """Regex sources describing headings in one language.

    Patterns are matched against sanitized titles and compiled
    case-insensitively, except `numbered_heading` and `roman_number`, which
    are case-sensitive so that ordinary words are not read as Roman numerals.
    """

    name: str
    # Structural headings that never start a chapter
    non_chapter: tuple[str, ...] = ()
    # Explicit chapter headings with an attached number
    chapter_heading: tuple[str, ...] = ()
    # "12. Linear Algebra" style headings without a keyword
    numbered_heading: tuple[str, ...] = ()
    # Group 1 captures an Arabic chapter number
    arabic_number: tuple[str, ...] = ()
    # Group 1 captures a Roman chapter number
    roman_number: tuple[str, ...] = ()
    # Table-of-contents page headings, matched as lowercase substrings
    toc_keywords: tuple[str, ...] = ()


ENGLISH = Vocabulary(
    name="en",
    non_chapter=(
        r"^(?:sections?|sec\.|appendix|appendices|references?|bibliography|"
        r"index|preface|foreword)(?![^\W\d_])",
    ),
    chapter_heading=(
        rf"^{_CHAPTER_KEYWORDS}\s*\d+\b",
        rf"^{_CHAPTER_KEYWORDS}\s+[ivxlcdm]+\b",
    ),
    numbered_heading=(
        rf"^(?:\d+|[IVXLCDM]+)(?:\s*[.)\-]\s*|\s+){_LETTER}",
    ),
    arabic_number=(rf"^{_CHAPTER_KEYWORDS}\s*(\d+)",),
    roman_number=(
        rf"^(?i:{_CHAPTER_KEYWORDS})\s+([IVXLCDMivxlcdm]+)\b",
        r"^([IVXLCDM]+)[.)\-\s]",
    ),
    toc_keywords=("table of contents", "contents"),
)

KOREAN = Vocabulary(
    name="ko",
    non_chapter=(
        r"^(?:제\s*)?\d+\s*절",
        r"^(?:부록|참고\s*문헌|색인|찾아보기|서문|머리말|머리글)",
    ),
    chapter_heading=(
        r"^제\s*\d+\s*장",
        r"^\d+\s*장(?![가-힣])",
    ),
    arabic_number=(
        r"^제\s*(\d+)\s*장",
        r"^(\d+)\s*장",
    ),
    toc_keywords=("목차", "차례"),
)


def _compile(sources: list[str], flags: int = 0) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source, flags) for source in sources)


@dataclass(frozen=True)
class TitlePatterns:
    """Compiled pattern tables used by the classifier and TOC scanner."""

    non_chapter: tuple[re.Pattern[str], ...] = ()
    chapter_heading: tuple[re.Pattern[str], ...] = ()
    numbered_heading: tuple[re.Pattern[str], ...] = ()
    arabic_number: tuple[re.Pattern[str], ...] = ()
    roman_number: tuple[re.Pattern[str], ...] = ()
    toc_keywords: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, *vocabularies: Vocabulary) -> "TitlePatterns":
        """Merge vocabularies into one set of compiled tables.

        A bare leading numeral is tried after every keyword-prefixed form.
        """
        arabic = [p for v in vocabularies for p in v.arabic_number] + [_BARE_NUMBER]

        return cls(
            non_chapter=_compile(
                [p for v in vocabularies for p in v.non_chapter], re.IGNORECASE
            ),
            chapter_heading=_compile(
                [p for v in vocabularies for p in v.chapter_heading], re.IGNORECASE
            ),
            numbered_heading=_compile(
                [p for v in vocabularies for p in v.numbered_heading]
            ),
            arabic_number=_compile(arabic, re.IGNORECASE),
            roman_number=_compile([p for v in vocabularies for p in v.roman_number]),
            toc_keywords=tuple(
                keyword.lower() for v in vocabularies for keyword in v.toc_keywords
            ),
        )


DEFAULT_PATTERNS = TitlePatterns.build(ENGLISH, KOREAN)


def _matches_any(patterns: tuple[re.Pattern[str], ...], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def is_non_chapter_title(raw_title: str, patterns: TitlePatterns = DEFAULT_PATTERNS) -> bool:
    """Check for structural headings (appendix, index, ...) that are never chapters."""
    return _matches_any(patterns.non_chapter, sanitize_title(raw_title))


def matches_chapter_heading(
    raw_title: str, patterns: TitlePatterns = DEFAULT_PATTERNS
) -> bool:
    """Check for an explicit chapter keyword with a number ("Chapter 3", "제3장")."""
    title = sanitize_title(raw_title)
    if _matches_any(patterns.non_chapter, title):
        return False
    return _matches_any(patterns.chapter_heading, title)


def is_chapter_like_title(
    raw_title: str, patterns: TitlePatterns = DEFAULT_PATTERNS
) -> bool:
    """Decide whether a title looks like the start of a chapter."""
    title = sanitize_title(raw_title)
    if len(title) < MIN_TITLE_LENGTH:
        return False

    if _matches_any(patterns.non_chapter, title):
        return False

    if _matches_any(patterns.chapter_heading, title):
        return True

    return _matches_any(patterns.numbered_heading, title)


def infer_chapter_number(
    title: str, fallback: int, patterns: TitlePatterns = DEFAULT_PATTERNS
) -> int:
    """Guess the chapter number written in a title.

    Only a display hint: chapter ranges are always numbered by page order.
    """
    text = sanitize_title(title)

    for pattern in patterns.arabic_number:
        match = pattern.search(text)
        if match:
            value = int(match.group(1))
            if value > 0:
                return value

    for pattern in patterns.roman_number:
        match = pattern.search(text)
        if match:
            value = roman_to_int(match.group(1))
            if value:
                return value

    return fallback
