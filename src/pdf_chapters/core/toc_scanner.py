"""Table-of-contents detection on the front pages of a document.

Used when the outline is missing or too shallow: page lines shaped like
"Title ........ 23" are collected from pages near a "Contents" heading.
"""

import logging
import re
from collections.abc import Iterable
from typing import Protocol

from pdf_chapters.core.classifier import (
    DEFAULT_PATTERNS,
    TitlePatterns,
    matches_chapter_heading,
)
from pdf_chapters.core.document import ReadAttempt, TextFragment
from pdf_chapters.core.ranges import build_chapter_ranges
from pdf_chapters.core.text import collapse_whitespace, sanitize_title
from pdf_chapters.models.chapter import ChapterRange, TocEntry

log = logging.getLogger(__name__)

DEFAULT_MAX_SCAN_PAGES = 24
MIN_SCAN_PAGES = 6
# Pages after a TOC heading that still count as TOC pages
TOC_WINDOW_PAGES = 3

LINE_READ_ATTEMPT = ReadAttempt(name="lines")

# Title, then 2+ leader characters or plain whitespace, then a 1-4 digit page
_TOC_LINE = re.compile(r"^(?P<title>.+?)(?:\s*[.·•⋯…]{2,}\s*|\s+)(?P<page>\d{1,4})$")
_TITLE_CHAR = re.compile(r"[^\W_]")


class ScannablePage(Protocol):
    def get_text_fragments(self, attempt: ReadAttempt) -> list[TextFragment]: ...

    def close(self) -> None: ...


class ScannableDocument(Protocol):
    total_pages: int

    def get_page(self, number: int) -> ScannablePage: ...


def build_page_lines(fragments: Iterable[TextFragment]) -> list[str]:
    """Group fragments into lines at hard line breaks."""
    lines: list[str] = []
    current: list[str] = []

    for fragment in fragments:
        current.append(fragment.text)
        if fragment.has_line_break_after:
            line = collapse_whitespace(" ".join(current))
            if line:
                lines.append(line)
            current = []

    if current:
        line = collapse_whitespace(" ".join(current))
        if line:
            lines.append(line)

    return lines


def parse_toc_line(line: str) -> TocEntry | None:
    """Parse a "Title .... 23" line, or return None if it does not fit."""
    match = _TOC_LINE.match(collapse_whitespace(line))
    if not match:
        return None

    title = sanitize_title(match.group("title"))
    # Leader-only lines such as ". ..... 5" carry no title
    if not _TITLE_CHAR.search(title):
        return None

    page = int(match.group("page"))
    if page <= 0:
        return None

    return TocEntry(title=title, page_start=page, depth=0)


def contains_toc_heading(text: str, patterns: TitlePatterns = DEFAULT_PATTERNS) -> bool:
    """Check page text for a table-of-contents heading keyword."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in patterns.toc_keywords)


def clamp_scan_pages(max_scan_pages: int, total_pages: int) -> int:
    """Clamp the scan depth to [MIN_SCAN_PAGES, total_pages]."""
    return max(0, min(max(max_scan_pages, MIN_SCAN_PAGES), total_pages))


def scan_toc_entries(
    document: ScannableDocument,
    max_scan_pages: int = DEFAULT_MAX_SCAN_PAGES,
    patterns: TitlePatterns = DEFAULT_PATTERNS,
) -> list[TocEntry]:
    """
    Collect TOC entries from the first pages of the document.

    A heading keyword opens a window reaching TOC_WINDOW_PAGES past the
    current page; later headings extend it. A parsed line is kept when its
    page is inside the window, or when its title is an explicit chapter
    heading anywhere in the scanned pages.
    """
    total_pages = document.total_pages
    scan_pages = clamp_scan_pages(max_scan_pages, total_pages)

    entries: list[TocEntry] = []
    window_end = 0

    for page_number in range(1, scan_pages + 1):
        page = document.get_page(page_number)
        try:
            lines = build_page_lines(page.get_text_fragments(LINE_READ_ATTEMPT))
        except Exception as e:
            log.debug(f"Skipping unreadable page {page_number} in TOC scan: {e}")
            continue
        finally:
            page.close()

        if contains_toc_heading(" ".join(lines), patterns):
            window_end = max(window_end, page_number + TOC_WINDOW_PAGES)
            log.debug(f"TOC heading on page {page_number}, window to page {window_end}")

        in_window = page_number <= window_end
        for line in lines:
            entry = parse_toc_line(line)
            if entry is None:
                continue

            if not in_window and not matches_chapter_heading(entry.title, patterns):
                continue

            listed_page = min(entry.page_start, total_pages)
            if listed_page <= 0:
                continue
            entries.append(entry.model_copy(update={"page_start": listed_page}))

    log.debug(f"TOC scan of {scan_pages} page(s) found {len(entries)} candidate(s)")
    return entries


def detect_by_toc_pages(
    document: ScannableDocument,
    max_scan_pages: int = DEFAULT_MAX_SCAN_PAGES,
    patterns: TitlePatterns = DEFAULT_PATTERNS,
) -> list[ChapterRange]:
    """Build chapter ranges from TOC pages, or [] if fewer than two are found."""
    entries = scan_toc_entries(document, max_scan_pages, patterns)
    if len(entries) < 2:
        return []
    return build_chapter_ranges(entries, document.total_pages)
