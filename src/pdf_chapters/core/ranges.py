"""Chapter range building and manual range/page input parsing."""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pdf_chapters.core.text import sanitize_title
from pdf_chapters.models.chapter import (
    ChapterRange,
    ChapterRangeSelection,
    PageSelectionResult,
    RangeSelectionResult,
    TocEntry,
)

log = logging.getLogger(__name__)

RANGE_INPUT_EXAMPLE = "1:1-12, 2:13-24"
PAGE_INPUT_EXAMPLE = "1,3,5-8"
DEFAULT_PAGES_PER_CHUNK = 10

_TOKEN_SEPARATORS = re.compile(r"[\n,;]+")
_NUMBERED_TOKEN = (
    re.compile(r"^(\d+)(?:장)?[:=](\d+)-(\d+)$", re.IGNORECASE),
    re.compile(r"^ch(?:apter)?(\d+)[:=](\d+)-(\d+)$", re.IGNORECASE),
)
_BARE_TOKEN = re.compile(r"^(\d+)-(\d+)$")


# =============================================================================
# Range Builder
# =============================================================================


def _coerce_entry(raw: TocEntry | Mapping[str, Any]) -> TocEntry | None:
    """Validate one boundary entry, returning None when it is unusable."""
    if isinstance(raw, TocEntry):
        data: dict[str, Any] = raw.model_dump()
    else:
        data = {
            "title": raw.get("title", ""),
            "page_start": raw.get("page_start", raw.get("pageStart")),
            "depth": raw.get("depth", 0) or 0,
        }

    data["title"] = sanitize_title(data.get("title", ""))
    try:
        return TocEntry.model_validate(data)
    except ValidationError:
        log.debug(f"Dropping invalid boundary entry: {raw!r}")
        return None


def build_chapter_ranges(
    entries: Iterable[TocEntry | Mapping[str, Any]], total_pages: int
) -> list[ChapterRange]:
    """
    Turn unordered (title, start page) entries into chapter ranges.

    Entries are sorted by (page_start, depth); for a shared start page the
    shallowest entry wins. Each range ends one page before the next start, the
    last one at `total_pages`. Chapters are numbered 1..N by page order,
    whatever numbers their titles carry. Fewer than two boundaries yields [].
    """
    valid = [entry for entry in map(_coerce_entry, entries) if entry is not None]
    valid.sort(key=lambda e: (e.page_start, e.depth))

    deduped: list[TocEntry] = []
    seen_pages: set[int] = set()
    for entry in valid:
        if entry.page_start in seen_pages:
            continue
        seen_pages.add(entry.page_start)
        deduped.append(entry)

    in_bounds = [entry for entry in deduped if entry.page_start <= total_pages]
    if len(in_bounds) < 2:
        return []

    ranges: list[ChapterRange] = []
    for i, entry in enumerate(in_bounds):
        if i + 1 < len(in_bounds):
            page_end = in_bounds[i + 1].page_start - 1
        else:
            page_end = total_pages

        if page_end < entry.page_start:
            continue

        number = len(ranges) + 1
        ranges.append(
            ChapterRange(
                id=f"chapter-{number}",
                chapter_number=number,
                chapter_title=entry.title or f"Chapter {number}",
                page_start=entry.page_start,
                page_end=page_end,
            )
        )

    return ranges


# =============================================================================
# Manual Input
# =============================================================================


def _selection_title(number: int, start: int, end: int) -> str:
    return f"Chapter {number} ({start}-{end}p)"


def parse_chapter_range_input(raw: str, total_pages: int) -> RangeSelectionResult:
    """Parse manual chapter ranges such as "1:1-12, 2:13-24".

    Tokens are separated by commas, semicolons or newlines. A token is either
    `N:start-end` (also `N=start-end`, `N장:start-end`, `ch N:start-end`) or a
    bare `start-end` numbered after the highest chapter so far. The first
    problem found rejects the whole input.
    """
    source = str(raw or "").strip()
    if not source:
        return RangeSelectionResult()

    if not total_pages or total_pages <= 0:
        return RangeSelectionResult(error="Total page count is unknown. Open a PDF first.")

    tokens = [token.strip() for token in _TOKEN_SEPARATORS.split(source) if token.strip()]
    if not tokens:
        return RangeSelectionResult(
            error=f"Enter chapter ranges (example: {RANGE_INPUT_EXAMPLE})."
        )

    chapters: list[ChapterRangeSelection] = []
    used_pages: set[int] = set()
    used_numbers: set[int] = set()
    next_auto_number = 1

    for token in tokens:
        compact = re.sub(r"\s+", "", token)

        match = next(
            (m for m in (p.match(compact) for p in _NUMBERED_TOKEN) if m), None
        )
        if match:
            number, start, end = (int(g) for g in match.groups())
        else:
            match = _BARE_TOKEN.match(compact)
            if not match:
                return RangeSelectionResult(
                    error=f'Invalid chapter format: "{token}" (example: {RANGE_INPUT_EXAMPLE})'
                )
            number = next_auto_number
            start, end = int(match.group(1)), int(match.group(2))

        if number <= 0:
            return RangeSelectionResult(error=f'Invalid chapter number in token: "{token}"')
        if start <= 0 or end <= 0:
            return RangeSelectionResult(error=f'Invalid page range in token: "{token}"')
        if start > end:
            return RangeSelectionResult(error=f'Range start must be <= end: "{token}"')
        if end > total_pages:
            return RangeSelectionResult(
                error=f'Page range exceeds total pages ({total_pages}p): "{token}"'
            )
        if number in used_numbers:
            return RangeSelectionResult(error=f"Duplicate chapter number: {number}")

        for page in range(start, end + 1):
            if page in used_pages:
                return RangeSelectionResult(error=f"Overlapping page detected: {page}p")
            used_pages.add(page)

        chapters.append(
            ChapterRangeSelection(
                id=f"chapter-{number}",
                chapter_number=number,
                chapter_title=_selection_title(number, start, end),
                page_start=start,
                page_end=end,
            )
        )
        used_numbers.add(number)
        next_auto_number = max(next_auto_number, number + 1)

    chapters.sort(key=lambda c: c.chapter_number)
    return RangeSelectionResult(chapters=chapters)


def parse_page_selection_input(raw: str, total_pages: int | None) -> PageSelectionResult:
    """Parse a page selection such as "1,3,5-8" into sorted page numbers.

    Pages beyond `total_pages` are dropped when the total is known.
    """
    cleaned = re.sub(r"\s+", "", str(raw or ""))
    if not cleaned:
        return PageSelectionResult(error=f"Enter page numbers (example: {PAGE_INPUT_EXAMPLE}).")

    pages: set[int] = set()
    for part in filter(None, cleaned.split(",")):
        if "-" in part:
            bounds = part.split("-")
            if len(bounds) != 2 or not all(b.isdigit() for b in bounds):
                return PageSelectionResult(error="Invalid page range format.")
            start, end = int(bounds[0]), int(bounds[1])
            if start <= 0 or end <= 0 or start > end:
                return PageSelectionResult(error="Invalid page range values.")
            if total_pages:
                end = min(end, total_pages)
            pages.update(range(start, end + 1))
        else:
            if not part.isdigit() or int(part) <= 0:
                return PageSelectionResult(error="Invalid page number.")
            pages.add(int(part))

    if total_pages:
        pages = {page for page in pages if page <= total_pages}
    if not pages:
        return PageSelectionResult(
            error="No valid pages remain after filtering by total pages."
        )
    return PageSelectionResult(pages=sorted(pages))


def format_chapter_range_input(ranges: Iterable[ChapterRange]) -> str:
    """Render ranges in the manual input form ("1:1-9\\n2:10-24")."""
    lines = []
    for index, chapter in enumerate(ranges, start=1):
        if chapter.page_end < chapter.page_start:
            continue
        lines.append(f"{index}:{chapter.page_start}-{chapter.page_end}")
    return "\n".join(lines)


def split_chapter_ranges(
    chapters: Iterable[ChapterRange], pages_per_chunk: int = DEFAULT_PAGES_PER_CHUNK
) -> list[ChapterRange]:
    """Split long chapters into roughly even chunks for per-chunk summaries.

    The chunk count is the span divided by `pages_per_chunk`, rounded half
    up, and at least one, so a short chapter such as 5-9 stays whole.
    """
    expanded: list[ChapterRange] = []
    for chapter in chapters:
        span = chapter.page_end - chapter.page_start
        chunk_count = max(1, math.floor(span / pages_per_chunk + 0.5))
        chunk_size = max(1, math.ceil(chapter.page_count / chunk_count))

        for part, start in enumerate(
            range(chapter.page_start, chapter.page_end + 1, chunk_size), start=1
        ):
            end = min(chapter.page_end, start + chunk_size - 1)
            expanded.append(
                ChapterRange(
                    id=f"{chapter.id}-part-{part}",
                    chapter_number=chapter.chapter_number,
                    chapter_title=_selection_title(chapter.chapter_number, start, end),
                    page_start=start,
                    page_end=end,
                )
            )
    return expanded
