"""Chapter detection from a PDF's embedded outline (bookmarks)."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from pdf_chapters.core.classifier import (
    DEFAULT_PATTERNS,
    TitlePatterns,
    is_chapter_like_title,
)
from pdf_chapters.core.ranges import build_chapter_ranges
from pdf_chapters.core.text import sanitize_title
from pdf_chapters.models.chapter import ChapterRange, TocEntry

log = logging.getLogger(__name__)


class OutlineSource(Protocol):
    total_pages: int

    def get_outline(self) -> list: ...

    def resolve_destination(self, destination: Any) -> int | None: ...


@dataclass(frozen=True)
class OutlineNode:
    """A flattened outline item."""

    title: str
    destination: Any
    depth: int


@dataclass(frozen=True)
class _ResolvedEntry:
    entry: TocEntry
    chapter_like: bool


def _item_title(item: Any) -> str:
    title = getattr(item, "title", None)
    if title is None and isinstance(item, dict):
        title = item.get("/Title") or item.get("title")
    return str(title or "")


def flatten_outline(items: list, depth: int = 0) -> tuple[OutlineNode, ...]:
    """Flatten a nested outline depth-first.

    Follows the pypdf layout: a nested list holds the children of the item
    that precedes it.
    """
    nodes: list[OutlineNode] = []
    for item in items or []:
        if isinstance(item, list):
            nodes.extend(flatten_outline(item, depth + 1))
        else:
            nodes.append(OutlineNode(title=_item_title(item), destination=item, depth=depth))
    return tuple(nodes)


def extract_outline_entries(
    document: OutlineSource, patterns: TitlePatterns = DEFAULT_PATTERNS
) -> list[TocEntry]:
    """
    Select chapter boundaries from the document outline.

    Prefers top-level chapter-like entries, then chapter-like entries at any
    depth, then all top-level entries. Returns [] when fewer than two entries
    survive, since a single start page cannot bound a range.
    """
    nodes = flatten_outline(document.get_outline())
    if not nodes:
        return []

    total_pages = document.total_pages
    resolved: list[_ResolvedEntry] = []
    for node in nodes:
        title = sanitize_title(node.title)
        page = document.resolve_destination(node.destination)
        if page is None or page <= 0 or page > total_pages:
            log.debug(f"Skipping outline entry {title!r}: unresolved page {page}")
            continue

        resolved.append(
            _ResolvedEntry(
                entry=TocEntry(title=title, page_start=page, depth=node.depth),
                chapter_like=is_chapter_like_title(title, patterns),
            )
        )

    top_level_chapters = [r.entry for r in resolved if r.entry.depth == 0 and r.chapter_like]
    if len(top_level_chapters) >= 2:
        selected = top_level_chapters
    else:
        selected = [r.entry for r in resolved if r.chapter_like]
        if len(selected) < 2:
            selected = [r.entry for r in resolved if r.entry.depth == 0]

    if len(selected) < 2:
        return []
    return selected


def detect_by_outline(
    document: OutlineSource, patterns: TitlePatterns = DEFAULT_PATTERNS
) -> list[ChapterRange]:
    """Build chapter ranges from the outline, or [] if it is not usable."""
    entries = extract_outline_entries(document, patterns)
    if not entries:
        return []
    return build_chapter_ranges(entries, document.total_pages)
