"""Tests for the outline-first detection cascade."""

from unittest.mock import MagicMock

from conftest import FakeDocument, FakePage, OutlineItem, blank_pages

from pdf_chapters.core.chapter_detector import (
    DETECTION_LAYERS,
    NO_CHAPTERS_MESSAGE,
    detect_chapter_ranges,
    detect_chapter_ranges_in_document,
)
from pdf_chapters.models.extraction import DetectionSource

TOC_PAGE = [
    "Table of Contents",
    "Chapter 1 Basics ........ 4",
    "Chapter 2 Graphs ........ 12",
]


def _with_toc(total_pages, outline=None):
    pages = blank_pages(total_pages)
    pages[1] = TOC_PAGE
    return FakeDocument(pages, outline=outline)


class TestDetectionCascade:
    """Outline first, then TOC pages, then a manual-entry hint."""

    def test_layer_order(self):
        assert [layer.name for layer in DETECTION_LAYERS] == ["outline", "toc_pages"]

    def test_outline_wins(self):
        document = _with_toc(20, outline=[
            OutlineItem("Chapter 1 Intro", 1),
            OutlineItem("Chapter 2 Core", 8),
        ])

        result = detect_chapter_ranges_in_document(document)

        assert result.source == DetectionSource.OUTLINE
        assert result.error == ""
        assert result.total_pages == 20
        assert [(c.page_start, c.page_end) for c in result.chapters] == [(1, 7), (8, 20)]

    def test_falls_back_to_toc_pages(self):
        result = detect_chapter_ranges_in_document(_with_toc(20))

        assert result.source == DetectionSource.TOC_PAGES
        assert [(c.page_start, c.page_end) for c in result.chapters] == [(4, 11), (12, 20)]

    def test_single_outline_entry_falls_through(self):
        document = _with_toc(20, outline=[OutlineItem("Chapter 1 Intro", 1)])

        result = detect_chapter_ranges_in_document(document)

        assert result.source == DetectionSource.TOC_PAGES

    def test_nothing_found(self):
        result = detect_chapter_ranges_in_document(FakeDocument(blank_pages(20)))

        assert result.chapters == []
        assert result.source is None
        assert result.error == NO_CHAPTERS_MESSAGE
        assert result.total_pages == 20

    def test_no_pages(self):
        result = detect_chapter_ranges_in_document(FakeDocument([]))

        assert result.error == "PDF has no pages."
        assert result.total_pages == 0

    def test_failing_layer_becomes_warning(self):
        document = _with_toc(20)
        document.get_outline = MagicMock(side_effect=RuntimeError("broken outline"))

        result = detect_chapter_ranges_in_document(document)

        assert result.source == DetectionSource.TOC_PAGES
        assert result.warnings == ["PDF bookmarks/outline could not be read: broken outline"]

    def test_unreadable_cover_page_keeps_toc_layer(self):
        document = _with_toc(20)
        document.pages[1] = FakePage(1, by_attempt={"lines": ValueError("bad content stream")})

        result = detect_chapter_ranges_in_document(document)

        assert result.source == DetectionSource.TOC_PAGES
        assert result.warnings == []
        assert [(c.page_start, c.page_end) for c in result.chapters] == [(4, 11), (12, 20)]

    def test_max_scan_pages_limits_toc_scan(self):
        pages = blank_pages(40)
        pages[29] = TOC_PAGE
        document = FakeDocument(pages)

        shallow = detect_chapter_ranges_in_document(document, max_scan_pages=24)
        deep = detect_chapter_ranges_in_document(document, max_scan_pages=30)

        assert shallow.error == NO_CHAPTERS_MESSAGE
        assert deep.source == DetectionSource.TOC_PAGES


class TestNumberingWarnings:
    def test_gap_in_title_numbers(self):
        document = FakeDocument(blank_pages(20), outline=[
            OutlineItem("Chapter 1 Intro", 1),
            OutlineItem("Chapter 3 Later", 10),
        ])

        result = detect_chapter_ranges_in_document(document)

        assert [c.chapter_number for c in result.chapters] == [1, 2]
        assert len(result.warnings) == 1
        assert "numbered by page order" in result.warnings[0]
        assert "Chapter 3 Later" in result.warnings[0]

    def test_consistent_numbers(self):
        document = FakeDocument(blank_pages(20), outline=[
            OutlineItem("Chapter 1 Intro", 1),
            OutlineItem("Chapter 2 Next", 10),
        ])

        assert detect_chapter_ranges_in_document(document).warnings == []


class TestDetectChapterRanges:
    def test_unreadable_bytes_reported_as_error(self):
        result = detect_chapter_ranges(b"")

        assert result.error == "PDF file is empty."
        assert result.chapters == []

    def test_outline_from_real_pdf(self, make_pdf_bytes):
        data = make_pdf_bytes(10, outline=[
            ("Chapter 1 Basics", 0, [("Chapter 1a Setup", 1, [])]),
            ("Chapter 2 Graphs", 4, []),
        ])

        result = detect_chapter_ranges(data)

        assert result.source == DetectionSource.OUTLINE
        assert result.total_pages == 10
        assert [(c.page_start, c.page_end) for c in result.chapters] == [(1, 4), (5, 10)]
        assert [c.chapter_title for c in result.chapters] == [
            "Chapter 1 Basics",
            "Chapter 2 Graphs",
        ]

    def test_real_pdf_without_structure(self, make_pdf_bytes):
        result = detect_chapter_ranges(make_pdf_bytes(8))

        assert result.error == NO_CHAPTERS_MESSAGE
        assert result.total_pages == 8
