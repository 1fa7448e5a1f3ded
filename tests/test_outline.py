"""Tests for outline flattening and outline-based chapter detection."""

from conftest import FakeDocument, OutlineItem, blank_pages

from pdf_chapters.core.outline import (
    OutlineNode,
    detect_by_outline,
    extract_outline_entries,
    flatten_outline,
)


def _spans(ranges):
    return [(r.page_start, r.page_end) for r in ranges]


class TestFlattenOutline:
    """Nested pypdf-style lists flatten depth-first with depths."""

    def test_nested(self):
        intro = OutlineItem("Chapter 1", 1)
        setup = OutlineItem("1.1 Setup", 2)
        detail = OutlineItem("1.1.1 Detail", 3)
        graphs = OutlineItem("Chapter 2", 10)

        nodes = flatten_outline([intro, [setup, [detail]], graphs])

        assert [(n.title, n.depth) for n in nodes] == [
            ("Chapter 1", 0),
            ("1.1 Setup", 1),
            ("1.1.1 Detail", 2),
            ("Chapter 2", 0),
        ]
        assert nodes[1].destination is setup

    def test_returns_immutable_sequence(self):
        nodes = flatten_outline([OutlineItem("Chapter 1", 1)])

        assert isinstance(nodes, tuple)
        assert nodes == (OutlineNode(title="Chapter 1", destination=nodes[0].destination, depth=0),)

    def test_dict_items(self):
        nodes = flatten_outline([{"/Title": "Chapter 1"}, {"title": "Chapter 2"}])

        assert [n.title for n in nodes] == ["Chapter 1", "Chapter 2"]

    def test_empty(self):
        assert flatten_outline([]) == ()
        assert flatten_outline(None) == ()


class TestExtractOutlineEntries:
    """Top-level chapters first, then chapters at any depth, then top level."""

    def test_prefers_top_level_chapters(self):
        document = FakeDocument(blank_pages(30), outline=[
            OutlineItem("Chapter 1 Intro", 1),
            [OutlineItem("Chapter 1a Setup", 2)],
            OutlineItem("Chapter 2 Data", 10),
            OutlineItem("Index", 28),
        ])

        entries = extract_outline_entries(document)

        assert [(e.title, e.page_start) for e in entries] == [
            ("Chapter 1 Intro", 1),
            ("Chapter 2 Data", 10),
        ]

    def test_falls_back_to_nested_chapters(self):
        document = FakeDocument(blank_pages(30), outline=[
            OutlineItem("Part One", 1),
            [OutlineItem("Chapter 1 A", 2), OutlineItem("Chapter 2 B", 12)],
            OutlineItem("Part Two", 20),
        ])

        entries = extract_outline_entries(document)

        assert [(e.title, e.depth) for e in entries] == [
            ("Chapter 1 A", 1),
            ("Chapter 2 B", 1),
        ]

    def test_falls_back_to_top_level(self):
        document = FakeDocument(blank_pages(30), outline=[
            OutlineItem("Preface", 1),
            OutlineItem("Getting Started", 5),
            [OutlineItem("Installing", 6)],
            OutlineItem("Going Further", 15),
        ])

        entries = extract_outline_entries(document)

        assert [e.title for e in entries] == ["Preface", "Getting Started", "Going Further"]

    def test_unresolvable_destinations_dropped(self):
        document = FakeDocument(blank_pages(30), outline=[
            OutlineItem("Chapter 1", None),
            OutlineItem("Chapter 2", 50),
            OutlineItem("Chapter 3", 0),
            OutlineItem("Chapter 4", 12),
            OutlineItem("Chapter 5", 20),
        ])

        entries = extract_outline_entries(document)

        assert [e.title for e in entries] == ["Chapter 4", "Chapter 5"]

    def test_titles_sanitized(self):
        document = FakeDocument(blank_pages(10), outline=[
            OutlineItem("  Chapter 1 ....... ", 1),
            OutlineItem("Chapter\n2", 5),
        ])

        entries = extract_outline_entries(document)

        assert [e.title for e in entries] == ["Chapter 1", "Chapter 2"]

    def test_single_entry(self):
        document = FakeDocument(blank_pages(10), outline=[OutlineItem("Chapter 1", 1)])

        assert extract_outline_entries(document) == []

    def test_no_outline(self):
        assert extract_outline_entries(FakeDocument(blank_pages(10))) == []


class TestDetectByOutline:
    def test_ranges_from_outline(self):
        document = FakeDocument(blank_pages(30), outline=[
            OutlineItem("Chapter 1 Intro", 1),
            OutlineItem("Chapter 2 Data", 10),
            OutlineItem("Chapter 3 Models", 22),
        ])

        ranges = detect_by_outline(document)

        assert _spans(ranges) == [(1, 9), (10, 21), (22, 30)]
        assert [r.chapter_number for r in ranges] == [1, 2, 3]

    def test_unusable_outline(self):
        document = FakeDocument(blank_pages(10), outline=[OutlineItem("Chapter 1", 3)])

        assert detect_by_outline(document) == []
