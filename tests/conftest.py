"""Shared fakes for documents, pages and OCR."""

import io
from dataclasses import dataclass

import pypdf
import pytest
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject

from pdf_chapters.core.document import ReadAttempt, TextFragment


@dataclass
class OutlineItem:
    """Stand-in for a pypdf outline destination."""

    title: str
    page: int | None


class FakeImage:
    def __init__(self, page: int):
        self.page = page
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakePage:
    """A page whose text is a list of lines.

    `by_attempt` maps a ReadAttempt name to the lines that attempt sees;
    attempts not listed see `lines`.
    """

    def __init__(self, number: int, lines=None, by_attempt=None):
        self.number = number
        self.lines = list(lines or [])
        self.by_attempt = dict(by_attempt or {})
        self.attempts_seen: list[str] = []
        self.images: list[FakeImage] = []
        self.render_scales: list[float] = []
        self.close_count = 0

    def get_text_fragments(self, attempt: ReadAttempt) -> list[TextFragment]:
        self.attempts_seen.append(attempt.name)
        lines = self.by_attempt.get(attempt.name, self.lines)
        if isinstance(lines, Exception):
            raise lines
        return [TextFragment(text=line, has_line_break_after=True) for line in lines]

    def render_to_raster(self, scale: float) -> FakeImage:
        self.render_scales.append(scale)
        image = FakeImage(self.number)
        self.images.append(image)
        return image

    def close(self) -> None:
        self.close_count += 1


class FakeDocument:
    """In-memory document built from per-page line lists."""

    def __init__(self, pages, outline=None):
        self.pages = {
            number: page if isinstance(page, FakePage) else FakePage(number, page)
            for number, page in enumerate(pages, start=1)
        }
        self.total_pages = len(self.pages)
        self.outline = outline or []
        self.requested: list[int] = []

    def get_page(self, number: int) -> FakePage:
        self.requested.append(number)
        return self.pages[number]

    def get_outline(self) -> list:
        return self.outline

    def resolve_destination(self, destination: OutlineItem) -> int | None:
        return destination.page


class FakeRecognizer:
    """TextRecognizer double returning canned text per page."""

    def __init__(self, texts=None, error: Exception | None = None):
        self.texts = dict(texts or {})
        self.error = error
        self.calls: list[tuple[int, str]] = []
        self.closed = False

    def recognize(self, image: FakeImage, lang: str) -> str:
        self.calls.append((image.page, lang))
        if self.error is not None:
            raise self.error
        return self.texts.get(image.page, "")

    def close(self) -> None:
        self.closed = True


def blank_pages(count: int) -> list[list[str]]:
    return [[] for _ in range(count)]


@pytest.fixture
def make_pdf_bytes():
    """Build a small blank PDF, optionally with an outline.

    `outline` is a list of (title, 0-based page index, children) tuples.
    """

    def _make(page_count: int, outline=None) -> bytes:
        writer = pypdf.PdfWriter()
        for _ in range(page_count):
            writer.add_blank_page(width=612, height=792)

        def add_items(items, parent=None):
            for title, page_index, children in items:
                item = writer.add_outline_item(title, page_index, parent=parent)
                add_items(children, item)

        add_items(outline or [])

        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_text_pdf_bytes():
    """Build a letter-size PDF whose pages carry real Helvetica text.

    `page_lines` maps a 1-based page number to its lines, drawn top down.
    """

    def _make(page_count: int, page_lines=None) -> bytes:
        writer = pypdf.PdfWriter()
        font = DictionaryObject({
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
        })

        for number in range(1, page_count + 1):
            page = writer.add_blank_page(width=612, height=792)
            lines = (page_lines or {}).get(number, [])
            if not lines:
                continue

            page[NameObject("/Resources")] = DictionaryObject({
                NameObject("/Font"): DictionaryObject({NameObject("/F1"): font}),
            })
            commands = [
                f"BT /F1 12 Tf 72 {720 - 24 * i} Td ({line}) Tj ET"
                for i, line in enumerate(lines)
            ]
            stream = DecodedStreamObject()
            stream.set_data("\n".join(commands).encode("latin-1"))
            page.replace_contents(stream)

        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    return _make
