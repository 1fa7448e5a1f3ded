"""Data models for chapter structure."""

from pydantic import BaseModel, ConfigDict, Field


class TocEntry(BaseModel):
    """A (title, start page) boundary found in an outline or a TOC page."""

    model_config = ConfigDict(frozen=True)

    title: str
    page_start: int = Field(ge=1)  # 1-indexed
    depth: int = Field(default=0, ge=0)  # outline nesting, 0 for TOC pages


class ChapterRange(BaseModel):
    """A contiguous span of pages assigned a sequential chapter number."""

    model_config = ConfigDict(frozen=True)

    id: str
    chapter_number: int = Field(ge=1)
    chapter_title: str
    page_start: int = Field(ge=1)  # inclusive, 1-indexed
    page_end: int = Field(ge=1)  # inclusive, 1-indexed

    @property
    def page_count(self) -> int:
        return self.page_end - self.page_start + 1

    def pages(self) -> range:
        """Page numbers covered by this range."""
        return range(self.page_start, self.page_end + 1)


class ChapterRangeSelection(ChapterRange):
    """A chapter range entered manually by the user."""


class RangeSelectionResult(BaseModel):
    """Outcome of parsing manual chapter range input."""

    chapters: list[ChapterRangeSelection] = Field(default_factory=list)
    error: str = ""


class PageSelectionResult(BaseModel):
    """Outcome of parsing manual page selection input."""

    pages: list[int] = Field(default_factory=list)
    error: str = ""
