"""Write extracted chapter text to an output directory."""

from datetime import datetime
from pathlib import Path

from pdf_chapters.models.extraction import ChapterExtraction, DetectionSource
from pdf_chapters.models.output import ChapterMetadata, ChapterOutput, ExtractionManifest


class OutputWriter:
    """Write extracted chapters as JSON files plus a manifest."""

    def __init__(self, output_dir: Path, source_path: Path):
        """Initialize output writer.

        Args:
            output_dir: Directory to write output files
            source_path: Path to the source PDF
        """
        self.output_dir = output_dir
        self.source_path = source_path
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write_chapter(self, chapter: ChapterExtraction) -> tuple[Path, ChapterMetadata]:
        """Write a single chapter to a JSON file."""
        metadata = ChapterMetadata(
            chapter_id=chapter.id,
            chapter_number=chapter.chapter_number,
            title=chapter.chapter_title,
            source_path=str(self.source_path),
            extracted_at=datetime.now(),
            page_start=chapter.page_start,
            page_end=chapter.page_end,
            pages_used=chapter.pages_used,
            word_count=len(chapter.text.split()),
            character_count=len(chapter.text),
            ocr_used=chapter.ocr_used,
            outcome=chapter.outcome.value,
        )
        output = ChapterOutput(metadata=metadata, content=chapter.text)

        filepath = self.output_dir / f"{chapter.id}.json"
        filepath.write_text(output.model_dump_json(indent=2))

        return filepath, metadata

    def write_manifest(
        self,
        total_pages: int,
        chapter_metadata: list[ChapterMetadata],
        detection_source: DetectionSource | None = None,
        warnings: list[str] | None = None,
    ) -> Path:
        """Write the extraction manifest file."""
        manifest = ExtractionManifest(
            source_path=str(self.source_path),
            total_pages=total_pages,
            output_directory=str(self.output_dir),
            created_at=datetime.now(),
            detection_source=detection_source.value if detection_source else None,
            chapters=chapter_metadata,
            warnings=warnings or [],
        )

        filepath = self.output_dir / "manifest.json"
        filepath.write_text(manifest.model_dump_json(indent=2))
        return filepath
