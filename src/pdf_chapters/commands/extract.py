"""Extract command implementation."""

import re
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from pdf_chapters.core.chapter_detector import detect_chapter_ranges_in_document
from pdf_chapters.core.document import open_document
from pdf_chapters.core.output_writer import OutputWriter
from pdf_chapters.core.ranges import (
    parse_chapter_range_input,
    parse_page_selection_input,
    split_chapter_ranges,
)
from pdf_chapters.core.text_extractor import ScopedTextExtractor
from pdf_chapters.models.chapter import ChapterRange
from pdf_chapters.models.extraction import (
    ChapterExtraction,
    DetectionSource,
    ExtractionResult,
)


def get_default_output_dir(pdf_path: Path) -> Path:
    """Get default output directory based on the PDF filename."""
    clean_stem = re.sub(r"[^\w\s-]", "", pdf_path.stem).strip()
    clean_stem = re.sub(r"[-\s]+", "_", clean_stem)
    return pdf_path.parent / f"{clean_stem}_chapters"


def _page_list_chapter(selection_text: str, result: ExtractionResult, pages: list[int]) -> ChapterExtraction:
    return ChapterExtraction(
        id="pages",
        chapter_number=1,
        chapter_title=f"Pages {selection_text}",
        page_start=pages[0],
        page_end=pages[-1],
        text=result.text,
        pages_used=result.pages_used,
        ocr_used=result.ocr_used,
        outcome=result.outcome,
    )


def execute_extract(
    pdf_path: Path,
    pages: str | None,
    ranges: str | None,
    auto: bool,
    split: bool,
    max_length: int,
    max_scan_pages: int,
    use_ocr: bool,
    ocr_lang: str,
    ocr_scale: float,
    output_dir: Path | None,
    quiet: bool,
    console: Console,
) -> list[ChapterExtraction]:
    """Execute the extract command."""
    if sum((pages is not None, ranges is not None, auto)) != 1:
        raise ValueError("Use exactly one of --pages, --ranges or --auto.")

    detection_source: DetectionSource | None = None
    warnings: list[str] = []

    with open_document(pdf_path) as document, Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        disable=quiet,
    ) as progress:
        task = progress.add_task("Extracting text...", total=None)

        def report(message: str) -> None:
            progress.update(task, description=message)

        extractor = ScopedTextExtractor(document)
        total_pages = document.total_pages

        if pages is not None:
            selection = parse_page_selection_input(pages, total_pages)
            if selection.error:
                raise ValueError(selection.error)
            result = extractor.extract_pages(
                selection.pages,
                max_length=max_length,
                use_ocr=use_ocr,
                ocr_lang=ocr_lang,
                ocr_scale=ocr_scale,
                on_ocr_progress=report,
            )
            chapters = [_page_list_chapter(pages, result, selection.pages)]
        else:
            targets: list[ChapterRange]
            if ranges is not None:
                parsed = parse_chapter_range_input(ranges, total_pages)
                if parsed.error:
                    raise ValueError(parsed.error)
                if not parsed.chapters:
                    raise ValueError("Enter chapter ranges first.")
                targets = list(parsed.chapters)
            else:
                report("Detecting chapter ranges...")
                detection = detect_chapter_ranges_in_document(document, max_scan_pages)
                if detection.error:
                    raise ValueError(detection.error)
                targets = list(detection.chapters)
                detection_source = detection.source
                warnings.extend(detection.warnings)

            if split:
                targets = split_chapter_ranges(targets)

            chapters = extractor.extract_ranges(
                targets,
                max_length_per_range=max_length,
                use_ocr=use_ocr,
                ocr_lang=ocr_lang,
                ocr_scale=ocr_scale,
                on_ocr_progress=report,
            ).chapters

    final_output_dir = output_dir or get_default_output_dir(pdf_path)
    writer = OutputWriter(final_output_dir, pdf_path)
    chapter_metadata = [writer.write_chapter(chapter)[1] for chapter in chapters]

    empty = [c for c in chapters if not c.text]
    if empty:
        suffix = " OCR was attempted but no readable text was found." if any(
            c.ocr_used for c in empty
        ) else ""
        warnings.append(f"No text extracted for {len(empty)} range(s).{suffix}")

    manifest_path = writer.write_manifest(
        total_pages, chapter_metadata, detection_source, warnings
    )

    if not quiet:
        console.print()
        summary_lines = [
            f"[green]Extracted {len(chapters) - len(empty)} of {len(chapters)} range(s)[/]",
            "",
            f"[dim]Output directory:[/] {final_output_dir}",
            f"[dim]Manifest:[/] {manifest_path.name}",
        ]
        if any(c.ocr_used for c in chapters):
            summary_lines.append("[dim]OCR:[/] used for ranges without a text layer")
        for warning in warnings:
            summary_lines.append(f"[yellow]⚠ {warning}[/]")

        console.print(Panel("\n".join(summary_lines), title="Complete", border_style="green"))

    return chapters
