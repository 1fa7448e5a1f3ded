"""Detect command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from pdf_chapters.cache.manager import CacheManager
from pdf_chapters.core.chapter_detector import detect_chapter_ranges
from pdf_chapters.core.classifier import infer_chapter_number
from pdf_chapters.core.ranges import format_chapter_range_input
from pdf_chapters.models.extraction import DetectionResult, DetectionSource

SOURCE_LABELS = {
    DetectionSource.OUTLINE: "PDF outline (bookmarks)",
    DetectionSource.TOC_PAGES: "Table of contents pages",
}


def display_chapters(detection: DetectionResult, console: Console) -> None:
    """Display detected chapter ranges."""
    table = Table(title="Chapter Ranges", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Pages", justify="right", style="green")
    table.add_column("Title #", justify="right", style="dim")

    for chapter in detection.chapters:
        inferred = infer_chapter_number(chapter.chapter_title, 0)
        table.add_row(
            str(chapter.chapter_number),
            chapter.chapter_title,
            f"{chapter.page_start}-{chapter.page_end}",
            str(inferred) if inferred else "-",
        )

    console.print(table)


def execute_detect(
    pdf_path: Path,
    max_scan_pages: int,
    force: bool,
    as_json: bool,
    console: Console,
) -> DetectionResult:
    """Execute the detect command."""
    cache_manager = CacheManager(pdf_path.parent)

    detection: DetectionResult | None = None
    if not force:
        detection = cache_manager.get_cached_detection(pdf_path, max_scan_pages)
        if detection is not None and not as_json:
            console.print("[dim]Using cached detection[/]")

    if detection is None:
        if as_json:
            detection = detect_chapter_ranges(pdf_path, max_scan_pages=max_scan_pages)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                progress.add_task("Detecting chapter ranges...", total=None)
                detection = detect_chapter_ranges(pdf_path, max_scan_pages=max_scan_pages)

        if not detection.error:
            cache_manager.save_detection(pdf_path, detection, max_scan_pages)

    if as_json:
        console.print_json(detection.model_dump_json())
        return detection

    console.print()
    info_lines = [
        f"[bold]{pdf_path.name}[/]",
        f"[dim]Total pages:[/] {detection.total_pages}",
        f"[dim]Source:[/] {SOURCE_LABELS.get(detection.source, 'None')}",
        f"[dim]Chapters:[/] {len(detection.chapters)}",
    ]
    for warning in detection.warnings:
        info_lines.append(f"[yellow]⚠ {warning}[/]")
    if detection.error:
        info_lines.append("")
        info_lines.append(f"[red]{detection.error}[/]")

    console.print(Panel("\n".join(info_lines), title="Detection", border_style="green"))

    if detection.chapters:
        console.print()
        display_chapters(detection, console)
        console.print()
        console.print(
            Panel(
                format_chapter_range_input(detection.chapters),
                title="Manual range input",
                border_style="blue",
            )
        )
    console.print()
    return detection
