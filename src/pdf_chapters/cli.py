"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pdf_chapters.cache.manager import CacheManager
from pdf_chapters.core.ocr import DEFAULT_OCR_LANG, DEFAULT_OCR_SCALE
from pdf_chapters.core.text_extractor import DEFAULT_MAX_LENGTH
from pdf_chapters.core.toc_scanner import DEFAULT_MAX_SCAN_PAGES

app = typer.Typer(
    name="pdf-chapters",
    help="Detect chapter ranges in PDFs and extract chapter text for study material.",
    add_completion=False,
)

console = Console()

# Cache subcommand group
cache_app = typer.Typer(help="Cache management commands")
app.add_typer(cache_app, name="cache")

PdfArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to the PDF file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]

CacheDirOption = Annotated[
    Path,
    typer.Option(
        "--dir",
        "-d",
        help="Directory holding .pdf_chapters_cache (default: current directory)",
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Detect chapter ranges in PDFs and extract chapter text for study material."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def detect(
    pdf_path: PdfArgument,
    max_scan_pages: Annotated[
        int,
        typer.Option(
            "--max-scan-pages",
            help="Front pages to scan for a table of contents",
            min=1,
        ),
    ] = DEFAULT_MAX_SCAN_PAGES,
    force: Annotated[
        bool,
        typer.Option("--force", help="Ignore cached detection results"),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the detection result as JSON"),
    ] = False,
) -> None:
    """Detect chapter ranges from the outline or table of contents pages."""
    try:
        from pdf_chapters.commands.detect import execute_detect

        detection = execute_detect(
            pdf_path=pdf_path,
            max_scan_pages=max_scan_pages,
            force=force,
            as_json=as_json,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    if detection.error:
        raise typer.Exit(1)


@app.command()
def extract(
    pdf_path: PdfArgument,
    pages: Annotated[
        Optional[str],
        typer.Option("--pages", "-p", help="Pages to extract: '1,3,5-8'"),
    ] = None,
    ranges: Annotated[
        Optional[str],
        typer.Option(
            "--ranges",
            "-r",
            help="Chapter ranges: '1:1-12, 2:13-24' (or bare '1-12, 13-24')",
        ),
    ] = None,
    auto: Annotated[
        bool,
        typer.Option("--auto", "-a", help="Use automatically detected chapter ranges"),
    ] = False,
    split: Annotated[
        bool,
        typer.Option("--split", help="Split long chapters into ~10 page chunks"),
    ] = False,
    max_length: Annotated[
        int,
        typer.Option(
            "--max-length",
            "-n",
            help="Maximum characters per range (or for the page list)",
            min=1,
        ),
    ] = DEFAULT_MAX_LENGTH,
    max_scan_pages: Annotated[
        int,
        typer.Option("--max-scan-pages", help="Front pages to scan with --auto", min=1),
    ] = DEFAULT_MAX_SCAN_PAGES,
    use_ocr: Annotated[
        bool,
        typer.Option("--ocr/--no-ocr", help="Fall back to OCR when no text is found"),
    ] = True,
    ocr_lang: Annotated[
        str,
        typer.Option("--ocr-lang", help="Tesseract language(s)"),
    ] = DEFAULT_OCR_LANG,
    ocr_scale: Annotated[
        float,
        typer.Option("--ocr-scale", help="Render scale for OCR (1.0 = 72 DPI)", min=0.5),
    ] = DEFAULT_OCR_SCALE,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Output directory (default: {pdf_name}_chapters/)",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Extract text for a page list or for chapter ranges."""
    try:
        from pdf_chapters.commands.extract import execute_extract

        execute_extract(
            pdf_path=pdf_path,
            pages=pages,
            ranges=ranges,
            auto=auto,
            split=split,
            max_length=max_length,
            max_scan_pages=max_scan_pages,
            use_ocr=use_ocr,
            ocr_lang=ocr_lang,
            ocr_scale=ocr_scale,
            output_dir=output_dir,
            quiet=quiet,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@cache_app.command("clear")
def cache_clear(project_dir: CacheDirOption = Path(".")) -> None:
    """Delete cached chapter detections."""
    count = CacheManager(project_dir.resolve()).clear_cache()

    if count > 0:
        console.print(f"[green]Removed {count} cached detection(s)[/]")
    else:
        console.print("[dim]No cache to clear[/]")


@cache_app.command("list")
def cache_list(project_dir: CacheDirOption = Path(".")) -> None:
    """List cached chapter detections."""
    entries = CacheManager(project_dir.resolve()).list_cached()

    if not entries:
        console.print("[dim]No cached files[/]")
        return

    table = Table(title="Cached Detections", show_header=True, header_style="bold cyan")
    table.add_column("PDF", style="white")
    table.add_column("Scan depth", justify="right", style="green")
    table.add_column("Cached at", style="dim")
    table.add_column("Hash", style="dim", width=12)

    for meta in entries:
        name = meta.file_path if len(meta.file_path) < 50 else "..." + meta.file_path[-47:]
        table.add_row(
            name,
            str(meta.max_scan_pages),
            meta.cached_at.strftime("%Y-%m-%d %H:%M"),
            meta.file_hash[:12],
        )

    console.print(table)


if __name__ == "__main__":
    app()
