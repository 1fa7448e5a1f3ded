"""End-to-end tests for the pdf-chapters CLI."""

import json

import pytest
from typer.testing import CliRunner

from pdf_chapters.cli import app
from pdf_chapters.commands.extract import get_default_output_dir

runner = CliRunner()


@pytest.fixture
def outlined_pdf(tmp_path, make_pdf_bytes):
    path = tmp_path / "outlined.pdf"
    path.write_bytes(make_pdf_bytes(10, outline=[
        ("Chapter 1 Basics", 0, []),
        ("Chapter 2 Graphs", 4, []),
    ]))
    return path


@pytest.fixture
def plain_pdf(tmp_path, make_pdf_bytes):
    path = tmp_path / "plain.pdf"
    path.write_bytes(make_pdf_bytes(4))
    return path


class TestDetectCommand:
    def test_json_output(self, outlined_pdf):
        result = runner.invoke(app, ["detect", str(outlined_pdf), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["source"] == "outline"
        assert [(c["page_start"], c["page_end"]) for c in data["chapters"]] == [(1, 4), (5, 10)]

    def test_result_is_cached(self, outlined_pdf):
        runner.invoke(app, ["detect", str(outlined_pdf), "--json"])

        assert (outlined_pdf.parent / ".pdf_chapters_cache" / "index.json").exists()

        listed = runner.invoke(app, ["cache", "list", "--dir", str(outlined_pdf.parent)])
        assert listed.exit_code == 0
        assert "Cached Detections" in listed.output

        cleared = runner.invoke(app, ["cache", "clear", "--dir", str(outlined_pdf.parent)])
        assert "Removed 1 cached detection(s)" in cleared.output

    def test_no_chapters_exits_nonzero(self, plain_pdf):
        result = runner.invoke(app, ["detect", str(plain_pdf), "--json"])

        assert result.exit_code == 1
        assert "Could not detect chapter ranges" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["detect", str(tmp_path / "missing.pdf")])

        assert result.exit_code != 0


class TestExtractCommand:
    def test_ranges(self, plain_pdf, tmp_path):
        out = tmp_path / "out"

        result = runner.invoke(app, [
            "extract", str(plain_pdf), "--ranges", "1:1-2, 2:3-4",
            "--no-ocr", "-q", "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert (out / "chapter-1.json").exists()
        assert (out / "chapter-2.json").exists()
        manifest = json.loads((out / "manifest.json").read_text())
        assert [c["chapter_id"] for c in manifest["chapters"]] == ["chapter-1", "chapter-2"]
        assert manifest["warnings"] == ["No text extracted for 2 range(s)."]

    def test_pages(self, plain_pdf, tmp_path):
        out = tmp_path / "out"

        result = runner.invoke(app, [
            "extract", str(plain_pdf), "--pages", "1-2", "--no-ocr", "-q", "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        data = json.loads((out / "pages.json").read_text())
        assert data["metadata"]["title"] == "Pages 1-2"

    def test_auto_with_split(self, outlined_pdf, tmp_path):
        out = tmp_path / "out"

        result = runner.invoke(app, [
            "extract", str(outlined_pdf), "--auto", "--split",
            "--no-ocr", "-q", "-o", str(out),
        ])

        assert result.exit_code == 0, result.output
        manifest = json.loads((out / "manifest.json").read_text())
        assert manifest["detection_source"] == "outline"
        assert [c["chapter_id"] for c in manifest["chapters"]] == [
            "chapter-1-part-1",
            "chapter-2-part-1",
        ]

    def test_requires_one_mode(self, plain_pdf):
        result = runner.invoke(app, ["extract", str(plain_pdf), "--no-ocr"])

        assert result.exit_code == 1
        assert "Use exactly one of" in result.output

    def test_invalid_ranges(self, plain_pdf, tmp_path):
        result = runner.invoke(app, [
            "extract", str(plain_pdf), "--ranges", "1:1-3, 2:3-4",
            "--no-ocr", "-q", "-o", str(tmp_path / "out"),
        ])

        assert result.exit_code == 1
        assert "Overlapping page detected: 3p" in result.output


class TestCacheCommands:
    def test_list_empty(self, tmp_path):
        result = runner.invoke(app, ["cache", "list", "--dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "No cached files" in result.output

    def test_clear_empty(self, tmp_path):
        result = runner.invoke(app, ["cache", "clear", "--dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "No cache to clear" in result.output


class TestDefaultOutputDir:
    def test_sanitized_stem(self, tmp_path):
        assert get_default_output_dir(tmp_path / "My Book (2nd ed).pdf") == (
            tmp_path / "My_Book_2nd_ed_chapters"
        )
