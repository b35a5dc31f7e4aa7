"""Tests for the command-line interface."""

import tempfile
import zipfile
from pathlib import Path

from typer.testing import CliRunner

from docx_engine import Orientation, SectionBreakType, create_document, open_document
from docx_engine.cli import app

runner = CliRunner()

WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
RELS_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
WP_NAMESPACE = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"
A_NAMESPACE = "http://schemas.openxmlformats.org/drawingml/2006/main"


def create_test_docx(path: Path, content: str = "Hello world") -> None:
    """Create a two-section document with a header and a table."""
    doc = create_document()
    doc.add_paragraph(content, style="Heading1")
    doc.add_table(2, 2)
    doc.sections[0].add_header().add_paragraph("Header text")
    section = doc.add_section(SectionBreakType.CONTINUOUS, orientation=Orientation.LANDSCAPE, columns=2)
    doc.add_paragraph("Second section")
    assert section.columns == 2
    doc.save(path)


def create_dangling_docx(path: Path) -> None:
    """Create a document whose body has a drawing with no relationship behind it."""
    source = path.with_name("source.docx")
    create_test_docx(source)
    stray = (
        f'<w:p xmlns:w="{WORD_NAMESPACE}" xmlns:r="{RELS_NAMESPACE}" '
        f'xmlns:wp="{WP_NAMESPACE}" xmlns:a="{A_NAMESPACE}"><w:r><w:drawing><wp:inline>'
        '<wp:extent cx="100" cy="100"/><wp:docPr id="50" name="Stray"/>'
        '<a:graphic><a:graphicData uri="urn:pic"><a:blip r:embed="rId99"/></a:graphicData></a:graphic>'
        "</wp:inline></w:drawing></w:r></w:p>"
    )
    with zipfile.ZipFile(source) as src, zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as dst:
        for name in src.namelist():
            data = src.read(name)
            if name == "word/document.xml":
                data = data.replace(b"<w:body>", b"<w:body>" + stray.encode(), 1)
            dst.writestr(name, data)


class TestCLIVersion:
    """Tests for the version flag."""

    def test_version_flag(self):
        """Test --version shows version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "docx-engine version 0.1.0" in result.stdout

    def test_version_short_flag(self):
        result = runner.invoke(app, ["-v"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout


class TestCLIHelp:
    """Tests for help output."""

    def test_main_help(self):
        """Test main --help lists the commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("info", "validate", "resave", "text"):
            assert command in result.stdout

    def test_resave_help(self):
        result = runner.invoke(app, ["resave", "--help"])
        assert result.exit_code == 0
        assert "--output" in result.stdout


class TestCLIInfo:
    """Tests for the info command."""

    def test_info_summary(self):
        """Test info reports sections, blocks and parts."""
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "test.docx"
            create_test_docx(docx_path)

            result = runner.invoke(app, ["info", str(docx_path)])

            assert result.exit_code == 0
            assert f"File: {docx_path}" in result.stdout
            assert "Sections: 2" in result.stdout
            assert "1: portrait 12240x15840 twips, 1 column(s), nextPage" in result.stdout
            assert "2: landscape 15840x12240 twips, 2 column(s), continuous" in result.stdout
            assert "Paragraphs: 2" in result.stdout
            assert "Tables: 1" in result.stdout
            assert "Headers/footers: 1" in result.stdout
            assert "Media: 0" in result.stdout

    def test_info_missing_file(self):
        result = runner.invoke(app, ["info", "/nonexistent/file.docx"])
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestCLIValidate:
    """Tests for the validate command."""

    def test_valid_document(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "test.docx"
            create_test_docx(docx_path)

            result = runner.invoke(app, ["validate", str(docx_path)])

            assert result.exit_code == 0
            assert "is valid" in result.stdout

    def test_dangling_reference(self):
        """Test a drawing without a relationship is reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "broken.docx"
            create_dangling_docx(docx_path)

            result = runner.invoke(app, ["validate", str(docx_path)])

            assert result.exit_code == 1
            assert "Invalid:" in result.output
            assert "rId99" in result.output

    def test_not_a_package(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "plain.docx"
            docx_path.write_text("not a zip archive")

            result = runner.invoke(app, ["validate", str(docx_path)])

            assert result.exit_code == 1
            assert "Invalid:" in result.output


class TestCLIResave:
    """Tests for the resave command."""

    def test_resave(self):
        """Test resave writes a document that opens with the same content."""
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "test.docx"
            output_path = Path(tmpdir) / "output.docx"
            create_test_docx(docx_path, "Round trip")

            result = runner.invoke(app, ["resave", str(docx_path), "-o", str(output_path)])

            assert result.exit_code == 0
            assert f"Saved to {output_path}" in result.stdout
            doc = open_document(output_path)
            assert doc.paragraphs[0].text == "Round trip"
            assert len(doc.sections) == 2

    def test_resave_refuses_invalid_document(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "broken.docx"
            output_path = Path(tmpdir) / "output.docx"
            create_dangling_docx(docx_path)

            result = runner.invoke(app, ["resave", str(docx_path), "--output", str(output_path)])

            assert result.exit_code == 1
            assert "Error:" in result.output
            assert not output_path.exists()

    def test_resave_requires_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "test.docx"
            create_test_docx(docx_path)

            result = runner.invoke(app, ["resave", str(docx_path)])

            assert result.exit_code != 0


class TestCLIText:
    """Tests for the text command."""

    def test_text(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            docx_path = Path(tmpdir) / "test.docx"
            create_test_docx(docx_path, "Quarterly report")

            result = runner.invoke(app, ["text", str(docx_path)])

            assert result.exit_code == 0
            assert "Quarterly report" in result.stdout
            assert "Second section" in result.stdout
            assert "Header text" not in result.stdout
