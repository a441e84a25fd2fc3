"""Tests for container re-compression, office previews and office builders."""

import io
import os
import zipfile
from unittest.mock import MagicMock

import pandas as pd
import pdfplumber
import pytest
from docx import Document
from PIL import Image
from selenium.common.exceptions import WebDriverException

from conftest import make_docx_bytes, make_image_bytes
from toolverse.config import settings
from toolverse.conversion import archive, office, preview
from toolverse.conversion.snapshot import SnapshotModule, prepare_document
from toolverse.errors import DecodeError, NothingToCompress


# ---------------------------------------------------------------------------
# Container compression
# ---------------------------------------------------------------------------


class TestCompressContainer:
    def test_embedded_image_replaced_with_jpeg(self, docx_bytes):
        result, replaced = archive.compress_container(docx_bytes, 30)

        assert replaced == 1
        with zipfile.ZipFile(io.BytesIO(result)) as zf:
            media = [n for n in zf.namelist() if archive.is_embedded_raster(n)]
            assert len(media) == 1
            assert Image.open(io.BytesIO(zf.read(media[0]))).format == "JPEG"

    def test_entry_names_and_order_kept(self, docx_bytes):
        result, _ = archive.compress_container(docx_bytes, 60)
        with zipfile.ZipFile(io.BytesIO(docx_bytes)) as before, zipfile.ZipFile(io.BytesIO(result)) as after:
            assert before.namelist() == after.namelist()
            for name in before.namelist():
                if not archive.is_embedded_raster(name):
                    assert before.read(name) == after.read(name)

    def test_result_still_opens(self, docx_bytes):
        result, _ = archive.compress_container(docx_bytes, 60)
        assert Document(io.BytesIO(result)).paragraphs

    def test_transparent_image_flattened(self):
        result, _ = archive.compress_container(make_docx_bytes(transparent=True), 80)
        with zipfile.ZipFile(io.BytesIO(result)) as zf:
            name = next(n for n in zf.namelist() if archive.is_embedded_raster(n))
            pixel = Image.open(io.BytesIO(zf.read(name))).convert("RGB").getpixel((5, 5))
        assert all(channel > 245 for channel in pixel)

    def test_no_images(self):
        with pytest.raises(NothingToCompress) as exc_info:
            archive.compress_container(make_docx_bytes(with_image=False), 60)
        assert exc_info.value.message == "No images found in this document to compress."

    def test_not_a_zip(self):
        with pytest.raises(DecodeError):
            archive.compress_container(b"PK\x03\x04 broken", 60)

    @pytest.mark.parametrize("name,expected", [
        ("word/media/image1.png", True),
        ("ppt/media/photo.JPEG", True),
        ("xl/media/chart.emf", False),
        ("word/document.xml", False),
        ("word/images/image1.png", False),
    ])
    def test_is_embedded_raster(self, name, expected):
        assert archive.is_embedded_raster(name) is expected


# ---------------------------------------------------------------------------
# Previews
# ---------------------------------------------------------------------------


class TestWordPreview:
    def test_structure(self, docx_bytes):
        markup = preview.word_to_html(docx_bytes, "report.docx")
        assert '<div id="preview">' in markup
        assert "<h1>Quarterly Report</h1>" in markup
        assert "<ul><li>North</li><li>South</li></ul>" in markup
        assert "<td>Region</td>" in markup
        assert "<p>Revenue grew in every region.</p>" in markup

    def test_escapes_text(self):
        document = Document()
        document.add_paragraph("a < b & c")
        buffer = io.BytesIO()
        document.save(buffer)
        assert "a &lt; b &amp; c" in preview.word_to_html(buffer.getvalue())

    def test_invalid_document(self):
        with pytest.raises(DecodeError):
            preview.word_to_html(b"nope")


class TestSpreadsheetPreview:
    def test_first_sheet_only(self, xlsx_bytes):
        markup = preview.spreadsheet_to_html(xlsx_bytes)
        assert "Rent" in markup
        assert "1200" in markup
        assert "hidden-value" not in markup

    def test_invalid_workbook(self):
        with pytest.raises(DecodeError):
            preview.spreadsheet_to_html(b"nope")


class TestPrepareDocument:
    def test_fragment_gets_preview_wrapper(self):
        document = prepare_document("<h1>Hi</h1>")
        assert 'id="preview"' in document
        assert "<style>" in document

    def test_existing_preview_kept(self):
        markup = preview.wrap_document("<p>x</p>")
        assert prepare_document(markup).count('id="preview"') == 1

    @pytest.mark.parametrize("markup", ["", "   ", "plain words"])
    def test_markup_without_root(self, markup):
        document = prepare_document(markup)
        assert 'id="preview"' in document
        assert "<style>" in document


class TestSnapshotModule:
    @staticmethod
    def module_with_driver(driver):
        module = SnapshotModule()
        module._driver = driver
        return module

    @pytest.mark.asyncio
    async def test_captures_preview_element(self):
        driver = MagicMock()
        driver.execute_script.return_value = 900
        driver.find_element.return_value.screenshot_as_png = make_image_bytes((300, 150), fmt="PNG")
        module = self.module_with_driver(driver)

        data = await module.to_pdf("<h1>Hi</h1>")

        with pdfplumber.open(io.BytesIO(data)) as pdf:
            [page] = pdf.pages
            assert page.height / page.width == pytest.approx(0.5, abs=0.01)
        driver.find_element.assert_called_with("id", "preview")
        driver.set_window_size.assert_called_with(settings.snapshot_width, 900)
        # The temporary page is gone once captured
        uri = driver.get.call_args.args[0]
        assert not os.path.exists(uri[len("file://"):])
        module.shutdown()

    @pytest.mark.asyncio
    async def test_blank_markup_never_reaches_browser(self):
        driver = MagicMock()
        module = self.module_with_driver(driver)
        with pytest.raises(DecodeError) as exc_info:
            await module.to_pdf("  \n ")
        assert exc_info.value.stage == "Preview snapshot"
        driver.get.assert_not_called()
        module.shutdown()

    @pytest.mark.asyncio
    async def test_driver_failure_resets_driver(self):
        driver = MagicMock()
        driver.get.side_effect = WebDriverException("session deleted")
        module = self.module_with_driver(driver)
        with pytest.raises(DecodeError) as exc_info:
            await module.to_pdf("<p>x</p>")
        assert "session deleted" in exc_info.value.message
        driver.quit.assert_called_once()
        assert module._driver is None
        module.shutdown()

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_decode_error(self):
        driver = MagicMock()
        driver.get.side_effect = RuntimeError("renderer crashed")
        module = self.module_with_driver(driver)
        with pytest.raises(DecodeError) as exc_info:
            await module.to_pdf("<p>x</p>")
        assert exc_info.value.stage == "Preview snapshot"
        assert "renderer crashed" in exc_info.value.message
        module.shutdown()


# ---------------------------------------------------------------------------
# Office builders
# ---------------------------------------------------------------------------


class TestMarkdownToDocx:
    def test_layout(self):
        data = office.markdown_to_docx(
            "```markdown\n# Title\n\nSome **bold** text.\n\n- one\n- two\n\n"
            "| A | B |\n|---|---|\n| 1 | 2 |\n```"
        )
        document = Document(io.BytesIO(data))
        styles = [p.style.name for p in document.paragraphs]
        assert "Heading 1" in styles
        assert styles.count("List Bullet") == 2
        bold = [run.text for p in document.paragraphs for run in p.runs if run.bold]
        assert bold == ["bold"]
        [table] = document.tables
        assert table.cell(1, 1).text == "2"

    def test_lone_asterisks_are_literal(self):
        data = office.markdown_to_docx("**Total:** 5 * 3 = 15 and *note*")
        [paragraph] = Document(io.BytesIO(data)).paragraphs
        assert paragraph.text == "Total: 5 * 3 = 15 and note"
        assert [run.text for run in paragraph.runs if run.bold] == ["Total:"]
        assert [run.text for run in paragraph.runs if run.italic] == ["note"]

    def test_nested_list_and_code_block(self):
        data = office.markdown_to_docx(
            "1. first\n    - inner\n2. second\n\n```\nx = 1\n```"
        )
        document = Document(io.BytesIO(data))
        styles = [p.style.name for p in document.paragraphs]
        assert styles[:3] == ["List Number", "List Bullet 2", "List Number"]
        code = document.paragraphs[-1]
        assert code.text == "x = 1"
        assert code.runs[0].font.name == "Courier New"


class TestCsvToXlsx:
    def test_one_sheet_per_block(self):
        data = office.csv_to_xlsx("Name,Age\nAna,31\n\nCity,Pop\nOslo,700000\n")
        sheets = pd.read_excel(io.BytesIO(data), sheet_name=None, engine="openpyxl")
        assert list(sheets) == ["Table 1", "Table 2"]
        assert sheets["Table 1"].iloc[0]["Name"] == "Ana"

    def test_ragged_rows_padded(self):
        [block] = office.split_csv_blocks('a,b,c\n1,"x, y"\n')
        assert block[1] == ["1", "x, y"]
        data = office.csv_to_xlsx('a,b,c\n1,"x, y"\n')
        frame = pd.read_excel(io.BytesIO(data), engine="openpyxl")
        assert list(frame.columns) == ["a", "b", "c"]

    def test_empty_output_still_a_workbook(self):
        sheets = pd.read_excel(io.BytesIO(office.csv_to_xlsx("")), sheet_name=None, engine="openpyxl")
        assert list(sheets) == ["Table 1"]
