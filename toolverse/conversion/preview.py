"""
On-screen previews for office documents.

Word documents are rendered paragraph by paragraph with python-docx;
spreadsheets are rendered with pandas. Turning a preview into a paged
document is a separate step (see ``snapshot.py``).
"""
import html
import io
from typing import List, Optional

import pandas as pd
from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph
from loguru import logger

from toolverse.errors import DecodeError


PREVIEW_ELEMENT_ID = "preview"

PREVIEW_CSS = """
body { margin: 0; background: #ffffff; }
#preview { font-family: Georgia, 'Times New Roman', serif; color: #111827; padding: 48px;
           line-height: 1.5; font-size: 14px; }
#preview table { border-collapse: collapse; width: 100%; }
#preview td, #preview th { border: 1px solid #d1d5db; padding: 4px 8px; text-align: left; }
"""

HEADING_STYLES = {
    "Title": "h1",
    "Heading 1": "h1",
    "Heading 2": "h2",
    "Heading 3": "h3",
    "Heading 4": "h4",
    "Heading 5": "h5",
    "Heading 6": "h6",
}


def wrap_document(body: str, title: str = "Preview") -> str:
    """Full HTML page with the content inside the preview element."""
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title><style>{PREVIEW_CSS}</style></head>"
        f"<body><div id=\"{PREVIEW_ELEMENT_ID}\">{body}</div></body></html>"
    )


def _runs_html(paragraph: Paragraph) -> str:
    chunks = []
    for run in paragraph.runs:
        text = html.escape(run.text)
        if not text:
            continue
        if run.bold:
            text = f"<strong>{text}</strong>"
        if run.italic:
            text = f"<em>{text}</em>"
        if run.underline:
            text = f"<u>{text}</u>"
        chunks.append(text)
    return "".join(chunks)


def _list_tag(style_name: str) -> Optional[str]:
    if style_name.startswith("List Bullet"):
        return "ul"
    if style_name.startswith("List Number"):
        return "ol"
    return None


def _table_html(table: Table) -> str:
    rows = []
    for row in table.rows:
        cells = "".join(f"<td>{html.escape(cell.text)}</td>" for cell in row.cells)
        rows.append(f"<tr>{cells}</tr>")
    return f"<table>{''.join(rows)}</table>"


def word_to_html(data: bytes, title: str = "Preview") -> str:
    """Render a word-processing document as an HTML preview page."""
    stage = "Word preview"
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        raise DecodeError(f"Could not read Word document: {e}", stage) from e

    parts: List[str] = []
    open_list: Optional[str] = None

    for block in document.iter_inner_content():
        if isinstance(block, Table):
            if open_list:
                parts.append(f"</{open_list}>")
                open_list = None
            parts.append(_table_html(block))
            continue

        style_name = block.style.name if block.style is not None else ""
        list_tag = _list_tag(style_name)
        if open_list and list_tag != open_list:
            parts.append(f"</{open_list}>")
            open_list = None
        if list_tag:
            if not open_list:
                parts.append(f"<{list_tag}>")
                open_list = list_tag
            parts.append(f"<li>{_runs_html(block)}</li>")
            continue

        content = _runs_html(block)
        tag = HEADING_STYLES.get(style_name)
        if tag:
            parts.append(f"<{tag}>{content}</{tag}>")
        elif content:
            parts.append(f"<p>{content}</p>")

    if open_list:
        parts.append(f"</{open_list}>")

    logger.info(f"Rendered Word preview with {len(parts)} blocks")
    return wrap_document("".join(parts), title)


def spreadsheet_to_html(data: bytes, title: str = "Preview") -> str:
    """
    Render the first sheet of a workbook as an HTML table.

    Only sheet index 0 is read; other sheets are ignored. This is a known gap.
    """
    stage = "Spreadsheet preview"
    try:
        frame = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, engine="openpyxl")
    except Exception as e:
        raise DecodeError(f"Could not read spreadsheet: {e}", stage) from e

    table = frame.to_html(index=False, header=False, na_rep="", border=0)
    logger.info(f"Rendered spreadsheet preview: {frame.shape[0]} rows x {frame.shape[1]} cols")
    return wrap_document(table, title)
