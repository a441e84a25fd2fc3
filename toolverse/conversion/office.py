"""
Build office documents from generated text (python-docx, pandas/openpyxl)

Markdown is rendered to HTML with the same extensions the result renderer
uses, then the element tree is laid out as Word paragraphs and tables.
"""
import csv
import io
from typing import List

import markdown as md_lib
import pandas as pd
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from docx import Document
from loguru import logger


MARKDOWN_EXTENSIONS = ["tables", "fenced_code", "sane_lists"]
CODE_FONT = "Courier New"
HEADING_TAGS = {f"h{n}": n for n in range(1, 7)}
LIST_STYLES = {"ul": "List Bullet", "ol": "List Number"}
# python-docx's default template ships three levels of each list style
MAX_LIST_LEVEL = 3


def strip_code_fence(text: str) -> str:
    """Drop a surrounding ```lang ... ``` fence if the model added one."""
    stripped = text.strip()
    if stripped.startswith('```') and stripped.endswith('```'):
        lines = stripped.splitlines()
        return "\n".join(lines[1:-1])
    return text


def _add_runs(paragraph, node: Tag, bold: bool = False, italic: bool = False, code: bool = False) -> None:
    """Add the inline content of ``node`` as runs, carrying emphasis down."""
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            text = str(child) if code else str(child).replace("\n", " ")
            if not text.strip() and not paragraph.runs:
                continue
            run = paragraph.add_run(text)
            if bold:
                run.bold = True
            if italic:
                run.italic = True
            if code:
                run.font.name = CODE_FONT
        elif child.name in LIST_STYLES:
            # Nested lists become their own paragraphs
            continue
        elif child.name == "br":
            paragraph.add_run().add_break()
        else:
            _add_runs(
                paragraph,
                child,
                bold=bold or child.name in ("strong", "b"),
                italic=italic or child.name in ("em", "i"),
                code=code or child.name == "code",
            )


def _add_list(document, node: Tag, level: int = 1) -> None:
    style = LIST_STYLES[node.name]
    if level > 1:
        style = f"{style} {min(level, MAX_LIST_LEVEL)}"
    for item in node.find_all("li", recursive=False):
        _add_runs(document.add_paragraph(style=style), item)
        for nested in item.find_all(list(LIST_STYLES), recursive=False):
            _add_list(document, nested, level + 1)


def _add_table(document, node: Tag) -> None:
    rows = [row.find_all(["th", "td"]) for row in node.find_all("tr")]
    rows = [cells for cells in rows if cells]
    if not rows:
        return
    width = max(len(cells) for cells in rows)
    table = document.add_table(rows=len(rows), cols=width)
    table.style = 'Table Grid'
    for r, cells in enumerate(rows):
        for c, cell in enumerate(cells):
            _add_runs(table.cell(r, c).paragraphs[0], cell, bold=cell.name == "th")


def _add_block(document, node) -> None:
    if isinstance(node, Comment):
        return
    if isinstance(node, NavigableString):
        if node.strip():
            document.add_paragraph(node.strip())
        return

    if node.name in HEADING_TAGS:
        _add_runs(document.add_heading(level=HEADING_TAGS[node.name]), node)
    elif node.name in LIST_STYLES:
        _add_list(document, node)
    elif node.name == "table":
        _add_table(document, node)
    elif node.name == "pre":
        document.add_paragraph().add_run(node.get_text().rstrip("\n")).font.name = CODE_FONT
    elif node.name in ("blockquote", "div"):
        for child in node.children:
            _add_block(document, child)
    elif node.name == "hr":
        return
    else:
        _add_runs(document.add_paragraph(), node)


def markdown_to_docx(markdown_text: str) -> bytes:
    """Lay out headings, lists, tables and paragraphs as a Word document."""
    html = md_lib.markdown(strip_code_fence(markdown_text), extensions=MARKDOWN_EXTENSIONS)
    soup = BeautifulSoup(html, "lxml")
    document = Document()
    if soup.body is not None:
        for node in soup.body.children:
            _add_block(document, node)

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def split_csv_blocks(csv_text: str) -> List[List[List[str]]]:
    """Split CSV output into tables separated by blank lines."""
    blocks: List[List[str]] = [[]]
    for line in strip_code_fence(csv_text).splitlines():
        if line.strip():
            blocks[-1].append(line)
        elif blocks[-1]:
            blocks.append([])
    return [list(csv.reader(block)) for block in blocks if block]


def csv_to_xlsx(csv_text: str) -> bytes:
    """Write each CSV table to its own sheet (Table 1, Table 2, ...)."""
    tables = split_csv_blocks(csv_text)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        if not tables:
            pd.DataFrame().to_excel(writer, sheet_name="Table 1", index=False)
        for n, rows in enumerate(tables, start=1):
            width = max(len(row) for row in rows)
            padded = [row + [''] * (width - len(row)) for row in rows]
            frame = pd.DataFrame(padded[1:], columns=padded[0])
            frame.to_excel(writer, sheet_name=f"Table {n}", index=False)
    logger.info(f"Wrote {len(tables)} table(s) to workbook")
    return buffer.getvalue()
