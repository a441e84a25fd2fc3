"""
PDF page rasterization and text extraction (pdfplumber)
"""
import io
from contextlib import contextmanager
from typing import Iterator, List, Optional

import pdfplumber
from loguru import logger
from PIL import Image

from toolverse.errors import DecodeError


DEFAULT_SCALE = 2.0
POINTS_PER_INCH = 72.0
DEFAULT_TEXT_PREVIEW_CHARS = 1500


@contextmanager
def open_pdf(data: bytes, stage: str = "PDF decoding") -> Iterator["pdfplumber.PDF"]:
    """Open PDF bytes, mapping parser and password failures to DecodeError."""
    try:
        pdf = pdfplumber.open(io.BytesIO(data))
        # Touch the page tree so broken xref tables fail here, not later
        _ = len(pdf.pages)
    except Exception as e:
        logger.warning(f"Could not open PDF: {e!r}")
        raise DecodeError(
            "The file is not a valid PDF or is password-protected.", stage
        ) from e
    try:
        yield pdf
    finally:
        pdf.close()


def _render(page, scale: float) -> Image.Image:
    image = page.to_image(resolution=POINTS_PER_INCH * scale).original
    return image.convert("RGB")


def page_count(data: bytes) -> int:
    with open_pdf(data) as pdf:
        return len(pdf.pages)


def rasterize_page(data: bytes, page_number: int = 1, scale: float = DEFAULT_SCALE) -> Image.Image:
    """
    Render one page to pixels.

    Args:
        data: PDF bytes
        page_number: 1-based page index
        scale: Magnification; pixel size is page size in points times scale

    Raises:
        DecodeError: invalid/encrypted PDF or page out of range
    """
    stage = "PDF rasterization"
    with open_pdf(data, stage) as pdf:
        if not 1 <= page_number <= len(pdf.pages):
            raise DecodeError(
                f"Page {page_number} not found. PDF has {len(pdf.pages)} pages.", stage
            )
        page = pdf.pages[page_number - 1]
        logger.info(f"Rasterizing page {page_number} ({page.width}x{page.height}pt) at {scale}x")
        try:
            return _render(page, scale)
        except Exception as e:
            raise DecodeError(f"Could not render page {page_number}: {e}", stage) from e


def rasterize_pages(data: bytes, scale: float) -> List[Image.Image]:
    """Render every page at the same scale, in order."""
    stage = "PDF rasterization"
    images = []
    with open_pdf(data, stage) as pdf:
        for i, page in enumerate(pdf.pages, start=1):
            try:
                images.append(_render(page, scale))
            except Exception as e:
                raise DecodeError(f"Could not render page {i}: {e}", stage) from e
    logger.info(f"Rasterized {len(images)} pages at {scale}x")
    return images


def render_page_png(data: bytes, page_number: int = 1, scale: float = DEFAULT_SCALE) -> bytes:
    buffer = io.BytesIO()
    rasterize_page(data, page_number, scale).save(buffer, format="PNG")
    return buffer.getvalue()


def extract_text(data: bytes, max_chars: Optional[int] = DEFAULT_TEXT_PREVIEW_CHARS) -> str:
    """
    Extract the text layer of every page, joined with spaces.

    Text longer than ``max_chars`` is cut and marked with an ellipsis.
    """
    with open_pdf(data, "PDF text extraction") as pdf:
        chunks = [(page.extract_text() or "") for page in pdf.pages]
    text = " ".join(chunk.strip() for chunk in chunks if chunk.strip())
    if max_chars is not None and len(text) > max_chars:
        return text[:max_chars] + "..."
    return text
