"""
Raster image re-encoding and image-to-PDF assembly (Pillow + img2pdf)
"""
import io
from typing import Callable, List, Sequence, Tuple

import img2pdf
from loguru import logger
from PIL import Image, UnidentifiedImageError

from toolverse.errors import DecodeError


A4_WIDTH_PT = 595.28
WHITE = (255, 255, 255)

LayoutFun = Callable[[int, int, Tuple[float, float]], Tuple[float, float, float, float]]


def open_image(data: bytes, stage: str = "Image decoding") -> Image.Image:
    """Decode image bytes fully, mapping codec errors to DecodeError."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Could not decode image: {e}", stage) from e
    return image


def flatten_on_white(image: Image.Image) -> Image.Image:
    """Composite any transparency onto a white background and return RGB."""
    if image.mode == "P":
        image = image.convert("RGBA" if "transparency" in image.info else "RGB")
    if image.mode in ("RGBA", "LA", "PA"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, WHITE)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    flatten_on_white(image).save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def recompress_image(data: bytes, quality: int) -> bytes:
    """Re-encode one image as JPEG on white, keeping pixel dimensions."""
    image = open_image(data, "Image compression")
    logger.debug(f"Re-encoding {image.format} {image.size} mode={image.mode} at q={quality}")
    return encode_jpeg(image, quality)


def fit_width_layout(page_width: float = A4_WIDTH_PT) -> LayoutFun:
    """Page of fixed width whose height follows the image's aspect ratio."""
    def layout(imgwidthpx, imgheightpx, ndpi):
        page_height = page_width * imgheightpx / imgwidthpx
        return page_width, page_height, page_width, page_height
    return layout


def fixed_dpi_layout(dpi: float) -> LayoutFun:
    """Page sized so that ``dpi`` pixels span one inch; orientation follows the image."""
    def layout(imgwidthpx, imgheightpx, ndpi):
        width = imgwidthpx * 72.0 / dpi
        height = imgheightpx * 72.0 / dpi
        return width, height, width, height
    return layout


def assemble_pdf(encoded_pages: Sequence[bytes], layout_fun: LayoutFun) -> bytes:
    """Embed already-encoded JPEG/PNG pages, one image per page."""
    if not encoded_pages:
        raise DecodeError("No pages to assemble.", "PDF assembly")
    try:
        return img2pdf.convert(list(encoded_pages), layout_fun=layout_fun)
    except Exception as e:
        raise DecodeError(f"Could not assemble PDF: {e}", "PDF assembly") from e


def image_to_pdf(data: bytes) -> bytes:
    """One-page PDF, image scaled to fill the page width."""
    image = flatten_on_white(open_image(data))
    logger.info(f"Embedding {image.size[0]}x{image.size[1]} image as a single page")
    return assemble_pdf([encode_png(image)], fit_width_layout())


def pages_to_pdf(pages: List[Image.Image], quality: int, dpi: float) -> bytes:
    """Encode rasterized pages as JPEG and rebuild a PDF with matching page sizes."""
    encoded = [encode_jpeg(page, quality) for page in pages]
    return assemble_pdf(encoded, fixed_dpi_layout(dpi))
