"""Tests for image re-encoding, image-to-PDF assembly and PDF rasterization."""

import io

import pdfplumber
import pytest
from PIL import Image

from conftest import make_image_bytes, make_pdf_bytes
from toolverse.conversion import images, raster
from toolverse.errors import DecodeError


def pdf_page_sizes(data):
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        return [(float(page.width), float(page.height)) for page in pdf.pages]


# ---------------------------------------------------------------------------
# Pillow helpers
# ---------------------------------------------------------------------------


class TestFlatten:
    def test_transparent_pixels_become_white(self):
        image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
        flat = images.flatten_on_white(image)
        assert flat.mode == "RGB"
        assert flat.getpixel((0, 0)) == (255, 255, 255)

    def test_opaque_pixels_kept(self):
        image = Image.new("RGBA", (4, 4), (10, 20, 30, 255))
        assert images.flatten_on_white(image).getpixel((1, 1)) == (10, 20, 30)

    def test_grayscale_converted_to_rgb(self):
        assert images.flatten_on_white(Image.new("L", (2, 2), 128)).mode == "RGB"


class TestRecompress:
    def test_low_quality_matches_direct_encode(self, jpeg_bytes):
        expected = io.BytesIO()
        Image.open(io.BytesIO(jpeg_bytes)).convert("RGB").save(expected, format="JPEG", quality=30)

        result = images.recompress_image(jpeg_bytes, 30)

        assert result == expected.getvalue()
        assert Image.open(io.BytesIO(result)).size == (64, 48)

    def test_png_with_alpha_becomes_white_jpeg(self):
        png = make_image_bytes((16, 16), (0, 0, 0, 0), fmt="PNG", mode="RGBA")
        result = Image.open(io.BytesIO(images.recompress_image(png, 80)))
        assert result.format == "JPEG"
        assert all(channel > 245 for channel in result.getpixel((8, 8)))

    def test_garbage_raises_decode_error(self):
        with pytest.raises(DecodeError) as exc_info:
            images.recompress_image(b"not an image", 60)
        assert exc_info.value.stage == "Image compression"


# ---------------------------------------------------------------------------
# PDF assembly
# ---------------------------------------------------------------------------


class TestImageToPdf:
    def test_page_keeps_aspect_ratio(self):
        pdf = images.image_to_pdf(make_image_bytes((300, 150), fmt="PNG"))
        [(width, height)] = pdf_page_sizes(pdf)
        assert width == pytest.approx(images.A4_WIDTH_PT, abs=0.01)
        assert height / width == pytest.approx(150 / 300, rel=1e-3)

    def test_portrait_image(self):
        pdf = images.image_to_pdf(make_image_bytes((100, 400)))
        [(width, height)] = pdf_page_sizes(pdf)
        assert height / width == pytest.approx(4.0, rel=1e-3)

    def test_transparent_png_is_accepted(self):
        png = make_image_bytes((20, 10), (0, 0, 0, 0), fmt="PNG", mode="RGBA")
        assert images.image_to_pdf(png).startswith(b"%PDF")

    def test_empty_page_list_rejected(self):
        with pytest.raises(DecodeError):
            images.assemble_pdf([], images.fit_width_layout())


class TestPagesToPdf:
    def test_orientation_follows_each_page(self):
        pages = [Image.new("RGB", (200, 300), "white"), Image.new("RGB", (300, 200), "white")]
        pdf = images.pages_to_pdf(pages, quality=60, dpi=144.0)
        sizes = pdf_page_sizes(pdf)
        assert sizes[0] == pytest.approx((100.0, 150.0), abs=0.5)
        assert sizes[1] == pytest.approx((150.0, 100.0), abs=0.5)


# ---------------------------------------------------------------------------
# Rasterization
# ---------------------------------------------------------------------------


class TestRasterize:
    def test_scale_two_doubles_page_size(self, pdf_bytes):
        image = raster.rasterize_page(pdf_bytes, 1, 2.0)
        assert abs(image.size[0] - 400) <= 1
        assert abs(image.size[1] - 600) <= 1

    def test_second_page(self, pdf_bytes):
        image = raster.rasterize_page(pdf_bytes, 2, 1.0)
        assert abs(image.size[0] - 300) <= 1
        assert abs(image.size[1] - 200) <= 1

    @pytest.mark.parametrize("page", [0, 3])
    def test_page_out_of_range(self, pdf_bytes, page):
        with pytest.raises(DecodeError) as exc_info:
            raster.rasterize_page(pdf_bytes, page)
        assert "PDF has 2 pages" in exc_info.value.message

    def test_invalid_pdf(self):
        with pytest.raises(DecodeError) as exc_info:
            raster.rasterize_page(b"this is not a pdf at all")
        assert exc_info.value.stage == "PDF rasterization"

    def test_rasterize_all_pages(self):
        pages = raster.rasterize_pages(make_pdf_bytes(((100, 100), (50, 80), (80, 50))), 1.0)
        assert len(pages) == 3
        assert all(page.mode == "RGB" for page in pages)

    def test_png_output(self, pdf_bytes):
        png = raster.render_page_png(pdf_bytes, 1, 1.0)
        assert Image.open(io.BytesIO(png)).format == "PNG"

    def test_image_only_pdf_has_no_text(self, pdf_bytes):
        assert raster.extract_text(pdf_bytes) == ""
        assert raster.page_count(pdf_bytes) == 2
