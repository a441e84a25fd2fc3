"""
Conversion pipeline - maps each ConversionRequest variant to one result.

Every adapter runs once. Failures that are not already ToolErrors are
wrapped at this boundary as DecodeError naming the failed stage, and no
partial output escapes.
"""
import asyncio
import functools
from typing import Awaitable, Callable, Dict

from loguru import logger

from toolverse.conversion import archive, images, office, preview, raster
from toolverse.conversion.detect import FileKind, MEDIA_TYPES, detect_kind
from toolverse.conversion.presets import preset_for
from toolverse.errors import DecodeError, ToolError, UnsupportedFileType
from toolverse.gemini import GenerationClient
from toolverse.models import (
    CompressFileRequest,
    CompressImageRequest,
    ConversionRequest,
    ConversionResult,
    DownloadableBinary,
    ExcelToPdfRequest,
    ImageToPdfRequest,
    InlineData,
    PdfToExcelRequest,
    PdfToImageRequest,
    PdfToWordRequest,
    PlainText,
    PreviewableMarkup,
    RenderableImage,
    SummarizeRequest,
    UploadedFile,
    WordToPdfRequest,
)
from toolverse.prompts import PDF_TO_EXCEL_PROMPT, PDF_TO_WORD_PROMPT, summary_prompt


PDF_MEDIA_TYPE = MEDIA_TYPES[FileKind.PDF]
DOCX_MEDIA_TYPE = MEDIA_TYPES[FileKind.WORD]
XLSX_MEDIA_TYPE = MEDIA_TYPES[FileKind.SPREADSHEET]
CONTAINER_KINDS = {FileKind.WORD, FileKind.SPREADSHEET, FileKind.PRESENTATION}

STAGES = {
    "summarize": "PDF summary",
    "pdf-to-word": "PDF to Word conversion",
    "pdf-to-excel": "PDF to Excel conversion",
    "word-to-pdf": "Word preview",
    "excel-to-pdf": "Spreadsheet preview",
    "image-to-pdf": "Image to PDF conversion",
    "pdf-to-image": "PDF rasterization",
    "compress-file": "File compression",
    "compress-image": "Image compression",
}


async def _offload(func: Callable, *args):
    """Run CPU-bound work in the default thread pool."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


def _require(upload: UploadedFile, stage: str, *kinds: FileKind) -> FileKind:
    kind = detect_kind(upload)
    if kind not in kinds:
        raise UnsupportedFileType(upload.media_type, stage)
    return kind


def _pdf_inline(upload: UploadedFile) -> InlineData:
    return InlineData(media_type=PDF_MEDIA_TYPE, data=upload.data)


async def _summarize(request: SummarizeRequest, client: GenerationClient) -> ConversionResult:
    stage = STAGES[request.kind]
    _require(request.source, stage, FileKind.PDF)
    text = await client.generate_text(
        summary_prompt(request.detail), _pdf_inline(request.source), stage=stage
    )
    return PlainText(text=text, filename=f"{request.source.stem}-summary.md")


async def _pdf_to_word(request: PdfToWordRequest, client: GenerationClient) -> ConversionResult:
    stage = STAGES[request.kind]
    _require(request.source, stage, FileKind.PDF)
    markdown = await client.generate_text(PDF_TO_WORD_PROMPT, _pdf_inline(request.source), stage=stage)
    data = await _offload(office.markdown_to_docx, markdown)
    return DownloadableBinary(data=data, media_type=DOCX_MEDIA_TYPE, filename=f"{request.source.stem}.docx")


async def _pdf_to_excel(request: PdfToExcelRequest, client: GenerationClient) -> ConversionResult:
    stage = STAGES[request.kind]
    _require(request.source, stage, FileKind.PDF)
    csv_text = await client.generate_text(PDF_TO_EXCEL_PROMPT, _pdf_inline(request.source), stage=stage)
    data = await _offload(office.csv_to_xlsx, csv_text)
    return DownloadableBinary(data=data, media_type=XLSX_MEDIA_TYPE, filename=f"{request.source.stem}.xlsx")


async def _word_to_pdf(request: WordToPdfRequest, client: GenerationClient) -> ConversionResult:
    _require(request.source, STAGES[request.kind], FileKind.WORD)
    markup = await _offload(preview.word_to_html, request.source.data, request.source.name)
    return PreviewableMarkup(html=markup, filename=f"{request.source.stem}.pdf")


async def _excel_to_pdf(request: ExcelToPdfRequest, client: GenerationClient) -> ConversionResult:
    _require(request.source, STAGES[request.kind], FileKind.SPREADSHEET)
    markup = await _offload(preview.spreadsheet_to_html, request.source.data, request.source.name)
    return PreviewableMarkup(html=markup, filename=f"{request.source.stem}.pdf")


async def _image_to_pdf(request: ImageToPdfRequest, client: GenerationClient) -> ConversionResult:
    _require(request.source, STAGES[request.kind], FileKind.IMAGE)
    data = await _offload(images.image_to_pdf, request.source.data)
    return DownloadableBinary(data=data, media_type=PDF_MEDIA_TYPE, filename=f"{request.source.stem}.pdf")


async def _pdf_to_image(request: PdfToImageRequest, client: GenerationClient) -> ConversionResult:
    _require(request.source, STAGES[request.kind], FileKind.PDF)
    png = await _offload(raster.render_page_png, request.source.data, request.page, request.scale)
    return RenderableImage(
        data=png,
        media_type="image/png",
        filename=f"{request.source.stem}-page-{request.page}.png",
    )


def _compress_image_bytes(upload: UploadedFile, quality: int) -> DownloadableBinary:
    data = images.recompress_image(upload.data, quality)
    return DownloadableBinary(data=data, media_type="image/jpeg", filename=f"{upload.stem}-compressed.jpg")


def _compress_pdf_bytes(upload: UploadedFile, quality: int, scale: float, dpi: float) -> DownloadableBinary:
    pages = raster.rasterize_pages(upload.data, scale)
    data = images.pages_to_pdf(pages, quality, dpi)
    return DownloadableBinary(data=data, media_type=PDF_MEDIA_TYPE, filename=f"{upload.stem}-compressed.pdf")


def _compress_container_bytes(upload: UploadedFile, kind: FileKind, quality: int) -> DownloadableBinary:
    data, _ = archive.compress_container(upload.data, quality)
    extension = upload.name.rsplit('.', 1)[-1] if '.' in upload.name else 'docx'
    return DownloadableBinary(
        data=data,
        media_type=MEDIA_TYPES[kind],
        filename=f"{upload.stem}-compressed.{extension}",
    )


async def _compress_file(request: CompressFileRequest, client: GenerationClient) -> ConversionResult:
    stage = STAGES[request.kind]
    preset = preset_for(request.level)
    kind = _require(request.source, stage, FileKind.PDF, FileKind.IMAGE, *CONTAINER_KINDS)
    logger.info(f"Compressing {kind.value} '{request.source.name}' at {request.level.value}")

    if kind is FileKind.PDF:
        return await _offload(
            _compress_pdf_bytes, request.source, preset.jpeg_quality, preset.scale, preset.dpi
        )
    if kind is FileKind.IMAGE:
        return await _offload(_compress_image_bytes, request.source, preset.jpeg_quality)
    return await _offload(_compress_container_bytes, request.source, kind, preset.jpeg_quality)


async def _compress_image(request: CompressImageRequest, client: GenerationClient) -> ConversionResult:
    _require(request.source, STAGES[request.kind], FileKind.IMAGE)
    preset = preset_for(request.level)
    return await _offload(_compress_image_bytes, request.source, preset.jpeg_quality)


HANDLERS: Dict[str, Callable[..., Awaitable[ConversionResult]]] = {
    "summarize": _summarize,
    "pdf-to-word": _pdf_to_word,
    "pdf-to-excel": _pdf_to_excel,
    "word-to-pdf": _word_to_pdf,
    "excel-to-pdf": _excel_to_pdf,
    "image-to-pdf": _image_to_pdf,
    "pdf-to-image": _pdf_to_image,
    "compress-file": _compress_file,
    "compress-image": _compress_image,
}


async def convert(request: ConversionRequest, client: GenerationClient) -> ConversionResult:
    """
    Run one conversion.

    Raises:
        ToolError: any failure, with ``stage`` naming the step that failed
    """
    stage = STAGES[request.kind]
    logger.info(f"Conversion '{request.kind}' for {request.source.name} ({len(request.source.data)} bytes)")
    try:
        return await HANDLERS[request.kind](request, client)
    except ToolError as e:
        logger.warning(f"{e}")
        raise
    except Exception as e:
        logger.error(f"{stage} failed unexpectedly: {e!r}")
        raise DecodeError(f"Unexpected error: {e}", stage) from e


async def extract_text_preview(upload: UploadedFile, max_chars: int = raster.DEFAULT_TEXT_PREVIEW_CHARS) -> PlainText:
    """Quick local text preview of a PDF, no generation call involved."""
    stage = "PDF text extraction"
    _require(upload, stage, FileKind.PDF)
    try:
        text = await _offload(raster.extract_text, upload.data, max_chars)
    except ToolError:
        raise
    except Exception as e:
        raise DecodeError(f"Unexpected error: {e}", stage) from e
    return PlainText(text=text, filename=f"{upload.stem}.txt")
