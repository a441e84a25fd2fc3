"""Format detection from magic bytes, with the declared media type as fallback."""
import io
import zipfile
from enum import Enum
from typing import Optional

from toolverse.models import UploadedFile


class FileKind(str, Enum):
    PDF = "pdf"
    WORD = "word"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    IMAGE = "image"
    UNKNOWN = "unknown"


# Magic number detection
IMAGE_MAGIC = {
    b'\x89PNG': 'image/png',
    b'\xff\xd8\xff': 'image/jpeg',
    b'GIF8': 'image/gif',
    b'BM': 'image/bmp',
    b'II*\x00': 'image/tiff',
    b'MM\x00*': 'image/tiff',
}

ZIP_MAGIC = (b'PK\x03\x04', b'PK\x05\x06')

# Which part of an OOXML package identifies the document family
CONTAINER_MARKERS = (
    ('word/', FileKind.WORD),
    ('xl/', FileKind.SPREADSHEET),
    ('ppt/', FileKind.PRESENTATION),
)

DECLARED_TYPES = {
    'application/pdf': FileKind.PDF,
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': FileKind.WORD,
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': FileKind.SPREADSHEET,
    'application/vnd.openxmlformats-officedocument.presentationml.presentation': FileKind.PRESENTATION,
}

MEDIA_TYPES = {
    FileKind.PDF: 'application/pdf',
    FileKind.WORD: 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    FileKind.SPREADSHEET: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    FileKind.PRESENTATION: 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
}


def sniff_image_type(data: bytes) -> Optional[str]:
    """Return the image media type for known raster signatures."""
    for magic, media_type in IMAGE_MAGIC.items():
        if data.startswith(magic):
            return media_type
    if data[:4] == b'RIFF' and data[8:12] == b'WEBP':
        return 'image/webp'
    return None


def _container_kind(data: bytes) -> FileKind:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = zf.namelist()
    except zipfile.BadZipFile:
        return FileKind.UNKNOWN
    for prefix, kind in CONTAINER_MARKERS:
        if any(name.startswith(prefix) for name in names):
            return kind
    return FileKind.UNKNOWN


def detect_kind(upload: UploadedFile) -> FileKind:
    """
    Classify an upload.

    Content wins over the declared media type; the declared type is only
    consulted when the bytes carry no recognizable signature.
    """
    data = upload.data
    # PDF readers tolerate junk before the header
    if b'%PDF-' in data[:1024]:
        return FileKind.PDF
    if data.startswith(ZIP_MAGIC):
        kind = _container_kind(data)
        if kind is not FileKind.UNKNOWN:
            return kind
    if sniff_image_type(data):
        return FileKind.IMAGE

    declared = (upload.media_type or '').split(';', 1)[0].strip().lower()
    if declared in DECLARED_TYPES:
        return DECLARED_TYPES[declared]
    if declared.startswith('image/'):
        return FileKind.IMAGE
    return FileKind.UNKNOWN


def media_type_of(upload: UploadedFile) -> str:
    """Best-known media type for an upload, preferring sniffed content."""
    kind = detect_kind(upload)
    if kind is FileKind.IMAGE:
        return sniff_image_type(upload.data) or upload.media_type
    return MEDIA_TYPES.get(kind, upload.media_type)
