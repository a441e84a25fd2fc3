"""Helpers shared by the generation-backed tools."""
from toolverse.conversion.detect import FileKind, detect_kind, sniff_image_type
from toolverse.errors import UnsupportedFileType
from toolverse.models import InlineData, UploadedFile


def image_inline(upload: UploadedFile, stage: str) -> InlineData:
    """Inline an uploaded picture using its sniffed media type."""
    if detect_kind(upload) is not FileKind.IMAGE:
        raise UnsupportedFileType(upload.media_type, stage)
    media_type = sniff_image_type(upload.data) or upload.media_type
    return InlineData(media_type=media_type, data=upload.data)
