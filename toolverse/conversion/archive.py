"""
Container document (OOXML zip) media re-compression
"""
import io
import posixpath
import zipfile
from typing import Tuple

from loguru import logger

from toolverse.conversion.images import recompress_image
from toolverse.errors import DecodeError, NothingToCompress


RASTER_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.bmp', '.tif', '.tiff', '.webp'}


def is_embedded_raster(name: str) -> bool:
    """True for raster entries inside a ``media/`` folder (word/media, ppt/media, xl/media)."""
    folder, filename = posixpath.split(name)
    if posixpath.basename(folder) != 'media' or not filename:
        return False
    return posixpath.splitext(filename)[1].lower() in RASTER_EXTENSIONS


def compress_container(data: bytes, quality: int) -> Tuple[bytes, int]:
    """
    Re-encode every embedded raster image as JPEG on white.

    Entries keep their names and archive order; relationships are untouched.

    Returns:
        (new archive bytes, number of images replaced)

    Raises:
        DecodeError: not a readable zip, or an embedded image fails to decode
        NothingToCompress: the archive holds no embedded raster images
    """
    stage = "Document compression"
    try:
        source = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise DecodeError(f"Not a valid document archive: {e}", stage) from e

    output = io.BytesIO()
    replaced = 0
    with source, zipfile.ZipFile(output, 'w', compression=zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            payload = source.read(info.filename)
            if is_embedded_raster(info.filename):
                before = len(payload)
                payload = recompress_image(payload, quality)
                replaced += 1
                logger.debug(f"{info.filename}: {before} -> {len(payload)} bytes")
            target.writestr(info, payload)

    if replaced == 0:
        raise NothingToCompress("No images found in this document to compress.", stage)

    logger.info(f"Re-encoded {replaced} embedded image(s)")
    return output.getvalue(), replaced
