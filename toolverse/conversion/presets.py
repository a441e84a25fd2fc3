"""Compression presets: (JPEG quality, rasterization scale) per level."""
from dataclasses import dataclass
from typing import Dict

from toolverse.models import CompressionLevel


@dataclass(frozen=True)
class CompressionPreset:
    """
    Attributes:
        quality: JPEG quality in [0, 1]
        scale: Rasterization magnification for PDF pages
    """
    quality: float
    scale: float

    @property
    def jpeg_quality(self) -> int:
        """Quality on Pillow's 1-95 scale."""
        return max(1, min(95, int(round(self.quality * 100))))

    @property
    def dpi(self) -> float:
        """Resolution that maps rasterized pixels back to PDF points."""
        return 72.0 * self.scale


PRESETS: Dict[CompressionLevel, CompressionPreset] = {
    CompressionLevel.HIGH: CompressionPreset(quality=0.8, scale=2.0),
    CompressionLevel.MEDIUM: CompressionPreset(quality=0.6, scale=1.5),
    CompressionLevel.LOW: CompressionPreset(quality=0.3, scale=1.0),
}


def preset_for(level: CompressionLevel) -> CompressionPreset:
    return PRESETS[CompressionLevel(level)]
