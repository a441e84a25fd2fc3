"""
Conversion Package - local document and image transformations
"""
from toolverse.conversion.pipeline import convert, extract_text_preview
from toolverse.conversion.presets import PRESETS, CompressionPreset, preset_for

__all__ = [
    'convert',
    'extract_text_preview',
    'PRESETS',
    'CompressionPreset',
    'preset_for',
]
