"""Decoding of synthesized speech (16-bit PCM, mono, 24 kHz)."""
import io
import wave
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from toolverse.errors import DecodeError


SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes, int16


def decode_pcm16(data: bytes, channels: int = CHANNELS) -> np.ndarray:
    """
    Decode little-endian int16 PCM into float32 frames in [-1, 1).

    Returns an array of shape (frames,) for mono or (frames, channels).
    """
    if len(data) % (SAMPLE_WIDTH * channels):
        raise DecodeError(
            f"PCM buffer of {len(data)} bytes is not a whole number of frames", "Audio decoding"
        )
    samples = np.frombuffer(data, dtype='<i2').astype(np.float32) / 32768.0
    if channels == 1:
        return samples
    return samples.reshape(-1, channels)


def encode_wav(data: bytes, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS) -> bytes:
    """Wrap raw PCM in a WAV container so any player can use it."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(data)
    return buffer.getvalue()


@dataclass
class SpeechClip:
    """Decoded narration plus its playback state."""
    pcm: bytes
    voice: str
    sample_rate: int = SAMPLE_RATE
    frames: np.ndarray = field(init=False, repr=False)
    playing: bool = True

    def __post_init__(self) -> None:
        self.frames = decode_pcm16(self.pcm)

    @property
    def frame_count(self) -> int:
        return int(self.frames.shape[0])

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.sample_rate

    def to_wav(self) -> bytes:
        return encode_wav(self.pcm, self.sample_rate)

    def stop(self) -> None:
        self.playing = False


def stop_clip(clip: Optional[SpeechClip]) -> None:
    if clip is not None:
        clip.stop()
