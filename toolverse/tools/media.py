"""
Media Tools
- Image generation
- Story narration (speech synthesis)
"""
from loguru import logger

from toolverse.audio import SpeechClip
from toolverse.gemini import GenerationClient
from toolverse.models import AspectRatio, GeneratedImage, Voice


async def generate_image(client: GenerationClient, prompt: str, aspect_ratio: AspectRatio) -> GeneratedImage:
    logger.info(f"Generating {aspect_ratio.value} image")
    image = await client.generate_image(prompt, aspect_ratio.value)
    logger.info(f"Received {image.media_type} image ({len(image.data)} bytes)")
    return image


async def narrate(client: GenerationClient, text: str, voice: Voice) -> SpeechClip:
    """Synthesize the text and decode it into playable frames."""
    pcm = await client.generate_speech(text, voice.value)
    clip = SpeechClip(pcm=pcm, voice=voice.value)
    logger.info(f"Narration: {clip.frame_count} frames ({clip.duration_seconds:.1f}s) in voice {voice.value}")
    return clip
