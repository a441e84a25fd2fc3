"""Gemini Module - the single integration point with the generation service.

Every call is one ``generate_content`` round-trip through the google-genai
SDK. There is no retry, backoff or rate limiting; transport and service
failures surface as ``TransportError`` and an answer without a usable payload
surfaces as one of the empty-result errors.
"""
import json
from typing import Any, Dict, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from loguru import logger

from toolverse.config import settings
from toolverse.errors import (
    EmptyGenerationResult,
    NoAudioInResponse,
    NoImageInResponse,
    TransportError,
)
from toolverse.models import GeneratedImage, InlineData


DEFAULT_IMAGE_MEDIA_TYPE = "image/png"


def candidate_parts(response: types.GenerateContentResponse) -> List[types.Part]:
    """Parts of the first candidate, or an empty list."""
    if not response.candidates:
        return []
    content = response.candidates[0].content
    if content is None or not content.parts:
        return []
    return list(content.parts)


def response_text(response: types.GenerateContentResponse) -> str:
    """Concatenate the text parts of the first candidate, skipping thoughts."""
    return "".join(
        part.text for part in candidate_parts(response) if part.text and not part.thought
    )


def first_inline(response: types.GenerateContentResponse) -> Optional[types.Blob]:
    for part in candidate_parts(response):
        if part.inline_data is not None and part.inline_data.data:
            return part.inline_data
    return None


def _http_options() -> types.HttpOptions:
    options: Dict[str, Any] = {}
    if settings.gemini_base_url:
        options["base_url"] = settings.gemini_base_url
    if settings.request_timeout_seconds:
        # The SDK takes milliseconds
        options["timeout"] = int(settings.request_timeout_seconds * 1000)
    return types.HttpOptions(**options)


class GenerationClient:
    """
    Thin wrapper over ``client.aio.models.generate_content``.

    The SDK client is built on first use so the service can start without a
    key; every call then fails with a readable ``TransportError``.
    """

    __slots__ = ('client', 'api_key', 'text_model')

    def __init__(
        self,
        api_key: Optional[str] = None,
        text_model: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.api_key = settings.google_api_key if api_key is None else api_key
        self.text_model = text_model or settings.text_model
        self.client = client

    def _sdk(self, stage: str) -> genai.Client:
        if not self.api_key:
            raise TransportError("GOOGLE_API_KEY is missing from the environment.", stage)
        if self.client is None:
            self.client = genai.Client(api_key=self.api_key, http_options=_http_options())
        return self.client

    async def _generate(
        self,
        model: str,
        contents: List[types.Part],
        config: Optional[types.GenerateContentConfig] = None,
        stage: str = "Generation request",
    ) -> types.GenerateContentResponse:
        """Send one request and return the SDK response."""
        client = self._sdk(stage)
        logger.info(f"Calling {model} with {len(contents)} part(s)")
        try:
            return await client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            logger.error(f"{stage}: service returned {e.code}: {e.message}")
            raise TransportError(e.message or f"HTTP {e.code}", stage, status_code=e.code) from e
        except httpx.HTTPError as e:
            logger.error(f"{stage}: transport error: {e!r}")
            raise TransportError(str(e) or type(e).__name__, stage) from e

    async def generate_text(
        self,
        prompt: str,
        inline: Optional[InlineData] = None,
        model: Optional[str] = None,
        stage: str = "Generation",
    ) -> str:
        """
        Generate free text from an instruction and an optional inlined file.

        The inlined file, when present, precedes the instruction.

        Raises:
            EmptyGenerationResult: if the candidate carries no text
        """
        contents = [types.Part.from_text(text=prompt)]
        if inline is not None:
            contents.insert(0, types.Part.from_bytes(data=inline.data, mime_type=inline.media_type))

        response = await self._generate(model or self.text_model, contents, stage=stage)
        text = response_text(response)
        if not text.strip():
            raise EmptyGenerationResult("The service returned no text.", stage)
        return text

    async def generate_structured(
        self,
        prompt: str,
        schema: Dict[str, Any],
        model: Optional[str] = None,
        stage: str = "Generation",
    ) -> Dict[str, Any]:
        """Generate a JSON object constrained by ``schema``."""
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )
        response = await self._generate(
            model or self.text_model, [types.Part.from_text(text=prompt)], config, stage
        )
        text = response_text(response)
        if not text.strip():
            raise EmptyGenerationResult("The service returned no data.", stage)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise EmptyGenerationResult(f"The service returned malformed JSON: {e}", stage) from e
        if not isinstance(parsed, dict):
            raise EmptyGenerationResult("The service returned JSON that is not an object.", stage)
        return parsed

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        model: Optional[str] = None,
    ) -> GeneratedImage:
        """Generate one image; the first inlined part of the answer wins."""
        stage = "Image generation"
        config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
        )
        response = await self._generate(
            model or settings.image_model, [types.Part.from_text(text=prompt)], config, stage
        )
        blob = first_inline(response)
        if blob is None:
            raise NoImageInResponse("No image data found in response.", stage)
        return GeneratedImage(data=blob.data, media_type=blob.mime_type or DEFAULT_IMAGE_MEDIA_TYPE)

    async def generate_speech(
        self,
        text: str,
        voice: str,
        model: Optional[str] = None,
    ) -> bytes:
        """
        Synthesize speech and return the raw PCM bytes.

        The payload is little-endian 16-bit mono PCM at 24 kHz; see
        ``toolverse.audio`` for decoding.
        """
        stage = "Speech synthesis"
        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                ),
            ),
        )
        response = await self._generate(
            model or settings.speech_model, [types.Part.from_text(text=text)], config, stage
        )
        blob = first_inline(response)
        if blob is None:
            raise NoAudioInResponse("No audio generated.", stage)
        return blob.data

    async def close(self):
        """Close the SDK's HTTP client if one was opened"""
        if self.client is not None:
            await self.client.aio.aclose()


# Global instance
gemini = GenerationClient()
