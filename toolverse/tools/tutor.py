"""
Homework solver - step-by-step explanations from the reasoning model
"""
from typing import Optional

from loguru import logger

from toolverse.config import settings
from toolverse.gemini import GenerationClient
from toolverse.models import UploadedFile
from toolverse.prompts import HOMEWORK_PROMPT
from toolverse.tools.common import image_inline


async def solve_homework(
    client: GenerationClient,
    question: str,
    image: Optional[UploadedFile] = None,
) -> str:
    """
    Solve one problem, optionally from a photo of it.

    Raises:
        ValueError: neither a question nor an image supplied
    """
    stage = "Homework solving"
    if not question.strip() and image is None:
        raise ValueError("Provide a question or an image")

    inline = image_inline(image, stage) if image else None
    logger.info(f"Solving homework with {settings.reasoning_model} (image={image is not None})")
    return await client.generate_text(
        HOMEWORK_PROMPT.format(question=question.strip()),
        inline,
        model=settings.reasoning_model,
        stage=stage,
    )
