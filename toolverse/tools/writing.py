"""
Writing Tools
- Resume and cover letter
- Social media captions
- Kids stories
"""
from typing import Optional

from loguru import logger

from toolverse.gemini import GenerationClient
from toolverse.models import InlineData, Platform, ResumeMode, StoryRequest, Tone, UploadedFile
from toolverse.prompts import CAPTION_PROMPT, COVER_LETTER_PROMPT, resume_prompt, story_prompt
from toolverse.tools.common import image_inline


DEFAULT_CAPTION_CONTEXT = "Describe this image"
DEFAULT_JOB_DESCRIPTION = "General Application"


async def generate_resume(
    client: GenerationClient,
    user_data: str,
    job_description: Optional[str] = None,
) -> str:
    """Markdown resume, tailored when a job description is given."""
    logger.info(f"Generating resume (tailored={bool(job_description)})")
    return await client.generate_text(
        resume_prompt(user_data, job_description), stage="Resume generation"
    )


async def generate_cover_letter(
    client: GenerationClient,
    user_data: str,
    job_description: Optional[str] = None,
) -> str:
    logger.info("Generating cover letter")
    prompt = COVER_LETTER_PROMPT.format(
        user_data=user_data,
        job_description=job_description or DEFAULT_JOB_DESCRIPTION,
    )
    return await client.generate_text(prompt, stage="Cover letter generation")


async def generate_career_document(
    client: GenerationClient,
    mode: ResumeMode,
    user_data: str,
    job_description: Optional[str] = None,
) -> str:
    if mode is ResumeMode.COVER_LETTER:
        return await generate_cover_letter(client, user_data, job_description)
    return await generate_resume(client, user_data, job_description)


async def generate_captions(
    client: GenerationClient,
    description: str,
    platform: Platform,
    tone: Tone,
    image: Optional[UploadedFile] = None,
) -> str:
    """
    Five captions with hashtags for one platform.

    Args:
        description: Post context; may be empty when an image is given
        image: Optional picture, inlined before the instruction

    Raises:
        ValueError: neither description nor image supplied
    """
    if not description.strip() and image is None:
        raise ValueError("Provide a description or an image")

    inline: Optional[InlineData] = image_inline(image, "Caption generation") if image else None
    prompt = CAPTION_PROMPT.format(
        tone=tone.value,
        platform=platform.value,
        description=description.strip() or DEFAULT_CAPTION_CONTEXT,
    )
    logger.info(f"Generating {tone.value} captions for {platform.value} (image={image is not None})")
    return await client.generate_text(prompt, inline, stage="Caption generation")


async def generate_story(client: GenerationClient, request: StoryRequest) -> str:
    logger.info(f"Generating {request.genre.value} story in {request.language.value} for age {request.age}")
    prompt = story_prompt(
        topic=request.topic,
        character=request.character,
        age=request.age,
        genre=request.genre.value,
        moral=request.moral,
        language=request.language.value,
    )
    return await client.generate_text(prompt, stage="Story generation")
