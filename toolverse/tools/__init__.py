"""
Tools Package - generation-backed tools

TOOL INVENTORY:

WRITING (writing.py):
- generate_resume / generate_cover_letter: career documents in Markdown
- generate_captions: social media captions, optional image
- generate_story: kids stories

TUTOR (tutor.py):
- solve_homework: step-by-step solutions, optional image

BUDGET (budget.py):
- plan_budget: structured {analysis, categories}

MEDIA (media.py):
- generate_image: text-to-image with aspect ratio
- narrate: speech synthesis decoded to frames

Document conversions live in toolverse.conversion.
"""
from toolverse.tools.budget import plan_budget
from toolverse.tools.media import generate_image, narrate
from toolverse.tools.tutor import solve_homework
from toolverse.tools.writing import (
    generate_captions,
    generate_career_document,
    generate_cover_letter,
    generate_resume,
    generate_story,
)

__all__ = [
    'plan_budget',
    'generate_image',
    'narrate',
    'solve_homework',
    'generate_captions',
    'generate_career_document',
    'generate_cover_letter',
    'generate_resume',
    'generate_story',
]
