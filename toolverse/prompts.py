"""
Instruction templates sent to the generation service
"""
from typing import Dict, Optional

from toolverse.models import SummaryDetail


SUMMARY_PROMPTS: Dict[SummaryDetail, str] = {
    SummaryDetail.BULLETS: "Provide a concise summary in bullet points, focusing only on the critical facts.",
    SummaryDetail.SHORT: "Provide a short, 1-paragraph abstract of the document.",
    SummaryDetail.DETAILED: (
        "Provide a comprehensive summary. Highlight key points, main arguments, and important "
        "conclusions. Format with clear Markdown headings."
    ),
}

PDF_TO_WORD_PROMPT = (
    "Extract the text content from this PDF. Preserve the structural hierarchy (headings, "
    "paragraphs, lists) using Markdown. Do not include any preamble, just the content. If there "
    "are tables, try to represent them as Markdown tables."
)

PDF_TO_EXCEL_PROMPT = (
    "Extract tabular data from this PDF and output it strictly as CSV format. If there are "
    "multiple tables, separate them with a blank line. Do not include markdown formatting or "
    "explanations, just the CSV data."
)

RESUME_PROMPT = (
    "Create a professional resume in Markdown format based on the following raw user data. "
    "Ensure it looks polished, uses professional language, and is structured correctly "
    "(Header, Summary, Experience, Education, Skills). Raw Data: \n\n{user_data}"
)

RESUME_TAILORING = (
    "\n\nTarget Job Description: {job_description}\n\nPlease tailor the resume summary and "
    "highlight skills relevant to this job description."
)

COVER_LETTER_PROMPT = """Write a professional and persuasive cover letter in Markdown format.

Applicant's Details:
{user_data}

Target Job Description:
{job_description}

Instructions:
- Use a formal business letter format.
- Connect the applicant's skills and experience directly to the requirements in the job description.
- Keep the tone enthusiastic but professional.
- Ensure the letter flows logically: Introduction, Why I'm a fit (Body), and Conclusion."""

CAPTION_PROMPT = (
    "Generate 5 {tone} social media captions (including hashtags) for {platform} based on "
    "this context: {description}"
)

STORY_PROMPT = (
    "Write a creative and engaging children's story (approx 300 words) in {language}. "
    "\nTopic: {topic}\nMain Character: {character}\nTarget Audience Age: {age} years old."
    "\nGenre: {genre}."
)

HOMEWORK_PROMPT = (
    "You are an expert tutor. Solve the following homework problem step-by-step. Explain the "
    "reasoning clearly. Use LaTeX for math equations where appropriate (wrapped in $ or $$). "
    "\nQuestion: {question}"
)

BUDGET_PROMPT = """Analyze the following financial data and create a monthly budget plan.
Return the response in JSON format with two keys: "analysis" (a markdown string explaining the budget advice) and "categories" (an array of objects with "name" and "value" representing suggested expense distribution).

Financial Data: {financial_data}"""

BUDGET_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "analysis": {"type": "STRING"},
        "categories": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "value": {"type": "NUMBER"},
                },
            },
        },
    },
}


def summary_prompt(detail: SummaryDetail) -> str:
    return SUMMARY_PROMPTS.get(detail, SUMMARY_PROMPTS[SummaryDetail.DETAILED])


def resume_prompt(user_data: str, job_description: Optional[str] = None) -> str:
    prompt = RESUME_PROMPT.format(user_data=user_data)
    if job_description:
        prompt += RESUME_TAILORING.format(job_description=job_description)
    return prompt


def story_prompt(
    topic: str,
    character: str,
    age: int,
    genre: str,
    moral: Optional[str],
    language: str,
) -> str:
    prompt = STORY_PROMPT.format(
        language=language, topic=topic, character=character, age=age, genre=genre
    )
    if moral:
        prompt += f"\nMoral/Lesson: {moral}"
    prompt += "\nFormat nicely with Markdown."
    return prompt
