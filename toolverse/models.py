"""Pydantic models for API requests, conversion variants, and generation results."""
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class ToolId(str, Enum):
    PDF_SUMMARIZER = "pdf-summarizer"
    RESUME_MAKER = "resume-maker"
    CAPTION_GENERATOR = "caption-generator"
    KIDS_STORY_MAKER = "kids-story-maker"
    HOMEWORK_SOLVER = "homework-solver"
    BUDGET_PLANNER = "budget-planner"
    IMAGE_GENERATOR = "image-generator"


class ToolConfig(BaseModel):
    """Catalog entry shown in the tool selector."""
    id: ToolId
    name: str
    description: str


TOOLS: List[ToolConfig] = [
    ToolConfig(id=ToolId.PDF_SUMMARIZER, name="PDF & Doc Tools",
               description="Summarize, convert, and manage your documents."),
    ToolConfig(id=ToolId.RESUME_MAKER, name="Resume Maker AI",
               description="Turn your details into a professional resume instantly."),
    ToolConfig(id=ToolId.CAPTION_GENERATOR, name="Caption Generator",
               description="Generate viral captions for your social media posts."),
    ToolConfig(id=ToolId.KIDS_STORY_MAKER, name="Kids Story Maker",
               description="Create magical personalized stories for children."),
    ToolConfig(id=ToolId.HOMEWORK_SOLVER, name="Homework Solver",
               description="Get step-by-step solutions for complex problems."),
    ToolConfig(id=ToolId.BUDGET_PLANNER, name="Budget Planner",
               description="Plan your monthly finances with smart AI insights."),
    ToolConfig(id=ToolId.IMAGE_GENERATOR, name="Image Generator",
               description="Generate unique images from text prompts."),
]


# ---------------------------------------------------------------------------
# Option selectors
# ---------------------------------------------------------------------------

class SummaryDetail(str, Enum):
    BULLETS = "bullets"
    SHORT = "short"
    DETAILED = "detailed"


class CompressionLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Platform(str, Enum):
    INSTAGRAM = "Instagram"
    YOUTUBE = "YouTube"
    TWITTER = "Twitter"
    LINKEDIN = "LinkedIn"
    TIKTOK = "TikTok"
    FACEBOOK = "Facebook"


class Tone(str, Enum):
    ENGAGING = "engaging"
    FUNNY = "funny"
    PROFESSIONAL = "professional"
    INSPIRATIONAL = "inspirational"
    SARCASTIC = "sarcastic"


class Genre(str, Enum):
    ADVENTURE = "Adventure"
    FANTASY = "Fantasy"
    SCI_FI = "Sci-Fi"
    BEDTIME = "Bedtime Story"
    FUNNY = "Funny"
    MYSTERY = "Mystery"


class StoryLanguage(str, Enum):
    ENGLISH = "English"
    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"
    ITALIAN = "Italian"
    PORTUGUESE = "Portuguese"
    HINDI = "Hindi"
    TAMIL = "Tamil"
    TELUGU = "Telugu"
    MALAYALAM = "Malayalam"
    KANNADA = "Kannada"
    JAPANESE = "Japanese"
    CHINESE = "Chinese"
    ARABIC = "Arabic"
    RUSSIAN = "Russian"


class Voice(str, Enum):
    KORE = "Kore"  # female narrator
    PUCK = "Puck"  # male narrator


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    STANDARD = "4:3"
    TALL = "3:4"


class ResumeMode(str, Enum):
    RESUME = "resume"
    COVER_LETTER = "cover-letter"


# ---------------------------------------------------------------------------
# Input capture
# ---------------------------------------------------------------------------

class UploadedFile(BaseModel):
    """An uploaded file held in memory for the current operation only."""
    data: bytes
    media_type: str = "application/octet-stream"
    name: str = "upload"

    @property
    def stem(self) -> str:
        return self.name.rsplit('.', 1)[0] if '.' in self.name else self.name


class SummarizeRequest(BaseModel):
    kind: Literal["summarize"] = "summarize"
    source: UploadedFile
    detail: SummaryDetail = SummaryDetail.DETAILED


class PdfToWordRequest(BaseModel):
    kind: Literal["pdf-to-word"] = "pdf-to-word"
    source: UploadedFile


class PdfToExcelRequest(BaseModel):
    kind: Literal["pdf-to-excel"] = "pdf-to-excel"
    source: UploadedFile


class WordToPdfRequest(BaseModel):
    kind: Literal["word-to-pdf"] = "word-to-pdf"
    source: UploadedFile


class ExcelToPdfRequest(BaseModel):
    kind: Literal["excel-to-pdf"] = "excel-to-pdf"
    source: UploadedFile


class ImageToPdfRequest(BaseModel):
    kind: Literal["image-to-pdf"] = "image-to-pdf"
    source: UploadedFile


class PdfToImageRequest(BaseModel):
    kind: Literal["pdf-to-image"] = "pdf-to-image"
    source: UploadedFile
    page: int = Field(default=1, ge=1)
    scale: float = Field(default=2.0, gt=0, le=8.0)


class CompressFileRequest(BaseModel):
    kind: Literal["compress-file"] = "compress-file"
    source: UploadedFile
    level: CompressionLevel = CompressionLevel.MEDIUM


class CompressImageRequest(BaseModel):
    kind: Literal["compress-image"] = "compress-image"
    source: UploadedFile
    level: CompressionLevel = CompressionLevel.MEDIUM


ConversionRequest = Annotated[
    Union[
        SummarizeRequest,
        PdfToWordRequest,
        PdfToExcelRequest,
        WordToPdfRequest,
        ExcelToPdfRequest,
        ImageToPdfRequest,
        PdfToImageRequest,
        CompressFileRequest,
        CompressImageRequest,
    ],
    Field(discriminator="kind"),
]

CONVERSION_KINDS = (
    "summarize", "pdf-to-word", "pdf-to-excel", "word-to-pdf", "excel-to-pdf",
    "image-to-pdf", "pdf-to-image", "compress-file", "compress-image",
)


# ---------------------------------------------------------------------------
# Conversion results
# ---------------------------------------------------------------------------

class PlainText(BaseModel):
    type: Literal["text"] = "text"
    text: str
    filename: str = "result.md"


class DownloadableBinary(BaseModel):
    type: Literal["download"] = "download"
    data: bytes
    media_type: str
    filename: str


class RenderableImage(BaseModel):
    type: Literal["image"] = "image"
    data: bytes
    media_type: str = "image/png"
    filename: str = "image.png"


class PreviewableMarkup(BaseModel):
    type: Literal["preview"] = "preview"
    html: str
    filename: str = "document.pdf"


ConversionResult = Annotated[
    Union[PlainText, DownloadableBinary, RenderableImage, PreviewableMarkup],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class InlineData(BaseModel):
    """Binary payload sent alongside the instruction text."""
    media_type: str
    data: bytes


class BudgetCategory(BaseModel):
    name: str
    value: float


class BudgetPlan(BaseModel):
    """Structured budget response; category order is preserved."""
    analysis: str
    categories: List[BudgetCategory] = []


class GeneratedImage(BaseModel):
    data: bytes
    media_type: str = "image/png"


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class SelectToolRequest(BaseModel):
    tool: ToolId


class FinalizePreviewRequest(BaseModel):
    html: str = Field(..., min_length=1)
    filename: str = "document.pdf"


class ResumeRequest(BaseModel):
    user_data: str = Field(..., min_length=1, description="Raw details about the applicant")
    job_description: Optional[str] = None
    mode: ResumeMode = ResumeMode.RESUME

    @field_validator('user_data')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('user_data must not be blank')
        return v


class StoryRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    character: str = Field(..., min_length=1)
    age: int = Field(default=5, ge=2, le=12)
    genre: Genre = Genre.ADVENTURE
    moral: Optional[str] = None
    language: StoryLanguage = StoryLanguage.ENGLISH


class SpeechRequest(BaseModel):
    voice: Voice = Voice.KORE


class BudgetRequest(BaseModel):
    financial_data: str = Field(..., min_length=1)

    @field_validator('financial_data')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('financial_data must not be blank')
        return v


class ImageRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    aspect_ratio: AspectRatio = AspectRatio.SQUARE


class NoteRequest(BaseModel):
    text: str
