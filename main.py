"""
ToolVerse AI - document and generative tools API
Main FastAPI application entry point
"""
import sys
from contextlib import asynccontextmanager
from typing import Dict, Optional, Type

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import TypeAdapter, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from toolverse import __version__
from toolverse.audio import stop_clip
from toolverse.config import settings
from toolverse.conversion import convert, extract_text_preview
from toolverse.conversion.snapshot import snapshot
from toolverse.errors import (
    DecodeError,
    EmptyGenerationResult,
    NoAudioInResponse,
    NoImageInResponse,
    NothingToCompress,
    OperationInProgress,
    StaleResult,
    ToolError,
    TransportError,
    UnsupportedFileType,
)
from toolverse.gemini import GenerationClient, gemini
from toolverse.models import (
    CONVERSION_KINDS,
    TOOLS,
    BudgetRequest,
    CompressionLevel,
    ConversionRequest,
    DownloadableBinary,
    FinalizePreviewRequest,
    ImageRequest,
    NoteRequest,
    Platform,
    PlainText,
    ResumeRequest,
    SelectToolRequest,
    SpeechRequest,
    StoryRequest,
    SummaryDetail,
    Tone,
    ToolId,
    UploadedFile,
)
from toolverse.notes import NotesStore, open_notes
from toolverse.render import render
from toolverse.tools import (
    generate_captions,
    generate_career_document,
    generate_image,
    generate_story,
    narrate,
    plan_budget,
    solve_homework,
)
from toolverse.workspace import Workspace, workspaces


# Configure logging
logger.remove()
logger.add(
    sys.stderr,
    level=settings.log_level,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

ERROR_STATUS: Dict[Type[ToolError], int] = {
    TransportError: status.HTTP_502_BAD_GATEWAY,
    EmptyGenerationResult: status.HTTP_502_BAD_GATEWAY,
    NoImageInResponse: status.HTTP_502_BAD_GATEWAY,
    NoAudioInResponse: status.HTTP_502_BAD_GATEWAY,
    DecodeError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NothingToCompress: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedFileType: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    OperationInProgress: status.HTTP_409_CONFLICT,
    StaleResult: status.HTTP_409_CONFLICT,
}

conversion_adapter = TypeAdapter(ConversionRequest)

# Set in lifespan; tests override the dependency
_notes: Optional[NotesStore] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for startup/shutdown"""
    global _notes
    logger.info("ToolVerse AI starting up...")
    logger.info(f"Server running on {settings.host}:{settings.port}")
    if not settings.google_api_key:
        logger.warning("GOOGLE_API_KEY is not set; generation tools will fail")
    _notes = open_notes(settings.notes_path)

    yield

    # Cleanup on shutdown
    logger.info("Shutting down...")
    snapshot.shutdown()
    await gemini.close()


app = FastAPI(
    title="ToolVerse AI",
    description="PDF & document tools, writing helpers and image generation on Gemini",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_client() -> GenerationClient:
    return gemini


def get_notes() -> NotesStore:
    global _notes
    if _notes is None:
        _notes = open_notes(settings.notes_path)
    return _notes


def get_workspace(x_session_id: Optional[str] = Header(default=None)) -> Workspace:
    return workspaces.get(x_session_id)


async def read_upload(upload: UploadFile) -> UploadedFile:
    """Read a multipart upload into memory in one step."""
    data = await upload.read()
    return UploadedFile(
        data=data,
        media_type=upload.content_type or "application/octet-stream",
        name=upload.filename or "upload",
    )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(ToolError)
async def tool_exception_handler(request: Request, exc: ToolError):
    """Scope every tool failure to its request with a short readable message"""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_422_UNPROCESSABLE_ENTITY)
    logger.warning(f"{request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__, "stage": exc.stage}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return HTTP 400 for invalid JSON or validation errors"""
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request format", "errors": jsonable_errors(exc.errors())}
    )


@app.exception_handler(ValidationError)
async def model_validation_exception_handler(request: Request, exc: ValidationError):
    """Return HTTP 400 for options that fail model validation"""
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request format", "errors": jsonable_errors(exc.errors())}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions properly"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(f"Unexpected error: {exc!r}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


def jsonable_errors(errors):
    """Drop non-serializable context (raw bytes, exceptions) from validation errors."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in errors
    ]


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__
    }


@app.get("/tools")
async def list_tools():
    return [tool.model_dump(mode="json") for tool in TOOLS]


@app.get("/workspace")
async def get_workspace_state(workspace: Workspace = Depends(get_workspace)):
    return workspace.summary()


@app.put("/workspace/active-tool")
async def select_tool(body: SelectToolRequest, workspace: Workspace = Depends(get_workspace)):
    workspace.select(body.tool)
    return workspace.summary()


@app.delete("/workspace/tools/{tool}")
async def clear_tool(tool: ToolId, workspace: Workspace = Depends(get_workspace)):
    if tool is ToolId.KIDS_STORY_MAKER:
        stop_clip(workspace.state(tool).fields.get("clip"))
    workspace.clear(tool)
    return workspace.state(tool).summary()


# ---------------------------------------------------------------------------
# PDF & document tools
# ---------------------------------------------------------------------------

@app.post("/tools/documents/extract-text")
async def extract_document_text(
    file: UploadFile = File(...),
    max_chars: int = Form(1500),
    workspace: Workspace = Depends(get_workspace),
):
    """Quick local text preview of a PDF (no generation call)."""
    upload = await read_upload(file)
    result = await workspace.run(
        ToolId.PDF_SUMMARIZER, lambda: extract_text_preview(upload, max_chars)
    )
    return render(result)


@app.post("/tools/documents/finalize")
async def finalize_preview(
    body: FinalizePreviewRequest,
    workspace: Workspace = Depends(get_workspace),
):
    """
    Turn a Word/Excel preview into a paged PDF.

    The preview is captured as an image, so text is not selectable.
    """
    async def operation():
        data = await snapshot.to_pdf(body.html)
        return DownloadableBinary(data=data, media_type="application/pdf", filename=body.filename)

    result = await workspace.run(ToolId.PDF_SUMMARIZER, operation)
    return render(result)


@app.post("/tools/documents/{kind}")
async def convert_document(
    kind: str,
    file: UploadFile = File(...),
    detail: Optional[SummaryDetail] = Form(None),
    level: Optional[CompressionLevel] = Form(None),
    page: Optional[int] = Form(None),
    scale: Optional[float] = Form(None),
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    """
    Run one document conversion.

    - kind: summarize, pdf-to-word, pdf-to-excel, word-to-pdf, excel-to-pdf,
      image-to-pdf, pdf-to-image, compress-file, compress-image
    - Returns rendered text, an inline image, an HTML preview or a download
    """
    if kind not in CONVERSION_KINDS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown conversion: {kind}")

    options = {"detail": detail, "level": level, "page": page, "scale": scale}
    payload = {"kind": kind, "source": await read_upload(file)}
    payload.update({k: v for k, v in options.items() if v is not None})
    request = conversion_adapter.validate_python(payload)

    result = await workspace.run(ToolId.PDF_SUMMARIZER, lambda: convert(request, client))
    return render(result)


# ---------------------------------------------------------------------------
# Writing tools
# ---------------------------------------------------------------------------

@app.post("/tools/resume")
async def create_resume(
    body: ResumeRequest,
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    async def operation():
        text = await generate_career_document(client, body.mode, body.user_data, body.job_description)
        return PlainText(text=text, filename=f"{body.mode.value}.md")

    return render(await workspace.run(ToolId.RESUME_MAKER, operation))


@app.post("/tools/captions")
async def create_captions(
    description: str = Form(""),
    platform: Platform = Form(Platform.INSTAGRAM),
    tone: Tone = Form(Tone.ENGAGING),
    image: Optional[UploadFile] = File(None),
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    upload = await read_upload(image) if image is not None else None
    if not description.strip() and upload is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provide a description or an image")

    async def operation():
        text = await generate_captions(client, description, platform, tone, upload)
        return PlainText(text=text, filename="captions.md")

    return render(await workspace.run(ToolId.CAPTION_GENERATOR, operation))


@app.post("/tools/story")
async def create_story(
    body: StoryRequest,
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    state = workspace.state(ToolId.KIDS_STORY_MAKER)

    async def operation():
        # A new story stops whatever is being read aloud
        stop_clip(state.fields.pop("clip", None))
        text = await generate_story(client, body)
        return PlainText(text=text, filename="story.md")

    # run() returns only results it applied
    result = await workspace.run(ToolId.KIDS_STORY_MAKER, operation)
    state.fields["story"] = result.text
    return render(result)


@app.post("/tools/story/speech")
async def read_story_aloud(
    body: SpeechRequest,
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    state = workspace.state(ToolId.KIDS_STORY_MAKER)
    story = state.fields.get("story")
    if not story:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Generate a story first")

    async def operation():
        stop_clip(state.fields.pop("clip", None))
        return await narrate(client, story, body.voice)

    clip = await workspace.run(ToolId.KIDS_STORY_MAKER, operation)
    state.fields["clip"] = clip
    return render(clip)


@app.post("/tools/story/speech/stop")
async def stop_reading(workspace: Workspace = Depends(get_workspace)):
    clip = workspace.state(ToolId.KIDS_STORY_MAKER).fields.get("clip")
    stop_clip(clip)
    return {"playing": False}


@app.post("/tools/homework")
async def solve(
    question: str = Form(""),
    image: Optional[UploadFile] = File(None),
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    upload = await read_upload(image) if image is not None else None
    if not question.strip() and upload is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Provide a question or an image")

    async def operation():
        text = await solve_homework(client, question, upload)
        return PlainText(text=text, filename="solution.md")

    return render(await workspace.run(ToolId.HOMEWORK_SOLVER, operation))


@app.post("/tools/budget")
async def create_budget(
    body: BudgetRequest,
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    plan = await workspace.run(ToolId.BUDGET_PLANNER, lambda: plan_budget(client, body.financial_data))
    return render(plan)


@app.post("/tools/image")
async def create_image(
    body: ImageRequest,
    workspace: Workspace = Depends(get_workspace),
    client: GenerationClient = Depends(get_client),
):
    image = await workspace.run(
        ToolId.IMAGE_GENERATOR, lambda: generate_image(client, body.prompt, body.aspect_ratio)
    )
    return render(image)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

@app.get("/notes")
async def list_notes(notes: NotesStore = Depends(get_notes)):
    return {"notes": notes.list()}


@app.post("/notes", status_code=status.HTTP_201_CREATED)
async def add_note(body: NoteRequest, notes: NotesStore = Depends(get_notes)):
    notes.add(body.text)
    return {"notes": notes.list()}


@app.delete("/notes/{index}")
async def delete_note(index: int, notes: NotesStore = Depends(get_notes)):
    try:
        notes.delete(index)
    except IndexError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"notes": notes.list()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
