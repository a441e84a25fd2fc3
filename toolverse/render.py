"""Result renderer - picks a display strategy by result type, nothing more."""
from functools import singledispatch
from urllib.parse import quote

import markdown as md_lib
from fastapi.responses import HTMLResponse, JSONResponse, Response

from toolverse.audio import SpeechClip
from toolverse.models import (
    BudgetPlan,
    DownloadableBinary,
    GeneratedImage,
    PlainText,
    PreviewableMarkup,
    RenderableImage,
)


MARKDOWN_EXTENSIONS = ["tables", "fenced_code", "sane_lists"]


def markdown_to_html(text: str) -> str:
    return md_lib.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def _disposition(kind: str, filename: str) -> str:
    # RFC 6266: plain ASCII fallback plus the UTF-8 form
    fallback = filename.encode('ascii', 'replace').decode('ascii').replace('"', '')
    return f"{kind}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@singledispatch
def render(result) -> Response:
    raise TypeError(f"No renderer for {type(result).__name__}")


@render.register
def _(result: PlainText) -> Response:
    return JSONResponse({
        "type": result.type,
        "filename": result.filename,
        "text": result.text,
        "html": markdown_to_html(result.text),
    })


@render.register
def _(result: DownloadableBinary) -> Response:
    return Response(
        content=result.data,
        media_type=result.media_type,
        headers={"Content-Disposition": _disposition("attachment", result.filename)},
    )


@render.register
def _(result: RenderableImage) -> Response:
    return Response(
        content=result.data,
        media_type=result.media_type,
        headers={"Content-Disposition": _disposition("inline", result.filename)},
    )


@render.register
def _(result: PreviewableMarkup) -> Response:
    return HTMLResponse(
        content=result.html,
        headers={"X-Suggested-Filename": quote(result.filename)},
    )


@render.register
def _(result: BudgetPlan) -> Response:
    return JSONResponse({
        "type": "budget",
        "analysis": result.analysis,
        "html": markdown_to_html(result.analysis),
        "categories": [c.model_dump() for c in result.categories],
    })


@render.register
def _(result: GeneratedImage) -> Response:
    extension = result.media_type.split('/')[-1] or 'png'
    return render(RenderableImage(
        data=result.data,
        media_type=result.media_type,
        filename=f"generated-image.{extension}",
    ))


@render.register
def _(result: SpeechClip) -> Response:
    return Response(
        content=result.to_wav(),
        media_type="audio/wav",
        headers={
            "Content-Disposition": _disposition("inline", "story.wav"),
            "X-Audio-Frames": str(result.frame_count),
            "X-Audio-Sample-Rate": str(result.sample_rate),
        },
    )
