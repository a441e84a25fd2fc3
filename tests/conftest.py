"""Shared test fixtures for ToolVerse."""

import io
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pandas as pd
import pytest
from docx import Document
from google.genai import errors as genai_errors
from google.genai import types
from PIL import Image

from toolverse.gemini import GenerationClient
from toolverse.models import UploadedFile
from toolverse.workspace import workspaces


# ---------------------------------------------------------------------------
# File builders
# ---------------------------------------------------------------------------


def make_image_bytes(size=(64, 48), color=(200, 30, 30), fmt="JPEG", mode="RGB"):
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_pdf_bytes(page_sizes=((200, 300), (300, 200))):
    """PDF with one solid page per size; at 72 dpi pixels equal points."""
    pages = [Image.new("RGB", size, (40 * i % 255, 120, 200)) for i, size in enumerate(page_sizes)]
    buffer = io.BytesIO()
    pages[0].save(buffer, format="PDF", resolution=72.0, save_all=True, append_images=pages[1:])
    return buffer.getvalue()


def make_docx_bytes(with_image=True, transparent=False):
    document = Document()
    document.add_heading("Quarterly Report", level=1)
    document.add_paragraph("Revenue grew in every region.")
    document.add_paragraph("North", style="List Bullet")
    document.add_paragraph("South", style="List Bullet")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Region"
    table.cell(0, 1).text = "Sales"
    table.cell(1, 0).text = "North"
    table.cell(1, 1).text = "42"
    if with_image:
        if transparent:
            png = make_image_bytes((80, 60), (0, 0, 0, 0), fmt="PNG", mode="RGBA")
        else:
            png = make_image_bytes((80, 60), (10, 200, 10), fmt="PNG")
        document.add_picture(io.BytesIO(png))
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_xlsx_bytes():
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame({"Item": ["Rent", "Food"], "Cost": [1200, 400]}).to_excel(
            writer, sheet_name="Budget", index=False
        )
        pd.DataFrame({"Secret": ["hidden-value"]}).to_excel(writer, sheet_name="Other", index=False)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Gemini responses
# ---------------------------------------------------------------------------


def text_response(text):
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))]
    )


def inline_response(data, mime_type):
    part = types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[part]))]
    )


def api_error(code=400, message="API key not valid"):
    return genai_errors.ClientError(
        code, {"error": {"code": code, "message": message, "status": "INVALID_ARGUMENT"}}
    )


class FakeModels:
    """Stands in for ``client.aio.models``: records calls and replays canned responses.

    The last response repeats once the others are used up. A response may be
    an exception (raised) or an async callable (awaited for the response).
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def generate_content(self, *, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = await response()
        return response


def make_client(*responses, api_key="test-key"):
    models = FakeModels(*responses)
    sdk = SimpleNamespace(aio=SimpleNamespace(models=models, aclose=AsyncMock()))
    client = GenerationClient(api_key=api_key, text_model="gemini-test", client=sdk)
    return client, models


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes()


@pytest.fixture
def pdf_bytes():
    return make_pdf_bytes()


@pytest.fixture
def pdf_upload(pdf_bytes):
    return UploadedFile(data=pdf_bytes, media_type="application/pdf", name="report.pdf")


@pytest.fixture
def docx_bytes():
    return make_docx_bytes()


@pytest.fixture
def xlsx_bytes():
    return make_xlsx_bytes()


@pytest.fixture(autouse=True)
def fresh_workspaces():
    workspaces.reset()
    yield
    workspaces.reset()
