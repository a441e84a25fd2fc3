"""Error taxonomy shared by every tool.

Every failure is scoped to the single operation that raised it. Handlers in
``main.py`` turn these into short messages shown next to the triggering
control; nothing here is retried.
"""
from typing import Optional


class ToolError(Exception):
    """Base class for user-facing tool failures.

    Attributes:
        stage: Name of the step that failed (e.g. "PDF rasterization")
        message: Human-readable message for display
    """

    default_stage = "operation"

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        self.stage = stage or self.default_stage
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.stage} failed: {self.message}"


class TransportError(ToolError):
    """Network or service failure talking to the generation endpoint."""

    default_stage = "Generation request"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, stage)


class DecodeError(ToolError):
    """Source file is malformed, encrypted or uses an unsupported codec."""

    default_stage = "File decoding"


class EmptyGenerationResult(ToolError):
    """The service answered but returned no usable text or object."""

    default_stage = "Generation"


class NoImageInResponse(ToolError):
    """The service answered without an inlined image part."""

    default_stage = "Image generation"


class NoAudioInResponse(ToolError):
    """The service answered without an inlined audio part."""

    default_stage = "Speech synthesis"


class NothingToCompress(ToolError):
    """A container document holds no embedded raster images."""

    default_stage = "Compression"


class UnsupportedFileType(ToolError):
    """An adapter was handed a media type it does not handle."""

    default_stage = "Format detection"

    def __init__(self, media_type: str, stage: Optional[str] = None) -> None:
        self.media_type = media_type
        super().__init__(f"Unsupported file type: {media_type or 'unknown'}", stage)


class OperationInProgress(ToolError):
    """The tool already has an operation running."""

    default_stage = "Scheduling"


class StaleResult(ToolError):
    """A result arrived after its tool was left or cleared."""

    default_stage = "Rendering"
