"""Application configuration with environment variable support."""
import os
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Constants
DEFAULT_PORT = 8000
DEFAULT_MAX_SESSIONS = 256
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_REASONING_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_SPEECH_MODEL = "gemini-2.5-flash-preview-tts"
MIN_SNAPSHOT_WIDTH = 320
MAX_SNAPSHOT_WIDTH = 3840


def _get_notes_path() -> str:
    """Get platform-appropriate location for the notes file."""
    if os.name == 'nt':  # Windows
        return os.path.join(os.environ.get('APPDATA', 'C:\\Temp'), 'toolverse', 'notes.json')
    return os.path.join(os.path.expanduser('~'), '.toolverse', 'notes.json')


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Keys
    google_api_key: str = ""

    # Gemini
    # Override only when going through a proxy; the SDK knows the public endpoint
    gemini_base_url: Optional[str] = None
    text_model: str = DEFAULT_TEXT_MODEL
    reasoning_model: str = DEFAULT_REASONING_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    speech_model: str = DEFAULT_SPEECH_MODEL
    # None disables the client-side timeout; calls are awaited once
    request_timeout_seconds: Optional[float] = None

    # Server Settings
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT

    # Workspaces kept in memory; the least recently used session is evicted
    max_sessions: int = DEFAULT_MAX_SESSIONS

    # Browser Settings
    chrome_headless: bool = True
    snapshot_width: int = 1240

    # Logging
    log_level: str = "INFO"

    # Paths
    notes_path: str = _get_notes_path()

    @field_validator('gemini_base_url')
    @classmethod
    def blank_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty override as unset."""
        return v or None

    @field_validator('request_timeout_seconds')
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Non-positive timeouts mean no timeout."""
        if v is not None and v <= 0:
            return None
        return v

    @field_validator('max_sessions')
    @classmethod
    def validate_max_sessions(cls, v: int) -> int:
        return max(1, v)

    @field_validator('snapshot_width')
    @classmethod
    def validate_snapshot_width(cls, v: int) -> int:
        """Keep the preview viewport within a sane range."""
        return max(MIN_SNAPSHOT_WIDTH, min(v, MAX_SNAPSHOT_WIDTH))

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        v = v.upper()
        if v not in valid_levels:
            return 'INFO'
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
