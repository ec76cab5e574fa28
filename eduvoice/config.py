"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "EduVoice AI"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Storage
    # Without a database URL the API falls back to in-memory storage
    database_url: str | None = None
    storage_backend: Literal["memory", "database"] | None = None

    @computed_field
    @property
    def resolved_storage_backend(self) -> str:
        """Storage backend in effect: explicit setting, else database when a URL is configured."""
        if self.storage_backend:
            return self.storage_backend
        return "database" if self.database_url else "memory"

    @computed_field
    @property
    def async_database_url(self) -> str | None:
        """Database URL rewritten for the async driver."""
        url = self.database_url
        if not url:
            return None
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        # asyncpg doesn't accept libpq query params; SSL goes through connect_args
        if url.startswith("postgresql+asyncpg://") and "?" in url:
            url = url.split("?")[0]
        return url

    @computed_field
    @property
    def database_requires_ssl(self) -> bool:
        """Check if the database connection requires SSL (Neon, etc.)."""
        if self.database_url:
            return "sslmode=require" in self.database_url or "ssl=require" in self.database_url
        return False

    @computed_field
    @property
    def database_url_sync(self) -> str | None:
        """Sync database URL (for Alembic)."""
        url = self.database_url
        if not url:
            return None
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        elif url.startswith("postgresql+asyncpg://"):
            url = url.replace("postgresql+asyncpg://", "postgresql://", 1)
        return url

    # Auth
    auth_mode: Literal["session", "token"] = "session"

    # JWT (token mode)
    jwt_secret_key: str  # Required - no default, must be set in .env
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Server-side sessions (session mode)
    session_secret: str  # Required - signs the session cookie
    session_cookie_name: str = "eduvoice_session"
    session_expire_minutes: int = 60 * 24 * 7  # 7 days

    # CORS
    cors_origins: list[str] = ["http://localhost:5000"]

    # Cookies
    # Set to true when frontend and backend are on different domains
    # This uses samesite="none" + secure=True instead of samesite="lax"
    cookie_cross_domain: bool = False

    # OpenRouter gateway
    openrouter_api_key: str
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = "http://localhost:5000"
    openrouter_title: str = "EduVoice AI"
    gateway_timeout_seconds: float = 60.0

    # Model per task class
    model_chat: str = "anthropic/claude-3.5-sonnet"
    model_vision: str = "anthropic/claude-3.5-sonnet"
    model_reasoning: str = "anthropic/claude-3.5-sonnet"

    llm_max_tokens: int = 2048
    llm_generation_max_tokens: int = 3000

    # Context limits (characters)
    material_context_max_chars: int = 10000
    max_total_context_chars: int = 100000
    chat_history_window: int = 20

    # Voice (OpenAI audio API; OpenRouter has no audio endpoints)
    # Optional - voice routes fail with a gateway error until it is set
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    voice_transcription_model: str = "whisper-1"
    voice_speech_model: str = "tts-1"
    voice_speech_voice: str = "alloy"

    # Uploads
    max_upload_size_bytes: int = 50 * 1024 * 1024  # 50MB
    max_audio_upload_bytes: int = 25 * 1024 * 1024  # 25MB, the Whisper limit

    @property
    def cookie_secure(self) -> bool:
        return self.cookie_cross_domain or self.environment != "development"

    @property
    def cookie_samesite(self) -> Literal["lax", "none"]:
        return "none" if self.cookie_cross_domain else "lax"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(
    error: Exception,
    *,
    settings: Settings | None = None,
    generic_message: str = "An internal error occurred.",
) -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = settings or get_settings()
    if settings.environment == "development":
        return str(error) or generic_message
    return generic_message
