"""
Application configuration management using Pydantic Settings.
All settings are loaded from environment variables.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Database Configuration
    # =========================================================================
    postgres_user: str = Field(default="voiceexpense_user")
    postgres_password: str = Field(default="voiceexpense_password")
    postgres_db: str = Field(default="voiceexpense_db")
    postgres_host: str = Field(default="localhost")
    postgres_port: int = Field(default=5432)
    sqlalchemy_database_url: str = Field(default="")  # e.g. sqlite:///./usage.db
    database_pool_timeout_seconds: int = Field(default=10)

    @property
    def database_url(self) -> str:
        """Construct database connection URL (explicit URL wins)."""
        if self.sqlalchemy_database_url:
            return self.sqlalchemy_database_url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # =========================================================================
    # LLM Provider Configuration
    # =========================================================================
    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    google_api_key: str = Field(default="")
    groq_api_key: str = Field(default="")
    llm_provider: Literal["openai", "anthropic", "google", "groq"] = Field(
        default="openai"
    )

    openai_model: str = Field(default="gpt-4o")
    anthropic_model: str = Field(default="claude-3-5-sonnet-20241022")
    google_model: str = Field(default="gemini-2.0-flash")
    groq_model: str = Field(default="llama-3.3-70b-versatile")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1")

    llm_temperature: float = Field(default=0.2)
    extraction_timeout_seconds: float = Field(default=30.0)
    llm_max_retries: int = Field(default=0)  # retry policy belongs to the caller

    # =========================================================================
    # Audio Processing Configuration
    # =========================================================================
    transcription_provider: Literal["openai", "groq"] = Field(default="openai")
    whisper_model: str = Field(default="whisper-1")
    whisper_language: str | None = Field(default=None)  # None = auto-detect
    transcription_timeout_seconds: float = Field(default=60.0)

    max_audio_size_bytes: int = Field(default=25 * 1024 * 1024)  # Whisper upload limit
    allowed_audio_extensions: list[str] = Field(
        default=["mp3", "wav", "m4a", "mp4", "webm", "ogg"]
    )
    allowed_audio_mime_types: list[str] = Field(
        default=[
            "audio/mpeg",
            "audio/mp3",
            "audio/wav",
            "audio/wave",
            "audio/x-wav",
            "audio/m4a",
            "audio/mp4",
            "audio/x-m4a",
            "audio/webm",
            "audio/ogg",
        ]
    )

    @property
    def transcription_api_key(self) -> str:
        """API key for the configured speech-to-text provider."""
        if self.transcription_provider == "groq":
            return self.groq_api_key
        return self.openai_api_key

    @property
    def transcription_base_url(self) -> str | None:
        """Base URL override for OpenAI-compatible transcription endpoints."""
        if self.transcription_provider == "groq":
            return self.groq_base_url
        return None

    # =========================================================================
    # Quotas & Input Limits
    # =========================================================================
    ai_parse_rate_limit_trial: int = Field(default=10)  # per day
    ai_parse_rate_limit_free: int = Field(default=10)  # per day
    ai_parse_rate_limit_pro: int = Field(default=1000)  # per day
    max_transcription_length: int = Field(default=5000)

    @property
    def tier_limits(self) -> dict[str, int]:
        """Daily extraction ceiling per subscription tier."""
        return {
            "trial": self.ai_parse_rate_limit_trial,
            "free": self.ai_parse_rate_limit_free,
            "pro": self.ai_parse_rate_limit_pro,
        }

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="json")

    # =========================================================================
    # Application Settings
    # =========================================================================
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )


# Global settings instance
settings = Settings()
