# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# All runtime configuration comes from environment variables (or a .env
# file in the working directory), validated by Pydantic when the process
# starts. An invalid or incomplete environment fails fast with a message
# listing every offending variable.
#
# HOW IT WORKS:
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `GROQ_API_KEY=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   settings = load_settings()      # once, at process start
#   app = create_app(settings)      # handed to every collaborator from here
#
# There is deliberately no module-level `settings` instance: the settings
# object travels with the application (`app.state.settings`).
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from voicenotes.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Only AUTH_SECRET and GROQ_API_KEY have no default. Everything else
    is tuned for a single-instance local deployment backed by a SQLite file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Voice Notes API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production", "test"] = (
        "development"
    )
    debug: bool = False
    enable_debug_logs: bool = False
    port: int = Field(default=4321, ge=1, le=65535)

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    # Local mode uses an aiosqlite file. Hosted mode takes any async
    # SQLAlchemy URL (sqlite+aiosqlite, postgresql+asyncpg, ...).
    # -------------------------------------------------------------------------
    use_local_db: bool = True
    local_database_path: str = "database/dev.db"
    database_url: str | None = None

    # -------------------------------------------------------------------------
    # Authentication — external session service
    # -------------------------------------------------------------------------
    auth_secret: str = Field(
        ...,
        min_length=32,
        description="AUTH_SECRET must be at least 32 characters long",
    )
    auth_url: str = Field(
        default="http://localhost:4321",
        pattern=r"^https?://",
    )
    auth_timeout_seconds: float = Field(default=5.0, gt=0)

    # -------------------------------------------------------------------------
    # Groq — speech-to-text and chat completions (OpenAI-compatible API)
    # -------------------------------------------------------------------------
    groq_api_key: str = Field(..., min_length=1)
    groq_base_url: str = "https://api.groq.com/openai/v1"
    transcription_model: str = "whisper-large-v3"
    transcription_language: str = "es"
    transcription_timeout_seconds: float = Field(default=30.0, gt=0)

    # Returned by title generation whenever the model cannot be used
    default_note_title: str = "Nota de voz"

    # Directory holding the *.md prompt templates
    prompts_dir: Path = DEFAULT_PROMPTS_DIR

    # -------------------------------------------------------------------------
    # Rate limiting
    # -------------------------------------------------------------------------
    # The memory backend is process-local: every instance of a horizontally
    # scaled deployment enforces its own quota. Use the redis backend when
    # more than one instance serves traffic.
    # -------------------------------------------------------------------------
    rate_limit_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/2"
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    rate_limit_transcription: int = Field(default=5, ge=1)
    rate_limit_notes: int = Field(default=30, ge=1)
    rate_limit_general: int = Field(default=100, ge=1)
    rate_limit_sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # -------------------------------------------------------------------------
    # Audio uploads
    # -------------------------------------------------------------------------
    max_audio_file_size: int = Field(
        default=10,
        ge=1,
        description="Maximum audio upload size in megabytes",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_database_mode(self) -> Settings:
        if not self.use_local_db and not self.database_url:
            raise ValueError(
                "DATABASE_URL is required when USE_LOCAL_DB=false"
            )
        return self

    @property
    def resolved_database_url(self) -> str:
        """SQLAlchemy URL for the configured database mode."""
        if self.use_local_db:
            return f"sqlite+aiosqlite:///{self.local_database_path}"
        return self.database_url  # type: ignore[return-value]

    @property
    def max_audio_file_size_bytes(self) -> int:
        return self.max_audio_file_size * 1024 * 1024

    @property
    def verbose(self) -> bool:
        return self.debug or self.enable_debug_logs


def _format_errors(error: ValidationError) -> str:
    lines = ["Invalid environment configuration:"]
    for item in error.errors():
        name = ".".join(str(part) for part in item["loc"]).upper() or "SETTINGS"
        lines.append(f"  - {name}: {item['msg']}")
    lines.append("")
    lines.append("Minimal required configuration:")
    lines.append("  - AUTH_SECRET=<at least 32 characters>")
    lines.append("  - GROQ_API_KEY=gsk_your-groq-api-key")
    lines.append("  - USE_LOCAL_DB=true (for local development)")
    return "\n".join(lines)


def load_settings(**overrides) -> Settings:
    """
    Build and validate the Settings for this process.

    Raises:
        ConfigurationError: One line per invalid or missing variable.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(_format_errors(e)) from e

    if settings.verbose and settings.environment == "development":
        # Secrets are never part of this summary
        logger.info(
            "Configuration loaded: environment=%s, use_local_db=%s, "
            "rate_limit_backend=%s, rate_limits={transcription: %d, "
            "notes: %d, general: %d}, max_audio_file_size=%dMB",
            settings.environment,
            settings.use_local_db,
            settings.rate_limit_backend,
            settings.rate_limit_transcription,
            settings.rate_limit_notes,
            settings.rate_limit_general,
            settings.max_audio_file_size,
        )
    return settings
