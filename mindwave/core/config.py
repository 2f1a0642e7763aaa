"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Mindwave application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        llm_provider: Which LLM backend interprets transcripts ("openai", "claude", "ollama").
        stt_provider: Which STT backend transcribes audio ("openai" or "local").
        max_audio_bytes: Largest accepted upload; anything bigger is rejected.
        database_url: Async SQLAlchemy connection string.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- LLM Provider ---
    llm_provider: str = "openai"

    # OpenAI (hosted transcription + chat completions)
    openai_api_key: str = ""
    openai_base_url: str = ""  # Empty = SDK default endpoint
    openai_llm_model: str = "gpt-4o-mini"

    # Claude (Anthropic API) settings
    claude_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"

    # Ollama (local LLM) settings
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # --- Speech-to-text ---
    stt_provider: str = "openai"  # "openai" = hosted Whisper API, "local" = faster-whisper
    openai_stt_model: str = "whisper-1"
    whisper_model: str = "base"  # Local model size: tiny, base, small, medium, large-v3
    transcription_language: str = "pt"  # ISO 639-1 hint sent with every transcription

    # --- Voice analysis ingress ---
    max_audio_bytes: int = 25 * 1024 * 1024
    base64_chunk_size: int = 32768  # Characters per base64 decode step (multiple of 4)
    allow_anonymous: bool = True  # Substitute an anonymous id when user_id is missing

    # --- Remote calls ---
    remote_timeout_seconds: float = 60.0
    remote_max_attempts: int = 2  # Total attempts for transient connection/timeout errors

    # --- Application ---
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # --- Storage ---
    database_url: str = "sqlite+aiosqlite:///data/mindwave.db"

    # --- Client ---
    api_base_url: str = "http://localhost:8000"  # Handler location used by AnalysisSubmitter


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
