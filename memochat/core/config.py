"""Configuration management using Pydantic settings."""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App settings
    app_name: str = Field(default="Memochat", description="Application name")
    debug: bool = Field(default=False, description="Mount interactive API docs")
    log_level: str = Field(default="INFO", description="Root logging level")

    # Redis settings
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    history_key_prefix: str = Field(default="chat:", description="Key prefix for stored conversations")
    session_ttl_seconds: Optional[int] = Field(
        default=None, description="Expire stored conversations after this many seconds; unset keeps them"
    )

    # Model settings
    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    chat_model: str = Field(default="gemini-2.5-flash", description="Gemini chat model name")
    system_prompt: str = Field(
        default="You are a helpful AI assistant. Be concise and friendly.",
        description="Persona instruction sent ahead of every conversation",
    )
    max_output_tokens: int = Field(default=512, description="Maximum tokens generated per reply")
    temperature: float = Field(default=0.7, description="Sampling temperature")

    # History settings
    history_window: int = Field(default=20, ge=2, description="Maximum turns kept per session")
    reset_corrupt_history: bool = Field(
        default=False, description="Discard unreadable stored history instead of failing the request"
    )

    # Consistency settings
    session_locking: bool = Field(
        default=False, description="Serialize chat requests of the same session with a Redis lock"
    )
    lock_timeout_seconds: float = Field(default=60.0, description="Lock expiry, in seconds")
    lock_blocking_timeout_seconds: float = Field(
        default=30.0, description="How long a request waits to acquire the session lock"
    )


settings = Settings()


def get_settings() -> Settings:
    return settings
