"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mineral_scanner.domain.minerals import DEFAULT_MINERAL_LABELS
from mineral_scanner.services.inference import DEFAULT_INSTRUCTION

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

INFERENCE_PROVIDERS = frozenset({"ollama", "openai"})


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    inference_provider: str = "ollama"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2-vision"
    ollama_timeout_seconds: float = 120.0
    inference_instruction: str = DEFAULT_INSTRUCTION
    mineral_labels: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_MINERAL_LABELS)
    )
    camera_index: int = 0
    capture_width: int = 640
    capture_height: int = 480
    jpeg_quality: int = Field(default=90, ge=1, le=100)
    auto_start_capture: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_provider(raw: str) -> str:
    """Normalize and validate the inference provider name."""
    provider = raw.strip().lower()
    if provider not in INFERENCE_PROVIDERS:
        allowed = ", ".join(sorted(INFERENCE_PROVIDERS))
        raise ValueError(
            f"Unknown inference provider {raw!r}; expected one of {allowed}"
        )
    return provider
