"""Central application configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_MODEL_CHAIN: tuple[str, ...] = ("liquid/lfm-2.5-1.2b-thinking:free",)


def _parse_model_chain(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated model list, keeping order and dropping blanks."""
    if not raw:
        return DEFAULT_MODEL_CHAIN
    models = tuple(m.strip() for m in raw.split(",") if m.strip())
    return models or DEFAULT_MODEL_CHAIN


@dataclass(frozen=True)
class Config:
    """Central application configuration.

    Reads from environment variables with sensible defaults.
    The OpenRouter credential is optional here; the client refuses to
    make any request without it.
    """

    # OpenRouter
    openrouter_api_key: str | None = field(
        default_factory=lambda: os.getenv("OPENROUTER_API_KEY") or None
    )
    openrouter_api_url: str = field(
        default_factory=lambda: os.getenv(
            "OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions"
        )
    )
    app_url: str = field(
        default_factory=lambda: os.getenv("APP_URL", "http://localhost:3000")
    )
    app_title: str = "TailMates Pet Care"

    # Model chain, tried in order
    model_chain: tuple[str, ...] = field(
        default_factory=lambda: _parse_model_chain(os.getenv("OPENROUTER_MODELS"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.getenv("OPENROUTER_TIMEOUT", "20"))
    )
    temperature: float = 0.3
    max_tokens: int = 4000

    # Prompt and output bounds
    max_medical_records: int = 5
    max_food_recommendations: int = 5
    max_service_recommendations: int = 3

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))


def get_config() -> Config:
    """Get application configuration.

    Returns:
        Config instance with values from environment or defaults.
    """
    return Config()
