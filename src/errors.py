"""Exception hierarchy for the recommendation pipeline."""

from __future__ import annotations


class RecommendationError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigurationError(RecommendationError):
    """The deployment is missing something required, e.g. the API key."""


class ModelCallError(RecommendationError):
    """A single model attempt failed (HTTP error, empty content, timeout)."""

    def __init__(self, model: str, message: str) -> None:
        super().__init__(f"{model}: {message}")
        self.model = model
        self.reason = message


class ModelChainExhaustedError(RecommendationError):
    """Every model in the chain failed.

    Args:
        last_error: The failure of the final model attempted, if any.
    """

    def __init__(self, last_error: ModelCallError | None) -> None:
        detail = f" (last error: {last_error})" if last_error else ""
        super().__init__(f"All models in fallback chain failed{detail}")
        self.last_error = last_error


class ResponseParseError(RecommendationError):
    """No JSON object could be extracted from the model output."""
