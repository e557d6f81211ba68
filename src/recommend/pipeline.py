"""Model-backed analyses: prompt build, model chain call, normalization.

These functions never fall back to the rule-based engine themselves; the
caller decides what to do with a :class:`ModelChainExhaustedError` or a
:class:`ResponseParseError`.
"""

from __future__ import annotations

import logging

from src.config import Config
from src.data.schemas import (
    AnalysisBundle,
    PersonalityAnalysis,
    PersonalityInput,
    RecommendationResult,
)
from src.errors import ResponseParseError
from src.llm.openrouter import OpenRouterClient
from src.prompts.builder import build_personality_prompts, build_recommendation_prompts
from src.recommend.normalizer import normalize_personality, normalize_recommendations

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 500


async def generate_ai_suggestions(
    bundle: AnalysisBundle,
    client: OpenRouterClient,
    config: Config | None = None,
) -> RecommendationResult:
    """Generate food and service recommendations through the model chain.

    Args:
        bundle: Pet, medical history and catalogs for this request.
        client: Model invocation client.
        config: Limits for prompts and output; defaults to the client's config.

    Returns:
        A fully populated RecommendationResult.

    Raises:
        ConfigurationError: If no API key is configured.
        ModelChainExhaustedError: If every model failed.
        ResponseParseError: If the winning completion holds no JSON object.
    """
    config = config or client.config
    prompts = build_recommendation_prompts(
        bundle,
        max_records=config.max_medical_records,
        top_food=config.max_food_recommendations,
        top_services=config.max_service_recommendations,
    )

    logger.info("Generating suggestions for pet: %s", bundle.pet.name)
    completion = await client.complete(prompts.system, prompts.user, label=bundle.pet.name)

    try:
        return normalize_recommendations(
            completion.content,
            bundle,
            max_food=config.max_food_recommendations,
            max_services=config.max_service_recommendations,
        )
    except ResponseParseError:
        logger.error(
            "Failed to parse response from %s: %s",
            completion.model,
            completion.content[:_PREVIEW_CHARS],
        )
        raise


async def generate_personality_analysis(
    data: PersonalityInput,
    client: OpenRouterClient,
    config: Config | None = None,
) -> PersonalityAnalysis:
    """Generate a personality analysis through the model chain.

    Raises:
        ConfigurationError: If no API key is configured.
        ModelChainExhaustedError: If every model failed.
        ResponseParseError: If the winning completion holds no JSON object.
    """
    config = config or client.config
    prompts = build_personality_prompts(data, max_records=config.max_medical_records)

    logger.info("Generating personality analysis for: %s", data.pet.name)
    completion = await client.complete(prompts.system, prompts.user, label=data.pet.name)

    try:
        return normalize_personality(completion.content)
    except ResponseParseError:
        logger.error(
            "Failed to parse personality response from %s: %s",
            completion.model,
            completion.content[:_PREVIEW_CHARS],
        )
        raise
