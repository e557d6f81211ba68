"""FastAPI routes for AI suggestions, personality analysis and health check.

The routes are the caller of the model pipeline: they decide when to fall
back to the rule-based engine and annotate the response accordingly.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from src.data.schemas import (
    AnalysisBundle,
    PersonalityRequest,
    PersonalityResponse,
    RecommendationResult,
    SuggestionRequest,
    SuggestionResponse,
)
from src.errors import ConfigurationError, ModelChainExhaustedError, ResponseParseError
from src.recommend.fallback import (
    generate_rule_based_personality,
    generate_rule_based_recommendations,
)
from src.recommend.pipeline import generate_ai_suggestions, generate_personality_analysis

logger = logging.getLogger(__name__)

router = APIRouter()

FALLBACK_REASON = "AI service temporarily unavailable"


def _scoped_bundle(body: SuggestionRequest) -> AnalysisBundle:
    """Drop the catalog the request did not ask about."""
    return AnalysisBundle(
        pet=body.pet,
        medical_records=body.medical_records,
        products=body.products if body.type != "service" else [],
        services=body.services if body.type != "food" else [],
    )


def _suggestion_response(
    body: SuggestionRequest,
    result: RecommendationResult,
    fallback_reason: str | None = None,
) -> SuggestionResponse:
    return SuggestionResponse(
        pet_id=body.pet_id,
        pet_name=body.pet.name,
        analysis=result.analysis,
        food_recommendations=result.food_recommendations,
        service_recommendations=result.service_recommendations,
        generated_at=datetime.now(timezone.utc),
        is_fallback=fallback_reason is not None,
        fallback_reason=fallback_reason,
    )


@router.post("/api/suggestions", response_model=SuggestionResponse)
async def create_suggestions(
    request: Request, body: SuggestionRequest
) -> SuggestionResponse:
    """Generate recommendations, falling back to rules when the model path fails.

    Args:
        request: FastAPI request with app state.
        body: Pet, history, catalogs and which lists to produce.

    Returns:
        SuggestionResponse with ``is_fallback`` set when rules were used.
    """
    config = request.app.state.config
    bundle = _scoped_bundle(body)

    try:
        result = await generate_ai_suggestions(
            bundle, request.app.state.llm_client, config
        )
    except ConfigurationError as exc:
        logger.error("AI suggestions misconfigured: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except (ModelChainExhaustedError, ResponseParseError) as exc:
        logger.warning("AI suggestions failed, falling back to rule-based: %s", exc)
        result = generate_rule_based_recommendations(
            bundle,
            max_food=config.max_food_recommendations,
            max_services=config.max_service_recommendations,
        )
        return _suggestion_response(body, result, FALLBACK_REASON)

    return _suggestion_response(body, result)


@router.post("/api/suggestions/rule-based", response_model=SuggestionResponse)
async def create_rule_based_suggestions(
    request: Request, body: SuggestionRequest
) -> SuggestionResponse:
    """Run only the rule-based engine, without touching the model chain."""
    config = request.app.state.config
    result = generate_rule_based_recommendations(
        _scoped_bundle(body),
        max_food=config.max_food_recommendations,
        max_services=config.max_service_recommendations,
    )
    return _suggestion_response(body, result)


@router.post("/api/personality", response_model=PersonalityResponse)
async def create_personality(
    request: Request, body: PersonalityRequest
) -> PersonalityResponse:
    """Generate a personality analysis, falling back to rules on model failure."""
    fallback_reason = None
    try:
        analysis = await generate_personality_analysis(
            body, request.app.state.llm_client, request.app.state.config
        )
    except ConfigurationError as exc:
        logger.error("Personality analysis misconfigured: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except (ModelChainExhaustedError, ResponseParseError) as exc:
        logger.warning("Personality analysis failed, falling back to rule-based: %s", exc)
        analysis = generate_rule_based_personality(body.pet)
        fallback_reason = FALLBACK_REASON

    return PersonalityResponse(
        pet_id=body.pet_id,
        pet_name=body.pet.name,
        analysis=analysis,
        analyzed_at=datetime.now(timezone.utc),
        is_fallback=fallback_reason is not None,
        fallback_reason=fallback_reason,
    )


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint for monitoring.

    Returns:
        Dict with service status and model configuration.
    """
    config = request.app.state.config
    configured = bool(config.openrouter_api_key)
    return {
        "status": "healthy" if configured else "degraded",
        "llm": "configured" if configured else "missing_api_key",
        "models": list(request.app.state.llm_client.model_chain),
    }
