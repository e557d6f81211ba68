"""Turn untrusted model output into schema-valid results.

The model's completion is treated as an untyped document. Every field of
the target schema is read through a small coercion helper that either
accepts a well-formed value or substitutes a documented default, so the
only failure mode left is text that contains no JSON object at all.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from src.data.schemas import (
    AnalysisBundle,
    BreedSpecs,
    CareGuide,
    CatalogProduct,
    CatalogService,
    FoodRecommendation,
    HealthIndex,
    HealthWarnings,
    MatchMetrics,
    MedicalGuide,
    NutritionalProfile,
    NutritionGuide,
    PersonalityAnalysis,
    PetAnalysis,
    PriceRange,
    RecommendationResult,
    ServiceRecommendation,
    TrainingGuide,
)
from src.errors import ResponseParseError

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50
DEFAULT_HEALTH_SUMMARY = "Không thể phân tích"
DEFAULT_INDEX_LABEL = "Chỉ số"
DEFAULT_PRODUCT_NAME = "Sản phẩm"
DEFAULT_SERVICE_NAME = "Dịch vụ"
DEFAULT_PERSONALITY_TYPE = "Tính cách chưa xác định"
UNKNOWN_ID = "unknown"
MINUTES_PER_DAY = 24 * 60
MAX_MEALS_PER_DAY = 12

DEFAULT_METRICS = {
    "species_match": 50,
    "life_stage_fit": 50,
    "allergy_safety": 100,
    "health_tag_match": 50,
    "nutritional_balance": 50,
}

_LEVELS = ("HIGH", "MEDIUM", "LOW")
_WEIGHT_STATUSES = ("UNDERWEIGHT", "NORMAL", "OVERWEIGHT")
_ACTIVITY_LEVELS = ("LOW", "MODERATE", "HIGH")
_INDEX_STATUSES = ("low", "medium", "high")
_INDEX_ICONS = (
    "protein", "heart", "bone", "stomach", "vitamin", "checkup", "energy", "fur"
)
_URGENCIES = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

# Whitespace characters some models emit that json.loads rejects.
_NONSTANDARD_SPACES = re.compile(
    "[\u00a0\u1680\u180e\u2000-\u200b\u202f\u205f\u3000\ufeff]"
)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ---------------------------------------------------------------------------
# JSON extraction
# ---------------------------------------------------------------------------


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from model output.

    Tries, in order: the whole text; the span from the first ``{`` to the
    last ``}``; that span with non-standard unicode whitespace replaced by
    plain spaces.

    Args:
        text: Raw completion content.

    Returns:
        The parsed JSON object.

    Raises:
        ResponseParseError: If no attempt yields a JSON object.
    """
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    logger.debug("Direct JSON parse failed, extracting braced span")
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ResponseParseError("No JSON structure found in response")

    candidate = text[start : end + 1]
    try:
        parsed = json.loads(candidate)
    except (ValueError, RecursionError) as exc:
        cleaned = _NONSTANDARD_SPACES.sub(" ", candidate)
        try:
            parsed = json.loads(cleaned)
        except (ValueError, RecursionError):
            raise ResponseParseError(
                f"Failed to parse extracted JSON content: {exc}"
            ) from exc

    if not isinstance(parsed, dict):
        raise ResponseParseError("Extracted JSON is not an object")
    return parsed


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def _clamp_round(value: float, default: int) -> int:
    if math.isnan(value):
        return default
    if math.isinf(value):
        return 100 if value > 0 else 0
    # half-up, not banker's rounding
    return _clamp(math.floor(value + 0.5))


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # past the interpreter's int string-conversion limit
        return None


def _parse_float(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def sanitize_score(value: Any, default: int = DEFAULT_SCORE) -> int:
    """Coerce any value into an integer score in [0, 100].

    Numbers (and plain numeric strings) are rounded and clamped. A range
    such as ``"70-90"`` becomes the rounded mean of its bounds. Other
    strings keep only their digits. Anything else, booleans included,
    becomes *default*. Never raises.

    Args:
        value: Raw value from model output.
        default: Score used when nothing numeric can be recovered.

    Returns:
        Integer in [0, 100].
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return _clamp(value)
    if isinstance(value, float):
        return _clamp_round(value, default)

    text = str(value).strip()
    if not text:
        return default

    number = _parse_float(text)
    if number is not None:
        return _clamp_round(number, default)

    if "-" in text:
        parts = text.split("-")
        low = _leading_int(parts[0])
        high = _leading_int(parts[1])
        if low is not None and high is not None:
            # integer half-up mean; both bounds are non-negative here
            return _clamp((low + high + 1) // 2)
        if low is not None:
            return _clamp(low)

    digits = re.sub(r"\D", "", text).lstrip("0")
    if not digits:
        return 0 if "0" in text else default
    if len(digits) > 3:
        return 100
    return _clamp(int(digits))


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _optional_text(value: Any) -> str | None:
    text = _text(value, "")
    if not text or text.lower() in ("null", "none"):
        return None
    return text


def _choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    if isinstance(value, str):
        candidate = value.strip()
        for option in allowed:
            if candidate.lower() == option.lower():
                return option
    return default


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [
        item.strip() if isinstance(item, str) else str(item)
        for item in value
        if (isinstance(item, str) and item.strip())
        or (isinstance(item, (int, float)) and not isinstance(item, bool))
    ]


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _reference_id(value: Any) -> str:
    """Return a catalog reference as the model wrote it, or UNKNOWN_ID."""
    if isinstance(value, str) and value.strip():
        return value
    return _text(value, UNKNOWN_ID)


def _dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _price(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        number = _parse_float(value.strip().replace(",", ""))
        if number is None:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _positive_int(value: Any, default: int, maximum: int | None = None) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return default
        number = int(round(value))
    else:
        number = _leading_int(str(value)) if value is not None else None
        if number is None:
            return default
    if number <= 0 or (maximum is not None and number > maximum):
        return default
    return number


# ---------------------------------------------------------------------------
# Recommendation result
# ---------------------------------------------------------------------------


def _analysis(raw: dict[str, Any]) -> PetAnalysis:
    needs = _dict(raw.get("nutritional_needs"))
    special_diet = needs.get("specialDiet", needs.get("special_diet"))
    avoid = needs.get("avoidIngredients", needs.get("avoid_ingredients"))

    indices = [
        HealthIndex(
            label=_text(item.get("label"), DEFAULT_INDEX_LABEL),
            value=sanitize_score(item.get("value")),
            status=_choice(item.get("status"), _INDEX_STATUSES, "medium"),
            reason=_text(item.get("reason"), ""),
            icon=_choice(item.get("icon"), _INDEX_ICONS, "heart"),
        )
        for item in _dicts(raw.get("health_indices"))
    ]

    return PetAnalysis(
        health_summary=_text(raw.get("health_summary"), DEFAULT_HEALTH_SUMMARY),
        weight_status=_choice(raw.get("weight_status"), _WEIGHT_STATUSES, "NORMAL"),
        activity_level=_choice(
            raw.get("activity_level"), _ACTIVITY_LEVELS, "MODERATE"
        ),
        nutritional_needs=NutritionalProfile(
            protein=_choice(needs.get("protein"), _LEVELS, "MEDIUM"),
            fat=_choice(needs.get("fat"), _LEVELS, "MEDIUM"),
            fiber=_choice(needs.get("fiber"), _LEVELS, "MEDIUM"),
            special_diet=_optional_text(special_diet),
            avoid_ingredients=_str_list(avoid),
        ),
        health_indices=indices,
    )


def _metrics(raw: Any) -> MatchMetrics:
    values = _dict(raw)
    return MatchMetrics(
        **{
            key: sanitize_score(values.get(key), default)
            for key, default in DEFAULT_METRICS.items()
        }
    )


def _food(
    raw: dict[str, Any], catalog: dict[str, CatalogProduct], pet_type: str
) -> FoodRecommendation:
    product_id = _reference_id(raw.get("product_id"))
    product = catalog.get(product_id.strip())

    if product is not None:
        name, image = product.name, product.image
        price, sale_price = product.price, product.sale_price
    else:
        name = _text(raw.get("product_name"), DEFAULT_PRODUCT_NAME)
        image = None
        price = _price(raw.get("price")) or 0
        sale_price = _price(raw.get("sale_price"))

    return FoodRecommendation(
        product_id=product_id,
        product_name=name,
        product_image=image,
        match_point=sanitize_score(raw.get("match_point")),
        metrics=_metrics(raw.get("metrics")),
        reasoning=_text(raw.get("reasoning"), f"Gợi ý dành cho {pet_type}"),
        price=price,
        sale_price=sale_price,
    )


def _service(
    raw: dict[str, Any], catalog: dict[str, CatalogService], pet_type: str
) -> ServiceRecommendation:
    service_id = _reference_id(raw.get("service_id"))
    service = catalog.get(service_id.strip())

    if service is not None:
        name, image = service.name, service.image
        price_range = PriceRange(min=service.price_min, max=service.price_max)
    else:
        name = _text(raw.get("service_name"), DEFAULT_SERVICE_NAME)
        image = None
        raw_range = _dict(raw.get("price_range"))
        price_range = PriceRange(
            min=_price(raw_range.get("min")) or 0,
            max=_price(raw_range.get("max")) or 0,
        )

    return ServiceRecommendation(
        service_id=service_id,
        service_name=name,
        service_image=image,
        match_point=sanitize_score(raw.get("match_point")),
        urgency=_choice(raw.get("urgency"), _URGENCIES, "MEDIUM"),
        urgency_reason=_text(raw.get("urgency_reason"), ""),
        reasoning=_text(raw.get("reasoning"), f"Gợi ý dành cho {pet_type}"),
        price_range=price_range,
        recommended_date=_optional_text(raw.get("recommended_date")),
    )


def coerce_recommendation_result(
    data: dict[str, Any],
    bundle: AnalysisBundle,
    max_food: int = 5,
    max_services: int = 3,
) -> RecommendationResult:
    """Build a RecommendationResult from an already-parsed JSON object.

    Catalog entries referenced by ID supply the canonical name, image and
    price; the referenced ID itself is kept verbatim even when it is not
    in the catalog.
    """
    raw_analysis = data.get("analysis")
    # some models flatten the analysis block into the top level
    analysis = _analysis(raw_analysis if isinstance(raw_analysis, dict) else data)

    pet_type = bundle.pet.species or "thú cưng"
    products = {p.id: p for p in bundle.products}
    services = {s.id: s for s in bundle.services}

    food = [
        _food(item, products, pet_type)
        for item in _dicts(data.get("food_recommendations"))[:max_food]
    ]
    service = [
        _service(item, services, pet_type)
        for item in _dicts(data.get("service_recommendations"))[:max_services]
    ]

    return RecommendationResult(
        analysis=analysis,
        food_recommendations=food,
        service_recommendations=service,
    )


def normalize_recommendations(
    content: str,
    bundle: AnalysisBundle,
    max_food: int = 5,
    max_services: int = 3,
) -> RecommendationResult:
    """Parse raw model text into a fully populated RecommendationResult.

    Args:
        content: Raw completion text.
        bundle: The request's input bundle, used for catalog lookups.
        max_food: Upper bound on food recommendations kept.
        max_services: Upper bound on service recommendations kept.

    Raises:
        ResponseParseError: If no JSON object can be extracted.
    """
    data = extract_json(content)
    return coerce_recommendation_result(data, bundle, max_food, max_services)


# ---------------------------------------------------------------------------
# Personality analysis
# ---------------------------------------------------------------------------


def _exercise_minutes(value: Any) -> int:
    if isinstance(value, bool):
        return 30
    if isinstance(value, int):
        return min(max(0, value), MINUTES_PER_DAY)
    if isinstance(value, float) and not (math.isnan(value) or math.isinf(value)):
        return min(max(0, int(round(value))), MINUTES_PER_DAY)
    return sanitize_score(value, default=30)


def coerce_personality(data: dict[str, Any]) -> PersonalityAnalysis:
    """Build a PersonalityAnalysis from an already-parsed JSON object."""
    specs = _dict(data.get("breed_specs"))
    care = _dict(data.get("care_guide"))
    nutrition = _dict(care.get("nutrition"))
    medical = _dict(care.get("medical"))
    training = _dict(care.get("training"))
    warnings = _dict(data.get("warnings"))

    return PersonalityAnalysis(
        type=_text(data.get("type"), DEFAULT_PERSONALITY_TYPE),
        traits=_str_list(data.get("traits")),
        behavior_explanation=_text(data.get("behavior_explanation"), ""),
        breed_specs=BreedSpecs(
            appearance=_str_list(specs.get("appearance")),
            temperament=_str_list(specs.get("temperament")),
            exercise_minutes_per_day=_exercise_minutes(
                specs.get("exercise_minutes_per_day")
            ),
            shedding_level=_choice(specs.get("shedding_level"), _LEVELS, "MEDIUM"),
            grooming_needs=_text(specs.get("grooming_needs"), ""),
        ),
        care_guide=CareGuide(
            nutrition=NutritionGuide(
                meals_per_day=_positive_int(
                    nutrition.get("meals_per_day"), 2, MAX_MEALS_PER_DAY
                ),
                food_type=_text(nutrition.get("food_type"), ""),
                tips=_str_list(nutrition.get("tips")),
            ),
            medical=MedicalGuide(
                vaccines=_str_list(medical.get("vaccines")),
                notes=_str_list(medical.get("notes")),
            ),
            training=TrainingGuide(
                command=_text(training.get("command"), ""),
                tips=_str_list(training.get("tips")),
            ),
        ),
        warnings=HealthWarnings(
            genetic_diseases=_str_list(warnings.get("genetic_diseases")),
            dangerous_foods=_str_list(warnings.get("dangerous_foods")),
            environment_hazards=_str_list(warnings.get("environment_hazards")),
        ),
    )


def normalize_personality(content: str) -> PersonalityAnalysis:
    """Parse raw model text into a fully populated PersonalityAnalysis.

    Raises:
        ResponseParseError: If no JSON object can be extracted.
    """
    return coerce_personality(extract_json(content))
