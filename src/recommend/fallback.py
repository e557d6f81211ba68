"""Rule-based recommendations used when no language model is available.

Pure functions: no I/O, no randomness, no exceptions for valid input. The
allergy veto here is absolute; a product containing a declared allergen is
never recommended.
"""

from __future__ import annotations

from src.data.schemas import (
    AnalysisBundle,
    BreedSpecs,
    CareGuide,
    CatalogProduct,
    FoodRecommendation,
    HealthIndex,
    HealthWarnings,
    MatchMetrics,
    MedicalGuide,
    NutritionalProfile,
    NutritionGuide,
    PersonalityAnalysis,
    PetAnalysis,
    PetProfile,
    PriceRange,
    RecommendationResult,
    ServiceRecommendation,
    TrainingGuide,
)

JUVENILE_MAX_MONTHS = 12
SENIOR_MIN_MONTHS = 84

BASE_SCORE = 50
LIFE_STAGE_BONUS = 30
GENERAL_STAGE_BONUS = 20
STERILIZED_BONUS = 10
HEURISTIC_SUB_SCORE = 70
SERVICE_MATCH_POINT = 70

WEIGHT_MANAGEMENT_TAG = "weight management"

SPECIES_MAP = {
    "dog": "DOG",
    "cat": "CAT",
    "chó": "DOG",
    "mèo": "CAT",
}

FOOD_REASONING = "Gợi ý dựa trên quy tắc cơ bản (AI tạm thời không khả dụng)"
SERVICE_REASONING = "Gợi ý dựa trên quy tắc cơ bản"
SERVICE_URGENCY_REASON = "Khuyến nghị kiểm tra định kỳ"


def canonical_species(species: str | None) -> str:
    """Map a stored species string ('Dog', 'Mèo', 'cat') to DOG/CAT.

    Unknown species are upper-cased as-is.
    """
    if not species:
        return ""
    key = species.strip()
    return SPECIES_MAP.get(key.lower(), key.upper())


def life_stage(age_months: int) -> str:
    """Return KITTEN_PUPPY, SENIOR or ADULT for an age in months."""
    if age_months < JUVENILE_MAX_MONTHS:
        return "KITTEN_PUPPY"
    if age_months > SENIOR_MIN_MONTHS:
        return "SENIOR"
    return "ADULT"


def has_allergen(product: CatalogProduct, allergies: list[str]) -> bool:
    """True when any allergy appears in the product's ingredients or protein source."""
    spec = product.specifications
    if spec is None:
        return False

    sources = [i.lower() for i in spec.ingredients]
    if spec.primary_protein_source:
        sources.append(spec.primary_protein_source.lower())

    for allergy in allergies:
        needle = allergy.strip().lower()
        if needle and any(needle in source for source in sources):
            return True
    return False


def score_product(pet: PetProfile, product: CatalogProduct) -> int:
    """Heuristic match point for one product, 0 when an allergen is present."""
    if has_allergen(product, pet.allergies):
        return 0

    spec = product.specifications
    stage = (spec.life_stage or "").upper() if spec else ""
    pet_stage = life_stage(pet.age_months)

    score = BASE_SCORE
    if pet_stage in ("KITTEN_PUPPY", "SENIOR") and stage == pet_stage:
        score += LIFE_STAGE_BONUS
    elif stage in ("ADULT", "ALL_STAGES"):
        score += GENERAL_STAGE_BONUS

    if pet.sterilized and spec is not None:
        if any(tag.strip().lower() == WEIGHT_MANAGEMENT_TAG for tag in spec.health_tags):
            score += STERILIZED_BONUS

    return min(100, score)


def _food_recommendations(
    pet: PetProfile, products: list[CatalogProduct], limit: int
) -> list[FoodRecommendation]:
    target = canonical_species(pet.species)

    scored = []
    for product in products:
        spec = product.specifications
        product_species = canonical_species(spec.target_species) if spec else ""
        if product_species and product_species != target:
            continue

        score = score_product(pet, product)
        if score <= 0:
            continue
        scored.append((score, product_species == target, product))

    # sorted() is stable, so ties keep catalog order
    scored = sorted(scored, key=lambda item: item[0], reverse=True)[:limit]

    return [
        FoodRecommendation(
            product_id=product.id,
            product_name=product.name,
            product_image=product.image,
            match_point=score,
            metrics=MatchMetrics(
                species_match=100 if exact_species else 50,
                life_stage_fit=100 if score >= 70 else 60,
                allergy_safety=100,
                health_tag_match=HEURISTIC_SUB_SCORE,
                nutritional_balance=HEURISTIC_SUB_SCORE,
            ),
            reasoning=FOOD_REASONING,
            price=product.price,
            sale_price=product.sale_price,
        )
        for score, exact_species, product in scored
    ]


def _health_summary(pet: PetProfile) -> str:
    parts = [f"{pet.name} là {pet.species}"]
    if pet.breed:
        parts.append(pet.breed)
    parts.append(f"{pet.age_months} tháng tuổi.")
    return " ".join(parts) + " Cần theo dõi sức khỏe định kỳ."


def generate_rule_based_recommendations(
    bundle: AnalysisBundle,
    max_food: int = 5,
    max_services: int = 3,
) -> RecommendationResult:
    """Compute recommendations without any network call.

    Products are filtered to the pet's species (untagged products are
    kept), scored from a base of 50 with life-stage and sterilization
    bonuses, vetoed to 0 on any allergen match, and the top ``max_food``
    non-zero scores are returned. The first ``max_services`` services are
    suggested as routine, MEDIUM-urgency visits.

    Args:
        bundle: Pet, medical history and catalogs.
        max_food: Number of food recommendations to keep.
        max_services: Number of services to suggest.

    Returns:
        A fully populated RecommendationResult.
    """
    pet = bundle.pet
    is_juvenile = life_stage(pet.age_months) == "KITTEN_PUPPY"

    services = [
        ServiceRecommendation(
            service_id=service.id,
            service_name=service.name,
            service_image=service.image,
            match_point=SERVICE_MATCH_POINT,
            urgency="MEDIUM",
            urgency_reason=SERVICE_URGENCY_REASON,
            reasoning=SERVICE_REASONING,
            price_range=PriceRange(min=service.price_min, max=service.price_max),
        )
        for service in bundle.services[:max_services]
    ]

    analysis = PetAnalysis(
        health_summary=_health_summary(pet),
        weight_status="NORMAL",
        activity_level="MODERATE",
        nutritional_needs=NutritionalProfile(
            protein="HIGH" if is_juvenile else "MEDIUM",
            fat="HIGH" if is_juvenile else "MEDIUM",
            fiber="MEDIUM",
            special_diet="Weight Management" if pet.sterilized else None,
            avoid_ingredients=list(pet.allergies),
        ),
        health_indices=[
            HealthIndex(
                label="Nhu cầu Protein",
                value=85 if is_juvenile else 70,
                status="high" if is_juvenile else "medium",
                reason=(
                    f"{pet.name} đang trong giai đoạn phát triển"
                    if is_juvenile
                    else f"Nhu cầu protein bình thường cho {pet.species} {pet.age_months} tháng tuổi"
                ),
                icon="protein",
            ),
            HealthIndex(
                label="Kiểm tra sức khỏe",
                value=60,
                status="medium",
                reason=f"Nên khám định kỳ để theo dõi sức khỏe của {pet.name}",
                icon="checkup",
            ),
        ],
    )

    return RecommendationResult(
        analysis=analysis,
        food_recommendations=_food_recommendations(pet, bundle.products, max_food),
        service_recommendations=services,
    )


def generate_rule_based_personality(pet: PetProfile) -> PersonalityAnalysis:
    """Age-keyed personality profile used when the model path is unavailable."""
    stage = life_stage(pet.age_months)
    is_young = stage == "KITTEN_PUPPY"
    is_senior = stage == "SENIOR"

    if is_young:
        personality_type = "Kẻ tinh nghịch năng động"
        exercise = 60
    elif is_senior:
        personality_type = "Người bạn điềm đạm"
        exercise = 20
    else:
        personality_type = "Người bạn đồng hành trung thành"
        exercise = 40

    tendency = "năng động và thích khám phá" if is_young else "ổn định và bình tĩnh hơn"

    return PersonalityAnalysis(
        type=personality_type,
        traits=(
            ["Hiếu động", "Thích khám phá", "Hay nghịch ngợm"]
            if is_young
            else ["Trung thành", "Thân thiện", "Bình tĩnh"]
        ),
        behavior_explanation=(
            f"Do {pet.breed or pet.species} ở độ tuổi {pet.age_months} tháng, "
            f"bé thường có xu hướng {tendency}."
        ),
        breed_specs=BreedSpecs(
            appearance=["Đặc trưng của giống"],
            temperament=["Thân thiện", "Dễ gần"],
            exercise_minutes_per_day=exercise,
            shedding_level="MEDIUM",
            grooming_needs="Chải lông 2-3 lần/tuần",
        ),
        care_guide=CareGuide(
            nutrition=NutritionGuide(
                meals_per_day=3 if is_young else 2,
                food_type=(
                    "Thức ăn cho thú non" if is_young else "Thức ăn cho thú trưởng thành"
                ),
                tips=["Cho ăn đúng giờ", "Đảm bảo nước sạch"],
            ),
            medical=MedicalGuide(
                vaccines=(
                    ["Vaccine tổng hợp", "Vaccine dại"]
                    if is_young
                    else ["Tiêm nhắc lại định kỳ"]
                ),
                notes=["Khám định kỳ 6 tháng/lần"],
            ),
            training=TrainingGuide(
                command="Ngồi (Sit)" if is_young else "Đến đây (Come)",
                tips=["Kiên nhẫn", "Khen thưởng khi làm đúng"],
            ),
        ),
        warnings=HealthWarnings(
            genetic_diseases=["Cần tham khảo bác sĩ thú y"],
            dangerous_foods=["Chocolate", "Nho", "Hành tỏi", "Xylitol"],
            environment_hazards=["Cây độc trong nhà", "Dây điện"],
        ),
    )
