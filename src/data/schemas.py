"""Pydantic models for data validation and serialization.

Input records mirror the JSON the backend hands to the recommendation
pipeline (camelCase keys are accepted through aliases). Output records are
the contract every recommendation path must satisfy, model-backed or
rule-based.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Level = Literal["HIGH", "MEDIUM", "LOW"]
WeightStatus = Literal["UNDERWEIGHT", "NORMAL", "OVERWEIGHT"]
ActivityLevel = Literal["LOW", "MODERATE", "HIGH"]
IndexStatus = Literal["low", "medium", "high"]
IndexIcon = Literal[
    "protein", "heart", "bone", "stomach", "vitamin", "checkup", "energy", "fur"
]
Urgency = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

Score = Annotated[int, Field(ge=0, le=100)]


class _Record(BaseModel):
    """Immutable value record; accepts both field names and aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class PetProfile(_Record):
    """Pet profile as supplied by the caller."""

    name: str = Field(default="Thú cưng", description="Pet name")
    species: str = Field(description="Species as stored, e.g. 'Dog', 'Mèo'")
    breed: str | None = None
    age_months: int = Field(ge=0, description="Age in months")
    weight_kg: float | None = None
    gender: str = "UNKNOWN"
    sterilized: bool = False
    allergies: list[str] = Field(default_factory=list)
    notes: str | None = None
    color: str | None = None
    fur_type: str | None = None

    @field_validator("allergies", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class MedicalRecordSummary(_Record):
    """Read-only summary of a past veterinary visit."""

    record_type: str = Field(default="GENERAL", alias="type")
    diagnosis: str = ""
    treatment: str | None = None
    vaccines: list[str] = Field(default_factory=list)
    visit_date: datetime | date | None = None

    @field_validator("vaccines", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class NutritionalInfo(_Record):
    """Guaranteed analysis of a food product, in percent (calories in kcal)."""

    protein: float | None = None
    fat: float | None = None
    fiber: float | None = None
    moisture: float | None = None
    calories: float | None = None


class ProductSpecifications(_Record):
    """Structured product attributes used for matching."""

    target_species: str | None = Field(default=None, alias="targetSpecies")
    life_stage: str | None = Field(default=None, alias="lifeStage")
    breed_size: str | None = Field(default=None, alias="breedSize")
    health_tags: list[str] = Field(default_factory=list, alias="healthTags")
    nutritional_info: NutritionalInfo | None = Field(
        default=None, alias="nutritionalInfo"
    )
    ingredients: list[str] = Field(default_factory=list)
    is_sterilized: bool | None = Field(default=None, alias="isSterilized")
    texture: str | None = None
    primary_protein_source: str | None = Field(
        default=None, alias="primaryProteinSource"
    )

    @field_validator("health_tags", "ingredients", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class CatalogProduct(_Record):
    """A food product available for recommendation."""

    id: str
    name: str
    category: str = "FOOD"
    price: float = 0
    sale_price: float | None = None
    image: str | None = None
    specifications: ProductSpecifications | None = None


class CatalogService(_Record):
    """A bookable service available for recommendation."""

    id: str
    name: str
    category: str = ""
    price_min: float = 0
    price_max: float = 0
    image: str | None = None


class AnalysisBundle(_Record):
    """Everything the pipeline needs for one recommendation request."""

    pet: PetProfile
    medical_records: list[MedicalRecordSummary] = Field(
        default_factory=list, alias="medicalRecords"
    )
    products: list[CatalogProduct] = Field(default_factory=list)
    services: list[CatalogService] = Field(default_factory=list)


class PersonalityInput(_Record):
    """Input for a personality analysis: the pet and its history."""

    pet: PetProfile
    medical_records: list[MedicalRecordSummary] = Field(
        default_factory=list, alias="medicalRecords"
    )


# ---------------------------------------------------------------------------
# Recommendation output
# ---------------------------------------------------------------------------


class HealthIndex(_Record):
    """One scored dimension of pet wellbeing."""

    label: str
    value: Score
    status: IndexStatus = "medium"
    reason: str = ""
    icon: IndexIcon = "heart"


class NutritionalProfile(_Record):
    """Nutrient need levels and ingredients to avoid."""

    protein: Level = "MEDIUM"
    fat: Level = "MEDIUM"
    fiber: Level = "MEDIUM"
    special_diet: str | None = Field(default=None, alias="specialDiet")
    avoid_ingredients: list[str] = Field(
        default_factory=list, alias="avoidIngredients"
    )


class PetAnalysis(_Record):
    health_summary: str
    weight_status: WeightStatus = "NORMAL"
    activity_level: ActivityLevel = "MODERATE"
    nutritional_needs: NutritionalProfile = Field(default_factory=NutritionalProfile)
    health_indices: list[HealthIndex] = Field(default_factory=list)


class MatchMetrics(_Record):
    """Per-dimension sub-scores behind a food match point."""

    species_match: Score
    life_stage_fit: Score
    allergy_safety: Score
    health_tag_match: Score
    nutritional_balance: Score


class FoodRecommendation(_Record):
    product_id: str
    product_name: str
    product_image: str | None = None
    match_point: Score
    metrics: MatchMetrics
    reasoning: str
    price: float = 0
    sale_price: float | None = None


class PriceRange(_Record):
    min: float = 0
    max: float = 0


class ServiceRecommendation(_Record):
    service_id: str
    service_name: str
    service_image: str | None = None
    match_point: Score
    urgency: Urgency = "MEDIUM"
    urgency_reason: str = ""
    reasoning: str
    price_range: PriceRange = Field(default_factory=PriceRange)
    recommended_date: str | None = None


class RecommendationResult(_Record):
    """Full recommendation payload, identical for model and rule-based paths."""

    analysis: PetAnalysis
    food_recommendations: list[FoodRecommendation] = Field(default_factory=list)
    service_recommendations: list[ServiceRecommendation] = Field(
        default_factory=list
    )


# ---------------------------------------------------------------------------
# Personality output
# ---------------------------------------------------------------------------


class BreedSpecs(_Record):
    appearance: list[str] = Field(default_factory=list)
    temperament: list[str] = Field(default_factory=list)
    exercise_minutes_per_day: int = 30
    shedding_level: Level = "MEDIUM"
    grooming_needs: str = ""


class NutritionGuide(_Record):
    meals_per_day: int = 2
    food_type: str = ""
    tips: list[str] = Field(default_factory=list)


class MedicalGuide(_Record):
    vaccines: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class TrainingGuide(_Record):
    command: str = ""
    tips: list[str] = Field(default_factory=list)


class CareGuide(_Record):
    nutrition: NutritionGuide = Field(default_factory=NutritionGuide)
    medical: MedicalGuide = Field(default_factory=MedicalGuide)
    training: TrainingGuide = Field(default_factory=TrainingGuide)


class HealthWarnings(_Record):
    genetic_diseases: list[str] = Field(default_factory=list)
    dangerous_foods: list[str] = Field(default_factory=list)
    environment_hazards: list[str] = Field(default_factory=list)


class PersonalityAnalysis(_Record):
    """Behaviour profile, care guide and warnings for a pet."""

    type: str
    traits: list[str] = Field(default_factory=list)
    behavior_explanation: str = ""
    breed_specs: BreedSpecs = Field(default_factory=BreedSpecs)
    care_guide: CareGuide = Field(default_factory=CareGuide)
    warnings: HealthWarnings = Field(default_factory=HealthWarnings)


# ---------------------------------------------------------------------------
# API envelopes
# ---------------------------------------------------------------------------


class SuggestionRequest(AnalysisBundle):
    """Request body for the suggestions endpoint."""

    pet_id: str | None = None
    type: Literal["food", "service", "all"] = Field(
        default="all", description="Which recommendation lists to produce"
    )


class SuggestionResponse(RecommendationResult):
    """Recommendation result annotated for the caller."""

    pet_id: str | None = None
    pet_name: str
    generated_at: datetime
    is_fallback: bool = False
    fallback_reason: str | None = None


class PersonalityRequest(PersonalityInput):
    pet_id: str | None = None


class PersonalityResponse(BaseModel):
    pet_id: str | None = None
    pet_name: str
    analysis: PersonalityAnalysis
    analyzed_at: datetime
    is_fallback: bool = False
    fallback_reason: str | None = None
