"""Tests for src/recommend/fallback.py."""

from __future__ import annotations

import pytest

from src.data.schemas import AnalysisBundle, CatalogProduct, PetProfile
from src.recommend.fallback import (
    canonical_species,
    generate_rule_based_personality,
    generate_rule_based_recommendations,
    has_allergen,
    life_stage,
    score_product,
)


def _product(pid: str, **spec) -> CatalogProduct:
    return CatalogProduct(id=pid, name=f"Product {pid}", specifications=spec or None)


class TestHelpers:
    """Tests for species and life-stage helpers."""

    @pytest.mark.parametrize(
        ("species", "expected"),
        [("Dog", "DOG"), ("cat", "CAT"), ("Chó", "DOG"), ("Mèo", "CAT"), ("Rabbit", "RABBIT"), (None, "")],
    )
    def test_canonical_species(self, species, expected: str) -> None:
        """Stored species names map to DOG/CAT, others upper-cased."""
        assert canonical_species(species) == expected

    @pytest.mark.parametrize(
        ("age", "expected"),
        [(0, "KITTEN_PUPPY"), (11, "KITTEN_PUPPY"), (12, "ADULT"), (84, "ADULT"), (85, "SENIOR")],
    )
    def test_life_stage_boundaries(self, age: int, expected: str) -> None:
        """Juvenile below 12 months, senior above 84."""
        assert life_stage(age) == expected


class TestAllergyVeto:
    """Tests for has_allergen and the score veto."""

    def test_case_insensitive_protein_match(self) -> None:
        """'Chicken' in the product matches a 'chicken' allergy."""
        product = _product("x", primaryProteinSource="Chicken")
        assert has_allergen(product, ["chicken"])

    def test_substring_ingredient_match(self) -> None:
        """Allergies match inside longer ingredient names."""
        product = _product("x", ingredients=["Dried Beef Liver", "Rice"])
        assert has_allergen(product, [" BEEF "])

    def test_blank_allergy_ignored(self) -> None:
        """An empty allergy string never matches."""
        product = _product("x", ingredients=["Rice"])
        assert not has_allergen(product, ["", "  "])

    def test_untagged_product_has_no_allergen(self) -> None:
        """Products without specifications cannot be checked and pass."""
        assert not has_allergen(_product("x"), ["chicken"])

    def test_veto_scores_zero(self) -> None:
        """A matching allergen forces the score to 0 regardless of bonuses."""
        pet = PetProfile(species="Cat", age_months=6, sterilized=True, allergies=["Chicken"])
        product = _product(
            "x",
            lifeStage="KITTEN_PUPPY",
            healthTags=["Weight Management"],
            primaryProteinSource="chicken",
        )
        assert score_product(pet, product) == 0


class TestScoreProduct:
    """Tests for score_product bonuses."""

    def test_juvenile_stage_bonus(self) -> None:
        """A puppy food for a puppy scores 80."""
        pet = PetProfile(species="Dog", age_months=4)
        assert score_product(pet, _product("x", lifeStage="KITTEN_PUPPY")) == 80

    def test_senior_stage_bonus(self) -> None:
        """A senior food for a senior scores 80."""
        pet = PetProfile(species="Dog", age_months=100)
        assert score_product(pet, _product("x", lifeStage="SENIOR")) == 80

    def test_general_stage_bonus(self) -> None:
        """Adult and all-stage foods earn the general bonus."""
        pet = PetProfile(species="Dog", age_months=4)
        assert score_product(pet, _product("x", lifeStage="ADULT")) == 70
        assert score_product(pet, _product("y", lifeStage="ALL_STAGES")) == 70

    def test_mismatched_stage_no_bonus(self) -> None:
        """A senior food for an adult earns no stage bonus."""
        pet = PetProfile(species="Dog", age_months=30)
        assert score_product(pet, _product("x", lifeStage="SENIOR")) == 50

    def test_sterilized_bonus(self) -> None:
        """Sterilized pets get +10 for weight management food."""
        pet = PetProfile(species="Cat", age_months=30, sterilized=True)
        product = _product("x", lifeStage="ADULT", healthTags=["weight management"])
        assert score_product(pet, product) == 80

    def test_sterilized_bonus_requires_sterilized_pet(self) -> None:
        """Intact pets do not get the weight management bonus."""
        pet = PetProfile(species="Cat", age_months=30, sterilized=False)
        product = _product("x", lifeStage="ADULT", healthTags=["Weight Management"])
        assert score_product(pet, product) == 70


class TestRuleBasedRecommendations:
    """Tests for generate_rule_based_recommendations."""

    def test_puppy_scenario(self, puppy_bundle: AnalysisBundle) -> None:
        """Puppy food ranks high, the beef product is vetoed, the service is routine."""
        result = generate_rule_based_recommendations(puppy_bundle)

        ids = [f.product_id for f in result.food_recommendations]
        assert ids == ["p1"]
        assert result.food_recommendations[0].match_point >= 80
        assert result.food_recommendations[0].metrics.allergy_safety == 100

        service = result.service_recommendations[0]
        assert service.service_id == "s1"
        assert service.urgency == "MEDIUM"
        assert service.match_point == 70

    def test_puppy_analysis(self, puppy_bundle: AnalysisBundle) -> None:
        """Juvenile pets get high protein and fat needs."""
        analysis = generate_rule_based_recommendations(puppy_bundle).analysis
        assert analysis.nutritional_needs.protein == "HIGH"
        assert analysis.nutritional_needs.fat == "HIGH"
        assert analysis.nutritional_needs.avoid_ingredients == ["beef"]
        assert analysis.health_indices[0].value == 85
        assert analysis.health_indices[0].status == "high"
        assert len(analysis.health_indices) == 2

    def test_cat_bundle_filters_and_ranks(self, cat_bundle: AnalysisBundle) -> None:
        """Dog food and allergen food are dropped; untagged food is kept last."""
        result = generate_rule_based_recommendations(cat_bundle)
        foods = result.food_recommendations
        assert [f.product_id for f in foods] == ["c1", "u1"]
        assert foods[0].match_point == 80
        assert foods[0].metrics.species_match == 100
        assert foods[0].metrics.life_stage_fit == 100
        assert foods[0].sale_price == 290000
        assert foods[1].match_point == 50
        assert foods[1].metrics.species_match == 50
        assert foods[1].metrics.life_stage_fit == 60

    def test_sterilized_special_diet(self, cat_bundle: AnalysisBundle) -> None:
        """Sterilized pets get a weight management diet."""
        analysis = generate_rule_based_recommendations(cat_bundle).analysis
        assert analysis.nutritional_needs.special_diet == "Weight Management"
        assert "Mochi" in analysis.health_summary

    def test_services_bounded(self, cat_bundle: AnalysisBundle) -> None:
        """Only the first three services are suggested, in catalog order."""
        services = generate_rule_based_recommendations(cat_bundle).service_recommendations
        assert [s.service_id for s in services] == ["s1", "s2", "s3"]
        assert services[0].price_range.min == 150000
        assert services[0].service_image == "https://cdn.example/s1.jpg"

    def test_food_bounded_with_stable_ties(self) -> None:
        """At most five foods; equal scores keep catalog order."""
        pet = PetProfile(species="Dog", age_months=30)
        products = [_product(f"p{i}", targetSpecies="DOG", lifeStage="ADULT") for i in range(8)]
        result = generate_rule_based_recommendations(AnalysisBundle(pet=pet, products=products))
        assert [f.product_id for f in result.food_recommendations] == [
            "p0", "p1", "p2", "p3", "p4"
        ]

    def test_vietnamese_species(self) -> None:
        """Species stored in Vietnamese match catalog species codes."""
        pet = PetProfile(species="Mèo", age_months=30)
        products = [
            _product("cat", targetSpecies="CAT"),
            _product("dog", targetSpecies="DOG"),
        ]
        result = generate_rule_based_recommendations(AnalysisBundle(pet=pet, products=products))
        assert [f.product_id for f in result.food_recommendations] == ["cat"]

    def test_empty_catalogs(self, sample_pet: PetProfile) -> None:
        """Empty catalogs yield empty lists and a complete analysis."""
        result = generate_rule_based_recommendations(AnalysisBundle(pet=sample_pet))
        assert result.food_recommendations == []
        assert result.service_recommendations == []
        assert result.analysis.health_summary

    def test_deterministic(self, cat_bundle: AnalysisBundle) -> None:
        """The same input always yields the same output."""
        first = generate_rule_based_recommendations(cat_bundle)
        second = generate_rule_based_recommendations(cat_bundle)
        assert first == second

    def test_scores_in_range(self, cat_bundle: AnalysisBundle) -> None:
        """Every produced score is within [0, 100]."""
        result = generate_rule_based_recommendations(cat_bundle)
        for food in result.food_recommendations:
            assert 0 < food.match_point <= 100
        for index in result.analysis.health_indices:
            assert 0 <= index.value <= 100


class TestRuleBasedPersonality:
    """Tests for generate_rule_based_personality."""

    def test_young_pet(self) -> None:
        """Young pets get an energetic profile and three meals."""
        analysis = generate_rule_based_personality(PetProfile(species="Dog", age_months=4))
        assert analysis.type == "Kẻ tinh nghịch năng động"
        assert analysis.care_guide.nutrition.meals_per_day == 3
        assert analysis.breed_specs.exercise_minutes_per_day == 60

    def test_senior_pet(self) -> None:
        """Senior pets get a calm profile and less exercise."""
        analysis = generate_rule_based_personality(PetProfile(species="Cat", age_months=120))
        assert analysis.type == "Người bạn điềm đạm"
        assert analysis.breed_specs.exercise_minutes_per_day == 20

    def test_adult_pet_mentions_breed(self, sample_pet: PetProfile) -> None:
        """The behaviour explanation names the breed when known."""
        analysis = generate_rule_based_personality(sample_pet)
        assert analysis.care_guide.nutrition.meals_per_day == 2
        assert "British Shorthair" in analysis.behavior_explanation
        assert analysis.warnings.dangerous_foods
