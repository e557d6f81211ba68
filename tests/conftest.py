"""Shared test fixtures for the TailMates AI test suite."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from src.config import Config
from src.data.schemas import (
    AnalysisBundle,
    CatalogProduct,
    CatalogService,
    MedicalRecordSummary,
    PetProfile,
)
from src.llm.openrouter import OpenRouterClient


@pytest.fixture
def sample_pet() -> PetProfile:
    """Create a sample adult cat for testing."""
    return PetProfile(
        name="Mochi",
        species="Cat",
        breed="British Shorthair",
        age_months=30,
        weight_kg=4.5,
        gender="FEMALE",
        sterilized=True,
        allergies=["chicken"],
        notes="Hay nôn sau khi ăn",
    )


@pytest.fixture
def puppy_bundle() -> AnalysisBundle:
    """Six-month-old dog allergic to beef, with one puppy and one beef product."""
    return AnalysisBundle.model_validate(
        {
            "pet": {"species": "Dog", "age_months": 6, "allergies": ["beef"]},
            "products": [
                {
                    "id": "p1",
                    "name": "Puppy Chicken Formula",
                    "specifications": {
                        "targetSpecies": "DOG",
                        "lifeStage": "KITTEN_PUPPY",
                        "primaryProteinSource": "Chicken",
                    },
                },
                {
                    "id": "p2",
                    "name": "Adult Beef Mix",
                    "specifications": {
                        "targetSpecies": "DOG",
                        "lifeStage": "ADULT",
                        "primaryProteinSource": "Beef",
                    },
                },
            ],
            "services": [{"id": "s1", "name": "Checkup"}],
        }
    )


@pytest.fixture
def cat_products() -> list[CatalogProduct]:
    """Mixed cat and dog catalog."""
    return [
        CatalogProduct(
            id="c1",
            name="Sterilised Cat Salmon",
            price=320000,
            sale_price=290000,
            image="https://cdn.example/c1.jpg",
            specifications={
                "targetSpecies": "CAT",
                "lifeStage": "ADULT",
                "healthTags": ["Weight Management"],
                "primaryProteinSource": "Salmon",
                "ingredients": ["Salmon", "Rice"],
                "nutritionalInfo": {"protein": 34, "fat": 12, "fiber": 4.5},
            },
        ),
        CatalogProduct(
            id="c2",
            name="Kitten Chicken Mousse",
            price=45000,
            specifications={
                "targetSpecies": "CAT",
                "lifeStage": "KITTEN_PUPPY",
                "primaryProteinSource": "Chicken",
            },
        ),
        CatalogProduct(
            id="d1",
            name="Adult Dog Lamb",
            price=500000,
            specifications={"targetSpecies": "DOG", "lifeStage": "ADULT"},
        ),
        CatalogProduct(id="u1", name="Universal Treats", price=30000),
    ]


@pytest.fixture
def cat_services() -> list[CatalogService]:
    """Service catalog with four entries."""
    return [
        CatalogService(
            id="s1", name="Khám tổng quát", category="CHECKUP",
            price_min=150000, price_max=300000, image="https://cdn.example/s1.jpg",
        ),
        CatalogService(
            id="s2", name="Tiêm phòng", category="VACCINATION",
            price_min=200000, price_max=400000,
        ),
        CatalogService(id="s3", name="Tắm spa", category="GROOMING"),
        CatalogService(id="s4", name="Khách sạn", category="BOARDING"),
    ]


@pytest.fixture
def cat_bundle(
    sample_pet: PetProfile,
    cat_products: list[CatalogProduct],
    cat_services: list[CatalogService],
) -> AnalysisBundle:
    """Full bundle around the sample cat."""
    return AnalysisBundle(
        pet=sample_pet,
        medical_records=[
            MedicalRecordSummary.model_validate(
                {
                    "type": "VACCINATION",
                    "diagnosis": "Khỏe mạnh",
                    "vaccines": ["FVRCP"],
                    "visit_date": "2024-03-05",
                }
            )
        ],
        products=cat_products,
        services=cat_services,
    )


@pytest.fixture
def test_config() -> Config:
    """Config with a fake key, a three-model chain and a short timeout."""
    return Config(
        openrouter_api_key="test-key",
        openrouter_api_url="https://openrouter.test/api/v1/chat/completions",
        app_url="http://localhost:3000",
        model_chain=("model/a", "model/b", "model/c"),
        request_timeout=0.2,
    )


def _completion_body(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def completion_body() -> Callable[[str], dict]:
    """Build a chat-completion response body wrapping some content."""
    return _completion_body


@pytest.fixture
def make_client(
    test_config: Config,
) -> Callable[[Callable[[httpx.Request], httpx.Response]], OpenRouterClient]:
    """Build an OpenRouterClient whose HTTP layer is an httpx.MockTransport."""

    def _make(handler, config: Config | None = None) -> OpenRouterClient:
        transport = httpx.MockTransport(handler)
        return OpenRouterClient(
            config or test_config,
            http_client=httpx.AsyncClient(transport=transport),
        )

    return _make


@pytest.fixture
def model_json() -> str:
    """A well-formed model answer for the cat bundle."""
    return json.dumps(
        {
            "analysis": {
                "health_summary": "Mochi khỏe mạnh, cần kiểm soát cân nặng.",
                "weight_status": "OVERWEIGHT",
                "activity_level": "LOW",
                "nutritional_needs": {
                    "protein": "HIGH",
                    "fat": "LOW",
                    "fiber": "MEDIUM",
                    "specialDiet": "Weight Management",
                    "avoidIngredients": ["Chicken"],
                },
                "health_indices": [
                    {
                        "label": "Kiểm soát Cân nặng",
                        "value": 40,
                        "status": "low",
                        "reason": "Đã triệt sản",
                        "icon": "heart",
                    }
                ],
            },
            "food_recommendations": [
                {
                    "product_id": "c1",
                    "product_name": "Salmon",
                    "match_point": 92,
                    "metrics": {
                        "species_match": 100,
                        "life_stage_fit": 100,
                        "allergy_safety": 100,
                        "health_tag_match": 90,
                        "nutritional_balance": 80,
                    },
                    "reasoning": "Phù hợp mèo đã triệt sản",
                }
            ],
            "service_recommendations": [
                {
                    "service_id": "s2",
                    "service_name": "Tiêm",
                    "match_point": 85,
                    "urgency": "HIGH",
                    "urgency_reason": "Sắp đến hạn tiêm nhắc",
                    "reasoning": "Duy trì miễn dịch",
                }
            ],
        },
        ensure_ascii=False,
    )
