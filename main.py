#!/usr/bin/env python3
"""TailMates AI Suggestions: single entry point.

Serves the recommendation API, or runs one analysis bundle through the
pipeline and prints the result.

Usage:
    python main.py
    python main.py --port 8000
    python main.py --bundle bundle.json
    python main.py --bundle bundle.json --rule-based
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger("tailmates-ai")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_bundle(path: Path):
    """Read and validate an AnalysisBundle JSON file.

    Args:
        path: Path to a JSON document with pet, medicalRecords, products, services.

    Returns:
        Validated AnalysisBundle.
    """
    from src.data.schemas import AnalysisBundle

    return AnalysisBundle.model_validate(json.loads(path.read_text(encoding="utf-8")))


async def _run_model_pipeline(bundle):
    """Run the model-backed pipeline with a short-lived client."""
    from src.config import get_config
    from src.llm.openrouter import OpenRouterClient
    from src.recommend.pipeline import generate_ai_suggestions

    config = get_config()
    async with OpenRouterClient(config) as client:
        return await generate_ai_suggestions(bundle, client, config)


def _run_bundle(path: Path, rule_based: bool) -> int:
    """Analyse one bundle file and print the result as JSON.

    Returns:
        Process exit code.
    """
    from pydantic import ValidationError

    from src.errors import RecommendationError
    from src.recommend.fallback import generate_rule_based_recommendations

    try:
        bundle = _load_bundle(path)
    except (OSError, ValueError, ValidationError) as exc:
        logger.error("Cannot read bundle %s: %s", path, exc)
        return 2

    if rule_based:
        logger.info("Running rule-based engine for %s", bundle.pet.name)
        result = generate_rule_based_recommendations(bundle)
    else:
        try:
            result = asyncio.run(_run_model_pipeline(bundle))
        except RecommendationError as exc:
            logger.error("AI suggestions failed: %s", exc)
            return 1

    print(result.model_dump_json(by_alias=True, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    """Serve the API, or analyse a single bundle when --bundle is given."""
    parser = argparse.ArgumentParser(
        description="TailMates AI pet food and service recommendations"
    )
    parser.add_argument(
        "--bundle",
        type=Path,
        default=None,
        help="Analyse this AnalysisBundle JSON file and print the result",
    )
    parser.add_argument(
        "--rule-based",
        action="store_true",
        help="With --bundle, use only the rule-based engine (no network)",
    )
    parser.add_argument(
        "--port", type=int, default=None, help="Server port"
    )
    parser.add_argument(
        "--host", type=str, default=None, help="Server host"
    )
    args = parser.parse_args()

    if args.bundle is not None:
        sys.exit(_run_bundle(args.bundle, args.rule_based))

    from src.config import get_config

    config = get_config()
    host = args.host or config.host
    port = args.port or config.port

    if not config.openrouter_api_key:
        logger.warning(
            "OPENROUTER_API_KEY is not set; AI endpoints will answer 503. "
            "Set it in .env to enable model-backed suggestions."
        )

    logger.info("Launching API on %s:%d", host, port)
    import uvicorn

    from src.api.app import create_app

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
