"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from src.config import get_config
from src.llm.openrouter import OpenRouterClient


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize shared resources on startup, clean up on shutdown.

    Creates the OpenRouter client (and its HTTP connection pool) that is
    shared across all requests.
    """
    config = get_config()

    app.state.config = config
    app.state.llm_client = OpenRouterClient(config)

    yield

    await app.state.llm_client.aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="TailMates AI Suggestions",
        description="Pet food and service recommendations with a rule-based fallback",
        version="0.1.0",
        lifespan=lifespan,
    )

    from src.api.routes import router

    app.include_router(router)

    return app
