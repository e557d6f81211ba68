"""OpenRouter chat-completion client with an ordered model fallback chain."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from src.config import Config, get_config
from src.errors import ConfigurationError, ModelCallError, ModelChainExhaustedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completion:
    """Raw text returned by the first model that succeeded."""

    model: str
    content: str
    elapsed_ms: float = 0.0


def _extract_content(body: Any) -> str:
    """Pull ``choices[0].message.content`` out of a response body.

    Content given as a list of parts is joined from its text parts.
    Anything unexpected yields an empty string.
    """
    if not isinstance(body, dict):
        return ""
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        return ""

    content = message.get("content")
    if isinstance(content, list):
        content = "".join(
            part.get("text", "") for part in content if isinstance(part, dict)
        )
    if not isinstance(content, str):
        return ""
    return content.strip()


class OpenRouterClient:
    """Calls an OpenRouter-compatible endpoint, trying models in order.

    Each model gets exactly one attempt bounded by ``config.request_timeout``.
    A failed or timed-out attempt moves on to the next model; the first
    non-empty completion wins.

    Args:
        config: Application configuration (credential, URL, limits).
        model_chain: Ordered model identifiers; defaults to ``config.model_chain``.
        http_client: Shared ``httpx.AsyncClient``. One is created lazily
            (and closed by :meth:`aclose`) when omitted.
    """

    def __init__(
        self,
        config: Config | None = None,
        model_chain: Sequence[str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self.model_chain: tuple[str, ...] = (
            tuple(model_chain) if model_chain is not None else self.config.model_chain
        )
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> OpenRouterClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.request_timeout, connect=8.0)
            )
        return self._http

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.config.app_url,
            "X-Title": self.config.app_title,
        }

    def _payload(self, model: str, system_prompt: str, user_prompt: str) -> dict:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    async def _call_model(
        self, model: str, api_key: str, system_prompt: str, user_prompt: str
    ) -> str:
        """Issue one request against *model* and return its completion text.

        Raises:
            ModelCallError: On network failure, non-2xx status, an
                undecodable body or empty content.
        """
        try:
            response = await self._get_http().post(
                self.config.openrouter_api_url,
                headers=self._headers(api_key),
                json=self._payload(model, system_prompt, user_prompt),
            )
        except httpx.TimeoutException as exc:
            raise ModelCallError(model, f"HTTP timeout: {exc!r}") from exc
        except httpx.HTTPError as exc:
            raise ModelCallError(model, f"Network error: {exc!r}") from exc

        if response.is_error:
            raise ModelCallError(
                model, f"API Error {response.status_code}: {response.text[:500]}"
            )

        try:
            body = response.json()
        except (ValueError, RecursionError) as exc:
            raise ModelCallError(model, "Response body is not valid JSON") from exc

        content = _extract_content(body)
        if not content:
            raise ModelCallError(model, "Empty response content")
        return content

    async def complete(
        self, system_prompt: str, user_prompt: str, label: str = "request"
    ) -> Completion:
        """Return the first successful completion from the model chain.

        Args:
            system_prompt: System turn content.
            user_prompt: User turn content.
            label: Short tag used in log lines (e.g. the pet name).

        Returns:
            Completion with the winning model and its raw content.

        Raises:
            ConfigurationError: If no API key is configured or the chain is empty.
            ModelChainExhaustedError: If every model failed.
        """
        api_key = self.config.openrouter_api_key
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not configured")
        if not self.model_chain:
            raise ConfigurationError("Model chain is empty")

        timeout = self.config.request_timeout
        start = time.monotonic()
        last_error: ModelCallError | None = None

        for model in self.model_chain:
            logger.info("Trying model %s for %s", model, label)
            try:
                content = await asyncio.wait_for(
                    self._call_model(model, api_key, system_prompt, user_prompt),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                last_error = ModelCallError(model, f"Request timeout after {timeout:g}s")
                logger.warning("Model %s failed: %s", model, last_error.reason)
                continue
            except ModelCallError as exc:
                last_error = exc
                logger.warning("Model %s failed: %s", model, exc.reason)
                continue

            elapsed_ms = (time.monotonic() - start) * 1000
            logger.info(
                "Success with model %s for %s (%.0f ms)", model, label, elapsed_ms
            )
            return Completion(model=model, content=content, elapsed_ms=elapsed_ms)

        logger.error("All %d models failed for %s", len(self.model_chain), label)
        raise ModelChainExhaustedError(last_error) from last_error
