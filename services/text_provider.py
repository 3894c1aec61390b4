from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from services.errors import RETRY_GUIDANCE, ProviderError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert SEO content strategist. Return only valid JSON."""

TIMEOUT_MESSAGE = "The request took too long. Please try again with a simpler keyword."


class TextGenerationProvider(Protocol):
    async def generate(self, prompt: str) -> str: ...


class OpenAITextProvider:
    """Generate raw text for a prompt with the OpenAI responses API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        max_output_tokens: int = 8000,
        temperature: float = 0.7,
        timeout: float | None = None,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self._model = model
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature

    async def generate(self, prompt: str) -> str:
        logger.info("Calling %s (%s prompt chars)", self._model, len(prompt))
        try:
            response = await self._client.responses.create(
                model=self._model,
                input=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_output_tokens=self._max_output_tokens,
            )
        except (APITimeoutError, asyncio.TimeoutError) as exc:
            raise ProviderError(TIMEOUT_MESSAGE) from exc
        except OpenAIError as exc:
            logger.warning("OpenAI request failed: %s", exc)
            raise ProviderError() from exc

        content = getattr(response, "output_text", None)
        if not content:
            raise ProviderError("The AI service returned an empty response. " + RETRY_GUIDANCE)
        return content
