"""
services/llm_service.py
-----------------------
Thin wrapper around the OpenAI chat completions API.

One call per request, no retry and no custom timeout: a failed completion
surfaces as a 500 and the caller decides whether to re-invoke. Every call is
tracked in MLflow (see mlflow_service).
"""

import time
from typing import Any, Optional

import openai

from forge.core.config import settings
from forge.core.errors import UpstreamError
from forge.core.logging import get_logger
from forge.services.mlflow_service import track_llm_call

logger = get_logger(__name__)


class LLMService:

    def __init__(self) -> None:
        self._client: Optional[openai.AsyncOpenAI] = None
        if settings.OPENAI_API_KEY:
            self._client = openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        else:
            logger.warning("OPENAI_API_KEY not configured, LLM endpoints will fail")

    async def complete(
        self,
        *,
        system_prompt: str,
        user_message: str,
        response_format: dict[str, Any],
        temperature: float,
        purpose: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        customer_id: Optional[str] = None,
    ) -> str:
        """
        Run a single chat completion and return the first choice's content
        ("" when the provider returned no content). Without `max_tokens` the
        provider's own output limit applies.

        Raises:
            UpstreamError: API key missing or the provider call failed.
        """
        if self._client is None:
            raise UpstreamError("AI service not configured")

        model = model or settings.LLM_MODEL
        request: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "response_format": response_format,
            "temperature": temperature,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens

        start = time.monotonic()
        try:
            completion = await self._client.chat.completions.create(**request)
        except openai.OpenAIError as exc:
            logger.error("OpenAI API error", purpose=purpose, model=model, error=str(exc))
            raise UpstreamError(f"AI service error: {exc}") from exc

        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""

        latency_ms = round((time.monotonic() - start) * 1000, 1)
        logger.info(
            "LLM response generated",
            purpose=purpose,
            model=model,
            latency_ms=latency_ms,
            response_length=len(content),
        )

        track_llm_call(
            purpose=purpose,
            model=model,
            prompt=f"{system_prompt}\n\n{user_message}",
            response=content,
            latency_ms=latency_ms,
            customer_id=customer_id,
        )
        return content


# Singleton, shared across all requests
llm_service = LLMService()
