from __future__ import annotations

import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from app.ai.types import AIClientError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self._model = model
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_s,
            max_retries=max_retries,
        )

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        top_p: float | None = None,
        top_k: int | None = None,
        json_output: bool = False,
    ) -> str:
        # top_k has no equivalent in the chat completions API.
        create_kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if temperature is not None:
            create_kwargs["temperature"] = temperature
        if top_p is not None:
            create_kwargs["top_p"] = top_p
        if json_output:
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except openai.APITimeoutError as exc:
            logger.error("openai_request_timeout model=%s", self._model)
            raise AIClientError("OpenAI request timed out", code="timeout") from exc
        except openai.APIStatusError as exc:
            logger.error("openai_api_error model=%s status=%s", self._model, exc.status_code)
            raise AIClientError(f"OpenAI API error: {exc.status_code}", code="http_status") from exc
        except openai.APIError as exc:
            logger.error("openai_network_error model=%s: %s", self._model, exc)
            raise AIClientError("Failed to connect to OpenAI", code="network") from exc

        content = response.choices[0].message.content if response.choices else ""
        text = (content or "").strip()
        if not text:
            raise AIClientError("OpenAI response text is empty", code="empty_response")
        return text
