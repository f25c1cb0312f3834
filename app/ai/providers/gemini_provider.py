from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from app.ai.types import AIClientError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _response_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise AIClientError("Gemini response is not a JSON object", code="invalid_response")
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise AIClientError("Gemini returned no candidates", code="empty_response")
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        raise AIClientError("Gemini returned no content parts", code="empty_response")
    text = str(parts[0].get("text") or "").strip()
    if not text:
        raise AIClientError("Gemini response text is empty", code="empty_response")
    return text


class GeminiProvider:
    def __init__(
        self,
        model: str,
        api_key: str,
        base_url: str | None = None,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._model = model
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        top_p: float | None = None,
        top_k: int | None = None,
        json_output: bool = False,
    ) -> str:
        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        generation_config: dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if top_p is not None:
            generation_config["topP"] = top_p
        if top_k is not None:
            generation_config["topK"] = top_k
        if json_output:
            generation_config["responseMimeType"] = "application/json"
        if generation_config:
            body["generationConfig"] = generation_config

        try:
            response = await asyncio.wait_for(self._post(body), timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            logger.error("gemini_request_timeout model=%s timeout_s=%s", self._model, self._timeout_s)
            raise AIClientError("Gemini request timed out", code="timeout") from exc
        except httpx.TimeoutException as exc:
            logger.error("gemini_request_timeout model=%s timeout_s=%s", self._model, self._timeout_s)
            raise AIClientError("Gemini request timed out", code="timeout") from exc
        except httpx.HTTPError as exc:
            logger.error("gemini_network_error model=%s: %s", self._model, exc)
            raise AIClientError("Failed to connect to Gemini", code="network") from exc

        if response.is_error:
            logger.error(
                "gemini_api_error model=%s status=%s reason=%s",
                self._model,
                response.status_code,
                response.reason_phrase,
            )
            raise AIClientError(f"Gemini API error: {response.status_code}", code="http_status")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("gemini_response_not_json model=%s", self._model)
            raise AIClientError("Gemini response body is not JSON", code="invalid_response") from exc

        return _response_text(payload)

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            return await client.post(
                self.endpoint,
                headers={"Content-Type": "application/json", "x-goog-api-key": self._api_key},
                json=body,
            )
