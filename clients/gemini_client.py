from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import httpx

from clients.retry import describe_error, with_backoff

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
FALLBACK_MODELS = ("gemini-1.5-pro",)

logger = logging.getLogger(__name__)


class GeminiError(RuntimeError):
    pass


def extract_text(data: Any) -> str:
    """Join the text parts of the first candidate in a generateContent reply."""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content")
    parts: List[Dict[str, Any]] = []
    if isinstance(content, dict) and isinstance(content.get("parts"), list):
        parts = [part for part in content["parts"] if isinstance(part, dict)]
    elif isinstance(content, list):
        parts = [part for part in content if isinstance(part, dict)]

    chunks = []
    for part in parts:
        text = part.get("text")
        if isinstance(text, str) and text.strip():
            chunks.append(text.strip())
    return "\n".join(chunks)


class GeminiClient:
    """
    Minimal async text-completion client for the Gemini generateContent API.

    Tries each configured model in turn when one is missing or forbidden
    (HTTP 404/403); other failures stop immediately.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 20.0,
        max_retries: int = 1,
        fallback_models: Sequence[str] = FALLBACK_MODELS,
    ) -> None:
        self.api_key = api_key
        self.models = [model] + [m for m in fallback_models if m != model]
        self.max_retries = max_retries
        self._client = httpx.AsyncClient(timeout=timeout)

    async def _post(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.post(
            f"{GEMINI_BASE}/{model}:generateContent",
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json=body,
        )
        response.raise_for_status()
        return response.json()

    async def generate(self, prompt: str, *, json_mode: bool = False) -> str:
        if not self.api_key:
            raise GeminiError("Missing API key for text completion.")

        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.2 if json_mode else 0.7,
                "maxOutputTokens": 2048,
            },
        }
        if json_mode:
            body["generationConfig"]["responseMimeType"] = "application/json"

        last_error: Exception | None = None
        for model in self.models:
            try:
                data = await with_backoff(
                    self._post,
                    model,
                    body,
                    max_retries=self.max_retries,
                    service=f"gemini:{model}",
                )
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                logger.warning("Gemini model %s responded with HTTP %s", model, status)
                last_error = exc
                if status in (403, 404):
                    continue
                break
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Gemini model %s failed: %s", model, describe_error(exc))
                last_error = exc
                break
            logger.debug("Gemini reply served by model %s", model)
            return extract_text(data)

        raise GeminiError("All Gemini model attempts failed.") from last_error

    async def aclose(self) -> None:
        await self._client.aclose()
