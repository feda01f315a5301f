from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Tuple

from cachetools import TTLCache

from api.core.prompt_templates import load_prompt_template
from clients.retry import describe_error

# Cache configuration
CACHE_MAXSIZE = 1000
CACHE_TTL_SECONDS = 300  # 5 minutes

SUGGESTION_CACHE: TTLCache[Tuple[str, str], Dict[str, Any]] = TTLCache(
    maxsize=CACHE_MAXSIZE, ttl=CACHE_TTL_SECONDS
)

# Metrics
CACHE_METRICS = {"hits": 0, "misses": 0, "fallbacks": 0}
METRICS_LOCK = Lock()
logger = logging.getLogger(__name__)

_VALID_MEDIA_TYPES = {"movie", "tv", "both"}
_FENCED_JSON = re.compile(r"```json([\s\S]*?)```", flags=re.IGNORECASE)
_FENCED_ANY = re.compile(r"```([\s\S]*?)```")


class TextCompletionClient(Protocol):
    async def generate(self, prompt: str, *, json_mode: bool = False) -> str: ...


class SuggestionParseError(ValueError):
    pass


@dataclass(frozen=True)
class SuggestionParseResult:
    value: Optional[Dict[str, Any]] = None
    error: Optional[SuggestionParseError] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def default_suggestion(text: str) -> Dict[str, Any]:
    """The plan used whenever the text-completion service cannot help."""
    return {"mediaType": "both", "query": text, "genres": []}


def strip_code_fence(text: str) -> str:
    match = _FENCED_JSON.search(text) or _FENCED_ANY.search(text)
    return (match.group(1) if match else text).strip()


def parse_suggestion(text: str | None) -> SuggestionParseResult:
    """Strip an optional markdown fence, then decode a JSON object."""
    if not isinstance(text, str) or not text.strip():
        return SuggestionParseResult(error=SuggestionParseError("Empty reply."))
    raw = strip_code_fence(text)
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        return SuggestionParseResult(
            error=SuggestionParseError(f"Reply is not JSON: {exc.msg}")
        )
    if not isinstance(payload, dict):
        return SuggestionParseResult(
            error=SuggestionParseError("Reply JSON is not an object.")
        )
    return SuggestionParseResult(value=payload)


def normalize_suggestion(plan: Dict[str, Any], text: str) -> Dict[str, Any]:
    normalized = dict(plan)
    media = normalized.get("mediaType")
    if not isinstance(media, str) or media.strip().lower() not in _VALID_MEDIA_TYPES:
        normalized["mediaType"] = "both"
    else:
        normalized["mediaType"] = media.strip().lower()
    query = normalized.get("query")
    if not isinstance(query, str) or not query.strip():
        normalized["query"] = text
    if not isinstance(normalized.get("genres"), list):
        normalized["genres"] = []
    return normalized


def build_prompt(text: str, mode: str = "describe") -> str:
    template = load_prompt_template("suggest")
    lines = [
        template.get("system_prompt", ""),
        "",
        "Shape:",
        json.dumps(template.get("response_shape", {}), indent=2),
    ]
    for example in template.get("examples", []):
        lines.append("")
        lines.append(f"Request: {json.dumps(example['input'])}")
        lines.append(f"Plan: {json.dumps(example['expected_output'])}")
    lines.append("")
    lines.append(f"Request: {json.dumps({'text': text, 'mode': mode})}")
    lines.append("Plan:")
    return "\n".join(lines).strip()


async def suggest_plan(
    text: str,
    client: TextCompletionClient | None,
    mode: str = "describe",
) -> Dict[str, Any]:
    """
    Ask the text-completion service for a structured search plan.

    Never raises: any failure yields ``default_suggestion(text)``.
    Successful plans are cached for a short period.
    """
    normalized_text = (text or "").strip()
    if not normalized_text or client is None:
        return default_suggestion(normalized_text)

    cache_key = (normalized_text, mode)
    cached = SUGGESTION_CACHE.get(cache_key)
    if cached is not None:
        _log_metrics(_increment_metric("hits"))
        return dict(cached)
    _log_metrics(_increment_metric("misses"))

    try:
        reply = await client.generate(
            build_prompt(normalized_text, mode), json_mode=True
        )
    except Exception as exc:
        logger.warning(
            "Suggestion call failed; using default plan. error=%s", describe_error(exc)
        )
        _increment_metric("fallbacks")
        return default_suggestion(normalized_text)

    result = parse_suggestion(reply)
    if not result.ok:
        logger.info(
            "Suggestion reply unusable for %r; using default plan. error=%s",
            normalized_text,
            result.error,
        )
        _increment_metric("fallbacks")
        return default_suggestion(normalized_text)

    plan = normalize_suggestion(result.value or {}, normalized_text)
    SUGGESTION_CACHE[cache_key] = dict(plan)
    return plan


def _increment_metric(name: str) -> Dict[str, int]:
    with METRICS_LOCK:
        CACHE_METRICS[name] += 1
        return dict(CACHE_METRICS)


def _log_metrics(metrics: Dict[str, int]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "Suggestion cache metrics | hits=%d misses=%d fallbacks=%d",
        metrics.get("hits", 0),
        metrics.get("misses", 0),
        metrics.get("fallbacks", 0),
    )
