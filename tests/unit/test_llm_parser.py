from __future__ import annotations

import asyncio

import httpx

from api.core import llm_parser
from clients.gemini_client import GeminiError


class _FakeTextClient:
    def __init__(self, reply=None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt, *, json_mode=False):
        self.prompts.append((prompt, json_mode))
        if self.error is not None:
            raise self.error
        return self.reply


def test_parse_suggestion_handles_fences_and_plain_json():
    fenced = llm_parser.parse_suggestion('Sure!\n```json\n{"query": "heist"}\n```')
    assert fenced.ok
    assert fenced.value == {"query": "heist"}

    bare_fence = llm_parser.parse_suggestion('```\n{"genres": ["crime"]}\n```')
    assert bare_fence.value == {"genres": ["crime"]}

    plain = llm_parser.parse_suggestion('  {"mediaType": "tv"}  ')
    assert plain.value == {"mediaType": "tv"}


def test_parse_suggestion_reports_errors():
    for reply in (None, "", "not json", "[1, 2]"):
        result = llm_parser.parse_suggestion(reply)
        assert not result.ok
        assert isinstance(result.error, llm_parser.SuggestionParseError)


def test_normalize_suggestion_fills_defaults():
    plan = llm_parser.normalize_suggestion({"mediaType": "Cartoon", "genres": "x"}, "orig")
    assert plan == {"mediaType": "both", "genres": [], "query": "orig"}

    kept = llm_parser.normalize_suggestion(
        {"mediaType": " TV ", "query": "cozy", "genres": ["comedy"]}, "orig"
    )
    assert kept["mediaType"] == "tv"
    assert kept["query"] == "cozy"


def test_build_prompt_includes_request_and_examples():
    prompt = llm_parser.build_prompt("cozy rainy day", "describe")
    assert "STRICT JSON" in prompt
    assert '"text": "cozy rainy day"' in prompt
    assert prompt.rstrip().endswith("Plan:")


def test_suggest_plan_returns_and_caches_valid_reply():
    client = _FakeTextClient(reply='```json\n{"mediaType": "movie", "query": "Se7en"}\n```')

    first = asyncio.run(llm_parser.suggest_plan("movies like Se7en", client))
    second = asyncio.run(llm_parser.suggest_plan("movies like Se7en", client))

    assert first == {"mediaType": "movie", "query": "Se7en", "genres": []}
    assert second == first
    assert len(client.prompts) == 1
    assert client.prompts[0][1] is True


def test_suggest_plan_falls_back_on_failures():
    default = {"mediaType": "both", "query": "heist", "genres": []}

    bad_json = _FakeTextClient(reply="I think you'd like heist films.")
    assert asyncio.run(llm_parser.suggest_plan("heist", bad_json)) == default

    request = httpx.Request("POST", "https://example.test")
    failures = [
        GeminiError("all models failed"),
        httpx.ConnectError("down", request=request),
        ValueError("bad body"),
    ]
    for error in failures:
        client = _FakeTextClient(error=error)
        assert asyncio.run(llm_parser.suggest_plan("heist", client)) == default

    assert asyncio.run(llm_parser.suggest_plan("heist", None)) == default
    # failures are never cached
    assert llm_parser.SUGGESTION_CACHE.get(("heist", "describe")) is None


def test_suggest_plan_falls_back_on_unexpected_errors():
    default = {"mediaType": "both", "query": "heist", "genres": []}

    odd = _FakeTextClient(error=AttributeError("'list' object has no attribute 'get'"))
    assert asyncio.run(llm_parser.suggest_plan("heist", odd)) == default

    not_text = _FakeTextClient(reply=["not", "text"])
    assert asyncio.run(llm_parser.suggest_plan("heist", not_text)) == default
    assert llm_parser.CACHE_METRICS["fallbacks"] >= 2


def test_suggest_plan_survives_non_object_gemini_body():
    from clients.gemini_client import GeminiClient

    client = GeminiClient("secret")
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2]))
    )

    async def scenario():
        try:
            return await llm_parser.suggest_plan("heist", client)
        finally:
            await client.aclose()

    assert asyncio.run(scenario()) == {"mediaType": "both", "query": "heist", "genres": []}
