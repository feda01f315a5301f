"""Run one free-text request through the planner and print the ranked titles."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Sequence

from api.config import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    GEMINI_TIMEOUT,
    RECENCY_ANCHOR_YEAR,
    TMDB_API_KEY,
    TMDB_MAX_RETRIES,
    TMDB_RATE_PER_SEC,
    TMDB_TIMEOUT,
)
from api.core.intent_parser import CatalogItem, SearchOptions
from api.core.llm_parser import suggest_plan
from api.core.pipeline import plan_and_search
from clients.gemini_client import GeminiClient
from clients.tmdb_client import TMDBClient

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plan and run a catalog search.")
    parser.add_argument("prompt", help="Free-text request, e.g. 'hindi thriller'.")
    parser.add_argument(
        "--type",
        dest="media_type",
        choices=("movie", "tv"),
        help="Preferred media type when the prompt does not say.",
    )
    parser.add_argument("--lang", help="Language code used for catalog locale.")
    parser.add_argument("--year", type=int, help="Year to centre the search on.")
    parser.add_argument(
        "--ai",
        action="store_true",
        help="Ask the text-completion service for a plan first.",
    )
    return parser.parse_args(argv)


def format_items(items: Sequence[CatalogItem]) -> List[str]:
    lines = []
    for rank, item in enumerate(items, start=1):
        year = item.release_year or "----"
        lines.append(
            f"{rank:2d}. {item.display_title} ({year}) "
            f"[{item.media_type}/{item.original_language or '?'}] "
            f"score={item.score:.1f} src={item.source}"
        )
    return lines


async def _run(args: argparse.Namespace) -> List[CatalogItem]:
    catalog = TMDBClient(
        TMDB_API_KEY,
        timeout=TMDB_TIMEOUT,
        rate_per_sec=TMDB_RATE_PER_SEC,
        max_retries=TMDB_MAX_RETRIES,
    )
    text_client = None
    if args.ai and GEMINI_API_KEY:
        text_client = GeminiClient(GEMINI_API_KEY, model=GEMINI_MODEL, timeout=GEMINI_TIMEOUT)
    try:
        suggestion = await suggest_plan(args.prompt, text_client) if args.ai else None
        options = SearchOptions(
            media_type_hint=args.media_type,
            language_hint=args.lang,
            year_hint=args.year,
            ai_suggestion=suggestion,
        )
        return await plan_and_search(
            args.prompt, options, catalog, anchor_year=RECENCY_ANCHOR_YEAR
        )
    finally:
        await catalog.aclose()
        if text_client is not None:
            await text_client.aclose()


def main(argv: Sequence[str] | None = None) -> None:  # pragma: no cover - CLI wrapper
    args = _parse_args(argv)
    if not TMDB_API_KEY:
        raise SystemExit("TMDB_API_KEY is not set.")
    items = asyncio.run(_run(args))
    if not items:
        print("No results.")
        return
    for line in format_items(items):
        print(line)


if __name__ == "__main__":  # pragma: no cover
    main()
