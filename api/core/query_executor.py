from __future__ import annotations

import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
)

from pydantic import ValidationError

from api.core.intent_parser import CatalogItem, Intent, Source
from clients.retry import describe_error
from clients.tmdb_client import DiscoverFilters

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_TITLE_LOOKUPS = 4
MAX_DISCOVER_LANGUAGES = 4
FALLBACK_LANGUAGES = ("en", "hi")
TOP_UP_THRESHOLD = 12
TOP_UP_MIN_VOTES = 300


class CatalogClient(Protocol):
    async def search_title(
        self, title: str, year: int | None, media: str, locale: str
    ) -> Optional[Dict[str, Any]]: ...

    async def search_multi(
        self, query: str, page: int, locale: str
    ) -> List[Dict[str, Any]]: ...

    async def discover(
        self, media: str, filters: DiscoverFilters, locale: str
    ) -> List[Dict[str, Any]]: ...

    async def similar(
        self, media: str, tmdb_id: int, locale: str
    ) -> List[Dict[str, Any]]: ...

    async def recommendations(
        self, media: str, tmdb_id: int, locale: str
    ) -> List[Dict[str, Any]]: ...


async def _settle(aw: Awaitable[T], label: str, default: Optional[T]) -> Optional[T]:
    try:
        return await aw
    except Exception as exc:
        logger.warning("Dropping %s branch after failure: %s", label, describe_error(exc))
        return default


async def gather_settled(
    aws: Iterable[Awaitable[T]],
    *,
    label: str = "catalog",
    default: Optional[T] = None,
) -> List[Optional[T]]:
    """
    Await every awaitable concurrently. A failed branch resolves to ``default``
    and never cancels its siblings.
    """
    return list(await asyncio.gather(*(_settle(aw, label, default) for aw in aws)))


def _items(
    payloads: Optional[Sequence[Dict[str, Any]]],
    source: Source,
    media: str | None = None,
) -> List[CatalogItem]:
    items = []
    for payload in payloads or []:
        if not isinstance(payload, dict):
            continue
        try:
            items.append(CatalogItem.from_tmdb(payload, source=source, media_type=media))
        except ValidationError:
            logger.debug("Skipping malformed %s result id=%r.", source, payload.get("id"))
    return items


class QueryExecutor:
    """
    Runs the catalog calls an Intent asks for and collects the raw pool.

    Results are appended to the pool as each branch finishes, so a caller that
    stops waiting still holds everything gathered so far.
    """

    def __init__(self, catalog: CatalogClient, locale: str = "en-US"):
        self.catalog = catalog
        self.locale = locale

    async def execute(
        self, intent: Intent, pool: List[CatalogItem] | None = None
    ) -> List[CatalogItem]:
        pool = pool if pool is not None else []

        stages = []
        if intent.strategy == "similar" or intent.liked_titles:
            stages.append(self._similar_stage(intent, pool))
        if intent.strategy != "search" or intent.genres:
            stages.append(self._discover_stage(intent, pool))
        await gather_settled(stages, label="stage")

        if not pool:
            await self._search_stage(intent, pool)

        await self._language_top_up(intent, pool)
        logger.info(
            "Collected %d pooled items for %r (strategy=%s).",
            len(pool),
            intent.raw_query,
            intent.strategy,
        )
        return pool

    async def _similar_stage(self, intent: Intent, pool: List[CatalogItem]) -> None:
        lookups = []
        if intent.strategy == "similar":
            lookups.extend(
                (cand.title, cand.year)
                for cand in intent.title_candidates[:MAX_TITLE_LOOKUPS]
            )
        lookups.extend((title, None) for title in intent.liked_titles[:MAX_TITLE_LOOKUPS])

        await gather_settled(
            (
                self._similar_for(title, year, media, pool)
                for title, year in lookups
                for media in intent.media_candidates()
            ),
            label="similar",
        )

    async def _similar_for(
        self,
        title: str,
        year: int | None,
        media: str,
        pool: List[CatalogItem],
    ) -> None:
        hit = await self.catalog.search_title(title, year, media, self.locale)
        if not hit or not hit.get("id"):
            logger.debug("No %s match for title %r (%s).", media, title, year)
            return
        similar, recommended = await gather_settled(
            [
                self.catalog.similar(media, hit["id"], self.locale),
                self.catalog.recommendations(media, hit["id"], self.locale),
            ],
            label="similar",
            default=[],
        )
        pool.extend(_items(similar, "similar", media))
        pool.extend(_items(recommended, "similar", media))

    def _filters(self, intent: Intent, language: str) -> DiscoverFilters:
        return DiscoverFilters(
            genres=list(intent.genres),
            original_language=language,
            year_from=intent.year_range.year_from,
            year_to=intent.year_range.year_to,
            min_vote_count=intent.quality.min_votes,
            sort_by=intent.quality.sort,
            runtime_lte=intent.runtime.lte,
            runtime_gte=intent.runtime.gte,
            region=intent.region_hints[0] if intent.region_hints else None,
        )

    async def _discover_into(
        self, media: str, filters: DiscoverFilters, pool: List[CatalogItem]
    ) -> None:
        results = await self.catalog.discover(media, filters, self.locale)
        pool.extend(_items(results, "discover", media))

    async def _discover_stage(self, intent: Intent, pool: List[CatalogItem]) -> None:
        languages = intent.include_languages[:MAX_DISCOVER_LANGUAGES] or list(
            FALLBACK_LANGUAGES
        )
        await gather_settled(
            (
                self._discover_into(media, self._filters(intent, language), pool)
                for media in intent.discover_media_types()
                for language in languages
            ),
            label="discover",
        )

    async def _search_stage(self, intent: Intent, pool: List[CatalogItem]) -> None:
        query = (
            intent.query_hint
            or (intent.title_candidates[0].title if intent.title_candidates else "")
            or intent.raw_query
        ).strip()
        if not query:
            return
        (results,) = await gather_settled(
            [self.catalog.search_multi(query, 1, self.locale)],
            label="search",
            default=[],
        )
        pool.extend(_items(results, "search"))

    async def _language_top_up(self, intent: Intent, pool: List[CatalogItem]) -> None:
        if not intent.explicit_lang_lock or not intent.include_languages:
            return
        targets = intent.include_languages[:MAX_DISCOVER_LANGUAGES]
        have = sum(1 for item in pool if item.original_language in targets)
        if have >= TOP_UP_THRESHOLD:
            return

        logger.info(
            "Only %d pooled items match %s; topping up by language.", have, targets
        )

        def _top_up_filters(language: str) -> DiscoverFilters:
            filters = self._filters(intent, language)
            filters.min_vote_count = max(TOP_UP_MIN_VOTES, intent.quality.min_votes)
            filters.sort_by = "vote_average.desc"
            return filters

        await gather_settled(
            (
                self._discover_into(media, _top_up_filters(language), pool)
                for media in intent.discover_media_types()
                for language in targets
            ),
            label="top-up",
        )
