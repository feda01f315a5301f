from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from api.core.intent_parser import CatalogItem
from clients.tmdb_client import DiscoverFilters


def movie(
    tmdb_id: int | None,
    title: str = "Untitled",
    *,
    lang: str = "en",
    genre_ids: List[int] | None = None,
    year: int = 2015,
    vote_average: float = 7.0,
    vote_count: int = 500,
    popularity: float = 10.0,
    overview: str = "",
    media_type: str = "movie",
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": tmdb_id,
        "original_language": lang,
        "genre_ids": list(genre_ids or []),
        "vote_average": vote_average,
        "vote_count": vote_count,
        "popularity": popularity,
        "overview": overview,
        "media_type": media_type,
    }
    if media_type == "tv":
        payload["name"] = title
        payload["first_air_date"] = f"{year}-01-01"
    else:
        payload["title"] = title
        payload["release_date"] = f"{year}-01-01"
    return payload


def item(
    tmdb_id: int | None, title: str = "Untitled", *, source: str = "discover", **kwargs
) -> CatalogItem:
    payload = movie(tmdb_id, title, **kwargs)
    return CatalogItem.from_tmdb(payload, source=source, media_type=kwargs.get("media_type"))


class FakeCatalog:
    """In-memory stand-in for TMDBClient that records every call."""

    def __init__(
        self,
        *,
        titles: Dict[Tuple[str, str], Dict[str, Any]] | None = None,
        similar: Dict[int, List[Dict[str, Any]]] | None = None,
        recommendations: Dict[int, List[Dict[str, Any]]] | None = None,
        discover: Dict[Tuple[str, Optional[str]], List[Dict[str, Any]]] | None = None,
        search: List[Dict[str, Any]] | None = None,
        fail: Tuple[str, ...] = (),
        delay: float = 0.0,
    ):
        self.titles = titles or {}
        self.similar_results = similar or {}
        self.recommendation_results = recommendations or {}
        self.discover_results = discover or {}
        self.search_results = search or []
        self.fail = fail
        self.delay = delay
        self.calls: List[Tuple[Any, ...]] = []

    async def _maybe_fail(self, name: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.fail:
            raise RuntimeError(f"{name} exploded")

    async def search_title(self, title, year, media, locale):
        self.calls.append(("search_title", title, year, media, locale))
        await self._maybe_fail("search_title")
        return self.titles.get((title.lower(), media))

    async def search_multi(self, query, page, locale):
        self.calls.append(("search_multi", query, page, locale))
        await self._maybe_fail("search_multi")
        return list(self.search_results)

    async def discover(self, media, filters: DiscoverFilters, locale):
        self.calls.append(("discover", media, filters, locale))
        await self._maybe_fail("discover")
        return list(self.discover_results.get((media, filters.original_language), []))

    async def similar(self, media, tmdb_id, locale):
        self.calls.append(("similar", media, tmdb_id, locale))
        await self._maybe_fail("similar")
        return list(self.similar_results.get(tmdb_id, []))

    async def recommendations(self, media, tmdb_id, locale):
        self.calls.append(("recommendations", media, tmdb_id, locale))
        await self._maybe_fail("recommendations")
        return list(self.recommendation_results.get(tmdb_id, []))

    def calls_named(self, name: str) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]
