from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from api.core.lexicon import genre_ids_for
from clients.retry import with_backoff

TMDB_BASE = "https://api.themoviedb.org/3"

logger = logging.getLogger(__name__)


@dataclass
class DiscoverFilters:
    genres: List[str] = field(default_factory=list)
    original_language: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    min_vote_count: int = 200
    sort_by: str = "popularity.desc"
    runtime_lte: Optional[int] = None
    runtime_gte: Optional[int] = None
    region: Optional[str] = None

    def to_params(self, media: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "sort_by": self.sort_by,
            "vote_count.gte": self.min_vote_count,
            "include_adult": "false",
            "page": 1,
        }
        ids = genre_ids_for(self.genres, media)
        if ids:
            params["with_genres"] = ",".join(str(gid) for gid in ids)
        if self.original_language:
            params["with_original_language"] = self.original_language
        date_field = "first_air_date" if media == "tv" else "primary_release_date"
        if self.year_from:
            params[f"{date_field}.gte"] = f"{self.year_from}-01-01"
        if self.year_to:
            params[f"{date_field}.lte"] = f"{self.year_to}-12-31"
        if self.runtime_lte:
            params["with_runtime.lte"] = self.runtime_lte
        if self.runtime_gte:
            params["with_runtime.gte"] = self.runtime_gte
        if self.region and media == "movie":
            params["region"] = self.region
        return params


class TMDBClient:
    def __init__(
        self,
        api_key: str,
        timeout: float = 8.0,
        rate_per_sec: float = 20.0,
        max_retries: int = 2,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.rate = rate_per_sec
        self.max_retries = max_retries
        self._last = 0.0
        self._throttle_lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=self.timeout)

    async def _throttle(self):
        async with self._throttle_lock:
            dt = time.time() - self._last
            min_gap = 1.0 / max(self.rate, 1e-6)
            if dt < min_gap:
                await asyncio.sleep(min_gap - dt)
            self._last = time.time()

    async def _request(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        await self._throttle()
        r = await self._client.get(f"{TMDB_BASE}{path}", params=params)
        r.raise_for_status()
        return r.json()

    async def _get(
        self, path: str, params: Dict[str, Any], locale: str = "en-US"
    ) -> Dict[str, Any]:
        q = dict(params)
        q["api_key"] = self.api_key
        q["language"] = locale
        return await with_backoff(
            self._request,
            path,
            q,
            max_retries=self.max_retries,
            service=f"tmdb{path}",
        )

    async def search_title(
        self,
        title: str,
        year: int | None = None,
        media: str = "movie",
        locale: str = "en-US",
    ) -> Optional[Dict[str, Any]]:
        """
        Best single match for a title: exact (case-insensitive) matches first,
        then the most popular result.
        """
        params: Dict[str, Any] = {"query": title, "include_adult": "false"}
        if year:
            params["first_air_date_year" if media == "tv" else "year"] = year
        data = await self._get(f"/search/{media}", params, locale)
        results = [it for it in data.get("results") or [] if it.get("id")]
        if not results:
            return None
        wanted = title.strip().lower()

        def _rank(it: Dict[str, Any]):
            name = (it.get("title") or it.get("name") or "").strip().lower()
            original = (
                it.get("original_title") or it.get("original_name") or ""
            ).strip().lower()
            exact = wanted in (name, original)
            return (exact, it.get("popularity") or 0.0)

        best = max(results, key=_rank)
        best["media_type"] = media
        return best

    async def search_multi(
        self, query: str, page: int = 1, locale: str = "en-US"
    ) -> List[Dict[str, Any]]:
        data = await self._get(
            "/search/multi",
            {"query": query, "include_adult": "false", "page": page},
            locale,
        )
        return [
            it
            for it in data.get("results") or []
            if it.get("media_type") in ("movie", "tv")
        ]

    async def discover(
        self, media: str, filters: DiscoverFilters, locale: str = "en-US"
    ) -> List[Dict[str, Any]]:
        data = await self._get(f"/discover/{media}", filters.to_params(media), locale)
        return self._tag(data, media)

    async def similar(
        self, media: str, tmdb_id: int, locale: str = "en-US"
    ) -> List[Dict[str, Any]]:
        data = await self._get(f"/{media}/{tmdb_id}/similar", {"page": 1}, locale)
        return self._tag(data, media)

    async def recommendations(
        self, media: str, tmdb_id: int, locale: str = "en-US"
    ) -> List[Dict[str, Any]]:
        data = await self._get(
            f"/{media}/{tmdb_id}/recommendations", {"page": 1}, locale
        )
        return self._tag(data, media)

    @staticmethod
    def _tag(data: Dict[str, Any], media: str) -> List[Dict[str, Any]]:
        results = list(data.get("results") or [])
        for it in results:
            it["media_type"] = media
        return results

    async def aclose(self):
        await self._client.aclose()
