from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Strategy = Literal["similar", "discover", "search"]
MediaType = Literal["movie", "tv"]
Source = Literal["similar", "discover", "search"]
SortOrder = Literal["popularity.desc", "vote_average.desc"]


class TitleCandidate(BaseModel):
    title: str
    year: Optional[int] = None


class YearRange(BaseModel):
    year_from: Optional[int] = Field(None, alias="from")
    year_to: Optional[int] = Field(None, alias="to")

    model_config = {"populate_by_name": True}


class RuntimeBounds(BaseModel):
    lte: Optional[int] = Field(None, description="Maximum runtime in minutes.")
    gte: Optional[int] = Field(None, description="Minimum runtime in minutes.")


class Quality(BaseModel):
    min_votes: int = 200
    sort: SortOrder = "popularity.desc"


class MoodFlags(BaseModel):
    """Named mood indicators detected in the prompt."""

    feel_good: bool = False
    family_night: bool = False
    time_pass: bool = False
    sad_ending: bool = False
    romantic: bool = False
    investigative: bool = False
    real_based: bool = False
    superhero: bool = False
    dark: bool = False
    psychological: bool = False
    twisty: bool = False
    horror: bool = False
    not_too_scary: bool = False
    action_thriller: bool = False

    def any(self) -> bool:
        return any(self.model_dump().values())


class Intent(BaseModel):
    """
    Structured reading of a free-text movie/TV request, built fresh per query.
    """

    raw_query: str = ""
    strategy: Strategy = "search"
    media_type: MediaType = "movie"
    explicit_media_type: bool = Field(
        False, description="True when the prompt itself named TV/series words."
    )
    title_candidates: List[TitleCandidate] = Field(default_factory=list)
    liked_titles: List[str] = Field(
        default_factory=list,
        description="Titles from the AI suggestion that drive extra similar lookups.",
    )
    genres: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    flags: MoodFlags = Field(default_factory=MoodFlags)
    include_languages: List[str] = Field(default_factory=lambda: ["en"])
    explicit_lang_lock: bool = False
    region_hints: List[str] = Field(default_factory=list)
    year_range: YearRange = Field(default_factory=YearRange)
    runtime: RuntimeBounds = Field(default_factory=RuntimeBounds)
    quality: Quality = Field(default_factory=Quality)
    query_hint: Optional[str] = None

    def media_candidates(self) -> List[str]:
        """Media types to try for title lookups, preferred one first."""
        return ["tv", "movie"] if self.media_type == "tv" else ["movie", "tv"]

    def discover_media_types(self) -> List[str]:
        return [self.media_type]


def _number(value: Any, cast: Any) -> Any:
    try:
        return cast(float(value or 0))
    except (TypeError, ValueError, OverflowError):
        return cast(0)


class CatalogItem(BaseModel):
    """A movie or series returned by the catalog, tagged with where it came from."""

    id: Optional[int] = None
    media_type: MediaType = "movie"
    title: Optional[str] = None
    name: Optional[str] = None
    overview: str = ""
    original_language: str = ""
    genre_ids: List[int] = Field(default_factory=list)
    release_date: Optional[str] = None
    first_air_date: Optional[str] = None
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    poster_path: Optional[str] = None
    source: Source = "search"
    score: float = 0.0

    @classmethod
    def from_tmdb(
        cls,
        payload: Dict[str, Any],
        *,
        source: Source,
        media_type: str | None = None,
    ) -> "CatalogItem":
        media = media_type or payload.get("media_type")
        if media not in ("movie", "tv"):
            media = "tv" if payload.get("first_air_date") else "movie"
        return cls(
            id=payload.get("id"),
            media_type=media,
            title=payload.get("title"),
            name=payload.get("name"),
            overview=payload.get("overview") or "",
            original_language=str(payload.get("original_language") or "").lower(),
            genre_ids=[g for g in payload.get("genre_ids") or [] if isinstance(g, int)],
            release_date=payload.get("release_date") or None,
            first_air_date=payload.get("first_air_date") or None,
            vote_average=_number(payload.get("vote_average"), float),
            vote_count=_number(payload.get("vote_count"), int),
            popularity=_number(payload.get("popularity"), float),
            poster_path=payload.get("poster_path"),
            source=source,
        )

    @property
    def display_title(self) -> str:
        return (self.title or self.name or "").strip()

    @property
    def release_year(self) -> Optional[int]:
        raw = (self.release_date or self.first_air_date or "")[:4]
        return int(raw) if raw.isdigit() else None


class SearchOptions(BaseModel):
    media_type_hint: Optional[MediaType] = None
    language_hint: Optional[str] = None
    year_hint: Optional[int] = None
    ai_suggestion: Optional[Any] = None
