from __future__ import annotations

import logging
import math
from typing import Any, List

from api.config import RECENCY_ANCHOR_YEAR
from api.core import lexicon
from api.core.intent_parser import Intent, YearRange

logger = logging.getLogger(__name__)

MAX_GENRES = 6
MAX_LANGUAGES = 5
MAX_LIKED_TITLES = 5
# Languages every fused intent offers, whatever the suggestion said.
BLEND_LANGUAGES = ("hi", "en")
_VOTES_PER_POINT = 50
_MIN_VOTE_FLOOR = 100
_MAX_VOTE_FLOOR = 1200


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is None or value == "":
        return []
    return [value]


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _mix_tokens(mixes: Any) -> List[str]:
    tokens: List[str] = []
    for mix in _as_list(mixes):
        if not isinstance(mix, dict):
            continue
        for token in _as_list(mix.get("and")):
            if isinstance(token, str):
                tokens.append(token)
    return tokens


def _language_code(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    cleaned = value.strip().lower()
    return lexicon.language_code_for(cleaned) or cleaned


def fuse_ai(
    intent: Intent,
    suggestion: Any,
    anchor_year: int = RECENCY_ANCHOR_YEAR,
) -> Intent:
    """
    Merge a structured AI suggestion into a locally parsed Intent.

    Anything that is not a dict leaves the intent untouched. Each field of the
    suggestion is validated on its own; a bad field is skipped, never fatal.
    """
    if not isinstance(suggestion, dict):
        return intent

    fused = intent.model_copy(deep=True)

    media = suggestion.get("mediaType", suggestion.get("media_type"))
    if isinstance(media, str):
        media = media.strip().lower()
        if media in ("movie", "tv"):
            fused.media_type = media
        elif media in ("both", "multi") and not fused.explicit_media_type:
            fused.media_type = "movie"

    liked = [
        title.strip()
        for title in _as_list(suggestion.get("liked_titles"))
        if isinstance(title, str) and title.strip()
    ]
    fused.liked_titles = liked[:MAX_LIKED_TITLES]

    vibe_hints: List[str] = []
    for vibe in _as_list(suggestion.get("vibes")):
        if isinstance(vibe, str):
            vibe_hints.extend(lexicon.vibe_genres(vibe))
    merged = lexicon.normalize_genres(
        list(fused.genres)
        + [g for g in _as_list(suggestion.get("genres")) if isinstance(g, str)]
        + vibe_hints
        + _mix_tokens(suggestion.get("mixes"))
    )
    fused.genres = merged[:MAX_GENRES]

    languages = list(fused.include_languages)
    for pref in _as_list(suggestion.get("language_prefs")):
        code = _language_code(pref)
        if code and code not in languages:
            languages.append(code)
    for code in BLEND_LANGUAGES:
        if code not in languages:
            languages.append(code)
    fused.include_languages = languages[:MAX_LANGUAGES]

    year = suggestion.get("year")
    if _is_number(year):
        year = min(max(int(year), 1950), anchor_year)
        fused.year_range = YearRange(year_from=year - 1, year_to=year + 1)

    floor = suggestion.get("min_vote_average")
    if _is_number(floor) and 0 <= floor <= 10:
        votes = math.floor(floor * _VOTES_PER_POINT)
        fused.quality.min_votes = max(_MIN_VOTE_FLOOR, min(_MAX_VOTE_FLOOR, votes))

    query = suggestion.get("query")
    if isinstance(query, str) and query.strip():
        fused.query_hint = query.strip()

    logger.debug("Fused AI suggestion %s into intent: %s", suggestion, fused)
    return fused
