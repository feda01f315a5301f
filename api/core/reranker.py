from __future__ import annotations

import logging
import re
from typing import Hashable, List, Sequence, Set, Tuple

from api.config import RECENCY_ANCHOR_YEAR
from api.core.intent_parser import CatalogItem, Intent
from api.core.lexicon import SUPERHERO_PATTERN, genres_for_ids

logger = logging.getLogger(__name__)

MAX_RESULTS = 24

_GENRE_OVERLAP_WEIGHT = 75.0
_KEYWORD_WEIGHT = 18.0
_THRILLER_BONUS = 20.0
_MYSTERY_BONUS = 16.0
_FAMILY_BONUS = 12.0
_FEEL_GOOD_BONUS = 22.0
_FEEL_GOOD_PENALTY = 25.0
_TIME_PASS_BONUS = 16.0
_SAD_ENDING_BONUS = 16.0
_PSYCHOLOGICAL_BONUS = 18.0
_SUPERHERO_PENALTY = 65.0
_RECENCY_MAX = 40.0
_RECENCY_STEP = 4.0
_LANGUAGE_LOCKED_BONUS = 42.0
_LANGUAGE_SOFT_BONUS = 10.0
_LANGUAGE_MISMATCH_PENALTY = 45.0
_SOURCE_BONUS = {"similar": 28.0, "discover": 10.0, "search": 0.0}

_SERIOUS_GENRES = {"thriller", "crime", "mystery"}

_FEEL_GOOD_TEXT = re.compile(r"feel[-\s]?good|heartwarming|wholesome|uplifting")
_GRIM_TEXT = re.compile(r"gore|violent|disturbing")
_FUN_TEXT = re.compile(r"fun|entertaining|light-?hearted")
_SAD_TEXT = re.compile(r"tragic|tear|heartbreak|sad")
_PSYCH_TEXT = re.compile(r"psychological|mind\s*game")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def dedupe_key(item: CatalogItem) -> Tuple[Hashable, ...]:
    if item.id is not None:
        return (item.media_type, item.id)
    title = _NON_ALNUM.sub(" ", item.display_title.lower()).strip()
    return (item.media_type, title, item.release_year)


def dedupe(pool: Sequence[CatalogItem]) -> List[CatalogItem]:
    """Keep the first occurrence of every (media type, id) or title/year key."""
    seen: Set[Tuple[Hashable, ...]] = set()
    out: List[CatalogItem] = []
    for item in pool:
        key = dedupe_key(item)
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


def _match_terms(intent: Intent) -> List[str]:
    terms = [k.lower() for k in intent.keywords if k]
    flags = intent.flags
    if flags.twisty:
        terms.append("twist")
    if flags.investigative:
        terms.extend(["investigation", "detective", "mystery"])
    if flags.real_based:
        terms.extend(["true story", "biopic"])
    return list(dict.fromkeys(terms))


def _wants_serious(intent: Intent) -> bool:
    flags = intent.flags
    return (
        flags.action_thriller
        or flags.investigative
        or flags.real_based
        or flags.dark
        or flags.psychological
        or flags.twisty
        or bool(_SERIOUS_GENRES.intersection(intent.genres))
    )


def score_item(
    item: CatalogItem, intent: Intent, anchor_year: int = RECENCY_ANCHOR_YEAR
) -> float:
    """Relevance score for one pooled item against the parsed request."""
    score = item.vote_average * 24 + item.popularity + item.vote_count * 0.02

    item_genres = genres_for_ids(item.genre_ids)
    overlap = item_genres.intersection(intent.genres)
    score += _GENRE_OVERLAP_WEIGHT * len(overlap)

    text = f"{item.display_title}\n{item.overview}".lower()
    for term in _match_terms(intent):
        if term in text:
            score += _KEYWORD_WEIGHT

    if "thriller" in item_genres or "suspense" in text:
        score += _THRILLER_BONUS
    if "mystery" in item_genres:
        score += _MYSTERY_BONUS
    if "family" in item_genres or "family" in text:
        score += _FAMILY_BONUS

    flags = intent.flags
    if flags.feel_good:
        if item_genres & {"comedy", "romance"} or _FEEL_GOOD_TEXT.search(text):
            score += _FEEL_GOOD_BONUS
        if "horror" in item_genres or _GRIM_TEXT.search(text):
            score -= _FEEL_GOOD_PENALTY
    if flags.time_pass and ("comedy" in item_genres or _FUN_TEXT.search(text)):
        score += _TIME_PASS_BONUS
    if flags.sad_ending and (_SAD_TEXT.search(text) or "drama" in item_genres):
        score += _SAD_ENDING_BONUS
    if flags.psychological and _PSYCH_TEXT.search(text):
        score += _PSYCHOLOGICAL_BONUS

    if _wants_serious(intent) and SUPERHERO_PATTERN.search(text):
        score -= _SUPERHERO_PENALTY

    year = item.release_year
    if year is not None:
        score += max(0.0, _RECENCY_MAX - _RECENCY_STEP * abs(anchor_year - year))

    if intent.include_languages:
        if item.original_language in intent.include_languages:
            score += (
                _LANGUAGE_LOCKED_BONUS
                if intent.explicit_lang_lock
                else _LANGUAGE_SOFT_BONUS
            )
        elif intent.explicit_lang_lock:
            score -= _LANGUAGE_MISMATCH_PENALTY

    score += _SOURCE_BONUS.get(item.source, 0.0)
    return round(score, 4)


def rank(
    pool: Sequence[CatalogItem],
    intent: Intent,
    anchor_year: int = RECENCY_ANCHOR_YEAR,
    limit: int = MAX_RESULTS,
) -> List[CatalogItem]:
    """
    Dedupe, score and order the pool.

    With an explicit language lock, matching-language items are moved ahead of
    the rest while each group keeps its score order. The result never exceeds
    ``limit`` items.
    """
    unique = dedupe(pool)
    scored = [
        item.model_copy(update={"score": score_item(item, intent, anchor_year)})
        for item in unique
    ]
    # sorted() is stable, so equal scores keep pool order.
    ordered = sorted(scored, key=lambda it: it.score, reverse=True)

    if intent.explicit_lang_lock and intent.include_languages:
        wanted = set(intent.include_languages)
        matching = [it for it in ordered if it.original_language in wanted]
        others = [it for it in ordered if it.original_language not in wanted]
        ordered = matching + others

    logger.debug(
        "Ranked %d unique of %d pooled items for %r.",
        len(unique),
        len(pool),
        intent.raw_query,
    )
    return ordered[:limit]
