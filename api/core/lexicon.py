"""Static lookup tables used by the prompt parser, the AI fuser and the ranker.

Everything here is constant data plus pure lookups over it.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence, Set

# Canonical genre key -> TMDB movie genre id
MOVIE_GENRE_IDS: Dict[str, int] = {
    "action": 28,
    "adventure": 12,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 14,
    "history": 36,
    "horror": 27,
    "music": 10402,
    "mystery": 9648,
    "romance": 10749,
    "scifi": 878,
    "thriller": 53,
    "war": 10752,
    "western": 37,
}

# TMDB merges several genres for series; keys without a TV counterpart are absent.
TV_GENRE_IDS: Dict[str, int] = {
    "action": 10759,
    "adventure": 10759,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 10765,
    "mystery": 9648,
    "scifi": 10765,
    "war": 10768,
    "western": 37,
}

CANONICAL_GENRES: List[str] = list(MOVIE_GENRE_IDS)

GENRE_SYNONYMS: Dict[str, List[str]] = {
    "sci-fi": ["scifi"],
    "science fiction": ["scifi"],
    "rom-com": ["romance", "comedy"],
    "romcom": ["romance", "comedy"],
    "suspense": ["thriller"],
    "biopic": ["drama", "history"],
    "heist": ["crime", "action"],
    "noir": ["crime", "mystery"],
    "serial killer": ["crime", "thriller"],
    "courtroom": ["drama", "crime"],
    "psychological": ["thriller", "drama"],
    "teen": ["drama", "comedy"],
}

VIBE_TO_GENRES: Dict[str, List[str]] = {
    "suspense": ["thriller", "mystery", "crime"],
    "edge-of-seat": ["thriller", "mystery"],
    "twist": ["thriller", "mystery"],
    "clever": ["mystery", "crime", "thriller"],
    "emotional": ["drama", "family", "romance"],
    "realistic": ["drama", "crime"],
    "dark": ["thriller", "crime"],
    "heist": ["crime", "action"],
    "witty": ["comedy"],
    "cozy": ["comedy", "romance", "family"],
    "feelgood": ["comedy", "romance", "family"],
    "true-story": ["drama", "history"],
}

LANGUAGE_CODES: Dict[str, str] = {
    "hindi": "hi",
    "bollywood": "hi",
    "urdu": "ur",
    "malayalam": "ml",
    "tamil": "ta",
    "telugu": "te",
    "kannada": "kn",
    "marathi": "mr",
    "bengali": "bn",
    "punjabi": "pa",
    "gujarati": "gu",
    "english": "en",
    "hollywood": "en",
    "korean": "ko",
    "japanese": "ja",
    "chinese": "zh",
    "spanish": "es",
    "french": "fr",
    "german": "de",
}

SOUTH_INDIAN_LANGUAGES: List[str] = ["ta", "te", "ml", "kn"]

REGION_CODES: Dict[str, str] = {
    "india": "IN",
    "pakistan": "PK",
    "usa": "US",
    "us": "US",
    "uk": "GB",
}

DEVANAGARI = re.compile("[\u0900-\u097F]")
ARABIC_SCRIPT = re.compile("[\u0600-\u06FF]")

SUPERHERO_PATTERN = re.compile(
    r"avengers?|marvel|\bdc\b(?: (?:comics|extended))?|super\s*man|batman"
    r"|spider-?man|iron\s*man|wolverine|deadpool",
    flags=re.IGNORECASE,
)

_SCIFI_FALLBACK = re.compile(r"^sci[^a-z]?fi$|science\s*fiction")

_GENRES_BY_ID: Dict[int, Set[str]] = {}
for _table in (MOVIE_GENRE_IDS, TV_GENRE_IDS):
    for _key, _gid in _table.items():
        _GENRES_BY_ID.setdefault(_gid, set()).add(_key)


def normalize_genres(tokens: Iterable[object]) -> List[str]:
    """Resolve raw genre words to canonical keys, dropping anything unknown.

    Order of first appearance is kept so callers get a stable result.
    """
    out: List[str] = []
    for raw in tokens or ():
        token = str(raw or "").strip().lower()
        if not token:
            continue
        if token in MOVIE_GENRE_IDS:
            resolved: Sequence[str] = (token,)
        elif token in GENRE_SYNONYMS:
            resolved = GENRE_SYNONYMS[token]
        elif _SCIFI_FALLBACK.search(token):
            resolved = ("scifi",)
        else:
            continue
        for key in resolved:
            if key in MOVIE_GENRE_IDS and key not in out:
                out.append(key)
    return out


def genre_tokens() -> List[str]:
    """Every word the parser scans for: canonical keys then synonyms."""
    return CANONICAL_GENRES + list(GENRE_SYNONYMS)


def genre_ids_for(genres: Sequence[str], media_type: str) -> List[int]:
    table = TV_GENRE_IDS if media_type == "tv" else MOVIE_GENRE_IDS
    ids: List[int] = []
    for key in genres:
        gid = table.get(key)
        if gid is not None and gid not in ids:
            ids.append(gid)
    return ids


def genres_for_ids(genre_ids: Iterable[int]) -> Set[str]:
    keys: Set[str] = set()
    for gid in genre_ids or ():
        keys |= _GENRES_BY_ID.get(gid, set())
    return keys


def language_code_for(word: str) -> Optional[str]:
    return LANGUAGE_CODES.get((word or "").strip().lower())


def region_code_for(word: str) -> Optional[str]:
    return REGION_CODES.get((word or "").strip().lower())


def vibe_genres(vibe: str) -> List[str]:
    return list(VIBE_TO_GENRES.get((vibe or "").strip().lower(), []))


def locale_for_query(
    text: str, language_hint: str | None = None, default: str = "en-US"
) -> str:
    """Pick the catalog locale: explicit hint, then script, then ``default``."""
    if language_hint:
        return f"{language_hint.strip().lower()}-US"
    value = text or ""
    if DEVANAGARI.search(value):
        return "hi-IN"
    if ARABIC_SCRIPT.search(value):
        return "ur-PK"
    return default or "en-US"
