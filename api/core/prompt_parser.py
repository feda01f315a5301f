from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from api.config import RECENCY_ANCHOR_YEAR
from api.core import lexicon
from api.core.intent_parser import (
    Intent,
    MoodFlags,
    Quality,
    RuntimeBounds,
    TitleCandidate,
    YearRange,
)

logger = logging.getLogger(__name__)

_MIN_YEAR = 1950
_MAX_LANGUAGES = 4
_MAX_TITLE_WORDS = 6

# Well-known titles that need more than one lookup to land on the right entry.
TITLE_ALIASES: Dict[str, List[TitleCandidate]] = {
    "drishyam": [
        TitleCandidate(title="Drishyam", year=2013),
        TitleCandidate(title="Drishyam", year=2015),
        TitleCandidate(title="Drishyam 2", year=2021),
        TitleCandidate(title="Drishyam 2", year=2022),
    ],
    "kahaani": [TitleCandidate(title="Kahaani", year=2012)],
    "andhadhun": [TitleCandidate(title="Andhadhun", year=2018)],
    "badla": [TitleCandidate(title="Badla", year=2019)],
    "se7en": [
        TitleCandidate(title="Se7en", year=1995),
        TitleCandidate(title="Seven", year=1995),
    ],
    "seven": [
        TitleCandidate(title="Se7en", year=1995),
        TitleCandidate(title="Seven", year=1995),
    ],
    "gone girl": [TitleCandidate(title="Gone Girl", year=2014)],
}

_LIKE_PATTERN = re.compile(
    r"\b(?:like|similar\s+to)\s+([a-z0-9 :'\"._-]+)", flags=re.IGNORECASE
)
_HINGLISH_PATTERN = re.compile(
    r"^(.*?)\s+(?:jaise|jaisa|jaisi|type\s*ka|type\s*ki|ki\s*tarah)\b",
    flags=re.IGNORECASE,
)
_WHOLE_TITLE_PATTERN = re.compile(r"^([A-Za-z0-9][A-Za-z0-9 :'._-]{2,})$")
_TITLE_TAIL = re.compile(r"\s+(?:but|with|except)\s+.*$", flags=re.IGNORECASE)
_TRAILING_YEAR = re.compile(r"\s*\(?\b(?:19|20)\d{2}\)?$")
_NOT_A_TITLE = re.compile(
    r"^(?:to|a|an|some|something|anything|watching)\b", flags=re.IGNORECASE
)
_YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")

_SOUTH_INDIAN = re.compile(r"south\s*indian")
_TV_WORDS = re.compile(r"\b(?:tv|series|seasons?|episodes?)\b")
_GENERIC_MEDIA_WORDS = re.compile(r"\b(?:movies?|films?|shows?)\b")

_GENRE_PATTERNS: List[Tuple[str, re.Pattern[str]]] = [
    (token, re.compile(r"\b" + re.escape(token).replace(r"\ ", r"\s*") + r"\b"))
    for token in lexicon.genre_tokens()
]

_KEYWORD_PATTERNS: Tuple[Tuple[str, re.Pattern[str]], ...] = tuple(
    (keyword, re.compile(pattern, flags=re.IGNORECASE))
    for keyword, pattern in (
        ("slow burn", r"slow\s*burn"),
        ("heist", r"heist"),
        ("mystery", r"mystery"),
        ("revenge", r"revenge"),
        ("investigation", r"investigation|detective|investigative"),
        ("family", r"family"),
        ("noir", r"noir"),
        ("psychological", r"psychological"),
        ("realistic", r"\breal(?:istic)?\b|true\s*story"),
        ("emotional", r"emotional"),
        ("twist", r"twist"),
        ("clever", r"\bsmart|brainy|clever|mind\s*game"),
        ("edge-of-seat", r"\bedge[-\s]?of[-\s]?(?:the[-\s]?)?seat"),
        ("suspense", r"suspense"),
        ("serial killer", r"serial\s*killer"),
        ("courtroom", r"courtroom"),
    )
)

# Applied to each comma/plus separated segment of compound requests.
_SEGMENT_PATTERNS: Tuple[Tuple[str, re.Pattern[str]], ...] = tuple(
    (keyword, re.compile(pattern))
    for keyword, pattern in (
        ("thriller", r"\b(?:thrill|thriller)\b"),
        ("action", r"\b(?:action|shootout|chase)\b"),
        ("drama", r"\b(?:drama|family|emotional)\b"),
        ("mystery", r"\b(?:mystery|investigation|detective)\b"),
        ("crime", r"\b(?:crime|police|cop|mafia|gangster|courtroom|justice)\b"),
        ("noir", r"\b(?:noir|dark)\b"),
        ("comedy", r"\bcomedy\b"),
        ("romance", r"\b(?:romance|romantic|love)\b"),
        ("realistic", r"\b(?:real|realistic|true\s*story|based\s*on\s*true)\b"),
    )
)

_FLAG_PATTERNS: Dict[str, re.Pattern[str]] = {
    name: re.compile(pattern, flags=re.IGNORECASE)
    for name, pattern in {
        "feel_good": r"feel\s*-?\s*good|relax(?:ing)?|chill(?: weekend| mood)?|rainy(?: day| evening)?"
        r"|sunday\s*(?:mood|feel)|mood\s*booster|peaceful",
        "family_night": r"family(?: movie)?\s*night|watch with family|family\s*suspense",
        "time_pass": r"time\s*pass|fun entertainer|laughter dose|full comedy",
        "sad_ending": r"\bsad(?: (?:movie|film))?(?:\s*to\s*cry)?|heartbreak(?: story| healing)?"
        r"|tear\s*jerker|tragic|shocking\s*ending",
        "romantic": r"romance|romantic|\blove(?: story| triangle)?\b|couples?(?: night| movie)?|\bcute\b",
        "investigative": r"investigation|detective|police|\bcops?\b|courtroom|serial\s*killer"
        r"|murder\s*mystery|crime\s*drama|true\s*crime",
        "real_based": r"\breal(?:istic)?(?: acting| story)?\b|based on true|true\s*story|biopic"
        r"|biography|real life|inspirational",
        "superhero": lexicon.SUPERHERO_PATTERN.pattern,
        "dark": r"\bdark(?: theme| emotional)?\b|noir",
        "psychological": r"psychological|mind\s*game",
        "twisty": r"twist(?:y)?|unpredictable|shocking\s*ending|mind\s*blow(?:ing)?",
        "horror": r"horror|ghost|haunted|supernatural",
        "not_too_scary": r"not\s*too\s*scary",
        "action_thriller": r"action|thriller|edge[-\s]?of[-\s]?seat|intense",
    }.items()
}

# Flags that imply a soft genre hint via the vibe table.
_FLAG_VIBES: Tuple[Tuple[str, str], ...] = (
    ("feel_good", "feelgood"),
    ("twisty", "twist"),
    ("investigative", "suspense"),
    ("psychological", "clever"),
    ("dark", "dark"),
)

_DECADE_PATTERN = re.compile(
    r"\b(?:(?P<century>19|20)?(?P<decade>\d{2}))['\u2019]?s\b"
)
_DECADE_WORDS = {
    "sixties": 1960,
    "seventies": 1970,
    "eighties": 1980,
    "nineties": 1990,
}
_CLASSIC_PATTERN = re.compile(r"old\s*school|classic", flags=re.IGNORECASE)
_LATEST_PATTERN = re.compile(r"latest|blockbuster|trending", flags=re.IGNORECASE)
_SHORT_PATTERN = re.compile(r"\bshort\b", flags=re.IGNORECASE)
_LONG_PATTERN = re.compile(r"\blong\b", flags=re.IGNORECASE)
_TOP_RATED_PATTERN = re.compile(
    r"top\s*rated|oscar|masterpiece|cinematic", flags=re.IGNORECASE
)


@dataclass(frozen=True)
class TitleSignal:
    candidates: Tuple[TitleCandidate, ...] = ()


@dataclass(frozen=True)
class LanguageSignal:
    languages: Tuple[str, ...] = ()
    explicit: bool = False
    regions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MediaSignal:
    media_type: str = "movie"
    explicit: bool = False


@dataclass(frozen=True)
class MoodSignal:
    keywords: Tuple[str, ...] = ()
    flags: MoodFlags = field(default_factory=MoodFlags)
    vibe_genres: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EraSignal:
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    named: bool = False


def year_from(text: str) -> Optional[int]:
    match = _YEAR_PATTERN.search(text or "")
    return int(match.group(0)) if match else None


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def _clean_title(raw: str) -> str:
    cleaned = _TITLE_TAIL.sub("", raw or "")
    cleaned = _TRAILING_YEAR.sub("", cleaned.strip())
    return cleaned.strip().strip("\"'").strip(" .:-")


def detect_title(
    text: str, year_hint: int | None = None, *, other_signals: bool = False
) -> TitleSignal:
    """Find a "like X" style reference, or treat a bare short phrase as a title."""
    stripped = (text or "").strip()
    if not stripped:
        return TitleSignal()

    like = ""
    match = _HINGLISH_PATTERN.search(stripped)
    if match and len(match.group(1).strip()) >= 3:
        like = _clean_title(match.group(1))
    if not like:
        match = _LIKE_PATTERN.search(stripped)
        if match:
            like = _clean_title(match.group(1))
            if _NOT_A_TITLE.match(like):
                like = ""
    if not like and not other_signals:
        match = _WHOLE_TITLE_PATTERN.match(stripped)
        if match and len(stripped.split()) <= _MAX_TITLE_WORDS:
            like = _clean_title(match.group(1))

    if not like:
        return TitleSignal()

    candidates = [TitleCandidate(title=like, year=year_from(stripped) or year_hint)]
    lowered = like.lower()
    for key, variants in TITLE_ALIASES.items():
        if key in lowered:
            candidates.extend(variant.model_copy() for variant in variants)
    return TitleSignal(candidates=tuple(candidates))


def detect_languages(text: str) -> LanguageSignal:
    raw = text or ""
    lowered = raw.lower()
    found: List[str] = []

    def _add(code: str) -> None:
        if code not in found:
            found.append(code)

    for word, code in lexicon.LANGUAGE_CODES.items():
        if re.search(rf"\b{word}\b", lowered):
            _add(code)
    if _SOUTH_INDIAN.search(lowered):
        for code in lexicon.SOUTH_INDIAN_LANGUAGES:
            _add(code)
    if lexicon.DEVANAGARI.search(raw):
        _add("hi")
    if lexicon.ARABIC_SCRIPT.search(raw):
        _add("ur")

    explicit = bool(found)
    # English is a blend default; it never sets the lock on its own.
    if "en" not in found and len(found) < _MAX_LANGUAGES:
        found.append("en")

    regions: List[str] = []
    for word, region in lexicon.REGION_CODES.items():
        if re.search(rf"\b{word}\b", lowered) and region not in regions:
            regions.append(region)

    return LanguageSignal(
        languages=tuple(found[:_MAX_LANGUAGES]),
        explicit=explicit,
        regions=tuple(regions),
    )


def detect_media_type(text: str, media_type_hint: str | None = None) -> MediaSignal:
    if _TV_WORDS.search((text or "").lower()):
        return MediaSignal(media_type="tv", explicit=True)
    if media_type_hint == "tv":
        return MediaSignal(media_type="tv")
    return MediaSignal(media_type="movie")


def detect_genres(text: str) -> List[str]:
    lowered = (text or "").lower()
    tokens = [token for token, pattern in _GENRE_PATTERNS if pattern.search(lowered)]
    return lexicon.normalize_genres(tokens)


def detect_moods(text: str) -> MoodSignal:
    raw = text or ""
    keywords: List[str] = []

    def _add(keyword: str) -> None:
        if keyword not in keywords:
            keywords.append(keyword)

    for keyword, pattern in _KEYWORD_PATTERNS:
        if pattern.search(raw):
            _add(keyword)

    for segment in re.split(r"[,+]", raw):
        segment = segment.strip().lower()
        if not segment:
            continue
        for keyword, pattern in _SEGMENT_PATTERNS:
            if pattern.search(segment):
                _add(keyword)

    flags = MoodFlags(
        **{name: bool(pattern.search(raw)) for name, pattern in _FLAG_PATTERNS.items()}
    )

    vibes: List[str] = []
    for flag_name, vibe in _FLAG_VIBES:
        if getattr(flags, flag_name):
            vibes.extend(lexicon.vibe_genres(vibe))

    return MoodSignal(
        keywords=tuple(keywords),
        flags=flags,
        vibe_genres=tuple(lexicon.normalize_genres(vibes)),
    )


def detect_era(
    text: str,
    year_hint: int | None = None,
    anchor_year: int = RECENCY_ANCHOR_YEAR,
) -> EraSignal:
    raw = text or ""
    lowered = raw.lower()

    decade = _decade_start(lowered)
    if decade is not None:
        return EraSignal(decade, decade + 9, named=True)
    if _CLASSIC_PATTERN.search(raw):
        return EraSignal(1960, 2005, named=True)
    if str(anchor_year) in raw or _LATEST_PATTERN.search(raw):
        return EraSignal(anchor_year - 2, anchor_year, named=True)

    year = year_from(raw) or year_hint
    if year:
        return EraSignal(
            _clamp(year - 2, _MIN_YEAR, anchor_year),
            _clamp(year + 2, _MIN_YEAR, anchor_year),
        )
    return EraSignal()


def _decade_start(lowered: str) -> Optional[int]:
    for word, start in _DECADE_WORDS.items():
        if word in lowered:
            return start
    match = _DECADE_PATTERN.search(lowered)
    if not match:
        return None
    century = match.group("century")
    decade = int(match.group("decade"))
    if century:
        start_year = int(f"{century}{decade:02d}")
    else:
        start_year = (1900 if decade >= 30 else 2000) + decade
    return (start_year // 10) * 10


def detect_runtime(text: str) -> RuntimeBounds:
    raw = text or ""
    return RuntimeBounds(
        lte=105 if _SHORT_PATTERN.search(raw) else None,
        gte=150 if _LONG_PATTERN.search(raw) else None,
    )


def detect_quality(text: str) -> Quality:
    if _TOP_RATED_PATTERN.search(text or ""):
        return Quality(min_votes=1000, sort="vote_average.desc")
    return Quality()


def choose_strategy(
    title: TitleSignal, genres: Sequence[str], moods: MoodSignal
) -> str:
    if title.candidates:
        return "similar"
    if genres or moods.keywords or moods.flags.any():
        return "discover"
    return "search"


def parse_prompt(
    raw: str | None,
    media_type_hint: str | None = None,
    year_hint: int | None = None,
    anchor_year: int = RECENCY_ANCHOR_YEAR,
) -> Intent:
    """Turn a free-text request into an Intent.

    Pure: the same text and hints always produce an equal Intent.
    """
    text = (raw or "").strip()

    languages = detect_languages(text)
    media = detect_media_type(text, media_type_hint)
    genres = detect_genres(text)
    moods = detect_moods(text)
    era = detect_era(text, year_hint, anchor_year)
    runtime = detect_runtime(text)
    quality = detect_quality(text)

    other_signals = bool(
        languages.explicit
        or languages.regions
        or media.explicit
        or genres
        or moods.keywords
        or moods.flags.any()
        or era.named
        or runtime.lte
        or runtime.gte
        or quality.sort != "popularity.desc"
        or _GENERIC_MEDIA_WORDS.search(text.lower())
    )
    title = detect_title(text, year_hint, other_signals=other_signals)

    merged_genres = lexicon.normalize_genres(list(genres) + list(moods.vibe_genres))

    intent = Intent(
        raw_query=text,
        strategy=choose_strategy(title, merged_genres, moods),
        media_type=media.media_type,
        explicit_media_type=media.explicit,
        title_candidates=list(title.candidates),
        genres=merged_genres,
        keywords=list(moods.keywords),
        flags=moods.flags,
        include_languages=list(languages.languages),
        explicit_lang_lock=languages.explicit,
        region_hints=list(languages.regions),
        year_range=YearRange(year_from=era.year_from, year_to=era.year_to),
        runtime=runtime,
        quality=quality,
    )
    logger.debug("Parsed prompt %r into intent: %s", text, intent)
    return intent
