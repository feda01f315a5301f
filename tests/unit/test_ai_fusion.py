from __future__ import annotations

import pytest

from api.core.ai_fusion import MAX_GENRES, fuse_ai
from api.core.prompt_parser import parse_prompt


@pytest.mark.parametrize("suggestion", [None, {"malformed": True}, "oops", 42, []])
def test_fuse_tolerates_missing_or_malformed_suggestions(suggestion):
    intent = parse_prompt("hindi thriller")
    fused = fuse_ai(intent, suggestion)
    assert fused.genres == intent.genres
    assert fused.strategy == intent.strategy
    assert set(intent.include_languages) <= set(fused.include_languages)
    assert "en" in fused.include_languages


def test_fuse_does_not_mutate_input():
    intent = parse_prompt("thriller")
    before = intent.model_copy(deep=True)
    fuse_ai(intent, {"genres": ["comedy"], "language_prefs": ["ta"], "query": "x"})
    assert intent == before


def test_genres_are_capped():
    intent = parse_prompt("crime thriller")
    fused = fuse_ai(
        intent,
        {
            "genres": ["comedy", "romance", "horror", "war", "western"],
            "vibes": ["feelgood", "dark"],
            "mixes": [{"and": ["fantasy", "scifi"]}, "junk"],
        },
    )
    assert len(fused.genres) == MAX_GENRES
    assert fused.genres[:2] == ["crime", "thriller"]


def test_languages_blend_and_cap():
    intent = parse_prompt("heist")
    fused = fuse_ai(intent, {"language_prefs": ["tamil", "te", "ML", "", 7]})
    assert fused.include_languages == ["en", "ta", "te", "ml", "hi"]
    assert fused.explicit_lang_lock is False


def test_year_and_vote_floor():
    intent = parse_prompt("thriller")
    fused = fuse_ai(intent, {"year": 2031, "min_vote_average": 7.5}, anchor_year=2025)
    assert (fused.year_range.year_from, fused.year_range.year_to) == (2024, 2026)
    assert fused.quality.min_votes == 375

    low = fuse_ai(intent, {"min_vote_average": 1})
    assert low.quality.min_votes == 100
    high = fuse_ai(intent, {"min_vote_average": 10})
    assert high.quality.min_votes == 500

    ignored = fuse_ai(intent, {"year": "2015", "min_vote_average": 42})
    assert ignored.year_range == intent.year_range
    assert ignored.quality.min_votes == intent.quality.min_votes


def test_media_type_and_liked_titles():
    intent = parse_prompt("thriller")
    fused = fuse_ai(
        intent,
        {
            "mediaType": "TV",
            "liked_titles": ["A", "B", "", "C", "D", "E", "F"],
            "query": "  gripping thriller  ",
        },
    )
    assert fused.media_type == "tv"
    assert fused.liked_titles == ["A", "B", "C", "D", "E"]
    assert fused.query_hint == "gripping thriller"


def test_both_respects_explicit_tv_words():
    series = parse_prompt("crime series")
    assert fuse_ai(series, {"mediaType": "both"}).media_type == "tv"

    hinted = parse_prompt("crime", media_type_hint="tv")
    assert fuse_ai(hinted, {"mediaType": "multi"}).media_type == "movie"
