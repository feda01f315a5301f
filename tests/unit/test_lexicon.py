from api.core import lexicon


def test_normalize_genres_resolves_synonyms_in_order():
    assert lexicon.normalize_genres(["Sci-Fi", "rom-com", "thriller", "nonsense"]) == [
        "scifi",
        "romance",
        "comedy",
        "thriller",
    ]
    assert lexicon.normalize_genres(["science  fiction"]) == ["scifi"]
    assert lexicon.normalize_genres([None, "", 42]) == []


def test_genre_ids_differ_for_tv():
    assert lexicon.genre_ids_for(["action", "scifi"], "movie") == [28, 878]
    assert lexicon.genre_ids_for(["action", "adventure", "scifi"], "tv") == [10759, 10765]
    # no TV counterpart for thriller
    assert lexicon.genre_ids_for(["thriller"], "tv") == []


def test_genres_for_ids_covers_both_tables():
    assert lexicon.genres_for_ids([53, 10759]) == {"thriller", "action", "adventure"}
    assert lexicon.genres_for_ids([]) == set()


def test_lookups():
    assert lexicon.language_code_for(" Bollywood ") == "hi"
    assert lexicon.language_code_for("klingon") is None
    assert lexicon.region_code_for("UK") == "GB"
    assert lexicon.vibe_genres("twist") == ["thriller", "mystery"]
    assert lexicon.vibe_genres("unknown") == []


def test_locale_for_query():
    assert lexicon.locale_for_query("thriller") == "en-US"
    assert lexicon.locale_for_query("thriller", "hi") == "hi-US"
    assert lexicon.locale_for_query("\u0925\u094d\u0930\u093f\u0932\u0930") == "hi-IN"
    assert lexicon.locale_for_query("\u0688\u0631\u0627\u0645\u06c1") == "ur-PK"


def test_locale_for_query_default():
    assert lexicon.locale_for_query("thriller", default="en-GB") == "en-GB"
    assert lexicon.locale_for_query("thriller", "hi", default="en-GB") == "hi-US"
    assert lexicon.locale_for_query("\u0925\u094d\u0930\u093f\u0932\u0930", default="en-GB") == "hi-IN"
