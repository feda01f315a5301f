from __future__ import annotations

from scripts import plan_search
from tests.helpers import item


def test_parse_args():
    args = plan_search._parse_args(
        ["south indian action", "--type", "tv", "--lang", "ta", "--year", "2023", "--ai"]
    )
    assert args.prompt == "south indian action"
    assert args.media_type == "tv"
    assert args.lang == "ta"
    assert args.year == 2023
    assert args.ai is True


def test_format_items():
    first = item(1, "Kahaani", lang="hi", year=2012).model_copy(update={"score": 321.5})
    second = item(2, "Mystery Show", media_type="tv", lang="").model_copy(
        update={"release_date": None, "first_air_date": None}
    )
    lines = plan_search.format_items([first, second])
    assert lines[0] == " 1. Kahaani (2012) [movie/hi] score=321.5 src=discover"
    assert lines[1] == " 2. Mystery Show (----) [tv/?] score=0.0 src=discover"
