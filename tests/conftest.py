from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _clear_suggestion_cache():
    from api.core import llm_parser

    llm_parser.SUGGESTION_CACHE.clear()
    yield
    llm_parser.SUGGESTION_CACHE.clear()
