from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from api.config import RECENCY_ANCHOR_YEAR
from api.core.intent_parser import MediaType, SearchOptions
from api.core.llm_parser import suggest_plan
from api.core.pipeline import plan_and_search

router = APIRouter(tags=["search"])
logger = logging.getLogger(__name__)


class SearchRequest(BaseModel):
    prompt: str = Field("", max_length=500)
    media_type_hint: Optional[MediaType] = None
    language_hint: Optional[str] = Field(None, min_length=2, max_length=8)
    year_hint: Optional[int] = Field(None, ge=1900, le=2100)
    use_ai: bool = False


@router.post("/search")
async def search(request: Request, body: SearchRequest) -> Dict[str, Any]:
    """Plan catalog queries for a free-text prompt and return ranked titles."""
    catalog = getattr(request.app.state, "tmdb_client", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Catalog client not configured")

    suggestion = None
    if body.use_ai and body.prompt.strip():
        text_client = getattr(request.app.state, "gemini_client", None)
        suggestion = await suggest_plan(body.prompt, text_client)

    options = SearchOptions(
        media_type_hint=body.media_type_hint,
        language_hint=body.language_hint,
        year_hint=body.year_hint,
        ai_suggestion=suggestion,
    )
    items = await plan_and_search(
        body.prompt, options, catalog, anchor_year=RECENCY_ANCHOR_YEAR
    )
    logger.info("Search %r returned %d items.", body.prompt, len(items))
    return {"items": [item.model_dump() for item in items]}
