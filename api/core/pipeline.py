from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional

from api.config import DEFAULT_LOCALE, PIPELINE_TIMEOUT, RECENCY_ANCHOR_YEAR
from api.core.ai_fusion import fuse_ai
from api.core.intent_parser import CatalogItem, SearchOptions
from api.core.lexicon import locale_for_query
from api.core.prompt_parser import parse_prompt
from api.core.query_executor import CatalogClient, QueryExecutor
from api.core.reranker import rank
from clients.retry import describe_error

logger = logging.getLogger(__name__)


async def plan_and_search(
    prompt: str,
    options: SearchOptions | None,
    catalog: CatalogClient,
    *,
    anchor_year: int = RECENCY_ANCHOR_YEAR,
    timeout: float | None = PIPELINE_TIMEOUT,
    cancel_event: Optional[asyncio.Event] = None,
    default_locale: str = DEFAULT_LOCALE,
) -> List[CatalogItem]:
    """
    Turn a free-text request into at most 24 ranked catalog items.

    Stops waiting on outstanding catalog calls when ``timeout`` elapses or
    ``cancel_event`` is set, and ranks whatever was gathered up to that point.
    """
    options = options or SearchOptions()
    text = (prompt or "").strip()
    if not text:
        return []

    intent = parse_prompt(
        text,
        media_type_hint=options.media_type_hint,
        year_hint=options.year_hint,
        anchor_year=anchor_year,
    )
    intent = fuse_ai(intent, options.ai_suggestion, anchor_year=anchor_year)
    locale = locale_for_query(text, options.language_hint, default=default_locale)

    pool: List[CatalogItem] = []
    executor = QueryExecutor(catalog, locale=locale)
    task = asyncio.create_task(executor.execute(intent, pool))

    waiters = {task}
    cancel_waiter = None
    if cancel_event is not None:
        cancel_waiter = asyncio.create_task(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()
        # Also reached when the caller itself is cancelled mid-wait.
        if not task.done():
            logger.warning(
                "Catalog queries for %r stopped early; ranking %d partial items.",
                text,
                len(pool),
            )
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    if not task.cancelled() and task.exception() is not None:
        logger.error(
            "Catalog queries for %r failed: %s", text, describe_error(task.exception())
        )

    return rank(pool, intent, anchor_year=anchor_year)
