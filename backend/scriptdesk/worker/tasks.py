"""
Celery tasks.

metrics.refresh_published_stats re-fetches YouTube statistics for every
published script with a link. The async service runs in a fresh event loop
with its own engine via asyncio.run().
"""
from __future__ import annotations

import asyncio
import logging

from scriptdesk.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _refresh_stats_async(year: int | None = None, month: int | None = None) -> dict:
    from scriptdesk.db import create_engine_for, create_session_factory
    from scriptdesk.services.analytics import PeriodFilter
    from scriptdesk.services.video_metrics import refresh_published_stats
    from scriptdesk.settings import get_settings

    settings = get_settings()
    if not settings.youtube_api_key:
        logger.warning("[worker] YOUTUBE_API_KEY is not set, skipping stats refresh")
        return {"updated": 0, "skipped": 0, "total": 0}

    period = PeriodFilter(year=year, month=month)
    engine = create_engine_for(settings.async_database_url)
    session_factory = create_session_factory(engine)
    try:
        async with session_factory() as session:
            return await refresh_published_stats(session, settings.youtube_api_key, None if period.is_all else period)
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    name="metrics.refresh_published_stats",
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def refresh_published_stats_task(self, year: int | None = None, month: int | None = None) -> dict:
    logger.info(f"[worker] refreshing published stats (celery_id={self.request.id}, attempt={self.request.retries + 1})")
    try:
        result = asyncio.run(_refresh_stats_async(year, month))
    except Exception as e:
        logger.error(f"[worker] stats refresh failed (attempt {self.request.retries + 1}): {e}")
        raise
    logger.info(f"[worker] stats refresh done: {result}")
    return result
