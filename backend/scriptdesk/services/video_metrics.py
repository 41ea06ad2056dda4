"""
Cached YouTube snapshot on scripts.

The youtube_* columns are refreshed independently of pipeline state and are
never required for pipeline correctness. Analytics reads youtube_views from
here for the per-user total views metric.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.errors import ValidationError
from scriptdesk.models import Script, ScriptStatus
from scriptdesk.services.analytics import PeriodFilter
from scriptdesk.services.permissions import LIBRARY_MANAGER_ROLES, Actor, require_role, utcnow
from scriptdesk.services.scripts import get_script
from scriptdesk.services.youtube_stats import VideoStats, fetch_video_stats, fetch_video_stats_batch, parse_video_id

logger = logging.getLogger(__name__)


def _apply_stats(script: Script, stats: VideoStats) -> None:
    script.youtube_title = stats.title
    script.youtube_views = stats.views
    script.youtube_likes = stats.likes
    script.youtube_comments = stats.comments
    script.youtube_thumbnail_url = stats.thumbnail_url
    script.youtube_stats_last_updated = utcnow()


def _clear_snapshot(script: Script) -> None:
    script.youtube_link = None
    script.youtube_title = None
    script.youtube_views = None
    script.youtube_likes = None
    script.youtube_comments = None
    script.youtube_thumbnail_url = None
    script.youtube_stats_last_updated = None


async def attach_youtube_link(
    session: AsyncSession,
    actor: Actor,
    script_id: str,
    link: str | None,
    api_key: str | None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Script:
    """Set (and immediately snapshot) or clear the YouTube link of a script."""
    require_role(actor, LIBRARY_MANAGER_ROLES, "manage YouTube links")
    script = await get_script(session, script_id)

    cleaned = (link or "").strip()
    if not cleaned:
        _clear_snapshot(script)
        logger.info(f"[youtube] {actor.id} removed link from {script_id}")
    else:
        video_id = parse_video_id(cleaned)
        if not video_id:
            raise ValidationError("Please enter a valid YouTube URL")
        stats = await fetch_video_stats(video_id, api_key, transport=transport)
        script.youtube_link = cleaned
        _apply_stats(script, stats)
        logger.info(f"[youtube] {actor.id} linked {script_id} to video {video_id}")

    session.add(script)
    await session.commit()
    await session.refresh(script)
    return script


async def refresh_published_stats(
    session: AsyncSession,
    api_key: str | None,
    period: PeriodFilter | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Re-fetch stats for every published script with a link, optionally limited by publish date."""
    result = await session.execute(
        select(Script).where(
            Script.status == ScriptStatus.published.value,
            Script.youtube_link.isnot(None),
        )
    )
    scripts = [s for s in result.scalars().all() if period is None or period.matches(s.published_at)]
    if not scripts:
        logger.info("[youtube] no published videos to refresh")
        return {"updated": 0, "skipped": 0, "total": 0}

    by_video: dict[str, list[Script]] = {}
    for script in scripts:
        video_id = parse_video_id(script.youtube_link)
        if video_id:
            by_video.setdefault(video_id, []).append(script)

    stats_map = await fetch_video_stats_batch(list(by_video), api_key, transport=transport)

    updated = 0
    for video_id, linked in by_video.items():
        stats = stats_map.get(video_id)
        if not stats:
            continue
        for script in linked:
            _apply_stats(script, stats)
            session.add(script)
            updated += 1
    await session.commit()

    skipped = len(scripts) - updated
    logger.info(f"[youtube] refreshed {updated} videos, skipped {skipped}")
    return {"updated": updated, "skipped": skipped, "total": len(scripts)}
