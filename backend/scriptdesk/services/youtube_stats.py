from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

from scriptdesk.errors import MetricsSourceError
from scriptdesk.settings import get_settings

logger = logging.getLogger(__name__)

YOUTUBE_URL_RE = re.compile(
    r"(?:https?://)?(?:www\.|m\.)?"
    r"(?:youtube\.com/(?:[^/\n\s]+/\S+/|(?:v|e(?:mbed)?|shorts)/|\S*?[?&]v=)|youtu\.be/)"
    r"([a-zA-Z0-9_-]{11})"
)
BATCH_SIZE = 50


@dataclass
class VideoStats:
    video_id: str
    title: str
    views: int
    likes: int
    comments: int
    thumbnail_url: str


def parse_video_id(url: str | None) -> str | None:
    match = YOUTUBE_URL_RE.search((url or "").strip())
    return match.group(1) if match else None


def _client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=15.0, transport=transport)


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_item(item: dict) -> VideoStats:
    stats = item.get("statistics", {}) or {}
    snippet = item.get("snippet", {}) or {}
    thumbnails = snippet.get("thumbnails") or {}
    return VideoStats(
        video_id=item.get("id") or "",
        title=snippet.get("title") or "",
        views=_to_int(stats.get("viewCount")),
        likes=_to_int(stats.get("likeCount")),
        comments=_to_int(stats.get("commentCount")),
        thumbnail_url=(thumbnails.get("medium") or {}).get("url")
        or (thumbnails.get("default") or {}).get("url")
        or "",
    )


def _items(resp: httpx.Response) -> list[dict]:
    try:
        return resp.json().get("items", []) or []
    except (ValueError, AttributeError) as exc:
        raise MetricsSourceError(f"YouTube returned an unreadable response: {resp.text[:200]}") from exc


def _api_error(resp: httpx.Response) -> str:
    try:
        message = (resp.json().get("error") or {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"YouTube videos error: {resp.status_code}"


async def _get_videos(ids: list[str], api_key: str, transport: httpx.AsyncBaseTransport | None) -> httpx.Response:
    params = {
        "part": "statistics,snippet",
        "id": ",".join(ids),
        "key": api_key,
    }
    url = get_settings().youtube_videos_url
    async with _client(transport) as client:
        try:
            return await client.get(url, params=params)
        except (httpx.TransportError, httpx.TimeoutException):
            # single retry
            return await client.get(url, params=params)


async def fetch_video_stats(
    video_id: str, api_key: str | None, *, transport: httpx.AsyncBaseTransport | None = None
) -> VideoStats:
    if not api_key:
        raise MetricsSourceError("YouTube API key is not configured")
    try:
        resp = await _get_videos([video_id], api_key, transport)
    except httpx.HTTPError as exc:
        raise MetricsSourceError(f"YouTube request failed: {exc}") from exc
    if resp.status_code >= 400:
        raise MetricsSourceError(_api_error(resp))
    items = _items(resp)
    if not items:
        raise MetricsSourceError("Video not found or no statistics available")
    return _parse_item(items[0])


async def fetch_video_stats_batch(
    video_ids: list[str], api_key: str | None, *, transport: httpx.AsyncBaseTransport | None = None
) -> dict[str, VideoStats]:
    """Fetch stats in chunks of 50 ids. A failed chunk is logged and skipped."""
    if not api_key:
        raise MetricsSourceError("YouTube API key is not configured")
    unique_ids = list(dict.fromkeys(v for v in video_ids if v))
    stats: dict[str, VideoStats] = {}

    for start in range(0, len(unique_ids), BATCH_SIZE):
        chunk = unique_ids[start:start + BATCH_SIZE]
        chunk_no = start // BATCH_SIZE + 1
        try:
            resp = await _get_videos(chunk, api_key, transport)
        except httpx.HTTPError as exc:
            logger.error(f"[youtube] batch {chunk_no} failed: {exc}")
            continue
        if resp.status_code >= 400:
            logger.error(f"[youtube] batch {chunk_no} failed: {_api_error(resp)}")
            continue
        try:
            items = _items(resp)
        except MetricsSourceError as exc:
            logger.error(f"[youtube] batch {chunk_no} failed: {exc.message}")
            continue
        for item in items:
            parsed = _parse_item(item)
            if parsed.video_id:
                stats[parsed.video_id] = parsed

    return stats
