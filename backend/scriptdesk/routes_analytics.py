from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.models import Profile, Script
from scriptdesk.schemas import (
    EmployeeStatsRead,
    PerformanceResponse,
    StatsRefreshResponse,
    VideoPerformanceResponse,
    VideoRowRead,
    VideoSortKey,
    WorkOverviewRead,
)
from scriptdesk.services import analytics
from scriptdesk.services.permissions import LIBRARY_MANAGER_ROLES, Actor, require_role
from scriptdesk.services.profiles import get_profile
from scriptdesk.services.video_metrics import refresh_published_stats
from scriptdesk.settings import get_settings

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _period(year: str | None, month: str | None) -> analytics.PeriodFilter:
    try:
        return analytics.PeriodFilter.parse(year, month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


async def _all_scripts(session: AsyncSession) -> list[Script]:
    # unset scripts count as todo in the overview
    result = await session.execute(select(Script))
    return list(result.scalars().all())


@router.get("/performance", response_model=PerformanceResponse)
async def performance(
    year: str | None = Query(default=None),
    month: str | None = Query(default=None),
    session: AsyncSession = SessionDep,
    actor: Actor = ActorDep,
):
    require_role(actor, LIBRARY_MANAGER_ROLES, "view team performance")
    period = _period(year, month)
    scripts = await _all_scripts(session)
    profiles = (await session.execute(select(Profile))).scalars().all()

    employees = [
        EmployeeStatsRead(
            user_id=row.user_id,
            full_name=row.full_name,
            email=row.email,
            role=row.role,
            completed_tasks=row.completed_tasks,
            completed_content_tasks=row.completed_content_tasks,
            completed_edit_tasks=row.completed_edit_tasks,
            avg_content_ms=row.avg_content_ms,
            avg_edit_ms=row.avg_edit_ms,
            avg_content_display=analytics.format_duration(row.avg_content_ms),
            avg_edit_display=analytics.format_duration(row.avg_edit_ms),
            total_views=row.total_views,
            completed_tasks_band=row.completed_tasks_band,
            avg_content_band=row.avg_content_band,
            avg_edit_band=row.avg_edit_band,
            total_views_band=row.total_views_band,
        )
        for row in analytics.compute_employee_stats(scripts, profiles, period)
    ]
    overview = analytics.work_overview(scripts, period)
    return PerformanceResponse(
        overview=WorkOverviewRead(**vars(overview)),
        employees=employees,
        available_years=analytics.available_years(scripts),
    )


@router.get("/videos", response_model=VideoPerformanceResponse)
async def videos(
    year: str | None = Query(default=None),
    month: str | None = Query(default=None),
    sort: VideoSortKey = Query(default="published_at"),
    order: str = Query(default="desc", pattern="^(asc|desc)$"),
    session: AsyncSession = SessionDep,
    actor: Actor = ActorDep,
):
    require_role(actor, LIBRARY_MANAGER_ROLES, "view video performance")
    report = analytics.video_performance(
        await _all_scripts(session), _period(year, month), sort_key=sort, descending=order == "desc"
    )
    return VideoPerformanceResponse(
        total_videos=report.total_videos,
        total_views=report.total_views,
        avg_views=report.avg_views,
        total_likes=report.total_likes,
        videos=[
            VideoRowRead(
                script_id=s.id,
                title=s.title,
                youtube_link=s.youtube_link,
                youtube_title=s.youtube_title,
                youtube_thumbnail_url=s.youtube_thumbnail_url,
                youtube_views=s.youtube_views,
                youtube_likes=s.youtube_likes,
                youtube_comments=s.youtube_comments,
                published_at=s.published_at,
                content_creator_id=s.content_creator_id,
                editor_id=s.editor_id,
            )
            for s in report.videos
        ],
    )


@router.post("/videos/refresh", response_model=StatsRefreshResponse)
async def refresh_videos(
    year: str | None = Query(default=None),
    month: str | None = Query(default=None),
    session: AsyncSession = SessionDep,
    actor: Actor = ActorDep,
):
    require_role(actor, LIBRARY_MANAGER_ROLES, "refresh video stats")
    period = _period(year, month)
    profile = await get_profile(session, actor.id)
    api_key = profile.youtube_api_key or get_settings().youtube_api_key
    return await refresh_published_stats(session, api_key, None if period.is_all else period)
