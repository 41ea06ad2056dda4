"""
Read-side projections over scripts: per-employee turnaround and throughput,
work overview counts and published video performance.

Nothing here writes. The numbers are only as good as the pipeline's
timestamp invariants (assigned <= completed, stamps set once).

Period filter: a script is "in period" when its content completion or its
edit completion falls inside the (year, month) window; either is enough.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from scriptdesk.models import ScriptStatus, UserRole
from scriptdesk.services.permissions import as_utc


@dataclass(frozen=True)
class PeriodFilter:
    """(year, month) window; None on either side means "all"."""

    year: int | None = None
    month: int | None = None

    @classmethod
    def parse(cls, year: str | int | None, month: str | int | None) -> "PeriodFilter":
        def _value(raw):
            if raw is None or str(raw).strip().lower() in ("", "all"):
                return None
            return int(raw)

        period = cls(year=_value(year), month=_value(month))
        if period.month is not None and not 1 <= period.month <= 12:
            raise ValueError(f"month must be 1-12, got {period.month}")
        return period

    @property
    def is_all(self) -> bool:
        return self.year is None and self.month is None

    def matches(self, value: datetime | None) -> bool:
        value = as_utc(value)
        if value is None:
            return False
        if self.year is not None and value.year != self.year:
            return False
        if self.month is not None and value.month != self.month:
            return False
        return True


def in_period(script, period: PeriodFilter) -> bool:
    if period.is_all:
        return True
    return period.matches(script.content_completed_at) or period.matches(script.edit_completed_at)


def filter_scripts(scripts: Iterable, period: PeriodFilter) -> list:
    return [s for s in scripts if in_period(s, period)]


def duration_ms(start: datetime | None, end: datetime | None) -> float | None:
    start, end = as_utc(start), as_utc(end)
    if start is None or end is None:
        return None
    return (end - start).total_seconds() * 1000


def format_duration(ms: float | None) -> str:
    if ms is None or ms < 0:
        return "—"
    seconds = int(ms // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    hours %= 24
    minutes %= 60
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return "< 1m"


def heat_band(value: float | None, low: float, high: float, *, lower_is_better: bool = False) -> int | None:
    """Linear position of value in [low, high] bucketed into 0 (worst) .. 4 (best)."""
    if value is None or low == high:
        return None
    percent = (value - low) / (high - low)
    if lower_is_better:
        percent = 1 - percent
    if percent > 0.8:
        return 4
    if percent > 0.6:
        return 3
    if percent > 0.4:
        return 2
    if percent > 0.2:
        return 1
    return 0


def _bounds(values: Sequence[float | None]) -> tuple[float, float]:
    present = [v for v in values if v is not None]
    if not present:
        return 0.0, 0.0
    return min(present), max(present)


@dataclass
class EmployeeStats:
    user_id: str
    full_name: str | None
    email: str | None
    role: UserRole | None
    completed_content_tasks: int = 0
    completed_edit_tasks: int = 0
    total_content_ms: float = 0.0
    total_edit_ms: float = 0.0
    total_views: int = 0
    published_script_ids: set[str] = field(default_factory=set)
    completed_tasks_band: int | None = None
    avg_content_band: int | None = None
    avg_edit_band: int | None = None
    total_views_band: int | None = None

    @property
    def completed_tasks(self) -> int:
        return self.completed_content_tasks + self.completed_edit_tasks

    @property
    def avg_content_ms(self) -> float | None:
        if not self.completed_content_tasks:
            return None
        return self.total_content_ms / self.completed_content_tasks

    @property
    def avg_edit_ms(self) -> float | None:
        if not self.completed_edit_tasks:
            return None
        return self.total_edit_ms / self.completed_edit_tasks


def compute_employee_stats(scripts: Iterable, profiles: Iterable, period: PeriodFilter | None = None) -> list[EmployeeStats]:
    period = period or PeriodFilter()
    employees: dict[str, EmployeeStats] = {}
    for profile in profiles:
        if profile.role == UserRole.admin.value:
            continue
        employees[profile.id] = EmployeeStats(
            user_id=profile.id,
            full_name=profile.full_name,
            email=profile.email,
            role=UserRole(profile.role) if profile.role else None,
        )
    if not employees:
        return []

    views_by_script: dict[str, int] = {}
    for script in filter_scripts(scripts, period):
        published = script.status == ScriptStatus.published.value
        if published:
            views_by_script[script.id] = script.youtube_views or 0

        creator = employees.get(script.content_creator_id) if script.content_creator_id else None
        if creator is not None:
            elapsed = duration_ms(script.content_assigned_at, script.content_completed_at)
            if elapsed is not None and (period.is_all or period.matches(script.content_completed_at)):
                creator.completed_content_tasks += 1
                creator.total_content_ms += elapsed
            if published:
                creator.published_script_ids.add(script.id)

        editor = employees.get(script.editor_id) if script.editor_id else None
        if editor is not None:
            elapsed = duration_ms(script.edit_assigned_at, script.edit_completed_at)
            if elapsed is not None and (period.is_all or period.matches(script.edit_completed_at)):
                editor.completed_edit_tasks += 1
                editor.total_edit_ms += elapsed
            if published:
                editor.published_script_ids.add(script.id)

    rows = list(employees.values())
    for row in rows:
        row.total_views = sum(views_by_script.get(sid, 0) for sid in row.published_script_ids)

    tasks_low, tasks_high = _bounds([r.completed_tasks for r in rows])
    content_low, content_high = _bounds([r.avg_content_ms for r in rows])
    edit_low, edit_high = _bounds([r.avg_edit_ms for r in rows])
    views_low, views_high = _bounds([r.total_views for r in rows])
    for row in rows:
        row.completed_tasks_band = heat_band(row.completed_tasks, tasks_low, tasks_high)
        row.avg_content_band = heat_band(row.avg_content_ms, content_low, content_high, lower_is_better=True)
        row.avg_edit_band = heat_band(row.avg_edit_ms, edit_low, edit_high, lower_is_better=True)
        row.total_views_band = heat_band(row.total_views, views_low, views_high)

    # sorted() is stable, so ties keep profile order
    return sorted(rows, key=lambda r: r.completed_tasks, reverse=True)


@dataclass
class WorkOverview:
    total: int
    todo: int
    in_progress: int
    published: int


def work_overview(scripts: Iterable, period: PeriodFilter | None = None) -> WorkOverview:
    rows = filter_scripts(scripts, period or PeriodFilter())
    return WorkOverview(
        total=len(rows),
        todo=sum(1 for s in rows if s.status in (None, ScriptStatus.todo.value)),
        in_progress=sum(
            1 for s in rows if s.status in (ScriptStatus.content_creation.value, ScriptStatus.editing.value)
        ),
        published=sum(1 for s in rows if s.status == ScriptStatus.published.value),
    )


def available_years(scripts: Iterable) -> list[int]:
    years: set[int] = set()
    for script in scripts:
        for value in (script.published_at, script.content_completed_at, script.edit_completed_at):
            value = as_utc(value)
            if value is not None:
                years.add(value.year)
    return sorted(years, reverse=True)


@dataclass
class VideoPerformance:
    total_videos: int
    total_views: int
    avg_views: int
    total_likes: int
    videos: list


VIDEO_SORT_KEYS = ("published_at", "youtube_views", "youtube_likes", "youtube_comments")


def video_performance(
    scripts: Iterable,
    period: PeriodFilter | None = None,
    *,
    sort_key: str = "published_at",
    descending: bool = True,
) -> VideoPerformance:
    """Published scripts with a YouTube link, filtered on published_at."""
    if sort_key not in VIDEO_SORT_KEYS:
        raise ValueError(f"unknown sort key: {sort_key}")
    period = period or PeriodFilter()
    videos = [
        s for s in scripts
        if s.status == ScriptStatus.published.value
        and s.youtube_link
        and (period.is_all or period.matches(s.published_at))
    ]

    def _key(script):
        value = getattr(script, sort_key)
        if sort_key == "published_at":
            value = as_utc(value)
            return value.timestamp() if value else 0.0
        return value or 0

    videos.sort(key=_key, reverse=descending)
    total_views = sum(s.youtube_views or 0 for s in videos)
    return VideoPerformance(
        total_videos=len(videos),
        total_views=total_views,
        avg_views=round(total_views / len(videos)) if videos else 0,
        total_likes=sum(s.youtube_likes or 0 for s in videos),
        videos=videos,
    )
