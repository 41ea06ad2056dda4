from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from scriptdesk.services.analytics import (
    PeriodFilter,
    available_years,
    compute_employee_stats,
    format_duration,
    heat_band,
    video_performance,
    work_overview,
)

HOUR = timedelta(hours=1)


def _profile(pid, role):
    return SimpleNamespace(id=pid, role=role, full_name=pid.title(), email=f"{pid}@example.com")


def _script(sid, *, status="published", creator=None, editor=None, content=None, edit=None,
            published_at=None, views=None, likes=None, link=None):
    """content/edit are (assigned_at, completed_at) pairs."""
    content = content or (None, None)
    edit = edit or (None, None)
    return SimpleNamespace(
        id=sid,
        title=sid,
        status=status,
        content_creator_id=creator,
        editor_id=editor,
        content_assigned_at=content[0],
        content_completed_at=content[1],
        edit_assigned_at=edit[0],
        edit_completed_at=edit[1],
        published_at=published_at,
        youtube_link=link,
        youtube_views=views,
        youtube_likes=likes,
        youtube_comments=None,
    )


def _at(month, day, hour=0, year=2026):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


PROFILES = [
    _profile("boss", "admin"),
    _profile("ann", "content_creator"),
    _profile("bob", "content_creator"),
    _profile("eve", "editor"),
]


def test_single_creator_single_task():
    scripts = [_script("s1", status="ready_for_edit", creator="ann", content=(_at(3, 1, 9), _at(3, 1, 11)))]
    rows = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES)}

    assert "boss" not in rows
    ann = rows["ann"]
    assert ann.completed_tasks == 1
    assert ann.avg_content_ms == 2 * 3600 * 1000
    assert ann.avg_edit_ms is None
    assert rows["bob"].completed_tasks == 0
    assert rows["bob"].avg_content_ms is None


def test_period_filter_counts_each_phase_in_its_own_window():
    scripts = [
        # content finished in March, edit finished in April
        _script("s1", creator="ann", editor="eve",
                content=(_at(3, 30), _at(3, 31)), edit=(_at(4, 1), _at(4, 2))),
        _script("s2", creator="bob", content=(_at(1, 1), _at(1, 2)), status="ready_for_edit"),
    ]
    march = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES, PeriodFilter(2026, 3))}
    assert march["ann"].completed_tasks == 1
    assert march["eve"].completed_tasks == 0
    assert march["bob"].completed_tasks == 0

    april = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES, PeriodFilter(2026, 4))}
    assert april["ann"].completed_tasks == 0
    assert april["eve"].completed_tasks == 1

    year = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES, PeriodFilter(2026, None))}
    assert [year[u].completed_tasks for u in ("ann", "bob", "eve")] == [1, 1, 1]


def test_month_filter_excludes_other_months_from_average():
    scripts = [
        _script("jan", status="ready_for_edit", creator="ann",
                content=(_at(1, 1, 0, year=2024), _at(1, 1, 2, year=2024))),
        _script("feb", status="ready_for_edit", creator="ann",
                content=(_at(2, 1, 0, year=2024), _at(2, 1, 5, year=2024))),
    ]
    rows = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES, PeriodFilter(2024, 1))}
    assert rows["ann"].completed_content_tasks == 1
    assert rows["ann"].avg_content_ms == 2 * 3600 * 1000

    rows = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES, PeriodFilter(2024, None))}
    assert rows["ann"].avg_content_ms == 3.5 * 3600 * 1000


def test_views_are_counted_once_per_script():
    scripts = [
        # ann both created and edited s1
        _script("s1", creator="ann", editor="ann", views=1000,
                content=(_at(5, 1), _at(5, 2)), edit=(_at(5, 3), _at(5, 4))),
        _script("s2", creator="ann", editor="eve", views=500,
                content=(_at(5, 1), _at(5, 2)), edit=(_at(5, 3), _at(5, 4))),
        _script("s3", status="ready_to_publish", creator="bob", views=9999,
                content=(_at(5, 1), _at(5, 2))),
    ]
    rows = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES)}
    assert rows["ann"].total_views == 1500
    assert rows["ann"].completed_tasks == 3
    assert rows["eve"].total_views == 500
    assert rows["bob"].total_views == 0


def test_rows_sorted_by_completed_tasks():
    scripts = [
        _script("s1", creator="bob", content=(_at(2, 1), _at(2, 2))),
        _script("s2", creator="bob", content=(_at(2, 1), _at(2, 3))),
        _script("s3", creator="ann", content=(_at(2, 1), _at(2, 2))),
    ]
    rows = compute_employee_stats(scripts, PROFILES)
    assert [r.user_id for r in rows] == ["bob", "ann", "eve"]


def test_bands_reward_fast_and_productive():
    scripts = [
        _script("s1", creator="ann", content=(_at(2, 1, 0), _at(2, 1, 1))),
        _script("s2", creator="ann", content=(_at(2, 1, 0), _at(2, 1, 1))),
        _script("s3", creator="bob", content=(_at(2, 1, 0), _at(2, 1, 10))),
    ]
    rows = {r.user_id: r for r in compute_employee_stats(scripts, PROFILES)}
    assert rows["ann"].completed_tasks_band == 4
    assert rows["eve"].completed_tasks_band == 0
    assert rows["ann"].avg_content_band == 4
    assert rows["bob"].avg_content_band == 0
    # single value for avg edit: no spread, no band
    assert rows["eve"].avg_edit_band is None


@pytest.mark.parametrize(
    "value, expected",
    [(None, None), (0, 0), (20, 0), (21, 1), (50, 2), (70, 3), (81, 4), (100, 4)],
)
def test_heat_band_thresholds(value, expected):
    assert heat_band(value, 0, 100) == expected


def test_heat_band_inverts_for_durations_and_needs_spread():
    assert heat_band(10, 10, 100, lower_is_better=True) == 4
    assert heat_band(100, 10, 100, lower_is_better=True) == 0
    assert heat_band(5, 5, 5) is None


@pytest.mark.parametrize(
    "ms, expected",
    [
        (None, "—"),
        (30 * 1000, "< 1m"),
        (7 * 60 * 1000, "7m"),
        ((4 * 60 + 5) * 60 * 1000, "4h 5m"),
        ((2 * 24 + 3) * 3600 * 1000, "2d 3h"),
    ],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_work_overview_counts_unset_as_todo():
    scripts = [
        _script("a", status=None),
        _script("b", status="todo"),
        _script("c", status="content_creation"),
        _script("d", status="editing"),
        _script("e", status="ready_for_edit"),
        _script("f", status="published"),
    ]
    overview = work_overview(scripts)
    assert (overview.total, overview.todo, overview.in_progress, overview.published) == (6, 2, 2, 1)


def test_video_performance_filters_on_publish_date():
    scripts = [
        _script("a", link="https://youtu.be/aaaaaaaaaaa", views=100, likes=10, published_at=_at(6, 1)),
        _script("b", link="https://youtu.be/bbbbbbbbbbb", views=300, likes=5, published_at=_at(6, 20)),
        _script("c", link="https://youtu.be/ccccccccccc", views=50, published_at=_at(7, 1)),
        _script("d", link=None, views=1000, published_at=_at(6, 2)),
        _script("e", status="ready_to_publish", link="https://youtu.be/eeeeeeeeeee", views=1000),
    ]
    report = video_performance(scripts, PeriodFilter(2026, 6), sort_key="youtube_views")
    assert [s.id for s in report.videos] == ["b", "a"]
    assert (report.total_videos, report.total_views, report.avg_views, report.total_likes) == (2, 400, 200, 15)

    everything = video_performance(scripts, sort_key="published_at", descending=False)
    assert [s.id for s in everything.videos] == ["a", "b", "c"]


def test_available_years_descending():
    scripts = [
        _script("a", content=(None, _at(1, 1, year=2024))),
        _script("b", published_at=_at(1, 1, year=2026)),
        _script("c", status=None),
    ]
    assert available_years(scripts) == [2026, 2024]


def test_period_filter_parse():
    assert PeriodFilter.parse("all", "all").is_all
    assert PeriodFilter.parse("2026", "3") == PeriodFilter(2026, 3)
    with pytest.raises(ValueError):
        PeriodFilter.parse("2026", "13")
