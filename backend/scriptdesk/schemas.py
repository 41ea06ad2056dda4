from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import AIProvider, EditorMode, ScriptStatus, UserRole


# ============ Structured script payload ============

class Chapter(BaseModel):
    time: str
    description: str


class ScriptChunk(BaseModel):
    content: str
    keyword: str


class PacingPoint(BaseModel):
    chunk: str
    intensity: float


# ============ Scripts ============

class ScriptContent(BaseModel):
    title: str | None = None
    ai_title: str | None = None
    summary: str | None = None
    script: str | None = None
    timeline: list[Chapter] | None = None
    split_script: list[ScriptChunk] | None = None
    pacing: list[PacingPoint] | None = None
    note: str | None = None
    mode: EditorMode | None = None
    idea_prompt: str | None = None
    generated_outline: str | None = None
    script_prompt: str | None = None
    original_script: str | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or "Untitled Script"


class ScriptCreate(ScriptContent):
    folder_id: str | None = None


class ScriptUpdate(ScriptContent):
    folder_id: str | None = None


class ScriptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    folder_id: str | None = None
    created_at: datetime
    title: str
    ai_title: str | None = None
    summary: str
    script: str
    timeline: list[Chapter] | None = None
    split_script: list[ScriptChunk] | None = None
    pacing: list[PacingPoint] | None = None
    note: str | None = None
    mode: EditorMode | None = None
    idea_prompt: str | None = None
    generated_outline: str | None = None
    script_prompt: str | None = None
    original_script: str | None = None
    last_modified_by: str | None = None

    status: ScriptStatus | None = None
    content_creator_id: str | None = None
    editor_id: str | None = None
    content_assigned_at: datetime | None = None
    content_completed_at: datetime | None = None
    edit_assigned_at: datetime | None = None
    edit_completed_at: datetime | None = None
    published_at: datetime | None = None

    youtube_link: str | None = None
    youtube_title: str | None = None
    youtube_views: int | None = None
    youtube_likes: int | None = None
    youtube_comments: int | None = None
    youtube_thumbnail_url: str | None = None
    youtube_stats_last_updated: datetime | None = None


class WorkItemRead(ScriptRead):
    """A script as seen on the work board, with the moves open to the caller."""

    available_transitions: list[str] = Field(default_factory=list)


class YouTubeLinkUpdate(BaseModel):
    link: str | None = None


# ============ Folders ============

class FolderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_id: str | None = None


class FolderUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class FolderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    user_id: str
    parent_id: str | None = None
    created_at: datetime


class FolderDeleteResult(BaseModel):
    deleted_folders: int
    deleted_scripts: int


# ============ Profiles ============

class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: UserRole | None = None
    full_name: str | None = None
    email: str | None = None


class ProfileSettingsRead(ProfileRead):
    primary_provider: AIProvider | None = None
    has_gemini_api_key: bool = False
    has_openrouter_api_key: bool = False
    has_youtube_api_key: bool = False


class ProfileSettingsUpdate(BaseModel):
    full_name: str | None = None
    gemini_api_key: str | None = None
    openrouter_api_key: str | None = None
    primary_provider: AIProvider | None = None
    youtube_api_key: str | None = None


class RoleUpdate(BaseModel):
    role: UserRole


# ============ Styles ============

class StyleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    prompt: str = Field(min_length=1)


class StyleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    prompt: str | None = Field(default=None, min_length=1)


class StyleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    prompt: str


# ============ Generation ============

class ScriptTextRequest(BaseModel):
    script: str = Field(min_length=1)


class ScriptDetailsResponse(BaseModel):
    ai_title: str
    summary: str
    timeline: list[Chapter]


class RewriteRequest(BaseModel):
    script: str = Field(min_length=1)
    style_prompt: str | None = None
    style_id: str | None = None


class OutlineRequest(BaseModel):
    prompt: str = Field(min_length=1)


class ScriptFromOutlineRequest(BaseModel):
    outline: str = Field(min_length=1)
    prompt: str = ""


class KeywordSplitRequest(BaseModel):
    script: str = Field(min_length=1)
    style_prompt: str | None = None
    style_id: str | None = None


class TextResponse(BaseModel):
    text: str


# ============ Analytics ============

class EmployeeStatsRead(BaseModel):
    user_id: str
    full_name: str | None = None
    email: str | None = None
    role: UserRole | None = None
    completed_tasks: int
    completed_content_tasks: int
    completed_edit_tasks: int
    avg_content_ms: float | None = None
    avg_edit_ms: float | None = None
    avg_content_display: str
    avg_edit_display: str
    total_views: int
    completed_tasks_band: int | None = None
    avg_content_band: int | None = None
    avg_edit_band: int | None = None
    total_views_band: int | None = None


class WorkOverviewRead(BaseModel):
    total: int
    todo: int
    in_progress: int
    published: int


class PerformanceResponse(BaseModel):
    overview: WorkOverviewRead
    employees: list[EmployeeStatsRead]
    available_years: list[int]


class VideoRowRead(BaseModel):
    script_id: str
    title: str
    youtube_link: str | None = None
    youtube_title: str | None = None
    youtube_thumbnail_url: str | None = None
    youtube_views: int | None = None
    youtube_likes: int | None = None
    youtube_comments: int | None = None
    published_at: datetime | None = None
    content_creator_id: str | None = None
    editor_id: str | None = None


class VideoPerformanceResponse(BaseModel):
    total_videos: int
    total_views: int
    avg_views: int
    total_likes: int
    videos: list[VideoRowRead]


class StatsRefreshResponse(BaseModel):
    updated: int
    skipped: int
    total: int


VideoSortKey = Literal["published_at", "youtube_views", "youtube_likes", "youtube_comments"]
