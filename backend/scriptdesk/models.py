from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship as sa_relationship

from .db import Base


def relationship(*args, **kwargs):
    """Wrap SQLAlchemy relationship to forbid lazy loading by default."""
    kwargs.setdefault("lazy", "raise")
    return sa_relationship(*args, **kwargs)


def _uuid() -> str:
    return str(uuid.uuid4())


class UserRole(str, Enum):
    admin = "admin"
    manager = "manager"
    content_creator = "content_creator"
    editor = "editor"


class ScriptStatus(str, Enum):
    todo = "todo"
    content_creation = "content_creation"
    ready_for_edit = "ready_for_edit"
    editing = "editing"
    ready_to_publish = "ready_to_publish"
    published = "published"


# Forward order of the work pipeline; a script's position never decreases.
PIPELINE_ORDER: tuple[ScriptStatus, ...] = (
    ScriptStatus.todo,
    ScriptStatus.content_creation,
    ScriptStatus.ready_for_edit,
    ScriptStatus.editing,
    ScriptStatus.ready_to_publish,
    ScriptStatus.published,
)


class AIProvider(str, Enum):
    gemini = "gemini"
    openrouter = "openrouter"


class EditorMode(str, Enum):
    generate = "generate"
    rewrite = "rewrite"
    keyword = "keyword"
    note = "note"


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=_uuid)
    role: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    full_name: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(sa.String(255), nullable=True, index=True)
    gemini_api_key: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    openrouter_api_key: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    primary_provider: Mapped[str | None] = mapped_column(sa.String(32), nullable=True)
    youtube_api_key: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=True
    )


class Folder(Base):
    __tablename__ = "folders"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id: Mapped[str | None] = mapped_column(
        sa.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )

    scripts: Mapped[list["Script"]] = relationship(back_populates="folder", passive_deletes=True)


class Script(Base):
    __tablename__ = "scripts"
    __table_args__ = (
        sa.Index("ix_scripts_status_content_creator", "status", "content_creator_id"),
        sa.Index("ix_scripts_status_editor", "status", "editor_id"),
    )

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    folder_id: Mapped[str | None] = mapped_column(
        sa.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )

    # Content payload, opaque to the pipeline
    title: Mapped[str] = mapped_column(sa.Text(), nullable=False, server_default="Untitled Script")
    ai_title: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    summary: Mapped[str] = mapped_column(sa.Text(), nullable=False, server_default="")
    script: Mapped[str] = mapped_column(sa.Text(), nullable=False, server_default="")
    timeline: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    split_script: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    pacing: Mapped[list | None] = mapped_column(sa.JSON(), nullable=True)
    note: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    mode: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    idea_prompt: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    generated_outline: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    script_prompt: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    original_script: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)

    # Work pipeline. NULL status means the script is not in the pipeline.
    status: Mapped[str | None] = mapped_column(sa.String(32), nullable=True, index=True)
    content_creator_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    editor_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    content_assigned_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    content_completed_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    edit_assigned_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    edit_completed_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True, index=True)

    # Cached YouTube snapshot, refreshable independent of pipeline state
    youtube_link: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    youtube_title: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    youtube_views: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)
    youtube_likes: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)
    youtube_comments: Mapped[int | None] = mapped_column(sa.BigInteger(), nullable=True)
    youtube_thumbnail_url: Mapped[str | None] = mapped_column(sa.String(512), nullable=True)
    youtube_stats_last_updated: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    folder: Mapped[Folder | None] = relationship(back_populates="scripts")


class RewriteStyle(Base):
    __tablename__ = "styles"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    prompt: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


class KeywordStyle(Base):
    __tablename__ = "keyword_styles"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    prompt: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )
