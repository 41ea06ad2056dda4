"""create profiles, folders, scripts and style tables

Revision ID: 0001_create_core_schema
Revises:
Create Date: 2026-10-18 10:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_create_core_schema"
down_revision = None
branch_labels = None
depends_on = None


def _style_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(f"ix_{name}_user_id", name, ["user_id"])


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("role", sa.String(length=32), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("gemini_api_key", sa.Text(), nullable=True),
        sa.Column("openrouter_api_key", sa.Text(), nullable=True),
        sa.Column("primary_provider", sa.String(length=32), nullable=True),
        sa.Column("youtube_api_key", sa.Text(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
            nullable=True,
        ),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])

    op.create_table(
        "folders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_id", sa.String(length=36), sa.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_folders_user_id", "folders", ["user_id"])
    op.create_index("ix_folders_parent_id", "folders", ["parent_id"])

    op.create_table(
        "scripts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("folder_id", sa.String(length=36), sa.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default="Untitled Script"),
        sa.Column("ai_title", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=False, server_default=""),
        sa.Column("script", sa.Text(), nullable=False, server_default=""),
        sa.Column("timeline", sa.JSON(), nullable=True),
        sa.Column("split_script", sa.JSON(), nullable=True),
        sa.Column("pacing", sa.JSON(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("mode", sa.String(length=16), nullable=True),
        sa.Column("idea_prompt", sa.Text(), nullable=True),
        sa.Column("generated_outline", sa.Text(), nullable=True),
        sa.Column("script_prompt", sa.Text(), nullable=True),
        sa.Column("original_script", sa.Text(), nullable=True),
        sa.Column("last_modified_by", sa.String(length=36), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("content_creator_id", sa.String(length=36), nullable=True),
        sa.Column("editor_id", sa.String(length=36), nullable=True),
        sa.Column("content_assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("content_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("edit_assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("edit_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("youtube_link", sa.Text(), nullable=True),
        sa.Column("youtube_title", sa.Text(), nullable=True),
        sa.Column("youtube_views", sa.BigInteger(), nullable=True),
        sa.Column("youtube_likes", sa.BigInteger(), nullable=True),
        sa.Column("youtube_comments", sa.BigInteger(), nullable=True),
        sa.Column("youtube_thumbnail_url", sa.String(length=512), nullable=True),
        sa.Column("youtube_stats_last_updated", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_scripts_user_id", "scripts", ["user_id"])
    op.create_index("ix_scripts_folder_id", "scripts", ["folder_id"])
    op.create_index("ix_scripts_status", "scripts", ["status"])
    op.create_index("ix_scripts_published_at", "scripts", ["published_at"])
    op.create_index("ix_scripts_status_content_creator", "scripts", ["status", "content_creator_id"])
    op.create_index("ix_scripts_status_editor", "scripts", ["status", "editor_id"])

    _style_table("styles")
    _style_table("keyword_styles")


def downgrade() -> None:
    op.drop_table("keyword_styles")
    op.drop_table("styles")
    op.drop_table("scripts")
    op.drop_table("folders")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
