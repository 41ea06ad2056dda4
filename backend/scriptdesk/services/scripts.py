"""
Script store: CRUD over the scripts table plus the per-row conditional
update that every pipeline transition goes through.

Generic updates may only touch content fields. Pipeline fields (status,
claimant ids, phase timestamps) are written exclusively by
services/pipeline.py through conditional_update_script().
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.errors import NotFoundError, ValidationError
from scriptdesk.models import Folder, Script, ScriptStatus
from scriptdesk.services.permissions import (
    AUTHOR_ROLES,
    LIBRARY_MANAGER_ROLES,
    Actor,
    require_role,
)

logger = logging.getLogger(__name__)

CONTENT_FIELDS = frozenset({
    "title",
    "ai_title",
    "summary",
    "script",
    "timeline",
    "split_script",
    "pacing",
    "note",
    "mode",
    "idea_prompt",
    "generated_outline",
    "script_prompt",
    "original_script",
})

PIPELINE_FIELDS = frozenset({
    "status",
    "content_creator_id",
    "editor_id",
    "content_assigned_at",
    "content_completed_at",
    "edit_assigned_at",
    "edit_completed_at",
    "published_at",
})

YOUTUBE_FIELDS = frozenset({
    "youtube_link",
    "youtube_title",
    "youtube_views",
    "youtube_likes",
    "youtube_comments",
    "youtube_thumbnail_url",
    "youtube_stats_last_updated",
})


# NOT NULL columns; a patch may change them but never clear them.
REQUIRED_CONTENT_FIELDS = frozenset({"title", "summary", "script"})


class ConditionalResult(str, Enum):
    success = "success"
    conflict = "conflict"
    not_found = "not_found"


def _reject_protected(patch: dict[str, Any]) -> None:
    protected = sorted(set(patch) & (PIPELINE_FIELDS | YOUTUBE_FIELDS))
    if protected:
        raise ValidationError(f"Fields cannot be changed through a generic update: {', '.join(protected)}")
    unknown = sorted(set(patch) - CONTENT_FIELDS - {"folder_id"})
    if unknown:
        raise ValidationError(f"Unknown script fields: {', '.join(unknown)}")


async def _ensure_folder(session: AsyncSession, folder_id: str | None) -> None:
    if folder_id is None:
        return
    if await session.get(Folder, folder_id) is None:
        raise NotFoundError.for_entity("Folder", folder_id)


async def get_script(session: AsyncSession, script_id: str) -> Script:
    script = await session.get(Script, script_id)
    if script is None:
        raise NotFoundError.for_entity("Script", script_id)
    return script


async def list_scripts(
    session: AsyncSession,
    *,
    folder_id: str | None = None,
    root_only: bool = False,
    in_pipeline: bool | None = None,
    status: ScriptStatus | None = None,
    search: str | None = None,
) -> list[Script]:
    query = select(Script)
    if folder_id is not None:
        query = query.where(Script.folder_id == folder_id)
    elif root_only:
        query = query.where(Script.folder_id.is_(None))
    if in_pipeline is True:
        query = query.where(Script.status.isnot(None))
    elif in_pipeline is False:
        query = query.where(Script.status.is_(None))
    if status is not None:
        query = query.where(Script.status == status.value)
    if search:
        query = query.where(Script.title.ilike(f"%{search.strip()}%"))
    result = await session.execute(query.order_by(Script.created_at.desc()))
    return list(result.scalars().all())


async def insert_script(session: AsyncSession, actor: Actor, data: dict[str, Any]) -> Script:
    """Create a script outside the work pipeline (status unset)."""
    require_role(actor, AUTHOR_ROLES, "create scripts")
    _reject_protected(data)
    await _ensure_folder(session, data.get("folder_id"))

    values = {k: v for k, v in data.items() if v is not None}
    values.setdefault("title", "Untitled Script")
    script = Script(user_id=actor.id, last_modified_by=actor.id, **values)
    session.add(script)
    await session.commit()
    await session.refresh(script)
    logger.info(f"[scripts] {actor.id} created script {script.id}")
    return script


async def update_script_content(
    session: AsyncSession, actor: Actor, script_id: str, patch: dict[str, Any]
) -> Script:
    """Last-write-wins update of content fields."""
    require_role(actor, AUTHOR_ROLES, "edit scripts")
    _reject_protected(patch)
    cleared = sorted(f for f in REQUIRED_CONTENT_FIELDS if f in patch and patch[f] is None)
    if cleared:
        raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")
    if "folder_id" in patch:
        require_role(actor, LIBRARY_MANAGER_ROLES, "move scripts between folders")
        await _ensure_folder(session, patch["folder_id"])

    script = await get_script(session, script_id)
    for field, value in patch.items():
        setattr(script, field, value)
    script.last_modified_by = actor.id
    session.add(script)
    await session.commit()
    await session.refresh(script)
    return script


async def delete_script(session: AsyncSession, actor: Actor, script_id: str) -> None:
    require_role(actor, LIBRARY_MANAGER_ROLES, "delete scripts")
    script = await get_script(session, script_id)
    await session.delete(script)
    await session.commit()
    logger.info(f"[scripts] {actor.id} deleted script {script_id}")


async def conditional_update_script(
    session: AsyncSession,
    script_id: str,
    expected_status: ScriptStatus | None,
    values: dict[str, Any],
    *criteria: sa.ColumnElement[bool],
) -> tuple[ConditionalResult, Script | None]:
    """Compare-and-swap on a single script row.

    The UPDATE only matches when the row's status equals ``expected_status``
    (NULL for scripts not yet in the pipeline) and every extra criterion holds
    at commit time. Returns the refreshed row on success.
    """
    if expected_status is None:
        status_clause = Script.status.is_(None)
    else:
        status_clause = Script.status == expected_status.value

    stmt = (
        sa.update(Script)
        .where(Script.id == script_id, status_clause, *criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    if result.rowcount == 1:
        await session.commit()
        script = await session.get(Script, script_id, populate_existing=True)
        return ConditionalResult.success, script

    await session.rollback()
    exists = await session.scalar(select(Script.id).where(Script.id == script_id))
    if exists is None:
        return ConditionalResult.not_found, None
    return ConditionalResult.conflict, None
