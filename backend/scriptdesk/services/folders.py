"""
Folder tree: create, rename, list and cascade delete.

Folders are only ever created under an existing parent and later renamed,
so the parent_id graph stays a forest. Cascade delete walks the subtree and
removes every descendant folder and every script inside them.

Known race: a script inserted into a folder of the subtree after the walk
but before the DELETE commits is not covered by the walk. On PostgreSQL the
folder_id foreign key (ON DELETE CASCADE) still removes it; on databases
without enforced foreign keys it can survive with a dangling folder_id.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.errors import NotFoundError, ValidationError
from scriptdesk.models import Folder, Script
from scriptdesk.services.permissions import (
    AUTHOR_ROLES,
    LIBRARY_MANAGER_ROLES,
    Actor,
    require_role,
)

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    folder_ids: list[str]
    script_ids: list[str]


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Folder name must not be empty")
    return cleaned


async def get_folder(session: AsyncSession, folder_id: str) -> Folder:
    folder = await session.get(Folder, folder_id)
    if folder is None:
        raise NotFoundError.for_entity("Folder", folder_id)
    return folder


async def list_folders(session: AsyncSession, *, parent_id: str | None = None, root_only: bool = False) -> list[Folder]:
    query = select(Folder)
    if parent_id is not None:
        query = query.where(Folder.parent_id == parent_id)
    elif root_only:
        query = query.where(Folder.parent_id.is_(None))
    result = await session.execute(query.order_by(Folder.name.asc()))
    return list(result.scalars().all())


async def create_folder(session: AsyncSession, actor: Actor, name: str, parent_id: str | None = None) -> Folder:
    require_role(actor, AUTHOR_ROLES, "create folders")
    if parent_id is not None:
        await get_folder(session, parent_id)
    folder = Folder(name=_clean_name(name), user_id=actor.id, parent_id=parent_id)
    session.add(folder)
    await session.commit()
    await session.refresh(folder)
    return folder


async def rename_folder(session: AsyncSession, actor: Actor, folder_id: str, name: str) -> Folder:
    require_role(actor, LIBRARY_MANAGER_ROLES, "rename folders")
    folder = await get_folder(session, folder_id)
    folder.name = _clean_name(name)
    session.add(folder)
    await session.commit()
    await session.refresh(folder)
    return folder


async def collect_subtree(session: AsyncSession, root_id: str) -> list[str]:
    """Breadth-first ids of root_id and all of its descendants."""
    seen: set[str] = {root_id}
    ordered = [root_id]
    frontier = [root_id]
    while frontier:
        result = await session.execute(select(Folder.id).where(Folder.parent_id.in_(frontier)))
        children = [fid for fid in result.scalars().all() if fid not in seen]
        seen.update(children)
        ordered.extend(children)
        frontier = children
    return ordered


async def delete_folder(session: AsyncSession, actor: Actor, folder_id: str) -> CascadeResult:
    """Irreversibly delete a folder, its descendant folders and their scripts."""
    require_role(actor, LIBRARY_MANAGER_ROLES, "delete folders")
    await get_folder(session, folder_id)

    folder_ids = await collect_subtree(session, folder_id)
    result = await session.execute(select(Script.id).where(Script.folder_id.in_(folder_ids)))
    script_ids = list(result.scalars().all())

    await session.execute(
        sa.delete(Script).where(Script.folder_id.in_(folder_ids)).execution_options(synchronize_session=False)
    )
    await session.execute(
        sa.delete(Folder).where(Folder.id.in_(folder_ids)).execution_options(synchronize_session=False)
    )
    await session.commit()
    session.expunge_all()

    logger.info(
        f"[folders] {actor.id} deleted folder {folder_id}: "
        f"{len(folder_ids)} folders, {len(script_ids)} scripts"
    )
    return CascadeResult(folder_ids=folder_ids, script_ids=script_ids)
