from __future__ import annotations

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.schemas import FolderCreate, FolderDeleteResult, FolderRead, FolderUpdate
from scriptdesk.services import folders
from scriptdesk.services.permissions import Actor

router = APIRouter(prefix="/api", tags=["folders"])


@router.get("/folders", response_model=list[FolderRead])
async def list_folders(
    parent_id: str | None = Query(default=None),
    root_only: bool = Query(default=False),
    session: AsyncSession = SessionDep,
    actor: Actor = ActorDep,
):
    return await folders.list_folders(session, parent_id=parent_id, root_only=root_only)


@router.post("/folders", response_model=FolderRead, status_code=status.HTTP_201_CREATED)
async def create_folder(data: FolderCreate, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await folders.create_folder(session, actor, data.name, data.parent_id)


@router.patch("/folders/{folder_id}", response_model=FolderRead)
async def rename_folder(
    folder_id: str, data: FolderUpdate, session: AsyncSession = SessionDep, actor: Actor = ActorDep
):
    return await folders.rename_folder(session, actor, folder_id, data.name)


@router.delete("/folders/{folder_id}", response_model=FolderDeleteResult)
async def delete_folder(folder_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    result = await folders.delete_folder(session, actor, folder_id)
    return FolderDeleteResult(deleted_folders=len(result.folder_ids), deleted_scripts=len(result.script_ids))
