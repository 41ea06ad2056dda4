from __future__ import annotations

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.models import ScriptStatus
from scriptdesk.schemas import ScriptCreate, ScriptRead, ScriptUpdate, WorkItemRead, YouTubeLinkUpdate
from scriptdesk.services.permissions import Actor
from scriptdesk.services.pipeline import available_transitions, pipeline_rank, status_of
from scriptdesk.services.profiles import get_profile
from scriptdesk.services.scripts import delete_script, get_script, insert_script, list_scripts, update_script_content
from scriptdesk.services.video_metrics import attach_youtube_link
from scriptdesk.settings import get_settings

router = APIRouter(prefix="/api", tags=["scripts"])


def _work_item(script, actor: Actor) -> WorkItemRead:
    item = WorkItemRead.model_validate(script)
    item.available_transitions = [t.value for t in available_transitions(actor, script)]
    return item


@router.get("/scripts", response_model=list[ScriptRead])
async def list_library(
    folder_id: str | None = Query(default=None),
    root_only: bool = Query(default=False),
    search: str | None = Query(default=None),
    session: AsyncSession = SessionDep,
    actor: Actor = ActorDep,
):
    return await list_scripts(session, folder_id=folder_id, root_only=root_only, search=search)


@router.post("/scripts", response_model=ScriptRead, status_code=status.HTTP_201_CREATED)
async def create_script(data: ScriptCreate, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await insert_script(session, actor, data.model_dump(mode="json", exclude_unset=True))


@router.get("/scripts/{script_id}", response_model=WorkItemRead)
async def read_script(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return _work_item(await get_script(session, script_id), actor)


@router.patch("/scripts/{script_id}", response_model=ScriptRead)
async def patch_script(
    script_id: str, data: ScriptUpdate, session: AsyncSession = SessionDep, actor: Actor = ActorDep
):
    return await update_script_content(session, actor, script_id, data.model_dump(mode="json", exclude_unset=True))


@router.delete("/scripts/{script_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_script(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    await delete_script(session, actor, script_id)


@router.get("/work", response_model=list[WorkItemRead])
async def work_board(
    status_filter: ScriptStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = SessionDep,
    actor: Actor = ActorDep,
):
    """Scripts in the work pipeline, each with the transitions open to the caller."""
    scripts = await list_scripts(session, in_pipeline=True, status=status_filter)
    # grouped by stage, newest first within a stage
    scripts.sort(key=lambda s: pipeline_rank(status_of(s)))
    return [_work_item(s, actor) for s in scripts]


@router.put("/scripts/{script_id}/youtube", response_model=ScriptRead)
async def set_youtube_link(
    script_id: str, data: YouTubeLinkUpdate, session: AsyncSession = SessionDep, actor: Actor = ActorDep
):
    profile = await get_profile(session, actor.id)
    api_key = profile.youtube_api_key or get_settings().youtube_api_key
    return await attach_youtube_link(session, actor, script_id, data.link, api_key)
