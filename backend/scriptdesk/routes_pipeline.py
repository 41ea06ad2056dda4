"""One endpoint per pipeline transition. Each call is a single compare-and-swap."""
from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.schemas import ScriptRead
from scriptdesk.services import pipeline
from scriptdesk.services.permissions import Actor

router = APIRouter(prefix="/api/scripts/{script_id}", tags=["pipeline"])


@router.post("/send-to-work", response_model=ScriptRead)
async def send_to_work(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await pipeline.send_to_work(session, script_id, actor)


@router.post("/claim-content", response_model=ScriptRead)
async def claim_content(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await pipeline.claim_content(session, script_id, actor)


@router.post("/complete-content", response_model=ScriptRead)
async def complete_content(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await pipeline.complete_content(session, script_id, actor)


@router.post("/claim-edit", response_model=ScriptRead)
async def claim_edit(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await pipeline.claim_edit(session, script_id, actor)


@router.post("/complete-edit", response_model=ScriptRead)
async def complete_edit(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await pipeline.complete_edit(session, script_id, actor)


@router.post("/publish", response_model=ScriptRead)
async def publish(script_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await pipeline.publish_script(session, script_id, actor)
