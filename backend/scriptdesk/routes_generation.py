"""
AI generation endpoints. Results are returned to the caller and never
written to a script; saving is a separate content update.
"""
from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.models import KeywordStyle, RewriteStyle
from scriptdesk.schemas import (
    KeywordSplitRequest,
    OutlineRequest,
    PacingPoint,
    RewriteRequest,
    ScriptChunk,
    ScriptDetailsResponse,
    ScriptFromOutlineRequest,
    ScriptTextRequest,
    TextResponse,
)
from scriptdesk.services import script_generation
from scriptdesk.services.ai_gateway import ProviderConfig
from scriptdesk.services.permissions import Actor
from scriptdesk.services.profiles import get_profile
from scriptdesk.services.styles import get_style

router = APIRouter(prefix="/api/generate", tags=["generation"])


async def _provider_config(session: AsyncSession, actor: Actor) -> ProviderConfig:
    return ProviderConfig.from_profile(await get_profile(session, actor.id))


async def _style_prompt(session: AsyncSession, actor: Actor, model, style_id: str | None, inline: str | None) -> str | None:
    if style_id:
        return (await get_style(session, actor, model, style_id)).prompt
    return inline or None


@router.post("/details", response_model=ScriptDetailsResponse)
async def title_summary_timeline(data: ScriptTextRequest, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    config = await _provider_config(session, actor)
    return await script_generation.generate_title_summary_and_timeline(config, data.script)


@router.post("/rewrite", response_model=TextResponse)
async def rewrite(data: RewriteRequest, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    config = await _provider_config(session, actor)
    style_prompt = await _style_prompt(session, actor, RewriteStyle, data.style_id, data.style_prompt)
    return TextResponse(text=await script_generation.rewrite_script(config, data.script, style_prompt))


@router.post("/outline", response_model=TextResponse)
async def outline(data: OutlineRequest, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    config = await _provider_config(session, actor)
    return TextResponse(text=await script_generation.generate_outline(config, data.prompt))


@router.post("/script-from-outline", response_model=TextResponse)
async def script_from_outline(
    data: ScriptFromOutlineRequest, session: AsyncSession = SessionDep, actor: Actor = ActorDep
):
    config = await _provider_config(session, actor)
    return TextResponse(text=await script_generation.generate_script_from_outline(config, data.outline, data.prompt))


@router.post("/keywords", response_model=list[ScriptChunk])
async def keywords(data: KeywordSplitRequest, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    config = await _provider_config(session, actor)
    style_prompt = await _style_prompt(session, actor, KeywordStyle, data.style_id, data.style_prompt)
    return await script_generation.generate_keywords_and_split_script(config, data.script, style_prompt)


@router.post("/pacing", response_model=list[PacingPoint])
async def pacing(data: ScriptTextRequest, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    config = await _provider_config(session, actor)
    return await script_generation.analyze_script_pacing(config, data.script)
