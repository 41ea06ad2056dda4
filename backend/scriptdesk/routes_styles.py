from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.schemas import StyleCreate, StyleRead, StyleUpdate
from scriptdesk.services import styles
from scriptdesk.services.permissions import Actor

router = APIRouter(prefix="/api/styles", tags=["styles"])


def _model_for(kind: str):
    model = styles.STYLE_KINDS.get(kind)
    if model is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown style kind: {kind}")
    return model


@router.get("/{kind}", response_model=list[StyleRead])
async def list_styles(kind: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await styles.list_styles(session, actor, _model_for(kind))


@router.post("/{kind}", response_model=StyleRead, status_code=status.HTTP_201_CREATED)
async def create_style(kind: str, data: StyleCreate, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await styles.create_style(session, actor, _model_for(kind), data.model_dump())


@router.patch("/{kind}/{style_id}", response_model=StyleRead)
async def update_style(
    kind: str, style_id: str, data: StyleUpdate, session: AsyncSession = SessionDep, actor: Actor = ActorDep
):
    return await styles.update_style(session, actor, _model_for(kind), style_id, data.model_dump(exclude_unset=True))


@router.delete("/{kind}/{style_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_style(kind: str, style_id: str, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    await styles.delete_style(session, actor, _model_for(kind), style_id)
