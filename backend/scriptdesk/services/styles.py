"""
Per-user prompt presets. RewriteStyle feeds rewrite_script(), KeywordStyle
feeds generate_keywords_and_split_script(). Both tables share one shape, so
every operation takes the model class.
"""
from __future__ import annotations

from typing import Any, Type, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.errors import NotFoundError, ValidationError
from scriptdesk.models import KeywordStyle, RewriteStyle
from scriptdesk.services.permissions import Actor

StyleModel = Union[Type[RewriteStyle], Type[KeywordStyle]]

STYLE_KINDS: dict[str, StyleModel] = {
    "rewrite": RewriteStyle,
    "keyword": KeywordStyle,
}


def _validate(data: dict[str, Any]) -> dict[str, Any]:
    cleaned = {}
    for field in ("name", "prompt"):
        if field not in data:
            continue
        value = (data[field] or "").strip()
        if not value:
            raise ValidationError(f"Style {field} must not be empty")
        cleaned[field] = value
    return cleaned


async def list_styles(session: AsyncSession, actor: Actor, model: StyleModel) -> list:
    result = await session.execute(
        select(model).where(model.user_id == actor.id).order_by(model.name.asc())
    )
    return list(result.scalars().all())


async def get_style(session: AsyncSession, actor: Actor, model: StyleModel, style_id: str):
    style = await session.get(model, style_id)
    # Another user's style is reported as missing.
    if style is None or style.user_id != actor.id:
        raise NotFoundError.for_entity("Style", style_id)
    return style


async def create_style(session: AsyncSession, actor: Actor, model: StyleModel, data: dict[str, Any]):
    values = _validate(data)
    if set(values) != {"name", "prompt"}:
        raise ValidationError("Style name and prompt are required")
    style = model(user_id=actor.id, **values)
    session.add(style)
    await session.commit()
    await session.refresh(style)
    return style


async def update_style(session: AsyncSession, actor: Actor, model: StyleModel, style_id: str, data: dict[str, Any]):
    style = await get_style(session, actor, model, style_id)
    for field, value in _validate(data).items():
        setattr(style, field, value)
    session.add(style)
    await session.commit()
    await session.refresh(style)
    return style


async def delete_style(session: AsyncSession, actor: Actor, model: StyleModel, style_id: str) -> None:
    style = await get_style(session, actor, model, style_id)
    await session.delete(style)
    await session.commit()
