"""
Request-scoped dependencies.

Authentication is handled upstream (the hosted auth provider issues the
user id); the API receives it in the X-User-Id header and looks up the
profile to build the explicit Actor passed to every service call.
"""
from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.db import get_session
from scriptdesk.errors import NotFoundError
from scriptdesk.services.permissions import Actor
from scriptdesk.services.profiles import resolve_actor

SessionDep = Depends(get_session)


async def get_current_actor(
    x_user_id: str | None = Header(default=None),
    session: AsyncSession = SessionDep,
) -> Actor:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return await resolve_actor(session, x_user_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user") from exc


ActorDep = Depends(get_current_actor)
