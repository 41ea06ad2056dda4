from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.errors import AuthorizationError, NotFoundError, ValidationError
from scriptdesk.models import AIProvider, Profile, UserRole
from scriptdesk.services.permissions import ADMIN_ROLES, Actor, require_role

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = frozenset({
    "full_name",
    "gemini_api_key",
    "openrouter_api_key",
    "primary_provider",
    "youtube_api_key",
})

ASSIGNABLE_ROLES = frozenset({UserRole.manager, UserRole.content_creator, UserRole.editor})


async def get_profile(session: AsyncSession, user_id: str) -> Profile:
    profile = await session.get(Profile, user_id)
    if profile is None:
        raise NotFoundError.for_entity("Profile", user_id)
    return profile


async def resolve_actor(session: AsyncSession, user_id: str) -> Actor:
    """Identity/role lookup used to build the explicit actor for each request."""
    return Actor.from_profile(await get_profile(session, user_id))


async def list_profiles(session: AsyncSession) -> list[Profile]:
    result = await session.execute(select(Profile).order_by(Profile.full_name.asc(), Profile.email.asc()))
    return list(result.scalars().all())


async def create_profile(
    session: AsyncSession,
    *,
    user_id: str | None = None,
    email: str | None = None,
    full_name: str | None = None,
    role: UserRole | None = None,
) -> Profile:
    """Insert a profile row; normally done once when the auth provider signs a user up."""
    profile = Profile(
        email=email,
        full_name=full_name,
        role=role.value if role else None,
    )
    if user_id:
        profile.id = user_id
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


async def update_settings(session: AsyncSession, actor: Actor, patch: dict[str, Any]) -> Profile:
    """Update the actor's own display name, provider credentials and primary provider."""
    unknown = sorted(set(patch) - SETTINGS_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown profile settings: {', '.join(unknown)}")
    provider = patch.get("primary_provider")
    if provider is not None:
        try:
            patch["primary_provider"] = AIProvider(provider).value
        except ValueError as exc:
            raise ValidationError(f"Unknown AI provider: {provider}") from exc

    profile = await get_profile(session, actor.id)
    for field, value in patch.items():
        # Blank credentials are stored as NULL so the fallback order skips them.
        if isinstance(value, str) and field.endswith("_api_key"):
            value = value.strip() or None
        setattr(profile, field, value)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


async def update_role(session: AsyncSession, actor: Actor, user_id: str, role: UserRole) -> Profile:
    require_role(actor, ADMIN_ROLES, "change user roles")
    if user_id == actor.id:
        raise AuthorizationError("You cannot change your own role")
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"Role '{role.value}' cannot be assigned")

    profile = await get_profile(session, user_id)
    if profile.role == UserRole.admin.value:
        raise AuthorizationError("Administrator roles cannot be changed")
    profile.role = role.value
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    logger.info(f"[profiles] {actor.id} set role of {user_id} to {role.value}")
    return profile
