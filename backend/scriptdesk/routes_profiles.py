from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.deps import ActorDep, SessionDep
from scriptdesk.models import Profile
from scriptdesk.schemas import ProfileRead, ProfileSettingsRead, ProfileSettingsUpdate, RoleUpdate
from scriptdesk.services import profiles
from scriptdesk.services.permissions import Actor

router = APIRouter(prefix="/api", tags=["profiles"])


def _settings_view(profile: Profile) -> ProfileSettingsRead:
    # Keys are write-only over the API; only their presence is reported.
    return ProfileSettingsRead(
        id=profile.id,
        role=profile.role,
        full_name=profile.full_name,
        email=profile.email,
        primary_provider=profile.primary_provider,
        has_gemini_api_key=bool(profile.gemini_api_key),
        has_openrouter_api_key=bool(profile.openrouter_api_key),
        has_youtube_api_key=bool(profile.youtube_api_key),
    )


@router.get("/profiles/me", response_model=ProfileSettingsRead)
async def read_me(session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return _settings_view(await profiles.get_profile(session, actor.id))


@router.patch("/profiles/me", response_model=ProfileSettingsRead)
async def update_me(data: ProfileSettingsUpdate, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    patch = data.model_dump(mode="json", exclude_unset=True)
    return _settings_view(await profiles.update_settings(session, actor, patch))


@router.get("/profiles", response_model=list[ProfileRead])
async def list_profiles(session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await profiles.list_profiles(session)


@router.put("/profiles/{user_id}/role", response_model=ProfileRead)
async def change_role(user_id: str, data: RoleUpdate, session: AsyncSession = SessionDep, actor: Actor = ActorDep):
    return await profiles.update_role(session, actor, user_id, data.role)
