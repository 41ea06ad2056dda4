"""
Actor identity and role checks for library (script/folder/style) mutations.

Pipeline eligibility lives in the transition table in services/pipeline.py;
this module only covers the CRUD side.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from scriptdesk.errors import AuthorizationError
from scriptdesk.models import UserRole


@dataclass(frozen=True)
class Actor:
    """The user performing an operation. Passed explicitly to every service call."""

    id: str
    role: UserRole | None = None

    @classmethod
    def from_profile(cls, profile) -> "Actor":
        role = UserRole(profile.role) if profile.role else None
        return cls(id=profile.id, role=role)


AUTHOR_ROLES = frozenset({UserRole.admin, UserRole.manager, UserRole.content_creator, UserRole.editor})
LIBRARY_MANAGER_ROLES = frozenset({UserRole.admin, UserRole.manager})
ADMIN_ROLES = frozenset({UserRole.admin})


def has_role(actor: Actor, roles: Iterable[UserRole]) -> bool:
    return actor.role is not None and actor.role in frozenset(roles)


def require_role(actor: Actor, roles: Iterable[UserRole], action: str) -> None:
    if not has_role(actor, roles):
        role = actor.role.value if actor.role else "none"
        raise AuthorizationError(f"Role '{role}' is not allowed to {action}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
