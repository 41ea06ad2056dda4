import os

# Must be set before scriptdesk.settings is first imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("CELERY_ENABLED", "false")

import pytest

from scriptdesk import models  # noqa: F401
from scriptdesk.db import Base, create_engine_for, create_session_factory
from scriptdesk.models import UserRole
from scriptdesk.services.permissions import Actor
from scriptdesk.services.profiles import create_profile
from scriptdesk.services.scripts import insert_script

ROLES = {
    "admin": UserRole.admin,
    "manager": UserRole.manager,
    "creator": UserRole.content_creator,
    "creator2": UserRole.content_creator,
    "editor": UserRole.editor,
    "editor2": UserRole.editor,
    "norole": None,
}


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'scriptdesk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def actors(session) -> dict[str, Actor]:
    out = {}
    for name, role in ROLES.items():
        profile = await create_profile(session, email=f"{name}@example.com", full_name=name.title(), role=role)
        out[name] = Actor.from_profile(profile)
    return out


@pytest.fixture
def make_script(session, actors):
    async def _make(title: str = "Draft", author: str = "creator", **data):
        return await insert_script(session, actors[author], {"title": title, **data})

    return _make
