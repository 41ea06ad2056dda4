import pytest
from sqlalchemy import select

from scriptdesk.errors import AuthorizationError, NotFoundError, ValidationError
from scriptdesk.models import Folder, Script
from scriptdesk.services import folders
from scriptdesk.services.scripts import get_script


async def _tree(session, actor):
    """root -> (a -> a1, b); plus an unrelated folder."""
    root = await folders.create_folder(session, actor, "Root")
    a = await folders.create_folder(session, actor, "A", root.id)
    a1 = await folders.create_folder(session, actor, "A1", a.id)
    b = await folders.create_folder(session, actor, "B", root.id)
    other = await folders.create_folder(session, actor, "Other")
    return root, a, a1, b, other


async def test_cascade_delete_removes_subtree_and_scripts(session, actors, make_script):
    root, a, a1, b, other = await _tree(session, actors["manager"])
    in_root = await make_script("in root", folder_id=root.id)
    in_a1 = await make_script("deep", folder_id=a1.id)
    in_b = await make_script("in b", folder_id=b.id)
    kept = await make_script("elsewhere", folder_id=other.id)
    loose = await make_script("no folder")

    result = await folders.delete_folder(session, actors["manager"], root.id)

    assert set(result.folder_ids) == {root.id, a.id, a1.id, b.id}
    assert set(result.script_ids) == {in_root.id, in_a1.id, in_b.id}

    remaining_folders = (await session.execute(select(Folder.id))).scalars().all()
    remaining_scripts = (await session.execute(select(Script.id))).scalars().all()
    assert remaining_folders == [other.id]
    assert set(remaining_scripts) == {kept.id, loose.id}
    for folder in (root, a, a1):
        with pytest.raises(NotFoundError):
            await folders.get_folder(session, folder.id)
    with pytest.raises(NotFoundError):
        await get_script(session, in_a1.id)


async def test_collect_subtree_is_breadth_first(session, actors):
    root, a, a1, b, _ = await _tree(session, actors["admin"])
    ids = await folders.collect_subtree(session, root.id)
    assert ids[0] == root.id
    assert set(ids[1:3]) == {a.id, b.id}
    assert ids[3] == a1.id


async def test_delete_requires_manager(session, actors):
    folder = await folders.create_folder(session, actors["creator"], "Mine")
    with pytest.raises(AuthorizationError):
        await folders.delete_folder(session, actors["creator"], folder.id)
    with pytest.raises(AuthorizationError):
        await folders.rename_folder(session, actors["editor"], folder.id, "New")


async def test_rename_and_list(session, actors):
    root, a, _, b, other = await _tree(session, actors["admin"])
    await folders.rename_folder(session, actors["manager"], b.id, "  Alpha ")

    children = await folders.list_folders(session, parent_id=root.id)
    assert [f.name for f in children] == ["A", "Alpha"]
    top = await folders.list_folders(session, root_only=True)
    assert {f.id for f in top} == {root.id, other.id}


async def test_create_validates_parent_and_name(session, actors):
    with pytest.raises(NotFoundError):
        await folders.create_folder(session, actors["creator"], "Orphan", "missing")
    with pytest.raises(ValidationError):
        await folders.create_folder(session, actors["creator"], "   ")


async def test_delete_unknown_folder(session, actors):
    with pytest.raises(NotFoundError):
        await folders.delete_folder(session, actors["admin"], "missing")
