import pytest

from scriptdesk.errors import AuthorizationError, NotFoundError, ValidationError
from scriptdesk.models import KeywordStyle, RewriteStyle, UserRole
from scriptdesk.services import profiles, scripts, styles
from scriptdesk.services.folders import create_folder
from scriptdesk.services.pipeline import send_to_work


async def test_new_script_is_outside_pipeline(session, actors, make_script):
    script = await make_script("Pilot", author="editor")
    assert script.status is None
    assert script.title == "Pilot"
    assert script.user_id == actors["editor"].id
    assert script.last_modified_by == actors["editor"].id


async def test_roleless_user_cannot_create(session, actors):
    with pytest.raises(AuthorizationError):
        await scripts.insert_script(session, actors["norole"], {"title": "x"})


async def test_generic_update_rejects_pipeline_fields(session, actors, make_script):
    script = await make_script()
    for field in ("status", "content_creator_id", "published_at", "youtube_views"):
        with pytest.raises(ValidationError):
            await scripts.update_script_content(session, actors["admin"], script.id, {field: None})

    updated = await scripts.update_script_content(session, actors["editor"], script.id, {"note": "tighten intro"})
    assert updated.note == "tighten intro"
    assert updated.last_modified_by == actors["editor"].id


async def test_update_cannot_clear_required_fields(session, actors, make_script):
    script = await make_script("Keep me")
    with pytest.raises(ValidationError):
        await scripts.update_script_content(session, actors["manager"], script.id, {"title": None, "summary": None})

    updated = await scripts.update_script_content(session, actors["manager"], script.id, {"note": None})
    assert updated.title == "Keep me"
    assert updated.note is None


async def test_moving_scripts_needs_manager(session, actors, make_script):
    script = await make_script()
    folder = await create_folder(session, actors["creator"], "Drafts")
    with pytest.raises(AuthorizationError):
        await scripts.update_script_content(session, actors["creator"], script.id, {"folder_id": folder.id})
    moved = await scripts.update_script_content(session, actors["manager"], script.id, {"folder_id": folder.id})
    assert moved.folder_id == folder.id


async def test_list_scripts_filters(session, actors, make_script):
    in_work = await make_script("Moon landing")
    await send_to_work(session, in_work.id, actors["admin"])
    await make_script("Library only")

    assert [s.id for s in await scripts.list_scripts(session, in_pipeline=True)] == [in_work.id]
    assert {s.title for s in await scripts.list_scripts(session, search="moon")} == {"Moon landing"}
    assert len(await scripts.list_scripts(session, root_only=True)) == 2


async def test_delete_script_needs_manager(session, actors, make_script):
    script = await make_script()
    with pytest.raises(AuthorizationError):
        await scripts.delete_script(session, actors["creator"], script.id)
    await scripts.delete_script(session, actors["admin"], script.id)
    with pytest.raises(NotFoundError):
        await scripts.get_script(session, script.id)


async def test_update_settings_normalizes_keys(session, actors):
    profile = await profiles.update_settings(
        session, actors["creator"], {"gemini_api_key": "  ", "openrouter_api_key": "or-1", "primary_provider": "openrouter"}
    )
    assert profile.gemini_api_key is None
    assert profile.openrouter_api_key == "or-1"
    assert profile.primary_provider == "openrouter"

    with pytest.raises(ValidationError):
        await profiles.update_settings(session, actors["creator"], {"primary_provider": "claude"})
    with pytest.raises(ValidationError):
        await profiles.update_settings(session, actors["creator"], {"role": "admin"})


async def test_update_role_rules(session, actors):
    updated = await profiles.update_role(session, actors["admin"], actors["creator"].id, UserRole.editor)
    assert updated.role == UserRole.editor.value

    with pytest.raises(AuthorizationError):
        await profiles.update_role(session, actors["manager"], actors["editor"].id, UserRole.manager)
    with pytest.raises(AuthorizationError):
        await profiles.update_role(session, actors["admin"], actors["admin"].id, UserRole.manager)
    with pytest.raises(ValidationError):
        await profiles.update_role(session, actors["admin"], actors["editor"].id, UserRole.admin)
    with pytest.raises(NotFoundError):
        await profiles.resolve_actor(session, "nobody")


@pytest.mark.parametrize("model", [RewriteStyle, KeywordStyle])
async def test_styles_are_private_to_owner(session, actors, model):
    style = await styles.create_style(session, actors["creator"], model, {"name": " Noir ", "prompt": "Dark tone"})
    assert style.name == "Noir"

    assert [s.id for s in await styles.list_styles(session, actors["creator"], model)] == [style.id]
    assert await styles.list_styles(session, actors["editor"], model) == []
    with pytest.raises(NotFoundError):
        await styles.get_style(session, actors["editor"], model, style.id)

    style = await styles.update_style(session, actors["creator"], model, style.id, {"prompt": "Darker"})
    assert style.prompt == "Darker"
    with pytest.raises(ValidationError):
        await styles.update_style(session, actors["creator"], model, style.id, {"name": ""})

    await styles.delete_style(session, actors["creator"], model, style.id)
    assert await styles.list_styles(session, actors["creator"], model) == []
