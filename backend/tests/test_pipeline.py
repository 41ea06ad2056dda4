import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from scriptdesk.errors import AuthorizationError, IllegalTransitionError, NotFoundError
from scriptdesk.models import ScriptStatus
from scriptdesk.services import pipeline
from scriptdesk.services.permissions import as_utc
from scriptdesk.services.pipeline import Transition, available_transitions, can_transition
from scriptdesk.services.scripts import ConditionalResult, conditional_update_script, get_script

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


async def _in_work(make_script, session, actors, title="Draft"):
    script = await make_script(title)
    return await pipeline.send_to_work(session, script.id, actors["manager"])


async def test_full_pipeline_run(session, actors, make_script):
    script = await make_script("Episode 1")
    assert script.status is None

    script = await pipeline.send_to_work(session, script.id, actors["admin"], now=T0)
    assert script.status == ScriptStatus.todo.value

    script = await pipeline.claim_content(session, script.id, actors["creator"], now=T0 + timedelta(minutes=1))
    assert script.status == ScriptStatus.content_creation.value
    assert script.content_creator_id == actors["creator"].id

    script = await pipeline.complete_content(session, script.id, actors["creator"], now=T0 + timedelta(hours=2))
    assert script.status == ScriptStatus.ready_for_edit.value

    script = await pipeline.claim_edit(session, script.id, actors["editor"], now=T0 + timedelta(hours=3))
    assert script.status == ScriptStatus.editing.value
    assert script.editor_id == actors["editor"].id

    script = await pipeline.complete_edit(session, script.id, actors["editor"], now=T0 + timedelta(hours=5))
    assert script.status == ScriptStatus.ready_to_publish.value

    script = await pipeline.publish_script(session, script.id, actors["manager"], now=T0 + timedelta(days=1))
    assert script.status == ScriptStatus.published.value
    assert script.last_modified_by == actors["manager"].id

    stamps = [
        as_utc(script.content_assigned_at),
        as_utc(script.content_completed_at),
        as_utc(script.edit_assigned_at),
        as_utc(script.edit_completed_at),
        as_utc(script.published_at),
    ]
    assert stamps == sorted(stamps)
    assert stamps[0] == T0 + timedelta(minutes=1)
    assert stamps[-1] == T0 + timedelta(days=1)


async def test_second_claim_is_rejected(session, actors, make_script):
    script = await _in_work(make_script, session, actors)
    await pipeline.claim_content(session, script.id, actors["creator"])

    with pytest.raises(IllegalTransitionError):
        await pipeline.claim_content(session, script.id, actors["creator2"])

    stored = await get_script(session, script.id)
    assert stored.content_creator_id == actors["creator"].id


async def test_concurrent_claims_have_one_winner(session_factory, session, actors, make_script):
    script = await _in_work(make_script, session, actors)

    async def _claim(actor):
        async with session_factory() as own_session:
            try:
                await pipeline.claim_content(own_session, script.id, actor)
                return actor.id
            except IllegalTransitionError:
                return None

    results = await asyncio.gather(_claim(actors["creator"]), _claim(actors["creator2"]))
    winners = [r for r in results if r is not None]
    assert len(winners) == 1

    async with session_factory() as fresh:
        stored = await get_script(fresh, script.id)
        assert stored.content_creator_id == winners[0]
        assert stored.status == ScriptStatus.content_creation.value


async def test_conditional_update_only_matches_expected_status(session, actors, make_script):
    script = await _in_work(make_script, session, actors)
    values = {"status": ScriptStatus.content_creation.value, "content_creator_id": actors["creator"].id}

    outcome, updated = await conditional_update_script(session, script.id, ScriptStatus.todo, values)
    assert outcome is ConditionalResult.success
    assert updated.status == ScriptStatus.content_creation.value

    outcome, updated = await conditional_update_script(
        session, script.id, ScriptStatus.todo, {"content_creator_id": actors["creator2"].id}
    )
    assert outcome is ConditionalResult.conflict
    assert updated is None

    outcome, _ = await conditional_update_script(session, "missing", ScriptStatus.todo, values)
    assert outcome is ConditionalResult.not_found


async def test_only_claimant_completes(session, actors, make_script):
    script = await _in_work(make_script, session, actors)
    await pipeline.claim_content(session, script.id, actors["creator"])

    for other in ("creator2", "manager", "admin"):
        with pytest.raises(AuthorizationError):
            await pipeline.complete_content(session, script.id, actors[other])

    script = await pipeline.complete_content(session, script.id, actors["creator"])
    await pipeline.claim_edit(session, script.id, actors["editor"])
    with pytest.raises(AuthorizationError):
        await pipeline.complete_edit(session, script.id, actors["editor2"])


@pytest.mark.parametrize("actor", ["creator", "editor", "norole"])
async def test_send_to_work_requires_manager(session, actors, make_script, actor):
    script = await make_script()
    with pytest.raises(AuthorizationError):
        await pipeline.send_to_work(session, script.id, actors[actor])


async def test_role_gates_on_claims_and_publish(session, actors, make_script):
    script = await _in_work(make_script, session, actors)
    with pytest.raises(AuthorizationError):
        await pipeline.claim_content(session, script.id, actors["editor"])

    await pipeline.claim_content(session, script.id, actors["manager"])
    await pipeline.complete_content(session, script.id, actors["manager"])
    with pytest.raises(AuthorizationError):
        await pipeline.claim_edit(session, script.id, actors["creator"])

    await pipeline.claim_edit(session, script.id, actors["admin"])
    await pipeline.complete_edit(session, script.id, actors["admin"])
    with pytest.raises(AuthorizationError):
        await pipeline.publish_script(session, script.id, actors["editor"])
    published = await pipeline.publish_script(session, script.id, actors["admin"])
    assert published.status == ScriptStatus.published.value


async def test_no_backward_or_skipping_transitions(session, actors, make_script):
    script = await make_script()
    with pytest.raises(IllegalTransitionError):
        await pipeline.claim_content(session, script.id, actors["creator"])
    with pytest.raises(IllegalTransitionError):
        await pipeline.publish_script(session, script.id, actors["admin"])

    await pipeline.send_to_work(session, script.id, actors["admin"])
    with pytest.raises(IllegalTransitionError):
        await pipeline.send_to_work(session, script.id, actors["admin"])
    with pytest.raises(IllegalTransitionError):
        await pipeline.claim_edit(session, script.id, actors["editor"])

    await pipeline.claim_content(session, script.id, actors["creator"])
    await pipeline.complete_content(session, script.id, actors["creator"])
    with pytest.raises(IllegalTransitionError):
        await pipeline.complete_content(session, script.id, actors["creator"])
    with pytest.raises(IllegalTransitionError):
        await pipeline.claim_content(session, script.id, actors["creator2"])


async def test_unknown_script_is_not_found(session, actors):
    with pytest.raises(NotFoundError):
        await pipeline.claim_content(session, "does-not-exist", actors["creator"])


async def test_completion_is_clamped_to_assignment(session, actors, make_script):
    script = await _in_work(make_script, session, actors)
    await pipeline.claim_content(session, script.id, actors["creator"], now=T0)
    script = await pipeline.complete_content(session, script.id, actors["creator"], now=T0 - timedelta(minutes=5))
    assert as_utc(script.content_completed_at) == T0


async def test_claim_does_not_touch_other_phase_stamps(session, actors, make_script):
    script = await _in_work(make_script, session, actors)
    script = await pipeline.claim_content(session, script.id, actors["creator"], now=T0)
    assert script.content_completed_at is None
    assert script.edit_assigned_at is None
    assert script.published_at is None


async def test_available_transitions_follow_state_and_role(session, actors, make_script):
    script = await make_script()
    assert available_transitions(actors["manager"], script) == [Transition.send_to_work]
    assert available_transitions(actors["creator"], script) == []

    script = await pipeline.send_to_work(session, script.id, actors["manager"])
    assert can_transition(Transition.claim_content, actors["creator"], script)
    assert not can_transition(Transition.claim_content, actors["editor"], script)

    script = await pipeline.claim_content(session, script.id, actors["creator"])
    assert available_transitions(actors["creator"], script) == [Transition.complete_content]
    assert available_transitions(actors["creator2"], script) == []
    assert available_transitions(actors["admin"], script) == []
