"""
Work pipeline state machine.

    (unset) -> todo -> content_creation -> ready_for_edit -> editing
            -> ready_to_publish -> published

ready_for_edit and ready_to_publish are reached as the side effect of
completing the preceding phase; they are never claimed on their own.

Every transition is its own procedure and runs the same protocol:
  1. load the row (NotFoundError)
  2. check the starting state (IllegalTransitionError)
  3. check eligibility from RULES (AuthorizationError)
  4. compare-and-swap on the expected status (and claimant id for completes);
     a lost race surfaces as IllegalTransitionError, never as a silent retry

Phase timestamps are append-only: each one is written by exactly one
transition and no transition clears it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from scriptdesk.errors import AuthorizationError, IllegalTransitionError, NotFoundError
from scriptdesk.models import PIPELINE_ORDER, Script, ScriptStatus, UserRole
from scriptdesk.services.permissions import Actor, as_utc, utcnow
from scriptdesk.services.scripts import ConditionalResult, conditional_update_script, get_script

logger = logging.getLogger(__name__)


class Transition(str, Enum):
    send_to_work = "send_to_work"
    claim_content = "claim_content"
    complete_content = "complete_content"
    claim_edit = "claim_edit"
    complete_edit = "complete_edit"
    publish = "publish"


@dataclass(frozen=True)
class TransitionRule:
    from_status: ScriptStatus | None
    to_status: ScriptStatus
    # Role gate. None means the rule is identity-gated instead.
    roles: frozenset[UserRole] | None = None
    # Identity gate: actor.id must equal this column of the row.
    claimant_field: str | None = None
    # Column that records the claiming actor.
    assign_field: str | None = None
    # Timestamp column written by this transition.
    stamp_field: str | None = None
    # Timestamp the new stamp must not precede.
    not_before_field: str | None = None
    verb: str = ""


RULES: dict[Transition, TransitionRule] = {
    Transition.send_to_work: TransitionRule(
        from_status=None,
        to_status=ScriptStatus.todo,
        roles=frozenset({UserRole.admin, UserRole.manager}),
        verb="send to work",
    ),
    Transition.claim_content: TransitionRule(
        from_status=ScriptStatus.todo,
        to_status=ScriptStatus.content_creation,
        roles=frozenset({UserRole.content_creator, UserRole.manager, UserRole.admin}),
        assign_field="content_creator_id",
        stamp_field="content_assigned_at",
        verb="claim content",
    ),
    Transition.complete_content: TransitionRule(
        from_status=ScriptStatus.content_creation,
        to_status=ScriptStatus.ready_for_edit,
        claimant_field="content_creator_id",
        stamp_field="content_completed_at",
        not_before_field="content_assigned_at",
        verb="complete content",
    ),
    Transition.claim_edit: TransitionRule(
        from_status=ScriptStatus.ready_for_edit,
        to_status=ScriptStatus.editing,
        roles=frozenset({UserRole.editor, UserRole.manager, UserRole.admin}),
        assign_field="editor_id",
        stamp_field="edit_assigned_at",
        verb="claim editing",
    ),
    Transition.complete_edit: TransitionRule(
        from_status=ScriptStatus.editing,
        to_status=ScriptStatus.ready_to_publish,
        claimant_field="editor_id",
        stamp_field="edit_completed_at",
        not_before_field="edit_assigned_at",
        verb="complete editing",
    ),
    Transition.publish: TransitionRule(
        from_status=ScriptStatus.ready_to_publish,
        to_status=ScriptStatus.published,
        roles=frozenset({UserRole.admin, UserRole.manager}),
        stamp_field="published_at",
        not_before_field="edit_completed_at",
        verb="publish",
    ),
}


def status_of(script: Script) -> ScriptStatus | None:
    return ScriptStatus(script.status) if script.status else None


def pipeline_rank(status: ScriptStatus | None) -> int:
    """Position in the forward order; -1 for scripts outside the pipeline."""
    if status is None:
        return -1
    return PIPELINE_ORDER.index(status)


def _state_matches(rule: TransitionRule, script: Script) -> bool:
    return status_of(script) == rule.from_status


def _is_eligible(rule: TransitionRule, actor: Actor, script: Script) -> bool:
    if rule.claimant_field is not None:
        return getattr(script, rule.claimant_field) == actor.id
    return actor.role is not None and actor.role in (rule.roles or frozenset())


def can_transition(transition: Transition, actor: Actor, script: Script) -> bool:
    rule = RULES[transition]
    return _state_matches(rule, script) and _is_eligible(rule, actor, script)


def available_transitions(actor: Actor, script: Script) -> list[Transition]:
    return [t for t in Transition if can_transition(t, actor, script)]


def _describe(status: ScriptStatus | None) -> str:
    return status.value if status else "not in the work pipeline"


def _stamp(rule: TransitionRule, script: Script, now: datetime) -> datetime:
    stamp = as_utc(now)
    if rule.not_before_field:
        floor = as_utc(getattr(script, rule.not_before_field))
        if floor is not None and stamp < floor:
            logger.warning(
                f"[pipeline] clock skew on {script.id}: {rule.stamp_field} {stamp.isoformat()} "
                f"precedes {rule.not_before_field} {floor.isoformat()}, clamping"
            )
            stamp = floor
    return stamp


async def apply_transition(
    session: AsyncSession,
    transition: Transition,
    script_id: str,
    actor: Actor,
    *,
    now: datetime | None = None,
) -> Script:
    rule = RULES[transition]
    script = await get_script(session, script_id)

    current = status_of(script)
    if current != rule.from_status:
        raise IllegalTransitionError(
            f"Cannot {rule.verb}: script {script_id} is {_describe(current)}, "
            f"expected {_describe(rule.from_status)}"
        )

    if not _is_eligible(rule, actor, script):
        if rule.claimant_field is not None:
            raise AuthorizationError(
                f"Cannot {rule.verb}: script {script_id} was claimed by another user"
            )
        role = actor.role.value if actor.role else "none"
        raise AuthorizationError(f"Role '{role}' is not allowed to {rule.verb}")

    values: dict = {"status": rule.to_status.value, "last_modified_by": actor.id}
    criteria = []
    if rule.assign_field:
        values[rule.assign_field] = actor.id
        # A claimant is recorded exactly once per phase.
        criteria.append(getattr(Script, rule.assign_field).is_(None))
    if rule.claimant_field:
        criteria.append(getattr(Script, rule.claimant_field) == actor.id)
    if rule.stamp_field:
        values[rule.stamp_field] = _stamp(rule, script, now or utcnow())

    outcome, updated = await conditional_update_script(session, script_id, rule.from_status, values, *criteria)
    if outcome is ConditionalResult.not_found:
        raise NotFoundError.for_entity("Script", script_id)
    if outcome is ConditionalResult.conflict:
        logger.info(f"[pipeline] {transition.value} on {script_id} by {actor.id} lost the race")
        raise IllegalTransitionError(
            f"Cannot {rule.verb}: script {script_id} is no longer claimable, it was changed by someone else"
        )

    logger.info(
        f"[pipeline] {script_id}: {_describe(rule.from_status)} -> {rule.to_status.value} "
        f"({transition.value} by {actor.id})"
    )
    return updated


async def send_to_work(session: AsyncSession, script_id: str, actor: Actor, *, now: datetime | None = None) -> Script:
    return await apply_transition(session, Transition.send_to_work, script_id, actor, now=now)


async def claim_content(session: AsyncSession, script_id: str, actor: Actor, *, now: datetime | None = None) -> Script:
    return await apply_transition(session, Transition.claim_content, script_id, actor, now=now)


async def complete_content(session: AsyncSession, script_id: str, actor: Actor, *, now: datetime | None = None) -> Script:
    return await apply_transition(session, Transition.complete_content, script_id, actor, now=now)


async def claim_edit(session: AsyncSession, script_id: str, actor: Actor, *, now: datetime | None = None) -> Script:
    return await apply_transition(session, Transition.claim_edit, script_id, actor, now=now)


async def complete_edit(session: AsyncSession, script_id: str, actor: Actor, *, now: datetime | None = None) -> Script:
    return await apply_transition(session, Transition.complete_edit, script_id, actor, now=now)


async def publish_script(session: AsyncSession, script_id: str, actor: Actor, *, now: datetime | None = None) -> Script:
    return await apply_transition(session, Transition.publish, script_id, actor, now=now)
