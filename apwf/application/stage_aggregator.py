"""Stage aggregation: participant rows -> ordered stage view.

The aggregator is a pure function of (Approval, Participant[]). It keeps no
cache; callers rebuild the view after every load so per-approver bookkeeping
can never drift from the store's authoritative ``approval.status``.

Two passes:
1. Raw status per stage, from the stage's approver decisions only.
2. Override from the approval: future stages of an approval in review are
   LOCKED; unresolved stages of a terminal approval take its outcome.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from apwf.domain.constants import DEFAULT_STAGE_NAME_TEMPLATE
from apwf.domain.errors import InconsistentStateError
from apwf.domain.models.approval import (
    Approval,
    ApprovalStatus,
    Decision,
    Participant,
    ParticipantRole,
)
from apwf.domain.models.stage import Stage, StageStatus

logger = logging.getLogger(__name__)


def group_participants(participants: Iterable[Participant]) -> list[Stage]:
    """Group participant rows into stages, ascending by stage number.

    Stage display metadata is first-wins: the first non-empty ``stage_name``
    and ``stage_message`` seen for a stage are kept.
    """
    by_number: dict[int, Stage] = {}
    for participant in participants:
        stage = by_number.get(participant.stage)
        if stage is None:
            stage = Stage(stage=participant.stage)
            by_number[participant.stage] = stage

        if not stage.name and participant.stage_name:
            stage.name = participant.stage_name
        if not stage.message and participant.stage_message:
            stage.message = participant.stage_message

        if participant.role == ParticipantRole.APPROVER:
            stage.approvers.append(participant)
        elif participant.role == ParticipantRole.OBSERVER:
            stage.observers.append(participant)
        else:
            logger.debug(
                f"Ignoring participant {participant.user_id} with role {participant.role!r}"
            )

    return [by_number[number] for number in sorted(by_number)]


def raw_stage_status(approvers: list[Participant]) -> StageStatus:
    """Status derived from approver decisions alone.

    A stage without approvers is always PENDING. A single rejection decides
    the stage; approval needs every approver.
    """
    if not approvers:
        return StageStatus.PENDING
    if any(p.decision == Decision.REJECT for p in approvers):
        return StageStatus.REJECTED
    if all(p.decision != Decision.NONE for p in approvers):
        return StageStatus.APPROVED
    return StageStatus.PENDING


def latest_decision_time(approvers: list[Participant]) -> datetime | None:
    decided = [p.decided_at for p in approvers if p.decided_at is not None]
    return max(decided) if decided else None


def apply_status_override(
    approval: Approval, stage_number: int, raw: StageStatus
) -> StageStatus:
    """Reconcile a stage's raw status with the approval's own status."""
    if approval.status == ApprovalStatus.REVIEW and stage_number > approval.current_stage:
        return StageStatus.LOCKED
    if approval.status == ApprovalStatus.APPROVED and raw == StageStatus.PENDING:
        return StageStatus.APPROVED
    if approval.status == ApprovalStatus.RETURNED and raw == StageStatus.PENDING:
        return StageStatus.REJECTED
    return raw


def _consistency_problems(stage: Stage) -> list[InconsistentStateError]:
    problems: list[InconsistentStateError] = []
    if stage.stage <= 0:
        problems.append(
            InconsistentStateError(stage.stage, "stage number must be positive")
        )
    if not stage.approvers and not stage.observers:
        problems.append(
            InconsistentStateError(stage.stage, "stage has no approvers and no observers")
        )
    return problems


def aggregate(
    approval: Approval,
    participants: Iterable[Participant],
    *,
    default_name: str = DEFAULT_STAGE_NAME_TEMPLATE,
    strict: bool = False,
) -> list[Stage]:
    """Build the ordered stage view for an approval.

    Malformed stages (non-positive number, or nobody assigned) are read as
    PENDING before the override pass and carry diagnostics instead of
    failing the whole view, so a terminal approval still never renders a
    pending stage. With ``strict=True`` the first such problem is raised
    as InconsistentStateError.
    """
    stages = group_participants(participants)

    for stage in stages:
        stage.decided_at = latest_decision_time(stage.approvers)
        if not stage.name:
            stage.name = default_name.format(number=stage.stage)

        problems = _consistency_problems(stage)
        if problems:
            if strict:
                raise problems[0]
            for problem in problems:
                logger.warning(f"Approval {approval.id}: {problem}")
                stage.diagnostics.append(str(problem))
            stage.status = apply_status_override(approval, stage.stage, StageStatus.PENDING)
            continue

        raw = raw_stage_status(stage.approvers)
        stage.status = apply_status_override(approval, stage.stage, raw)

    return stages
