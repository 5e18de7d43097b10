"""Decision gate: may this viewer act on this stage right now?

The viewer is always passed in explicitly.
"""

from collections.abc import Iterable

from apwf.domain.models.approval import Approval, ApprovalStatus, Decision, Participant
from apwf.domain.models.stage import Stage


def is_active_stage(approval: Approval, stage: Stage) -> bool:
    """True for the single stage an approval in review is waiting on."""
    return approval.status == ApprovalStatus.REVIEW and stage.stage == approval.current_stage


def viewer_entry(viewer_id: int | None, stage: Stage) -> Participant | None:
    """The viewer's approver row on this stage, if any."""
    if viewer_id is None:
        return None
    for participant in stage.approvers:
        if participant.user_id == viewer_id:
            return participant
    return None


def can_decide(viewer_id: int | None, approval: Approval, stage: Stage) -> bool:
    if not is_active_stage(approval, stage):
        return False
    entry = viewer_entry(viewer_id, stage)
    return entry is not None and entry.decision == Decision.NONE


def actionable_stage(
    viewer_id: int | None, approval: Approval, stages: Iterable[Stage]
) -> Stage | None:
    """The stage the viewer can decide on, or None.

    Only the active stage can pass the gate, so there is at most one.
    """
    for stage in stages:
        if can_decide(viewer_id, approval, stage):
            return stage
    return None
