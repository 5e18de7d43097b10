"""Presentation adapter: aggregated stages + gate results -> view models."""

from datetime import datetime

from apwf.application.decision_gate import can_decide, is_active_stage, viewer_entry
from apwf.application.decision_protocol import ApprovalSession
from apwf.application.presentation.view_models import (
    ActionOutcome,
    ApprovalDetailView,
    ApprovalSummaryView,
    CommentView,
    StageAction,
    StageView,
)
from apwf.domain.constants import DEFAULT_STAGE_NAME_TEMPLATE
from apwf.domain.directory.user_directory import UserDirectory
from apwf.domain.errors import ApprovalEngineError
from apwf.domain.models.approval import Approval, ApprovalStatus, Decision, Participant
from apwf.domain.models.comment import Comment
from apwf.domain.models.stage import Stage, StageStatus


STAGE_STATUS_LABELS: dict[StageStatus, str] = {
    StageStatus.PENDING: "Pending",
    StageStatus.APPROVED: "Approved",
    StageStatus.REJECTED: "Rejected",
    StageStatus.LOCKED: "Locked",
}

APPROVAL_STATUS_LABELS: dict[ApprovalStatus, str] = {
    ApprovalStatus.DRAFT: "Draft",
    ApprovalStatus.REVIEW: "In review",
    ApprovalStatus.APPROVED: "Approved",
    ApprovalStatus.RETURNED: "Returned",
}

DECISION_LABELS: dict[Decision, str] = {
    Decision.APPROVE: "Approved",
    Decision.REJECT: "Rejected",
}

DATE_FORMAT = "%d.%m.%Y %H:%M"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime(DATE_FORMAT)


def unique_participant_ids(participants: list[Participant]) -> list[int]:
    """User ids in first-seen order; a user on several stages appears once."""
    seen: set[int] = set()
    ordered: list[int] = []
    for p in participants:
        if p.user_id in seen:
            continue
        seen.add(p.user_id)
        ordered.append(p.user_id)
    return ordered


class ApprovalPresenter:
    """Maps engine state to view models for one viewer at a time."""

    def __init__(
        self,
        directory: UserDirectory,
        *,
        stage_label_template: str = DEFAULT_STAGE_NAME_TEMPLATE,
    ) -> None:
        self.directory = directory
        self.stage_label_template = stage_label_template

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def summary(self, approval: Approval) -> ApprovalSummaryView:
        return ApprovalSummaryView(
            id=approval.id,
            document_id=approval.document_id,
            status=approval.status.value,
            status_label=APPROVAL_STATUS_LABELS[approval.status],
            message=approval.message,
            updated_at=format_timestamp(approval.last_activity),
        )

    def stage_view(
        self,
        approval: Approval,
        stage: Stage,
        viewer_id: int | None,
        *,
        busy: bool = False,
    ) -> StageView:
        active = is_active_stage(approval, stage)
        actions: list[StageAction] = []
        if not busy and can_decide(viewer_id, approval, stage):
            actions = [StageAction.APPROVE, StageAction.REJECT]

        viewer_decision = None
        entry = viewer_entry(viewer_id, stage)
        if active and entry is not None and entry.has_decided:
            viewer_decision = DECISION_LABELS[entry.decision]

        return StageView(
            number=stage.stage,
            label=self.stage_label_template.format(number=stage.stage),
            name=stage.name,
            message=stage.message,
            status=stage.status,
            status_label=STAGE_STATUS_LABELS[stage.status],
            decided_at=format_timestamp(stage.decided_at),
            approvers=[self.directory.name(p.user_id) for p in stage.approvers],
            observers=[self.directory.name(p.user_id) for p in stage.observers],
            is_current=active,
            actions=actions,
            viewer_decision=viewer_decision,
            diagnostics=list(stage.diagnostics),
        )

    def comment_view(self, comment: Comment) -> CommentView:
        return CommentView(
            author=comment.author or self.directory.name(comment.user_id),
            text=comment.text,
            created_at=format_timestamp(comment.created_at),
        )

    def detail(self, session: ApprovalSession, viewer_id: int | None) -> ApprovalDetailView:
        """Full detail view of a loaded session.

        Raises:
            ValueError: if the session has not been opened yet
        """
        approval = session.approval
        if approval is None:
            raise ValueError(f"Approval {session.approval_id} has not been loaded")

        stages = [
            self.stage_view(approval, stage, viewer_id, busy=session.busy)
            for stage in session.stages
        ]
        actionable = next((s.number for s in stages if s.actions), None)

        return ApprovalDetailView(
            id=approval.id,
            document_id=approval.document_id,
            status=approval.status.value,
            status_label=APPROVAL_STATUS_LABELS[approval.status],
            initiator=self.directory.name(approval.created_by),
            request_message=approval.message or "-",
            updated_at=format_timestamp(approval.last_activity),
            participants=[
                self.directory.name(user_id)
                for user_id in unique_participant_ids(session.participants)
            ],
            stages=stages,
            comments=[self.comment_view(c) for c in session.comments],
            actionable_stage=actionable,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def decide(
        self,
        session: ApprovalSession,
        stage: int | None,
        decision: StageAction | str,
        comment: str | None,
    ) -> ActionOutcome:
        value = decision.value if isinstance(decision, StageAction) else decision
        try:
            await session.submit_decision(stage, value, comment)
        except ApprovalEngineError as e:
            return ActionOutcome(ok=False, kind=type(e).__name__, error=str(e))
        return ActionOutcome(ok=True)

    async def comment(self, session: ApprovalSession, text: str | None) -> ActionOutcome:
        try:
            await session.submit_comment(text)
        except ApprovalEngineError as e:
            return ActionOutcome(ok=False, kind=type(e).__name__, error=str(e))
        return ActionOutcome(ok=True)
