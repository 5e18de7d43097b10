"""Decision and comment protocol.

A decision can be the one that flips ``approval.status`` or advances
``current_stage`` on the store, and nothing in the participant delta tells
the client which. So every successful decision is followed by a full reload
(approval, participants, comments) and a fresh aggregation. Comments never
affect stages; a successful comment reloads only the comment list.

Failures propagate to the caller and leave previously loaded state as is:
reloads assign their results only after every fetch has succeeded.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from apwf.application.stage_aggregator import aggregate
from apwf.domain.constants import DEFAULT_STAGE_NAME_TEMPLATE
from apwf.domain.errors import ApprovalEngineError, ValidationError
from apwf.domain.events.emitter import ApprovalEventEmitter
from apwf.domain.events.event import ApprovalEvent
from apwf.domain.events.event_types import ApprovalEventType
from apwf.domain.models.approval import Approval, ApprovalStatus, Decision, Participant
from apwf.domain.models.comment import Comment
from apwf.domain.models.stage import Stage
from apwf.domain.store.approval_store import ApprovalStore

logger = logging.getLogger(__name__)


def require_text(value: str | None, field_name: str) -> str:
    """Return the trimmed text, or raise ValidationError when it is blank."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} must not be empty", field=field_name)
    return text


def parse_decision(value: Decision | str | None) -> Decision:
    """Accept approve/reject (enum or string); anything else is a ValidationError."""
    try:
        decision = Decision(value) if value is not None else Decision.NONE
    except ValueError:
        decision = Decision.NONE
    if decision == Decision.NONE:
        raise ValidationError("decision must be 'approve' or 'reject'", field="decision")
    return decision


@dataclass
class ApprovalSession:
    """Client-side view of one approval plus the operations that mutate it.

    Callers serialize mutating calls (disable the triggering control while
    ``busy``). Double submits are not deduplicated here; the store decides.
    """

    store: ApprovalStore
    approval_id: int
    event_emitter: ApprovalEventEmitter | None = None
    stage_name_template: str = DEFAULT_STAGE_NAME_TEMPLATE

    approval: Approval | None = field(default=None, init=False)
    participants: list[Participant] = field(default_factory=list, init=False)
    stages: list[Stage] = field(default_factory=list, init=False)
    comments: list[Comment] = field(default_factory=list, init=False)
    _in_flight: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.event_emitter is None:
            self.event_emitter = ApprovalEventEmitter()

    @property
    def busy(self) -> bool:
        """True while a decision or comment submission is in flight."""
        return self._in_flight > 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Load everything needed to render the approval."""
        await self.reload()
        self._emit(ApprovalEventType.APPROVAL_OPENED)

    async def reload(self) -> None:
        """Refetch approval, participants and comments; recompute stages."""
        snapshot = await self.store.fetch_approval(self.approval_id)
        comments = await self.store.fetch_comments(self.approval_id)
        stages = aggregate(
            snapshot.approval,
            snapshot.participants,
            default_name=self.stage_name_template,
        )

        self.approval = snapshot.approval
        self.participants = snapshot.participants
        self.stages = stages
        self.comments = comments
        logger.debug(
            f"Approval {self.approval_id} reloaded: status={snapshot.approval.status.value} "
            f"current_stage={snapshot.approval.current_stage} stages={len(stages)}"
        )

    async def reload_comments(self) -> None:
        self.comments = await self.store.fetch_comments(self.approval_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def submit_decision(
        self,
        stage: int | None,
        decision: Decision | str,
        comment: str | None,
    ) -> None:
        """Submit the viewer's decision for ``stage`` and reload everything.

        The comment is mandatory for both outcomes. All preconditions are
        checked before any network call.

        Raises:
            ValidationError: blank comment, bad decision or missing stage
            TransportError: the store call or the reload failed
        """
        text = require_text(comment, "comment")
        verdict = parse_decision(decision)
        self._check_target_stage(stage)

        await self._mutate(
            lambda: self.store.submit_decision(self.approval_id, verdict, text),
            stage=stage,
        )
        self._emit(
            ApprovalEventType.DECISION_SUBMITTED,
            stage=stage,
            metadata={"decision": verdict.value},
        )
        await self.reload()

    async def submit_comment(self, text: str | None) -> None:
        """Append a comment and reload the comment list only.

        Raises:
            ValidationError: blank text
            TransportError: the store call or the reload failed
        """
        body = require_text(text, "comment")

        await self._mutate(lambda: self.store.submit_comment(self.approval_id, body))
        self._emit(ApprovalEventType.COMMENT_ADDED)
        await self.reload_comments()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_target_stage(self, stage: int | None) -> None:
        if stage is None or stage < 1:
            raise ValidationError("decision needs a target stage", field="stage")
        # The store applies decisions to its current stage; refuse a
        # mismatching target instead of silently deciding another stage.
        approval = self.approval
        if (
            approval is not None
            and approval.status == ApprovalStatus.REVIEW
            and stage != approval.current_stage
        ):
            raise ValidationError(
                f"stage {stage} is not the active stage ({approval.current_stage})",
                field="stage",
            )

    async def _mutate(self, call: Any, stage: int | None = None) -> None:
        self._in_flight += 1
        try:
            await call()
        except ApprovalEngineError as e:
            logger.warning(f"Approval {self.approval_id}: submission failed: {e}")
            self._emit(
                ApprovalEventType.SUBMISSION_FAILED,
                stage=stage,
                metadata={"error": str(e)},
            )
            raise
        finally:
            self._in_flight -= 1

    def _emit(
        self,
        event_type: ApprovalEventType,
        *,
        stage: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if self.event_emitter is None:
            return
        self.event_emitter.emit(
            ApprovalEvent(
                event_type=event_type,
                approval_id=self.approval_id,
                timestamp=datetime.now(timezone.utc),
                status=self.approval.status if self.approval else None,
                stage=stage,
                metadata=metadata or {},
            )
        )
