"""Renderable view models produced by the presenter.

These carry display strings only; hosts render them however they like.
"""

from enum import Enum

from pydantic import BaseModel, Field

from apwf.domain.models.stage import StageStatus


class StageAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class StageView(BaseModel):
    number: int
    label: str  # "Stage 2"
    name: str
    message: str
    status: StageStatus
    status_label: str
    decided_at: str  # Formatted, "-" when undecided
    approvers: list[str] = Field(default_factory=list)
    observers: list[str] = Field(default_factory=list)
    is_current: bool = False
    actions: list[StageAction] = Field(default_factory=list)
    # Set when the viewer already decided on the active stage
    viewer_decision: str | None = None
    diagnostics: list[str] = Field(default_factory=list)


class CommentView(BaseModel):
    author: str
    text: str
    created_at: str


class ApprovalSummaryView(BaseModel):
    id: int
    document_id: int
    status: str
    status_label: str
    message: str
    updated_at: str


class ApprovalDetailView(BaseModel):
    id: int
    document_id: int
    status: str
    status_label: str
    initiator: str
    request_message: str
    updated_at: str
    participants: list[str] = Field(default_factory=list)
    stages: list[StageView] = Field(default_factory=list)
    comments: list[CommentView] = Field(default_factory=list)
    actionable_stage: int | None = None


class ActionOutcome(BaseModel):
    """Result of a user action; UI code never sees raw engine exceptions."""

    ok: bool
    kind: str | None = None  # Error class name on failure
    error: str | None = None
