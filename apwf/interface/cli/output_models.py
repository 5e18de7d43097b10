from typing import Literal

from pydantic import BaseModel, Field

from apwf.application.presentation.view_models import (
    ApprovalDetailView,
    ApprovalSummaryView,
)


class BaseOutput(BaseModel):
    schema_version: int = 1
    command: Literal["list", "show", "decide", "comment", "start"]
    exit_code: int
    error: str | None = None


class ListOutput(BaseOutput):
    command: Literal["list"] = "list"
    approvals: list[ApprovalSummaryView] = Field(default_factory=list)
    total: int = 0


class ShowOutput(BaseOutput):
    command: Literal["show"] = "show"
    approval_id: int
    # On errors the detail is unknown; omitted from JSON via exclude_none.
    approval: ApprovalDetailView | None = None


class DecideOutput(BaseOutput):
    command: Literal["decide"] = "decide"
    approval_id: int
    decision: str | None = None
    status: str | None = None
    current_stage: int | None = None


class CommentOutput(BaseOutput):
    command: Literal["comment"] = "comment"
    approval_id: int
    comments: int = 0


class StartOutput(BaseOutput):
    command: Literal["start"] = "start"
    document_id: int
    stages: int = 0
