"""Presentation adapter for rendering hosts."""

from .presenter import ApprovalPresenter, format_timestamp
from .view_models import (
    ActionOutcome,
    ApprovalDetailView,
    ApprovalSummaryView,
    CommentView,
    StageAction,
    StageView,
)

__all__ = [
    "ApprovalPresenter",
    "format_timestamp",
    "ActionOutcome",
    "ApprovalDetailView",
    "ApprovalSummaryView",
    "CommentView",
    "StageAction",
    "StageView",
]
