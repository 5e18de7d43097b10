"""Approval event types for observer pattern notifications."""

from enum import Enum


class ApprovalEventType(str, Enum):
    """Typed events raised by the decision/comment protocol."""

    # View lifecycle
    APPROVAL_OPENED = "approval_opened"

    # Mutations
    DECISION_SUBMITTED = "decision_submitted"
    COMMENT_ADDED = "comment_added"

    # Failures reported to the caller
    SUBMISSION_FAILED = "submission_failed"
