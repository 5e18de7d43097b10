"""Domain models for the approval workflow engine."""

from .approval import (
    Approval,
    ApprovalStatus,
    Decision,
    Participant,
    ParticipantRole,
)
from .comment import Comment
from .stage import Stage, StageStatus
from .stage_plan import StagePlan
from .user import DirectoryUser


__all__ = [
    "Approval",
    "ApprovalStatus",
    "Decision",
    "Participant",
    "ParticipantRole",
    "Comment",
    "Stage",
    "StageStatus",
    "StagePlan",
    "DirectoryUser",
]
