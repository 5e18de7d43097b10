"""Approval and participant records as served by the approval store.

Attribute names are snake_case; the store's JSON keys are accepted through
aliases (``doc_id``, ``current_stage`` ...). Both spellings validate.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApprovalStatus(str, Enum):
    """Overall status of an approval. APPROVED and RETURNED are terminal."""

    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    RETURNED = "returned"

    @property
    def is_terminal(self) -> bool:
        return self in (ApprovalStatus.APPROVED, ApprovalStatus.RETURNED)


class ParticipantRole(str, Enum):
    APPROVER = "approver"
    OBSERVER = "observer"


class Decision(str, Enum):
    """An approver's recorded verdict. NONE means not decided yet."""

    NONE = ""
    APPROVE = "approve"
    REJECT = "reject"


class Approval(BaseModel):
    """One document under review. Owned by the store; read-only here."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    document_id: int = Field(alias="doc_id")
    status: ApprovalStatus
    current_stage: int = 1
    created_by: int | None = None
    message: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("current_stage", mode="before")
    @classmethod
    def _current_stage_defaults_to_first(cls, v: Any) -> Any:
        # The store leaves current_stage unset (or 0) outside of review.
        if v is None:
            return 1
        if isinstance(v, int) and v < 1:
            return 1
        return v

    @field_validator("message", mode="before")
    @classmethod
    def _message_none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def last_activity(self) -> datetime | None:
        return self.updated_at or self.created_at


class Participant(BaseModel):
    """A user's assignment to one stage of an approval."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    approval_id: int
    user_id: int
    stage: int = 1
    # Roles this engine does not know are kept as plain strings and ignored
    # by stage grouping.
    role: ParticipantRole | str = Field(union_mode="left_to_right")
    decision: Decision = Decision.NONE
    decided_at: datetime | None = None
    stage_name: str = ""
    stage_message: str = ""

    @field_validator("stage", mode="before")
    @classmethod
    def _missing_stage_is_first(cls, v: Any) -> Any:
        # Single-stage approvals predate stage numbers. Zero and negative
        # numbers are kept so the aggregator can flag them.
        return 1 if v is None else v

    @field_validator("decision", mode="before")
    @classmethod
    def _null_decision_is_undecided(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("stage_name", "stage_message", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def has_decided(self) -> bool:
        return self.decision != Decision.NONE
