"""Derived stage view model.

A Stage is never persisted. It is rebuilt from Approval + Participant records
on every aggregation pass and has no lifecycle of its own.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from apwf.domain.models.approval import Participant


class StageStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    LOCKED = "locked"  # Future stage of an approval still in review


class Stage(BaseModel):
    stage: int
    name: str = ""
    message: str = ""
    approvers: list[Participant] = Field(default_factory=list)
    observers: list[Participant] = Field(default_factory=list)
    decided_at: datetime | None = None
    status: StageStatus = StageStatus.PENDING

    # Populated only when upstream data for this stage is malformed
    diagnostics: list[str] = Field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.diagnostics
