from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field, field_validator

from apwf.domain.models.approval import Approval, ApprovalStatus, Decision, Participant
from apwf.domain.models.comment import Comment
from apwf.domain.models.stage_plan import StagePlan
from apwf.domain.models.user import DirectoryUser


class ApprovalSnapshot(BaseModel):
    """One approval together with all of its participant rows."""

    approval: Approval
    participants: list[Participant] = Field(default_factory=list)

    @field_validator("participants", mode="before")
    @classmethod
    def _null_participants_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class ApprovalStore(ABC):
    """Abstract request/response interface to the approval store.

    The store is the sole arbiter of correctness: it infers the active stage
    from ``current_stage`` and advances status server-side. Every method is a
    coroutine; implementations raise TransportError for any failure reaching
    or understanding the store.
    """

    @abstractmethod
    async def fetch_approval(self, approval_id: int) -> ApprovalSnapshot:
        """Load an approval and its participants."""
        ...

    @abstractmethod
    async def fetch_comments(self, approval_id: int) -> list[Comment]:
        """Load every comment of an approval, oldest first."""
        ...

    @abstractmethod
    async def submit_decision(
        self, approval_id: int, decision: Decision, comment: str
    ) -> None:
        """Record the caller's decision on the approval's active stage."""
        ...

    @abstractmethod
    async def submit_comment(self, approval_id: int, text: str) -> None:
        ...

    @abstractmethod
    async def list_approvals(
        self, status: ApprovalStatus | None = None
    ) -> list[Approval]:
        ...

    @abstractmethod
    async def start_approval(self, document_id: int, stages: list[StagePlan]) -> None:
        """Put a document into review with the given stage plan."""
        ...

    @abstractmethod
    async def current_user(self) -> DirectoryUser | None:
        """Identity of the authenticated caller, or None if unknown."""
        ...

    @abstractmethod
    async def list_users(self) -> list[DirectoryUser]:
        ...
