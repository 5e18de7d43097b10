"""Approval event payload model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from apwf.domain.events.event_types import ApprovalEventType
from apwf.domain.models.approval import ApprovalStatus


class ApprovalEvent(BaseModel):
    """Immutable event payload for approval notifications."""

    model_config = {"frozen": True}

    event_type: ApprovalEventType
    approval_id: int
    timestamp: datetime
    status: ApprovalStatus | None = None
    stage: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
