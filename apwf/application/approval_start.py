"""Starting a review: stage plan normalization and submission."""

import logging

from apwf.domain.errors import ValidationError
from apwf.domain.models.stage_plan import StagePlan
from apwf.domain.store.approval_store import ApprovalStore

logger = logging.getLogger(__name__)


def normalize_stage_plans(plans: list[StagePlan]) -> list[StagePlan]:
    """Drop stages nobody can approve and trim free text.

    Raises:
        ValidationError: if no stage with an approver remains
    """
    normalized: list[StagePlan] = []
    for plan in plans:
        if not plan.approvers:
            continue
        normalized.append(
            plan.model_copy(
                update={"name": plan.name.strip(), "message": plan.message.strip()}
            )
        )
    if not normalized:
        raise ValidationError("approval needs at least one approver", field="stages")
    return normalized


async def start_approval(
    store: ApprovalStore, document_id: int, plans: list[StagePlan]
) -> list[StagePlan]:
    """Validate the plan locally, then ask the store to start the review.

    Returns the plan as submitted.
    """
    stages = normalize_stage_plans(plans)
    dropped = len(plans) - len(stages)
    if dropped:
        logger.info(f"Dropped {dropped} stage(s) without approvers")
    await store.start_approval(document_id, stages)
    return stages
