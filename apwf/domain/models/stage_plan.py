from pydantic import BaseModel, ConfigDict, Field, field_validator


class StagePlan(BaseModel):
    """One stage of a new approval, as submitted when review starts."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    approvers: list[int] = Field(default_factory=list)
    observers: list[int] = Field(default_factory=list)
    message: str = ""

    @field_validator("approvers", "observers")
    @classmethod
    def _drop_unset_ids(cls, v: list[int]) -> list[int]:
        # Unselected form options arrive as 0.
        return [user_id for user_id in v if user_id]
