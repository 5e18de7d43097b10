from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Comment(BaseModel):
    """Append-only discussion entry on an approval."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    approval_id: int | None = None
    user_id: int
    author: str = ""  # Display name, when the store provides one
    text: str = Field(alias="comment")
    created_at: datetime

    @field_validator("author", mode="before")
    @classmethod
    def _author_none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v
