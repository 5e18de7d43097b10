"""Engine configuration model.

Config structure (``.apwf/config.yml``):
    base_url: https://scc.example.org
    token: ...
    viewer_id: 12            # optional, overrides /api/auth/me
    connect_timeout: 10
    read_timeout: 30
    stage_name_template: "Stage {number}"
"""

from pydantic import BaseModel, ConfigDict, field_validator

from apwf.domain.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_STAGE_NAME_TEMPLATE,
)


class EngineConfig(BaseModel):
    """Validated, merged configuration."""

    model_config = ConfigDict(extra="forbid")

    base_url: str | None = None
    token: str | None = None
    viewer_id: int | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    stage_name_template: str = DEFAULT_STAGE_NAME_TEMPLATE

    @field_validator("connect_timeout", "read_timeout")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0 seconds")
        return v

    @field_validator("stage_name_template")
    @classmethod
    def _template_has_number(cls, v: str) -> str:
        if "{number}" not in v:
            raise ValueError("stage_name_template must contain '{number}'")
        return v

    def require_base_url(self) -> str:
        if not self.base_url:
            raise ValueError(
                "base_url is required. Set it in .apwf/config.yml or APWF_BASE_URL."
            )
        return self.base_url
